"""
Best-effort cleanup of records that reference a deleted listing by copied id.

Each dependent collection is handled by its own cleaner, registered when the
app starts. A collection that is not registered is simply not swept; that is a
configuration decision, not a runtime failure. The cleaners run concurrently and
one failing never stops the others. Their outcomes are collected into a
SweepReport for logs; a failed sweep never fails the listing delete.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional

import structlog
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from listing_lifecycle.config import ADMIN_PAYMENT_PREFIX
from listing_lifecycle.db.writers.notifications import delete_notifications
from listing_lifecycle.db.writers.payments import delete_payments
from listing_lifecycle.db.writers.reviews import delete_reviews
from listing_lifecycle.errors import DependentCleanupError
from listing_lifecycle.metrics import dependent_sweeps

logger = structlog.get_logger(__name__)


class SweepStatus(str, Enum):
    DELETED = "deleted"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class SweepOutcome:
    kind: str
    status: SweepStatus
    deleted: int = 0
    reason: Optional[str] = None


@dataclass
class SweepReport:
    """Diagnostic record of one sweep. Never returned to end users."""

    listing_id: str
    payment_id: Optional[str]
    outcomes: dict[str, SweepOutcome] = field(default_factory=dict)

    @property
    def failures(self) -> list[SweepOutcome]:
        return [o for o in self.outcomes.values() if o.status is SweepStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failures

    def as_log_fields(self) -> dict[str, object]:
        return {
            outcome.kind: (
                outcome.status.value
                if outcome.status is not SweepStatus.DELETED
                else f"deleted:{outcome.deleted}"
            )
            for outcome in self.outcomes.values()
        }


def is_admin_payment_id(payment_id: Optional[str]) -> bool:
    """Admin-created listings carry a sentinel payment id with no Payment row behind it."""
    return bool(payment_id) and payment_id.startswith(ADMIN_PAYMENT_PREFIX)  # type: ignore[union-attr]


class DependentKind(ABC):
    """One dependent collection that must be emptied of a deleted listing's rows."""

    name: str

    def applies_to(self, listing_id: str, payment_id: Optional[str]) -> bool:
        """False means there is nothing to sweep for this listing."""
        return True

    @abstractmethod
    def delete_for(self, listing_id: str, payment_id: Optional[str]) -> int:
        """
        Delete matching rows.

        Returns:
            int: Rows deleted

        Raises:
            DependentCleanupError: If the collection could not be cleaned
        """


class _EngineKind(DependentKind):
    def __init__(self, engine: Engine):
        self.engine = engine


class PaymentRecords(_EngineKind):
    """Payments matching {productId: listing} OR {paymentId: payment}."""

    name = "payments"

    def applies_to(self, listing_id: str, payment_id: Optional[str]) -> bool:
        return bool(payment_id) and not is_admin_payment_id(payment_id)

    def delete_for(self, listing_id: str, payment_id: Optional[str]) -> int:
        try:
            with self.engine.begin() as conn:
                return delete_payments(conn, listing_id, payment_id or "")
        except SQLAlchemyError as e:
            raise DependentCleanupError(self.name, str(e))


class ReviewRecords(_EngineKind):
    name = "reviews"

    def delete_for(self, listing_id: str, payment_id: Optional[str]) -> int:
        try:
            with self.engine.begin() as conn:
                return delete_reviews(conn, listing_id)
        except SQLAlchemyError as e:
            raise DependentCleanupError(self.name, str(e))


class NotificationRecords(_EngineKind):
    """Notifications matching {targetId: listing} OR {entityId: listing}."""

    name = "notifications"

    def delete_for(self, listing_id: str, payment_id: Optional[str]) -> int:
        try:
            with self.engine.begin() as conn:
                return delete_notifications(conn, listing_id)
        except SQLAlchemyError as e:
            raise DependentCleanupError(self.name, str(e))


class DependentRecordSweeper:
    """
    Deletes a listing's dependent records across every registered collection.

    Example:
        >>> sweeper = DependentRecordSweeper([PaymentRecords(engine), ReviewRecords(engine)])
        >>> report = sweeper.sweep("6f1c...", "9b2e...")
        >>> report.ok
        True
    """

    def __init__(self, kinds: Iterable[DependentKind] = ()):
        self._kinds: dict[str, DependentKind] = {}
        for kind in kinds:
            self.register(kind)

    def register(self, kind: DependentKind) -> None:
        if kind.name in self._kinds:
            raise ValueError(f"Dependent kind already registered: {kind.name}")
        self._kinds[kind.name] = kind

    @property
    def kinds(self) -> list[str]:
        return list(self._kinds)

    def _run(self, kind: DependentKind, listing_id: str, payment_id: Optional[str]) -> SweepOutcome:
        try:
            deleted = kind.delete_for(listing_id, payment_id)
        except DependentCleanupError as e:
            return SweepOutcome(kind=kind.name, status=SweepStatus.FAILED, reason=e.reason)
        except Exception as e:
            logger.exception("dependent_sweep_crashed", kind=kind.name, listing_id=listing_id)
            return SweepOutcome(kind=kind.name, status=SweepStatus.FAILED, reason=repr(e))
        return SweepOutcome(kind=kind.name, status=SweepStatus.DELETED, deleted=deleted)

    def sweep(self, listing_id: str, payment_id: Optional[str]) -> SweepReport:
        """
        Delete dependent records of a listing in every registered collection.

        All applicable deletes are issued together and awaited together.

        Args:
            listing_id: Deleted listing's id
            payment_id: Deleted listing's payment id (may be the admin sentinel)

        Returns:
            SweepReport: Per-kind outcome
        """
        report = SweepReport(listing_id=listing_id, payment_id=payment_id)
        pending: list[DependentKind] = []

        for kind in self._kinds.values():
            if kind.applies_to(listing_id, payment_id):
                pending.append(kind)
            else:
                report.outcomes[kind.name] = SweepOutcome(kind=kind.name, status=SweepStatus.SKIPPED)

        if pending:
            with ThreadPoolExecutor(max_workers=len(pending)) as pool:
                futures = [pool.submit(self._run, kind, listing_id, payment_id) for kind in pending]
                for future in as_completed(futures):
                    outcome = future.result()
                    report.outcomes[outcome.kind] = outcome

        for outcome in report.outcomes.values():
            dependent_sweeps.labels(kind=outcome.kind, outcome=outcome.status.value).inc()
            if outcome.status is SweepStatus.FAILED:
                logger.error(
                    "dependent_sweep_failed",
                    listing_id=listing_id,
                    payment_id=payment_id,
                    kind=outcome.kind,
                    reason=outcome.reason,
                )

        return report


def build_default_sweeper(engine: Engine) -> DependentRecordSweeper:
    """Register the payment, review and notification cleaners against one engine."""
    return DependentRecordSweeper(
        [PaymentRecords(engine), ReviewRecords(engine), NotificationRecords(engine)]
    )
