"""
Prometheus metrics for listing lifecycle operations, asset uploads and dependent cleanup.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Example:
    >>> from listing_lifecycle.metrics import asset_upload_latency, asset_uploads
    >>> with asset_upload_latency.labels(folder="listing-images").time():
    ...     result = client.upload(blob, AssetFolder.LISTING_IMAGES)
    >>> asset_uploads.labels(folder="listing-images", outcome="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Histogram

# =============================================================================
# Lifecycle Metrics
# =============================================================================

listing_operations = Counter(
    "listing_operations_total",
    "Total listing lifecycle operations by outcome",
    ["operation", "variant", "outcome"],
)
"""
Counter for coordinator operations.

Labels:
    operation: create, update, delete, set_status
    variant: car or house
    outcome: success, or the error kind (validation, authorization, not_found, asset_upload, storage)
"""

# =============================================================================
# Asset Host Metrics
# =============================================================================

asset_uploads = Counter(
    "listing_asset_uploads_total",
    "Total uploads sent to the external asset host",
    ["folder", "outcome"],
)
"""
Counter for single-blob uploads.

Labels:
    folder: listing-images or receipts
    outcome: success, configuration, transient, rejected
"""

asset_upload_latency = Histogram(
    "listing_asset_upload_latency_seconds",
    "Asset host upload latency in seconds",
    ["folder"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)

# =============================================================================
# Dependent Record Metrics
# =============================================================================

dependent_sweeps = Counter(
    "listing_dependent_sweeps_total",
    "Dependent record deletes issued while deleting a listing",
    ["kind", "outcome"],
)
"""
Counter for per-kind sweep results.

Labels:
    kind: payments, reviews, notifications
    outcome: deleted, skipped, failed
"""
