import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
DEBUG = LOG_LEVEL == "DEBUG"

DATABASE_URL = os.getenv("DATABASE_URL")
if not DATABASE_URL:
    raise ValueError("DATABASE_URL must be set in the environment")

ALLOWED_ORIGINS_RAW = os.getenv("ALLOWED_ORIGINS", "*")

ALLOWED_ORIGINS: list[str] = [
    origin.strip() for origin in ALLOWED_ORIGINS_RAW.split(",")
]

# Asset host (cPanel Fileman) settings
ASSET_HOST_URL = os.getenv("ASSET_HOST_URL", "")
ASSET_HOST_USERNAME = os.getenv("ASSET_HOST_USERNAME", "")
ASSET_HOST_TOKEN = os.getenv("ASSET_HOST_TOKEN", "")
ASSET_HOST_AUTH_SCHEME = os.getenv("ASSET_HOST_AUTH_SCHEME", "cpanel")
ASSET_PUBLIC_BASE_URL = os.getenv("ASSET_PUBLIC_BASE_URL", "")
ASSET_ROOT_DIR = os.getenv("ASSET_ROOT_DIR", "/public_html")
ASSET_IMAGE_FOLDER = os.getenv("ASSET_IMAGE_FOLDER", "public_images")
ASSET_UPLOAD_TIMEOUT_SECONDS = float(os.getenv("ASSET_UPLOAD_TIMEOUT_SECONDS", "30"))

# Listings authored directly by an administrator carry these sentinels
ADMIN_OWNER_ID = "admin-user"
ADMIN_PAYMENT_PREFIX = "admin-created-"


@dataclass(frozen=True)
class AssetHostConfig:
    """
    Connection settings for the external file host.

    Built once at startup and handed to AssetStoreClient so uploads never
    read ambient configuration mid-request.
    """

    api_url: str
    username: str
    token: str
    public_base_url: str
    auth_scheme: str = "cpanel"
    root_dir: str = "/public_html"
    image_folder: str = "public_images"
    timeout_seconds: float = 30.0

    def __repr__(self) -> str:
        masked = "***" if self.token else "<unset>"
        return (
            f"AssetHostConfig(api_url={self.api_url!r}, username={self.username!r}, "
            f"token={masked}, public_base_url={self.public_base_url!r})"
        )

    @property
    def has_credentials(self) -> bool:
        return bool(self.token.strip()) and bool(self.username)


def load_asset_host_config() -> AssetHostConfig:
    """Snapshot the asset host settings read from the environment."""
    return AssetHostConfig(
        api_url=ASSET_HOST_URL.rstrip("/"),
        username=ASSET_HOST_USERNAME,
        token=ASSET_HOST_TOKEN,
        public_base_url=ASSET_PUBLIC_BASE_URL.rstrip("/"),
        auth_scheme=ASSET_HOST_AUTH_SCHEME,
        root_dir=ASSET_ROOT_DIR.rstrip("/"),
        image_folder=ASSET_IMAGE_FOLDER.strip("/"),
        timeout_seconds=ASSET_UPLOAD_TIMEOUT_SECONDS,
    )
