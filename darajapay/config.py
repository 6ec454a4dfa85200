import os
import logging
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

# Load .env file
load_dotenv()

SANDBOX_BASE = "https://sandbox.safaricom.co.ke"
LIVE_BASE = "https://api.safaricom.co.ke"

logger = logging.getLogger(__name__)


def _float_or_none(value, name="DARAJA_TIMEOUT"):
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring %s=%r: not a number of seconds", name, value)
        return None


class Config:
    # ------------------------------------------------------------------
    # Daraja
    # ------------------------------------------------------------------
    DARAJA_ENV = os.environ.get("DARAJA_ENV", "sandbox").lower()

    DARAJA_CONSUMER_KEY = os.environ.get("DARAJA_CONSUMER_KEY")
    DARAJA_CONSUMER_SECRET = os.environ.get("DARAJA_CONSUMER_SECRET")
    DARAJA_SHORTCODE = os.environ.get("DARAJA_SHORTCODE")
    DARAJA_PASSKEY = os.environ.get("DARAJA_PASSKEY")

    # Callback
    CALLBACK_URL = os.environ.get("CALLBACK_URL")

    # Outbound timeout in seconds; unset means the requests default
    DARAJA_TIMEOUT = _float_or_none(os.environ.get("DARAJA_TIMEOUT"))

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = int(os.environ.get("PORT", 8080))
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    LOG_FILE = os.environ.get("LOG_FILE")


@dataclass(frozen=True)
class DarajaSettings:
    """Daraja credentials and endpoints, frozen once at startup."""

    consumer_key: Optional[str]
    consumer_secret: Optional[str]
    shortcode: Optional[str]
    passkey: Optional[str]
    callback_url: Optional[str]
    environment: str = "sandbox"
    timeout: Optional[float] = None

    REQUIRED = (
        ("DARAJA_CONSUMER_KEY", "consumer_key"),
        ("DARAJA_CONSUMER_SECRET", "consumer_secret"),
        ("DARAJA_SHORTCODE", "shortcode"),
        ("DARAJA_PASSKEY", "passkey"),
        ("CALLBACK_URL", "callback_url"),
    )

    @classmethod
    def from_config(cls, config: Mapping) -> "DarajaSettings":
        env = (config.get("DARAJA_ENV") or "sandbox").lower()
        if env not in ("sandbox", "live"):
            env = "sandbox"
        return cls(
            consumer_key=config.get("DARAJA_CONSUMER_KEY"),
            consumer_secret=config.get("DARAJA_CONSUMER_SECRET"),
            shortcode=config.get("DARAJA_SHORTCODE"),
            passkey=config.get("DARAJA_PASSKEY"),
            callback_url=config.get("CALLBACK_URL"),
            environment=env,
            timeout=config.get("DARAJA_TIMEOUT"),
        )

    @property
    def base_url(self) -> str:
        return LIVE_BASE if self.environment == "live" else SANDBOX_BASE

    @property
    def oauth_url(self) -> str:
        return f"{self.base_url}/oauth/v1/generate?grant_type=client_credentials"

    @property
    def stk_push_url(self) -> str:
        return f"{self.base_url}/mpesa/stkpush/v1/processrequest"

    def missing(self):
        """Names of the environment variables that were left unset."""
        return [name for name, attr in self.REQUIRED if not getattr(self, attr)]
