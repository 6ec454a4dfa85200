# mpesa_core.py
# Daraja OAuth + STK Push client

import base64
import logging
from datetime import datetime, timezone
from typing import Any, Dict, NamedTuple, Optional

import requests

from darajapay.config import DarajaSettings
from darajapay.utils import redact_payload

logger = logging.getLogger(__name__)

TRANSACTION_TYPE = "CustomerPayBillOnline"
ACCOUNT_REFERENCE = "Test"
TRANSACTION_DESC = "Payment"


# -------------------------
# Errors
# -------------------------
class DarajaError(Exception):
    """Base error; `details` carries the provider body or transport message."""

    status_code = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details if details is not None else message


class ValidationError(DarajaError):
    status_code = 400


class AuthTokenError(DarajaError):
    pass


class PaymentInitiationError(DarajaError):
    pass


class CallbackHandlingError(DarajaError):
    pass


def _error_details(exc: Exception) -> Any:
    """Provider error body when the failure carries a response, else the message."""
    response = getattr(exc, "response", None)
    if response is not None:
        try:
            body = response.json()
        except ValueError:
            body = response.text
        if body:
            return body
    return str(exc)


# -------------------------
# Password
# -------------------------
class PasswordMaterial(NamedTuple):
    timestamp: str
    password: str


def ts_now(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y%m%d%H%M%S")


def generate_password(shortcode: str, passkey: str, timestamp: Optional[str] = None) -> PasswordMaterial:
    timestamp = timestamp or ts_now()
    raw = f"{shortcode}{passkey}{timestamp}"
    return PasswordMaterial(timestamp, base64.b64encode(raw.encode()).decode("utf-8"))


# -------------------------
# Client
# -------------------------
class DarajaClient:
    """Talks to the Daraja OAuth and STK Push endpoints for one set of settings.

    Holds no per-request state: every `stk_push` fetches its own token and
    password, so one instance is shared by all requests.
    """

    def __init__(self, settings: DarajaSettings):
        self.settings = settings

    def generate_auth_token(self) -> str:
        s = self.settings
        auth = base64.b64encode(f"{s.consumer_key}:{s.consumer_secret}".encode()).decode("utf-8")
        try:
            resp = requests.get(
                s.oauth_url,
                headers={"Authorization": f"Basic {auth}"},
                timeout=s.timeout,
            )
            resp.raise_for_status()
            body = resp.json()
        except (requests.RequestException, ValueError) as e:
            details = _error_details(e)
            logger.error("Error generating token: %s", details)
            raise AuthTokenError("Failed to generate OAuth token", details) from e

        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            logger.error("Access token missing in response: %s", body)
            raise AuthTokenError("Failed to generate OAuth token", body)
        return token

    def generate_password(self, timestamp: Optional[str] = None) -> PasswordMaterial:
        return generate_password(self.settings.shortcode, self.settings.passkey, timestamp)

    def build_payload(self, phone, amount, material: PasswordMaterial) -> Dict[str, Any]:
        s = self.settings
        return {
            "BusinessShortCode": s.shortcode,
            "Password": material.password,
            "Timestamp": material.timestamp,
            "TransactionType": TRANSACTION_TYPE,
            "Amount": amount,
            "PartyA": phone,
            "PartyB": s.shortcode,
            "PhoneNumber": phone,
            "CallBackURL": s.callback_url,
            "AccountReference": ACCOUNT_REFERENCE,
            "TransactionDesc": TRANSACTION_DESC,
        }

    def stk_push(self, phone, amount) -> Any:
        """Initiate one STK Push and return the provider's response body.

        Raises AuthTokenError if the token fetch fails (no payment call is
        made) and PaymentInitiationError if the payment call fails.
        """
        token = self.generate_auth_token()
        material = self.generate_password()
        payload = self.build_payload(phone, amount, material)
        logger.info("STK Push payload: %s", redact_payload(payload))

        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            resp = requests.post(
                self.settings.stk_push_url,
                json=payload,
                headers=headers,
                timeout=self.settings.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            details = _error_details(e)
            logger.error("Error initiating STK Push: %s", details)
            raise PaymentInitiationError("Failed to initiate STK Push", details) from e

        try:
            data = resp.json()
        except ValueError:
            data = resp.text
        logger.info("STK Push Response: %s", data)
        return data
