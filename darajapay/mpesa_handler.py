# mpesa_handler.py
# STK Push + callback endpoints. Registered by create_app() under /api/daraja.

import json
import logging
from typing import Any, Tuple

from flask import Blueprint, current_app, jsonify, request

from darajapay.mpesa_core import (
    AuthTokenError,
    CallbackHandlingError,
    DarajaClient,
    PaymentInitiationError,
    ValidationError,
)
from darajapay.mpesa_helpers import summarize_callback

logger = logging.getLogger(__name__)

daraja_bp = Blueprint("daraja_bp", __name__)

REQUIRED_FIELDS_MESSAGE = "Phone number and amount are required"
STK_SUCCESS_MESSAGE = "STK Push initiated successfully"
STK_FAILURE_MESSAGE = "Failed to initiate STK Push"
CALLBACK_ACK = "Callback received"
CALLBACK_FAILURE_MESSAGE = "Failed to handle callback"


# -------------------------
# Controller
# -------------------------
def stk_push(body: Any, client: DarajaClient) -> Tuple[dict, int]:
    """Validate `{phone, amount}` and forward one STK Push through `client`."""
    body = body if isinstance(body, dict) else {}
    phone = body.get("phone")
    amount = body.get("amount")

    try:
        if not phone or not amount:
            raise ValidationError(REQUIRED_FIELDS_MESSAGE)
        data = client.stk_push(phone, amount)
    except ValidationError as e:
        logger.warning("STK Push rejected: %s", e.message)
        return {"error": e.message}, e.status_code
    except (AuthTokenError, PaymentInitiationError) as e:
        logger.error("STK Push failed (%s): %s", e.message, e.details)
        return {"error": STK_FAILURE_MESSAGE, "details": e.details}, e.status_code

    return {"message": STK_SUCCESS_MESSAGE, "data": data}, 200


def handle_callback(raw_body) -> Tuple[Any, int]:
    """Log whatever Daraja posted and acknowledge it."""
    try:
        try:
            payload = json.loads(raw_body) if raw_body else {}
        except ValueError as e:
            raise CallbackHandlingError("Malformed callback body", str(e)) from e

        logger.info("STK Push Callback Data: %s", payload)
        summary = summarize_callback(payload)
        if summary:
            logger.info("STK callback %s", summary)
    except CallbackHandlingError as e:
        logger.error("Error handling callback: %s", e.details)
        return {"error": CALLBACK_FAILURE_MESSAGE}, e.status_code
    except Exception:
        logger.exception("Error handling callback")
        return {"error": CALLBACK_FAILURE_MESSAGE}, CallbackHandlingError.status_code

    return CALLBACK_ACK, 200


# -------------------------
# Routes
# -------------------------
@daraja_bp.route("/stkpush", methods=["POST"])
def stkpush_view():
    body, status = stk_push(request.get_json(silent=True), current_app.extensions["daraja"])
    return jsonify(body), status


@daraja_bp.route("/callback", methods=["POST"])
def callback_view():
    # Non-JSON requests are acknowledged as an empty payload
    raw = request.get_data() if request.is_json else b""
    body, status = handle_callback(raw)
    if status != 200:
        return jsonify(body), status
    return body, status
