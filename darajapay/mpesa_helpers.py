# mpesa_helpers.py
from typing import Any, Dict, Optional

SUMMARY_FIELDS = ("MerchantRequestID", "CheckoutRequestID", "ResultCode", "ResultDesc")


def summarize_callback(payload: Any) -> Optional[Dict[str, Any]]:
    """
    Pull the identifying fields out of a Daraja STK callback:

        {"Body": {"stkCallback": {"MerchantRequestID": ..., "CheckoutRequestID": ...,
                                  "ResultCode": 0, "ResultDesc": ..., "CallbackMetadata": {...}}}}

    Returns None when the payload does not have that shape. Never raises;
    the callback endpoint accepts anything.
    """
    if not isinstance(payload, dict):
        return None
    body = payload.get("Body")
    stk = body.get("stkCallback") if isinstance(body, dict) else None
    if not isinstance(stk, dict):
        return None

    summary = {field: stk.get(field) for field in SUMMARY_FIELDS}

    metadata = stk.get("CallbackMetadata")
    items = metadata.get("Item") if isinstance(metadata, dict) else None
    if isinstance(items, list):
        values = {
            it["Name"]: it.get("Value")
            for it in items
            if isinstance(it, dict) and isinstance(it.get("Name"), str)
        }
        if "MpesaReceiptNumber" in values:
            summary["MpesaReceiptNumber"] = values["MpesaReceiptNumber"]
        if "Amount" in values:
            summary["Amount"] = values["Amount"]
    return summary
