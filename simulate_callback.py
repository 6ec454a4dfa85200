"""
Post a sample Daraja STK callback to a running gateway (local testing).

    python simulate_callback.py            # successful payment
    python simulate_callback.py cancelled  # user cancelled on the handset
"""

import os
import sys
import json
import requests
from dotenv import load_dotenv

load_dotenv()

# ============ CONFIG ============
CALLBACK_URL = os.getenv("SIMULATE_CALLBACK_URL", "http://localhost:8080/api/daraja/callback")
PHONE = os.getenv("SIMULATE_PHONE", "254708374149")
AMOUNT = int(os.getenv("SIMULATE_AMOUNT", "1"))
# ================================


def build_sample_callback(cancelled=False, phone=PHONE, amount=AMOUNT):
    stk = {
        "MerchantRequestID": "29115-34620561-1",
        "CheckoutRequestID": "ws_CO_191220191020363925",
    }
    if cancelled:
        stk.update(ResultCode=1032, ResultDesc="Request cancelled by user")
    else:
        stk.update(
            ResultCode=0,
            ResultDesc="The service request is processed successfully.",
            CallbackMetadata={
                "Item": [
                    {"Name": "Amount", "Value": amount},
                    {"Name": "MpesaReceiptNumber", "Value": "NLJ7RT61SV"},
                    {"Name": "TransactionDate", "Value": 20191219102115},
                    {"Name": "PhoneNumber", "Value": int(phone)},
                ]
            },
        )
    return {"Body": {"stkCallback": stk}}


def send_callback(url, payload):
    res = requests.post(url, json=payload, timeout=10)
    return res.status_code, res.text


def simulate_callback(cancelled=False):
    payload = build_sample_callback(cancelled)
    print(f"\n📡 Sending {'cancelled' if cancelled else 'successful'} STK callback to {CALLBACK_URL}")
    print(json.dumps(payload, indent=2))

    status, text = send_callback(CALLBACK_URL, payload)

    print(f"\n🏁 Gateway replied HTTP {status}: {text}")
    return status


if __name__ == "__main__":
    cancelled = len(sys.argv) > 1 and sys.argv[1] == "cancelled"
    sys.exit(0 if simulate_callback(cancelled) == 200 else 1)
