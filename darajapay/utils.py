#darajapay/utils.py
"""
Logging helpers

Provides:
- mask_secret(s) -> for safe logs
- redact_payload(payload) -> STK payload copy with the password hidden
"""

from typing import Any, Dict, Optional


def mask_secret(s: Optional[str], keep: int = 4) -> str:
    """Return masked secret with last `keep` chars visible (for safe logging)."""
    if not s:
        return ""
    s = str(s)
    if len(s) <= keep:
        return "*" * len(s)
    return "*" * (len(s) - keep) + s[-keep:]


def redact_payload(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {k: ("<hidden>" if k == "Password" else v) for k, v in payload.items()}
