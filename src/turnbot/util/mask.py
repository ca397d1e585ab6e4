from __future__ import annotations


def mask_id(value: str) -> str:
    """Hide all but the last four characters of a recipient identifier."""
    s = str(value or "")
    if len(s) <= 4:
        return "****"
    return "****" + s[-4:]
