"""Shared utility functions."""

from __future__ import annotations

import secrets
import string
import time
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

_TXN_ALPHABET = string.ascii_uppercase + string.digits


def utc_now() -> datetime:
    """Return aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_record_id(prefix: str) -> str:
    """Return a fresh record id such as ``enrollment_3f2a...``."""
    return f"{prefix}_{uuid4().hex[:12]}"


def generate_transaction_id(prefix: str = "TXN") -> str:
    """Return ``TXN<epoch millis><9 random chars>`` in upper case."""
    suffix = "".join(secrets.choice(_TXN_ALPHABET) for _ in range(9))
    return f"{prefix}{int(time.time() * 1000)}{suffix}".upper()


def round_percent(ratio: Decimal | float | int) -> int:
    """Convert a 0..1 ratio to a whole percent, rounding half up."""
    value = Decimal(str(ratio)) * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
