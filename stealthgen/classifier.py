# Copyright (c) 2026 Mohamad Al-Zawahreh (dba Sovereign Systems).
#
# This file is part of stealthgen.
#
# LICENSE: DUAL-LICENSED (AGPLv3 or COMMERCIAL).

from typing import Optional

from .config import settings


def needs_shared(text: str, token: Optional[str] = None) -> bool:
    """
    Whether an evasion expects the shared utils object as its argument.

    Searches the whole unit, not just the extracted function. A false
    positive only means ``utils`` is passed and never read.
    """
    return (token or settings.SHARED_TOKEN) in text
