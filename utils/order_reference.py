"""
Order reference extraction

Canonical references are a ledger prefix followed by exactly 19 digits:
s05 for deposits, d05 for withdrawals. Patterns are tried in order; a
pattern whose first match is not canonical is skipped, not fatal.
"""

import re
from typing import Iterable, Optional

DEPOSIT_PREFIX = "s05"
WITHDRAWAL_PREFIX = "d05"

CANONICAL_ORDER = re.compile(r"(?:s05|d05)\d{19}", re.I)

ORDER_PATTERNS = [
    # "Order: s05...", "order no. s05...", "order #s05..."
    re.compile(r"order\s*(?:no\.?|number|id|num)?\s*[:#-]?\s*([a-z0-9]+)", re.I),
    # Bare canonical token anywhere in the text
    re.compile(r"\b((?:s05|d05)\d{19})\b", re.I),
    # Anything shaped like a reference: letter + digits
    re.compile(r"\b([a-z]\d{5,})\b", re.I),
]


def is_canonical(token: str) -> bool:
    return bool(CANONICAL_ORDER.fullmatch(token))


def extract_order_number(text: Optional[str]) -> Optional[str]:
    """Return the normalized (lowercase) order reference in text, or None"""
    if not text:
        return None

    for pattern in ORDER_PATTERNS:
        match = pattern.search(text)
        if match and is_canonical(match.group(1)):
            return match.group(1).lower()
    return None


def ledger_hint(order_number: str) -> Optional[str]:
    """Ledger implied by the reference prefix"""
    prefix = order_number[:3].lower()
    if prefix == DEPOSIT_PREFIX:
        return "deposits"
    if prefix == WITHDRAWAL_PREFIX:
        return "withdrawals"
    return None


def extract_from_history(turns: Iterable) -> Optional[str]:
    """Most recent order reference found in the user's own turns"""
    for turn in reversed(list(turns)):
        if turn.role != "user":
            continue
        order_number = extract_order_number(turn.text)
        if order_number:
            return order_number
    return None
