from __future__ import annotations

from ..core.exceptions import ValidationError


def normalize_card_id(card_id: str) -> str:
    """Canonical form of a card identifier: no ':' separators, lowercase.

    Readers emit ids such as ``AA:BB:CC``; the store only ever holds ``aabbcc``.
    """

    normalized = (card_id or "").strip().replace(":", "").lower()
    if not normalized:
        raise ValidationError("カードIDが空です")
    return normalized
