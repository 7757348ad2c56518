from typing import Optional

import nh3


def clean_text(value: Optional[str], max_len: Optional[int] = None) -> str:
    """Strip every HTML tag from user text, trim it and cut it to max_len."""
    cleaned = nh3.clean(str(value or ""), tags=set(), attributes={}).strip()
    if max_len and len(cleaned) > max_len:
        return cleaned[:max_len]
    return cleaned
