"""Pseudonymous device identity derived from the X-Device-Id header."""

import hashlib
from typing import Optional

from errors import ValidationError

DEVICE_HEADER = "X-Device-Id"
MIN_DEVICE_ID_LENGTH = 8
MAX_DEVICE_ID_LENGTH = 200


def resolve_device_hash(raw_id: Optional[str]) -> str:
    """
    Hash a client-chosen device identifier into a stable pseudonymous key.

    Args:
        raw_id: The raw header value, or None when absent.

    Returns:
        The SHA-256 hex digest of the identifier.

    Raises:
        ValidationError: If the identifier is missing or out of range.
    """
    if not raw_id or not (
        MIN_DEVICE_ID_LENGTH <= len(raw_id) <= MAX_DEVICE_ID_LENGTH
    ):
        raise ValidationError(f"En-tête {DEVICE_HEADER} manquant")
    return hashlib.sha256(raw_id.encode("utf-8")).hexdigest()
