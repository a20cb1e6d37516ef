# =============================================================================
# scentbox_core/domain/status.py
# User status enumeration and its storage encoding
# =============================================================================

from __future__ import annotations
from enum import Enum
from typing import Optional

from scentbox_core.errors import CorruptRecordError


class UserStatus(Enum):
    """Per-user status of a catalog item. NONE means "no status"."""
    NONE = "none"
    WISHLIST = "wishlist"
    OWNED = "owned"
    CONSUMED = "consumed"

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    UserStatus.NONE: "No status",
    UserStatus.WISHLIST: "Wishlist",
    UserStatus.OWNED: "Collection",
    UserStatus.CONSUMED: "Empty / used up",
}

# Bump when the stored representation changes; decode_status only accepts
# values written by this version.
STATUS_ENCODING_VERSION = 1

_ENCODE = {status: status.value for status in UserStatus}
_DECODE = {value: status for status, value in _ENCODE.items()}


def encode_status(status: UserStatus) -> str:
    """Storage/wire representation of a status."""
    return _ENCODE[status]


def decode_status(raw: Optional[str]) -> UserStatus:
    """
    Decode a stored status value.

    Raises:
        CorruptRecordError: if the value is not a known encoding
    """
    if raw is None:
        raise CorruptRecordError("Missing user status value")

    status = _DECODE.get(raw.strip().lower())
    if status is None:
        raise CorruptRecordError(
            f"Unrecognized user status value (encoding v{STATUS_ENCODING_VERSION})",
            value=raw,
        )
    return status
