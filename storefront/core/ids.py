from __future__ import annotations

import re
import uuid

from storefront.core.errors import InvalidUuidError

_ID_RE = re.compile(r"[0-9a-f]{32}")


def new_id() -> str:
    return uuid.uuid4().hex


def is_valid_id(value: object) -> bool:
    return isinstance(value, str) and _ID_RE.fullmatch(value) is not None


def ensure_valid_id(value: str) -> str:
    if not is_valid_id(value):
        raise InvalidUuidError(value)
    return value
