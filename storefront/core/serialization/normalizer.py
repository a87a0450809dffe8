from __future__ import annotations

import dataclasses
from collections.abc import Mapping
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel

ENVELOPE_KEY = "data"


def normalize(value: Any) -> Any:
    """
    Turn a domain value into plain JSON data.

    Dataclass fields carrying ``metadata={"serialize": False}`` are dropped.
    Unsupported objects raise TypeError.
    """
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Enum):
        return normalize(value.value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, BaseModel):
        return normalize(value.model_dump(mode="json"))
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: normalize(getattr(value, f.name))
            for f in dataclasses.fields(value)
            if f.metadata.get("serialize", True)
        }
    if isinstance(value, Mapping):
        return {str(k): normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [normalize(v) for v in value]
    raise TypeError(f"Cannot normalize object of type {type(value).__name__}")


def _camel(key: str) -> str:
    head, *rest = key.split("_")
    return head + "".join(p[:1].upper() + p[1:] for p in rest)


def format_json(data: Any) -> Any:
    """Storefront JSON style: camelCase keys at every level."""
    if isinstance(data, dict):
        return {_camel(k): format_json(v) for k, v in data.items()}
    if isinstance(data, list):
        return [format_json(v) for v in data]
    return data


def to_envelope(value: Any) -> Dict[str, Any]:
    return {ENVELOPE_KEY: format_json(normalize(value))}
