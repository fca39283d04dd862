"""
Snapshot sanitization.

Everything that enters the message protocol passes through here first.
The output contains only ``None``, booleans, numbers, strings, lists and
string-keyed dicts: no element handles and nothing else that could reach
back into the document.

A value that cannot be normalized is a programming error. In strict mode
(development) it raises ``SanitizationError``; otherwise the offending
field is dropped and a warning is logged.
"""

import dataclasses
import logging
import math
from enum import Enum
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ValidationError

from .document.base import ElementHandle
from .exceptions import SanitizationError
from .models import PageSnapshot

logger = logging.getLogger(__name__)

# Fields that only ever hold live references
HANDLE_FIELDS = frozenset({"handle", "element", "node"})

_DROP = object()


def sanitize_value(value: Any, strict: bool = False, path: str = "$") -> Any:
    """Recursively normalize ``value`` to plain, transferable data."""
    result = _sanitize(value, strict, path)
    return None if result is _DROP else result


def _reject(value: Any, strict: bool, path: str, reason: str) -> Any:
    if strict:
        raise SanitizationError(
            f"Cannot sanitize value at {path}: {reason}",
            path=path,
            value_type=type(value).__name__,
        )
    logger.warning(f"Dropping unsanitizable value at {path} ({type(value).__name__}): {reason}")
    return _DROP


def _sanitize(value: Any, strict: bool, path: str) -> Any:
    if value is None or isinstance(value, (bool, str)):
        return value
    if isinstance(value, ElementHandle):
        return _DROP
    if isinstance(value, Enum):
        return _sanitize(value.value, strict, path)
    if isinstance(value, int):
        return int(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            return _reject(value, strict, path, "non-finite number")
        return value
    if isinstance(value, BaseModel):
        return _sanitize(value.model_dump(), strict, path)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return _sanitize(fields, strict, path)
    if isinstance(value, Mapping):
        return _sanitize_mapping(value, strict, path)
    if isinstance(value, (list, tuple)):
        return _sanitize_sequence(value, strict, path)
    if isinstance(value, (set, frozenset)):
        return _sanitize_sequence(sorted(value, key=repr), strict, path)
    return _reject(value, strict, path, "unsupported type")


def _sanitize_mapping(value: Mapping, strict: bool, path: str) -> Any:
    result: Dict[str, Any] = {}
    for key, item in value.items():
        if isinstance(key, Enum):
            key = key.value
        if isinstance(key, bool) or not isinstance(key, (str, int)):
            if _reject(key, strict, f"{path}.<key>", "mapping keys must be strings") is _DROP:
                continue
        key = str(key)
        if key in HANDLE_FIELDS:
            continue
        cleaned = _sanitize(item, strict, f"{path}.{key}")
        if cleaned is not _DROP:
            result[key] = cleaned
    return result


def _sanitize_sequence(value, strict: bool, path: str) -> Any:
    result = []
    for index, item in enumerate(value):
        cleaned = _sanitize(item, strict, f"{path}[{index}]")
        if cleaned is not _DROP:
            result.append(cleaned)
    return result


def sanitize(raw: Any, strict: bool = False) -> PageSnapshot:
    """
    Produce a transfer-safe ``PageSnapshot``.

    Accepts a ``PageSnapshot``, a mapping or a dataclass with snapshot
    fields. ``sanitize(sanitize(x)) == sanitize(x)``.
    """
    data = sanitize_value(raw, strict=strict)
    if not isinstance(data, dict):
        _reject(raw, strict, "$", "snapshot must be a mapping")
        return PageSnapshot.failed("invalid snapshot")

    known = set(PageSnapshot.model_fields)
    for key in list(data):
        if key not in known:
            _reject(data[key], strict, f"$.{key}", "unknown snapshot field")
            data.pop(key)

    for key in ("buttons", "headings", "links", "inputs"):
        items = data.get(key)
        if items is None:
            continue
        if not isinstance(items, list):
            _reject(items, strict, f"$.{key}", "descriptor list expected")
            data.pop(key)
            continue
        kept = []
        for index, item in enumerate(items):
            if isinstance(item, dict):
                kept.append(item)
            else:
                _reject(item, strict, f"$.{key}[{index}]", "descriptor must be a mapping")
        data[key] = kept

    try:
        return PageSnapshot.model_validate(data)
    except ValidationError as e:
        if strict:
            raise SanitizationError(f"Snapshot failed validation: {e}", path="$")
        bad = {err["loc"][0] for err in e.errors() if err.get("loc")}
        logger.warning(f"Dropping invalid snapshot fields: {sorted(map(str, bad))}")
        for key in bad:
            data.pop(key, None)
        return PageSnapshot.model_validate(data)
