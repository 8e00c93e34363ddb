"""Conversion between dataclass models and camelCase store documents."""

import types
import typing
from dataclasses import MISSING, fields, is_dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar, get_args, get_origin, get_type_hints

from plaza_billing.exceptions import StoreError

T = TypeVar("T")

# Keys that do not follow the plain snake_case -> camelCase rule
FIELD_ALIASES = {"photo_url": "photoURL"}

# Legacy documents may lack numeric or text fields; treat them as zero/empty
_MISSING_DEFAULTS: dict[Any, Any] = {Decimal: Decimal("0"), str: "", int: 0}


def camel_case(name: str) -> str:
    """Map a model attribute name to its document key."""
    if name in FIELD_ALIASES:
        return FIELD_ALIASES[name]
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def serialize_value(value: Any) -> Any:
    """Serialize a value for storage in a document."""
    if isinstance(value, Decimal):
        return str(value)
    elif isinstance(value, Enum):
        return value.value
    elif is_dataclass(value):
        return to_document(value)
    elif isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def to_document(obj: Any, keep_none: bool = False) -> dict[str, Any]:
    """Convert a model instance to a document.

    ``None`` fields are omitted unless ``keep_none`` is set, in which case they
    are written as nulls so a partial update clears them.
    """
    doc: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if value is None and not keep_none:
            continue
        doc[camel_case(f.name)] = serialize_value(value)
    return doc


def from_document(cls: type[T], doc: dict[str, Any]) -> T:
    """Build a model instance from a stored document.

    Parameters
    ----------
    cls : type
        Target dataclass.
    doc : dict
        Document as returned by a store, including its ``id`` key.

    Returns
    -------
    T
        Populated model instance.

    Raises
    ------
    StoreError
        If the document cannot be mapped onto the model.
    """
    hints = get_type_hints(cls)
    kwargs: dict[str, Any] = {}
    try:
        for f in fields(cls):
            key = camel_case(f.name)
            if key in doc:
                kwargs[f.name] = _coerce(doc[key], hints[f.name])
            elif f.name in ("id", "uid") and "id" in doc:
                kwargs[f.name] = str(doc["id"])
            elif f.default is MISSING and f.default_factory is MISSING and hints[f.name] in _MISSING_DEFAULTS:
                # Required field absent from a legacy document
                kwargs[f.name] = _MISSING_DEFAULTS[hints[f.name]]
        return cls(**kwargs)
    except (TypeError, ValueError, ArithmeticError) as e:
        raise StoreError(f"Malformed {cls.__name__} document {doc.get('id')!r}: {e}") from e


def _coerce(raw: Any, tp: Any) -> Any:
    """Coerce a raw document value to an annotated type."""
    if raw is None:
        return None
    origin = get_origin(tp)
    if origin in (typing.Union, types.UnionType):
        args = [a for a in get_args(tp) if a is not type(None)]
        return _coerce(raw, args[0])
    if origin is list:
        (item_type,) = get_args(tp)
        if not isinstance(raw, list):
            return []
        return [_coerce(v, item_type) for v in raw]
    if tp is Decimal:
        return Decimal(str(raw))
    if isinstance(tp, type) and issubclass(tp, Enum):
        return tp(raw)
    if is_dataclass(tp):
        return from_document(tp, raw)
    if tp is int:
        return int(raw)
    if tp is str:
        return str(raw)
    return raw
