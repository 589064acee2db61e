"""Plain structural JSON handling for generic specs.

Generic specs have no codec of their own.  They are encoded with the
standard ``json`` module (dataclass instances are written field by
field) and decoded back by walking the target's type hints, the same
way a reflection-driven decoder would.

Decoding into an *existing* value merges onto it:

- ``dict``        -- incoming keys overwrite or add entries
- ``list``        -- contents are replaced in place
- dataclass       -- fields are assigned one by one; nested dataclasses
  and dicts already present on the target are merged recursively

Merging is not transactional.  A failure partway through leaves the
fields assigned so far in place.
"""
from __future__ import annotations

import dataclasses
import json
import logging
import types
import typing
from typing import Any, Union

from polyspec.codec.classifier import Family
from polyspec.errors import UnknownFieldError, UnmarshalError

logger = logging.getLogger(__name__)

_MISSING = dataclasses.MISSING


def _default(obj: object) -> Any:
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: getattr(obj, f.name) for f in dataclasses.fields(obj)}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def encode(value: Any) -> bytes:
    """Encode ``value`` as compact UTF-8 JSON.

    Raises
    ------
    TypeError
        If ``value`` contains something JSON cannot represent.
    ValueError
        For NaN/infinite floats or circular references.
    """
    text = json.dumps(
        value,
        default=_default,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _is_frozen(obj: object) -> bool:
    params = getattr(type(obj), "__dataclass_params__", None)
    return bool(params is not None and params.frozen)


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        # Locally defined annotations cannot always be resolved.
        logger.debug("Type hints of %s are unresolvable; decoding untyped", cls.__qualname__)
        return {}


def coerce(tp: Any, value: Any, strict: bool = False, path: str = "") -> Any:
    """Build a value of declared type ``tp`` from decoded JSON ``value``."""
    if tp is None or tp is Any or value is None:
        return value
    origin = typing.get_origin(tp)
    args = typing.get_args(tp)
    if origin is Union or origin is types.UnionType:
        candidates = [a for a in args if a is not type(None)]
        return coerce(candidates[0], value, strict, path) if candidates else value
    if origin in (list, tuple, set, frozenset) and isinstance(value, list):
        item_type = args[0] if args else None
        items = [coerce(item_type, v, strict, f"{path}[{i}]") for i, v in enumerate(value)]
        return items if origin is list else origin(items)
    if origin is dict and isinstance(value, dict):
        value_type = args[1] if len(args) == 2 else None
        return {k: coerce(value_type, v, strict, _join(path, k)) for k, v in value.items()}
    if isinstance(tp, type) and dataclasses.is_dataclass(tp) and isinstance(value, dict):
        return build_dataclass(tp, value, strict, path)
    return value


def build_dataclass(cls: type, data: dict[str, Any], strict: bool = False, path: str = "") -> Any:
    """Allocate a new ``cls`` instance and populate it from ``data``.

    ``__init__`` is bypassed; fields absent from ``data`` take their
    declared default, or ``None`` when there is none.
    """
    hints = _type_hints(cls)
    known = {f.name: f for f in dataclasses.fields(cls)}
    if strict:
        for name in data:
            if name not in known:
                raise UnknownFieldError(_join(path, name), Family.GENERIC)
    instance = object.__new__(cls)
    for name, f in known.items():
        if name in data:
            value = coerce(hints.get(name), data[name], strict, _join(path, name))
        elif f.default is not _MISSING:
            value = f.default
        elif f.default_factory is not _MISSING:
            value = f.default_factory()
        else:
            value = None
        object.__setattr__(instance, name, value)
    return instance


def merge_into(target: Any, data: Any, strict: bool = False, path: str = "") -> None:
    """Merge decoded JSON ``data`` onto ``target`` in place.

    Raises
    ------
    UnknownFieldError
        In strict mode, when ``data`` names a field a dataclass target
        does not declare.
    UnmarshalError
        When ``data`` has the wrong JSON shape for ``target`` or the
        target cannot be mutated.
    """
    where = path or "<root>"
    if isinstance(target, dict):
        if not isinstance(data, dict):
            raise UnmarshalError(
                f"cannot decode JSON {type(data).__name__} into object at {where}",
                Family.GENERIC,
            )
        target.update(data)
        return
    if isinstance(target, list):
        if not isinstance(data, list):
            raise UnmarshalError(
                f"cannot decode JSON {type(data).__name__} into array at {where}",
                Family.GENERIC,
            )
        target[:] = data
        return
    if dataclasses.is_dataclass(target) and not isinstance(target, type):
        if _is_frozen(target):
            raise UnmarshalError(
                f"cannot apply onto frozen {type(target).__qualname__} at {where}",
                Family.GENERIC,
            )
        if not isinstance(data, dict):
            raise UnmarshalError(
                f"cannot decode JSON {type(data).__name__} into "
                f"{type(target).__qualname__} at {where}",
                Family.GENERIC,
            )
        _merge_dataclass(target, data, strict, path)
        return
    raise UnmarshalError(
        f"cannot apply onto immutable {type(target).__name__} at {where}",
        Family.GENERIC,
    )


def _merge_dataclass(target: Any, data: dict[str, Any], strict: bool, path: str) -> None:
    hints = _type_hints(type(target))
    names = {f.name for f in dataclasses.fields(target)}
    for name, value in data.items():
        field_path = _join(path, name)
        if name not in names:
            if strict:
                raise UnknownFieldError(field_path, Family.GENERIC)
            continue
        current = getattr(target, name, None)
        nested = dataclasses.is_dataclass(current) and not _is_frozen(current)
        if isinstance(value, dict) and (nested or isinstance(current, dict)):
            if isinstance(current, dict):
                value = coerce(hints.get(name), value, strict, field_path)
            merge_into(current, value, strict, field_path)
        else:
            setattr(target, name, coerce(hints.get(name), value, strict, field_path))
