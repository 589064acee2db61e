"""Merge JSON or YAML text onto an existing spec in place.

``apply_json`` and ``apply_json_strict`` decode text with the target's
own family decoder and write the result into the target object.  The
strict variant rejects fields the target does not declare; the lenient
variant drops them silently.  ``apply_yaml`` converts YAML to JSON
first and then delegates.

A top-level JSON ``null`` leaves the target untouched.

These functions mutate their argument and are not safe to call
concurrently on the same spec.  A decode failure may leave protobuf and
generic targets partially updated; nothing is rolled back.  Pydantic
targets are validated as a whole before any field is assigned.

Nested messages, nested models and nested dataclasses are merged field
by field; lists and scalar values are replaced.
"""
from __future__ import annotations

import json
import logging
import re
import types
import typing
from collections.abc import Iterable
from typing import Annotated, Any, Union

import yaml
from google.protobuf import json_format
from pydantic import BaseModel, ValidationError

from polyspec.codec import structural
from polyspec.codec.classifier import ClassifiedSpec, Family, classify
from polyspec.errors import ParseError, UnknownFieldError, UnmarshalError

logger = logging.getLogger(__name__)

_PROTO_UNKNOWN_FIELD = re.compile(r'has no field named "([^"]+)"(?: at "([^"]*)")?')

# Well-known types whose JSON mapping is not an object.
_NON_OBJECT_JSON_TYPES = frozenset(
    f"google.protobuf.{name}"
    for name in (
        "Duration",
        "Timestamp",
        "FieldMask",
        "Value",
        "ListValue",
        "DoubleValue",
        "FloatValue",
        "Int64Value",
        "UInt64Value",
        "Int32Value",
        "UInt32Value",
        "BoolValue",
        "StringValue",
        "BytesValue",
    )
)

_TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class _JsonCompatibleLoader(yaml.SafeLoader):
    """Safe loader that leaves YAML timestamps as plain strings."""


_JsonCompatibleLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag != _TIMESTAMP_TAG]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}


def yaml_to_json(text: str) -> str:
    """Convert YAML text to equivalent compact JSON text.

    Raises
    ------
    ParseError
        If ``text`` is not valid YAML or holds values JSON cannot carry.
    """
    try:
        data = yaml.load(text, Loader=_JsonCompatibleLoader)  # noqa: S506
    except yaml.YAMLError as exc:
        raise ParseError(f"invalid YAML: {exc}") from exc
    try:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"YAML document has no JSON equivalent: {exc}") from exc


def _decode(text: str | bytes, family: Family) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ParseError(f"invalid JSON: {exc}", family) from exc


def apply_json(spec: Any, text: str | bytes) -> None:
    """Merge JSON ``text`` onto ``spec``, ignoring unknown fields."""
    _apply(classify(spec), text, strict=False)


def apply_json_strict(spec: Any, text: str | bytes) -> None:
    """Merge JSON ``text`` onto ``spec``, rejecting unknown fields.

    Raises
    ------
    UnknownFieldError
        If ``text`` names a field the target does not declare.
    """
    _apply(classify(spec), text, strict=True)


def apply_yaml(spec: Any, text: str, strict: bool = False) -> None:
    """Convert YAML ``text`` to JSON and merge it onto ``spec``.

    Raises
    ------
    ParseError
        If ``text`` is not valid YAML; ``spec`` is not touched.
    """
    js = yaml_to_json(text)
    if strict:
        apply_json_strict(spec, js)
    else:
        apply_json(spec, js)


def _apply(classified: ClassifiedSpec, text: str | bytes, strict: bool) -> None:
    family = classified.family
    data = _decode(text, family)
    if data is None:
        return
    logger.debug("Applying JSON onto %s spec (strict=%s)", family.value, strict)

    if family is Family.PROTO:
        _apply_proto(classified.value, data, strict)
    elif family is Family.MODEL:
        _apply_model(classified.value, data, strict)
    else:
        structural.merge_into(classified.value, data, strict=strict)


# ---------------------------------------------------------------------------
# protobuf messages
# ---------------------------------------------------------------------------


def _unknown_proto_path(message: str) -> str | None:
    match = _PROTO_UNKNOWN_FIELD.search(message)
    if match is None:
        return None
    name, at = match.group(1), match.group(2)
    # json_format roots the path at the message's short name.
    _, _, inner = (at or "").partition(".")
    return f"{inner}.{name}" if inner else name


def _apply_proto(message: Any, data: Any, strict: bool) -> None:
    full_name = message.DESCRIPTOR.full_name
    if not isinstance(data, dict) and full_name not in _NON_OBJECT_JSON_TYPES:
        raise UnmarshalError(
            f"cannot decode JSON {type(data).__name__} into {full_name}", Family.PROTO
        )
    try:
        json_format.ParseDict(data, message, ignore_unknown_fields=not strict)
    except json_format.ParseError as exc:
        path = _unknown_proto_path(str(exc))
        if strict and path is not None:
            raise UnknownFieldError(path, Family.PROTO, str(exc)) from exc
        raise UnmarshalError(f"cannot decode into {full_name}: {exc}", Family.PROTO) from exc


# ---------------------------------------------------------------------------
# pydantic models
# ---------------------------------------------------------------------------


def _join(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def _is_model_class(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def _allows_extra(model_cls: type[BaseModel]) -> bool:
    return model_cls.model_config.get("extra") == "allow"


def _field_lookup(model_cls: type[BaseModel]) -> dict[str, str]:
    """Map every accepted input key (name and alias) to its field name."""
    lookup: dict[str, str] = {}
    for name, info in model_cls.model_fields.items():
        lookup[name] = name
        if info.alias:
            lookup[info.alias] = name
    return lookup


def _nested_model(annotation: Any) -> type[BaseModel] | None:
    """Return the model class held by ``annotation`` or ``Optional[...]`` of it."""
    if _is_model_class(annotation):
        return annotation
    if typing.get_origin(annotation) in (Union, types.UnionType):
        models = [a for a in typing.get_args(annotation) if _is_model_class(a)]
        if len(models) == 1:
            return models[0]
    return None


def _unknown_in_value(annotation: Any, value: Any, path: str) -> str | None:
    """Walk ``value`` along its declared type and return the first unknown field path."""
    if annotation is None or value is None:
        return None
    if _is_model_class(annotation):
        if isinstance(value, dict):
            return _unknown_model_field(annotation, value, path)
        return None
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is Annotated:
        return _unknown_in_value(args[0], value, path)
    if origin in (Union, types.UnionType):
        found = None
        for candidate in args:
            if candidate is type(None):
                continue
            unknown = _unknown_in_value(candidate, value, path)
            if unknown is None:
                return None
            found = found or unknown
        return found
    if origin in (list, tuple, set, frozenset) and isinstance(value, list):
        for i, item in enumerate(value):
            if origin is tuple and args and args[-1] is not Ellipsis:
                item_type = args[i] if i < len(args) else None
            else:
                item_type = args[0] if args else None
            unknown = _unknown_in_value(item_type, item, f"{path}[{i}]")
            if unknown is not None:
                return unknown
        return None
    if origin is dict and isinstance(value, dict) and len(args) == 2:
        for k, item in value.items():
            unknown = _unknown_in_value(args[1], item, _join(path, k))
            if unknown is not None:
                return unknown
    return None


def _unknown_model_field(model_cls: type[BaseModel], data: dict[str, Any], path: str) -> str | None:
    lookup = _field_lookup(model_cls)
    for key, value in data.items():
        key_path = _join(path, key)
        name = lookup.get(key)
        if name is None:
            if _allows_extra(model_cls):
                continue
            return key_path
        unknown = _unknown_in_value(model_cls.model_fields[name].annotation, value, key_path)
        if unknown is not None:
            return unknown
    return None


def _merge_document(
    model_cls: type[BaseModel], document: dict[str, Any], data: dict[str, Any]
) -> list[str]:
    """Merge ``data`` onto the aliased dump ``document`` and return the touched field names.

    Nested models are merged key by key; every other value replaces the
    one in ``document``.
    """
    lookup = _field_lookup(model_cls)
    names: list[str] = []
    for key, value in data.items():
        name = lookup.get(key)
        if name is None:
            if _allows_extra(model_cls):
                document[key] = value
                names.append(key)
            continue
        info = model_cls.model_fields[name]
        key = info.alias or name
        nested_cls = _nested_model(info.annotation)
        if nested_cls is not None and isinstance(value, dict):
            current = document.get(key)
            if not isinstance(current, dict):
                current = document[key] = {}
            _merge_document(nested_cls, current, value)
        else:
            document[key] = value
        names.append(name)
    return names


def assign_model(target: BaseModel, source: BaseModel, names: Iterable[str]) -> None:
    """Copy the named fields of ``source`` onto ``target``.

    Raises
    ------
    UnmarshalError
        If ``target`` refuses the assignment (e.g. a frozen model).
    """
    for name in names:
        try:
            setattr(target, name, getattr(source, name))
        except ValidationError as exc:
            raise UnmarshalError(
                f"cannot assign {name!r} on {type(target).__qualname__}: {exc}", Family.MODEL
            ) from exc


def _apply_model(model: BaseModel, data: Any, strict: bool) -> None:
    model_cls = type(model)
    if not isinstance(data, dict):
        raise UnmarshalError(
            f"cannot decode JSON {type(data).__name__} into {model_cls.__qualname__}",
            Family.MODEL,
        )
    if strict:
        unknown = _unknown_model_field(model_cls, data, "")
        if unknown is not None:
            raise UnknownFieldError(unknown, Family.MODEL)

    merged = model.model_dump(by_alias=True)
    names = _merge_document(model_cls, merged, data)
    try:
        decoded = model_cls.model_validate(merged)
    except ValidationError as exc:
        raise UnmarshalError(
            f"cannot decode into {model_cls.__qualname__}: {exc}", Family.MODEL
        ) from exc
    assign_model(model, decoded, names)
