"""polyspec: serialization and identity helpers for polymorphic config specs.

A config spec may be a protobuf message, a pydantic model, or a plain
JSON-serializable structure.  The functions below behave the same way
whichever of these the caller hands in.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import polyspec
    from google.protobuf import struct_pb2

    spec = struct_pb2.Struct()
    polyspec.apply_yaml(spec, "hosts: [a.example.com]")

    envelope = polyspec.to_any(spec)        # google.protobuf.Any
    text = polyspec.to_json(spec)           # b'{"hosts":["a.example.com"]}'
    clone = polyspec.deep_copy(spec)

    polyspec.key("gateway", "default", "edge")
    'gateway/default/edge'
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Any

from polyspec.errors import (
    BridgeMarshalError,
    MarshalError,
    NativeMarshalError,
    ParseError,
    SpecError,
    UnknownFieldError,
    UnmarshalError,
)
from polyspec.model.meta import Config, GroupVersionKind, Meta, key

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from google.protobuf.any_pb2 import Any as AnyEnvelope


def to_any(spec: Any) -> "AnyEnvelope":
    """Encode ``spec`` as a ``google.protobuf.Any`` envelope.

    Parameters
    ----------
    spec:
        A protobuf message, pydantic model or JSON-serializable value.

    Returns
    -------
    google.protobuf.any_pb2.Any
        ``type_url`` names the schema the ``value`` bytes decode with.

    Raises
    ------
    polyspec.MarshalError
        If the spec cannot be encoded.
    """
    from polyspec.codec.envelope import to_any as _to_any

    return _to_any(spec)


def to_json(spec: Any) -> bytes:
    """Encode ``spec`` as JSON using its own family's printer.

    Raises
    ------
    polyspec.MarshalError
        If the printer fails.
    """
    from polyspec.codec.json_codec import to_json as _to_json

    return _to_json(spec)


def to_map(spec: Any) -> dict[str, Any]:
    """Project ``spec`` onto a plain ``dict`` through its JSON form.

    Raises
    ------
    polyspec.MarshalError
        If the printer fails.
    polyspec.UnmarshalError
        If the printed JSON is not an object.
    """
    from polyspec.codec.json_codec import to_map as _to_map

    return _to_map(spec)


def apply_json(spec: Any, text: str | bytes) -> None:
    """Merge JSON ``text`` onto ``spec`` in place, ignoring unknown fields.

    Raises
    ------
    polyspec.ParseError
        If ``text`` is not valid JSON.
    polyspec.UnmarshalError
        If ``text`` does not fit the target.  The target may be left
        partially updated.
    """
    from polyspec.codec.apply import apply_json as _apply_json

    _apply_json(spec, text)


def apply_json_strict(spec: Any, text: str | bytes) -> None:
    """Merge JSON ``text`` onto ``spec`` in place, rejecting unknown fields.

    Raises
    ------
    polyspec.UnknownFieldError
        If ``text`` names a field the target does not declare.
    """
    from polyspec.codec.apply import apply_json_strict as _apply_json_strict

    _apply_json_strict(spec, text)


def apply_yaml(spec: Any, text: str, strict: bool = False) -> None:
    """Convert YAML ``text`` to JSON and merge it onto ``spec`` in place.

    Raises
    ------
    polyspec.ParseError
        If ``text`` is not valid YAML.
    """
    from polyspec.codec.apply import apply_yaml as _apply_yaml

    _apply_yaml(spec, text, strict=strict)


def deep_copy(spec: Any) -> Any:
    """Return a deep copy of ``spec``, or ``None`` if it cannot be copied."""
    from polyspec.codec.deepcopy import deep_copy as _deep_copy

    return _deep_copy(spec)


__all__ = [
    "__version__",
    "to_any",
    "to_json",
    "to_map",
    "apply_json",
    "apply_json_strict",
    "apply_yaml",
    "deep_copy",
    "key",
    "Config",
    "GroupVersionKind",
    "Meta",
    "SpecError",
    "MarshalError",
    "NativeMarshalError",
    "BridgeMarshalError",
    "ParseError",
    "UnmarshalError",
    "UnknownFieldError",
]
