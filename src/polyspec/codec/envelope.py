"""Canonical binary envelope encoding.

``to_any`` wraps any spec in a ``google.protobuf.Any``:

- protobuf messages are packed with ``Any.Pack``; the type URL is the
  one ``Pack`` produced, never rebuilt from other metadata
- pydantic models carry their own JSON bytes under a type URL naming the
  model class
- generic values are bridged through ``google.protobuf.Struct``: JSON
  encode, parse the JSON into a ``Struct``, then pack the ``Struct``

Consumers tell envelopes apart by ``type_url`` alone.
"""
from __future__ import annotations

import logging
from typing import Any

from google.protobuf import any_pb2, json_format, struct_pb2
from google.protobuf.message import DecodeError, EncodeError
from pydantic import BaseModel, ValidationError

from polyspec.codec import structural
from polyspec.codec.apply import assign_model
from polyspec.codec.classifier import Family, classify
from polyspec.errors import BridgeMarshalError, NativeMarshalError, UnmarshalError

logger = logging.getLogger(__name__)

TYPE_URL_PREFIX = "type.googleapis.com/"
STRUCT_TYPE_URL = TYPE_URL_PREFIX + struct_pb2.Struct.DESCRIPTOR.full_name


def model_type_url(model_cls: type[BaseModel]) -> str:
    """Return the envelope type URL used for a pydantic model class."""
    return f"{TYPE_URL_PREFIX}{model_cls.__module__}.{model_cls.__qualname__}"


def to_any(spec: Any) -> any_pb2.Any:
    """Encode ``spec`` as a canonical ``google.protobuf.Any`` envelope.

    Raises
    ------
    NativeMarshalError
        If a protobuf message or pydantic model fails to serialize.
    BridgeMarshalError
        If a generic value cannot be expressed as a ``Struct``.
    """
    classified = classify(spec)
    envelope = any_pb2.Any()

    if classified.family is Family.PROTO:
        try:
            envelope.Pack(spec)
        except EncodeError as exc:
            raise NativeMarshalError(
                f"cannot encode {spec.DESCRIPTOR.full_name}: {exc}", Family.PROTO
            ) from exc
        return envelope

    if classified.family is Family.MODEL:
        try:
            payload = spec.model_dump_json(by_alias=True).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise NativeMarshalError(
                f"cannot encode {type(spec).__qualname__}: {exc}", Family.MODEL
            ) from exc
        envelope.type_url = model_type_url(type(spec))
        envelope.value = payload
        return envelope

    try:
        js = structural.encode(spec)
    except (TypeError, ValueError) as exc:
        raise BridgeMarshalError(f"cannot JSON-encode spec: {exc}", Family.GENERIC) from exc
    bridge = struct_pb2.Struct()
    try:
        json_format.Parse(js, bridge)
    except json_format.ParseError as exc:
        raise BridgeMarshalError(
            f"cannot bridge spec into google.protobuf.Struct: {exc}", Family.GENERIC
        ) from exc
    envelope.Pack(bridge)
    logger.debug("Bridged %s spec through %s", type(spec).__name__, STRUCT_TYPE_URL)
    return envelope


def from_any(envelope: any_pb2.Any, target: Any) -> None:
    """Decode ``envelope`` into the already allocated ``target``.

    The target must belong to the family that produced the envelope.
    Protobuf targets are cleared first; model and generic targets are
    merged onto.

    Raises
    ------
    UnmarshalError
        On a ``type_url`` mismatch or undecodable payload.
    """
    classified = classify(target)

    if classified.family is Family.PROTO:
        try:
            matched = envelope.Unpack(target)
        except DecodeError as exc:
            raise UnmarshalError(f"cannot decode {envelope.type_url}: {exc}", Family.PROTO) from exc
        if not matched:
            raise UnmarshalError(
                f"envelope {envelope.type_url!r} does not hold {target.DESCRIPTOR.full_name}",
                Family.PROTO,
            )
        return

    if classified.family is Family.MODEL:
        expected = model_type_url(type(target))
        if envelope.type_url != expected:
            raise UnmarshalError(
                f"envelope {envelope.type_url!r} does not hold {expected!r}", Family.MODEL
            )
        try:
            decoded = type(target).model_validate_json(envelope.value)
        except ValidationError as exc:
            raise UnmarshalError(f"cannot decode {expected}: {exc}", Family.MODEL) from exc
        assign_model(target, decoded, decoded.model_fields_set)
        return

    if envelope.type_url != STRUCT_TYPE_URL:
        raise UnmarshalError(
            f"envelope {envelope.type_url!r} is not a {STRUCT_TYPE_URL!r} bridge", Family.GENERIC
        )
    bridge = struct_pb2.Struct()
    try:
        bridge.ParseFromString(envelope.value)
    except DecodeError as exc:
        raise UnmarshalError(f"cannot decode {STRUCT_TYPE_URL}: {exc}", Family.GENERIC) from exc
    structural.merge_into(target, json_format.MessageToDict(bridge))
