"""JSON encoding and map projection for specs.

Each family prints JSON with its own rules and those rules are kept:

- protobuf messages go through ``google.protobuf.json_format``
  (lowerCamelCase names, enums as names, 64-bit integers as strings,
  fields holding default values omitted)
- pydantic models use ``model_dump_json(by_alias=True)``
- generic values use plain ``json`` with no special-casing

All output is compact UTF-8.
"""
from __future__ import annotations

import json
import logging
from typing import Any

from google.protobuf import json_format

from polyspec.codec import structural
from polyspec.codec.classifier import ClassifiedSpec, Family, classify
from polyspec.errors import NativeMarshalError, UnmarshalError

logger = logging.getLogger(__name__)


def _print(classified: ClassifiedSpec) -> bytes:
    spec = classified.value
    family = classified.family
    logger.debug("Printing %s spec as JSON", family.value)

    if family is Family.PROTO:
        try:
            printed = json_format.MessageToDict(spec)
        except (json_format.SerializeToJsonError, ValueError) as exc:
            raise NativeMarshalError(
                f"cannot print {spec.DESCRIPTOR.full_name}: {exc}", family
            ) from exc
        text = json.dumps(printed, separators=(",", ":"), ensure_ascii=False)
        return text.encode("utf-8")

    if family is Family.MODEL:
        try:
            return spec.model_dump_json(by_alias=True).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise NativeMarshalError(
                f"cannot print {type(spec).__qualname__}: {exc}", family
            ) from exc

    try:
        return structural.encode(spec)
    except (TypeError, ValueError) as exc:
        raise NativeMarshalError(f"cannot JSON-encode spec: {exc}", family) from exc


def to_json(spec: Any) -> bytes:
    """Encode ``spec`` as JSON using its family's printer.

    Raises
    ------
    NativeMarshalError
        If the printer rejects the value.
    """
    return _print(classify(spec))


def to_map(spec: Any) -> dict[str, Any]:
    """Project ``spec`` onto a plain ``dict`` via its JSON form.

    Raises
    ------
    NativeMarshalError
        Propagated from ``to_json``.
    UnmarshalError
        If the printed JSON is not an object.
    """
    classified = classify(spec)
    js = _print(classified)
    try:
        data = json.loads(js)
    except json.JSONDecodeError as exc:
        raise UnmarshalError(f"printed JSON is not decodable: {exc}", classified.family) from exc
    if not isinstance(data, dict):
        raise UnmarshalError(
            f"cannot project JSON {type(data).__name__} onto a map", classified.family
        )
    return data
