"""Deep copying of specs.

The first available strategy wins:

1. the value's own ``deep_copy_interface()``
2. protobuf messages: ``CopyFrom`` into a fresh instance
3. pydantic models: ``model_copy(deep=True)``
4. anything else: JSON round-trip into a newly allocated value of the
   same concrete type

Only JSON-serializable generic values can be copied by the last
strategy, and only when the round trip gives back an equal value of the
same type: integer dict keys, tuples nested in dicts or lists and list
subclasses do not survive JSON.  When it fails ``deep_copy`` returns
``None`` and logs a warning; it never raises and never falls back to a
shallow copy.
"""
from __future__ import annotations

import dataclasses
import json
import logging
from typing import Any

from polyspec.codec import structural
from polyspec.codec.classifier import Family, classify, has_self_copy
from polyspec.errors import SpecError

logger = logging.getLogger(__name__)


def deep_copy(spec: Any) -> Any:
    """Return a deep copy of ``spec``, or ``None`` if it cannot be copied."""
    if has_self_copy(spec):
        return spec.deep_copy_interface()

    classified = classify(spec)
    if classified.family is Family.PROTO:
        clone = type(spec)()
        clone.CopyFrom(spec)
        return clone
    if classified.family is Family.MODEL:
        return spec.model_copy(deep=True)

    try:
        clone = _round_trip(spec)
    except (TypeError, ValueError, SpecError) as exc:
        logger.warning("Cannot deep copy %s spec: %s", type(spec).__qualname__, exc)
        return None
    if not _same_content(clone, spec):
        logger.warning(
            "Cannot deep copy %s spec: JSON round trip changed its content",
            type(spec).__qualname__,
        )
        return None
    return clone


def _same_content(clone: Any, spec: Any) -> bool:
    if type(clone) is not type(spec):
        return False
    if dataclasses.is_dataclass(spec):
        # Dataclasses declared with eq=False compare by identity.
        return dataclasses.astuple(clone) == dataclasses.astuple(spec)
    return bool(clone == spec)


def _round_trip(spec: Any) -> Any:
    data = json.loads(structural.encode(spec))
    spec_type = type(spec)
    if isinstance(spec, dict):
        clone = spec_type()
        structural.merge_into(clone, data)
        return clone
    if spec_type in (list, tuple):
        return spec_type(data)
    if dataclasses.is_dataclass(spec):
        return structural.build_dataclass(spec_type, data)
    return data
