"""Capability classifier for opaque config specs.

A spec may be a protobuf message, a pydantic model, or any plain
JSON-serializable structure.  ``classify`` decides which of these
representation families a value belongs to, always in the same fixed
priority order:

1. ``Family.PROTO``   -- ``google.protobuf.message.Message`` with a descriptor
2. ``Family.MODEL``   -- ``pydantic.BaseModel``
3. ``Family.GENERIC`` -- everything else

Every codec operation classifies its input exactly once through this
module and then dispatches on the resulting ``ClassifiedSpec``, so the
priority order cannot drift between operations.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from google.protobuf.message import Message
from pydantic import BaseModel


class Family(Enum):
    """Representation families a spec can belong to."""

    PROTO = "proto"
    MODEL = "model"
    GENERIC = "generic"


@runtime_checkable
class DeepCopier(Protocol):
    """A value that knows how to deep-copy itself.

    ``deep_copy`` trusts the returned object as-is.
    """

    def deep_copy_interface(self) -> Any: ...


@dataclass(frozen=True, slots=True)
class ClassifiedSpec:
    """A spec value tagged with the family that handles it.

    Parameters
    ----------
    family:
        The family chosen by ``classify``.
    value:
        The original spec object (never copied).
    """

    family: Family
    value: Any

    @property
    def is_proto(self) -> bool:
        return self.family is Family.PROTO

    @property
    def is_model(self) -> bool:
        return self.family is Family.MODEL


def _is_proto_message(value: object) -> bool:
    return isinstance(value, Message) and getattr(value, "DESCRIPTOR", None) is not None


def classify(spec: Any) -> ClassifiedSpec:
    """Classify ``spec`` into its representation family.

    Never raises; ``Family.GENERIC`` is the universal fallback.
    """
    if _is_proto_message(spec):
        return ClassifiedSpec(Family.PROTO, spec)
    if isinstance(spec, BaseModel):
        return ClassifiedSpec(Family.MODEL, spec)
    return ClassifiedSpec(Family.GENERIC, spec)


def has_self_copy(spec: Any) -> bool:
    """Return True if ``spec`` exposes a callable ``deep_copy_interface``."""
    return isinstance(spec, DeepCopier) and callable(spec.deep_copy_interface)
