"""Error types raised by the polyspec codecs.

Every codec path (protobuf messages, pydantic models and generic
structures) reports failures through the same small taxonomy so that
callers can handle them without knowing which family a spec belongs to.
The underlying library exception is always chained as ``__cause__``.

A failed generic deep copy is *not* an error: ``deep_copy`` returns
``None`` instead (see ``polyspec.codec.deepcopy``).
"""
from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from polyspec.codec.classifier import Family


class SpecError(Exception):
    """Base class for all polyspec codec failures.

    Parameters
    ----------
    message:
        Human-readable description of the failure.
    family:
        The representation family whose codec failed, when known.
    """

    def __init__(self, message: str, family: "Family | None" = None) -> None:
        self.message = message
        self.family = family
        super().__init__(message)

    def __str__(self) -> str:
        if self.family is None:
            return self.message
        return f"{self.message} (family: {self.family.name.lower()})"


class MarshalError(SpecError):
    """Encoding a spec to binary or JSON form failed."""


class NativeMarshalError(MarshalError):
    """A family's own binary or JSON printer rejected the value."""


class BridgeMarshalError(MarshalError):
    """The JSON bridge from a generic value to ``google.protobuf.Struct`` failed."""


class ParseError(SpecError):
    """Input JSON or YAML text is not syntactically valid."""


class UnmarshalError(SpecError):
    """Decoding text into a target spec failed."""


class UnknownFieldError(UnmarshalError):
    """Strict apply found a field the target schema does not declare.

    Parameters
    ----------
    path:
        Dotted path of the offending field, e.g. ``"spec.bogus"``.
    """

    def __init__(
        self, path: str, family: "Family | None" = None, message: str | None = None
    ) -> None:
        self.path = path
        super().__init__(message or f"unknown field {path!r}", family)


__all__ = [
    "SpecError",
    "MarshalError",
    "NativeMarshalError",
    "BridgeMarshalError",
    "ParseError",
    "UnmarshalError",
    "UnknownFieldError",
]
