"""Identity and bookkeeping records for configuration units.

A ``Config`` pairs a ``Meta`` record with an opaque spec.  The spec may
be a protobuf message, a pydantic model or any JSON-serializable value;
see ``polyspec.codec`` for the operations that work on it.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def key(kind: str, namespace: str, name: str) -> str:
    """Return the identity key ``kind/namespace/name``.

    Group and version are not part of the key, so two schemas sharing a
    kind collide for the same namespace and name.
    """
    return f"{kind}/{namespace}/{name}"


@dataclass(frozen=True, slots=True)
class GroupVersionKind:
    """Schema identifier of a spec.

    Parameters
    ----------
    group:
        API group; empty for the core group.
    version:
        Schema version, e.g. ``"v1"``.
    kind:
        Type name, e.g. ``"Gateway"``.
    """

    group: str = ""
    version: str = ""
    kind: str = ""

    def __str__(self) -> str:
        if not self.group:
            return f"core/{self.version}/{self.kind}"
        return f"{self.group}/{self.version}/{self.kind}"


@dataclass
class Meta:
    """Metadata attached to each configuration unit.

    Parameters
    ----------
    group_version_kind:
        Schema of the spec this metadata describes.
    name:
        Identifier, unique within ``namespace``.
    namespace:
        Naming scope; optional for some kinds.
    domain:
        Display suffix of the fully qualified name.  Not part of the key.
    labels:
        Selection labels.
    annotations:
        Opaque key/value data preserved by the store.
    resource_version:
        Opaque revision assigned by the store.  Empty means the object
        has not been stored yet.  Only compare it for equality.
    creation_timestamp:
        When the object was created, if known.
    """

    group_version_kind: GroupVersionKind = field(default_factory=GroupVersionKind)
    name: str = ""
    namespace: str = ""
    domain: str = ""
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    resource_version: str = ""
    creation_timestamp: datetime | None = None

    def key(self) -> str:
        """Return the identity key of this object."""
        return key(self.group_version_kind.kind, self.namespace, self.name)

    def same_revision(self, other: "Meta") -> bool:
        """Return True if both records carry the exact same resource version."""
        return self.resource_version == other.resource_version

    def copy(self) -> "Meta":
        """Return a copy whose label and annotation dicts are newly allocated."""
        return dataclasses.replace(
            self,
            labels=dict(self.labels) if self.labels is not None else None,
            annotations=dict(self.annotations) if self.annotations is not None else None,
        )


@dataclass
class Config:
    """A configuration unit: metadata plus an opaque spec."""

    meta: Meta = field(default_factory=Meta)
    spec: Any = None

    def key(self) -> str:
        return self.meta.key()

    def deep_copy(self) -> "Config":
        """Return a copy sharing no mutable state with this config.

        Metadata is always copied.  The spec is copied with
        ``polyspec.codec.deep_copy`` and is ``None`` if that fails.
        """
        from polyspec.codec.deepcopy import deep_copy

        return Config(meta=self.meta.copy(), spec=deep_copy(self.spec))
