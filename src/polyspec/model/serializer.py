"""Document form of ``Meta`` and ``Config``.

Metadata is written with the camelCase keys used on the wire::

    {
      "type": {"group": "networking.io", "version": "v1", "kind": "Gateway"},
      "name": "gw",
      "namespace": "default",
      "labels": {"app": "edge"},
      "resourceVersion": "42",
      "creationTimestamp": "2024-01-02T03:04:05Z"
    }

Empty strings, missing maps and a missing timestamp are omitted.  The
timestamp is RFC 3339 text; a naive ``datetime`` is written as UTC.  A
config document additionally carries the spec, projected with
``polyspec.codec.to_map``, under ``"spec"``.  Reading a config document
back yields a plain ``dict`` spec.

Usage
-----
::

    from polyspec.model.serializer import MetaSerializer

    serializer = MetaSerializer()
    text = serializer.config_to_json(config)
    config2 = serializer.config_from_json(text)
"""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any

import yaml

from polyspec.codec.apply import yaml_to_json
from polyspec.codec.json_codec import to_map
from polyspec.model.meta import Config, GroupVersionKind, Meta


def _format_timestamp(ts: datetime) -> str:
    if ts.utcoffset() is None:
        # Naive values are taken to be UTC.
        ts = ts.replace(tzinfo=timezone.utc)
    if ts.utcoffset() == timezone.utc.utcoffset(None):
        return ts.replace(tzinfo=None).isoformat() + "Z"
    return ts.isoformat()


def _parse_timestamp(text: str) -> datetime:
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)


class MetaSerializer:
    """Converts ``Meta`` and ``Config`` objects to and from plain dicts."""

    # ------------------------------------------------------------------
    # Meta
    # ------------------------------------------------------------------

    def to_dict(self, meta: Meta) -> dict[str, Any]:
        """Serialize ``meta`` to a JSON-compatible dict."""
        gvk = meta.group_version_kind
        data: dict[str, Any] = {
            "type": {"group": gvk.group, "version": gvk.version, "kind": gvk.kind},
        }
        for key, value in (
            ("name", meta.name),
            ("namespace", meta.namespace),
            ("domain", meta.domain),
        ):
            if value:
                data[key] = value
        if meta.labels:
            data["labels"] = dict(meta.labels)
        if meta.annotations:
            data["annotations"] = dict(meta.annotations)
        if meta.resource_version:
            data["resourceVersion"] = meta.resource_version
        if meta.creation_timestamp is not None:
            data["creationTimestamp"] = _format_timestamp(meta.creation_timestamp)
        return data

    def from_dict(self, data: dict[str, Any]) -> Meta:
        """Deserialize ``Meta`` from a plain dict."""
        gvk = data.get("type") or {}
        labels = data.get("labels")
        annotations = data.get("annotations")
        timestamp = data.get("creationTimestamp")
        return Meta(
            group_version_kind=GroupVersionKind(
                group=gvk.get("group", ""),
                version=gvk.get("version", ""),
                kind=gvk.get("kind", ""),
            ),
            name=data.get("name", ""),
            namespace=data.get("namespace", ""),
            domain=data.get("domain", ""),
            labels=dict(labels) if labels is not None else None,
            annotations=dict(annotations) if annotations is not None else None,
            resource_version=data.get("resourceVersion", ""),
            creation_timestamp=_parse_timestamp(timestamp) if timestamp else None,
        )

    # ------------------------------------------------------------------
    # Config
    # ------------------------------------------------------------------

    def config_to_dict(self, config: Config) -> dict[str, Any]:
        """Serialize ``config``; the spec is projected with ``to_map``.

        Raises
        ------
        polyspec.errors.MarshalError
            If the spec cannot be printed as JSON.
        """
        data = self.to_dict(config.meta)
        if config.spec is not None:
            data["spec"] = to_map(config.spec)
        return data

    def config_from_dict(self, data: dict[str, Any]) -> Config:
        """Deserialize a ``Config`` whose spec becomes a plain dict."""
        spec = data.get("spec")
        return Config(meta=self.from_dict(data), spec=dict(spec) if spec is not None else None)

    # ------------------------------------------------------------------
    # JSON / YAML helpers
    # ------------------------------------------------------------------

    def to_json(self, meta: Meta, indent: int | None = None) -> str:
        """Serialize ``meta`` to a JSON string."""
        return json.dumps(self.to_dict(meta), indent=indent, ensure_ascii=False)

    def from_json(self, text: str) -> Meta:
        """Deserialize ``Meta`` from a JSON string."""
        return self.from_dict(json.loads(text))

    def config_to_json(self, config: Config, indent: int | None = None) -> str:
        """Serialize ``config`` to a JSON string."""
        return json.dumps(self.config_to_dict(config), indent=indent, ensure_ascii=False)

    def config_from_json(self, text: str) -> Config:
        """Deserialize a ``Config`` from a JSON string."""
        return self.config_from_dict(json.loads(text))

    def config_to_yaml(self, config: Config) -> str:
        """Serialize ``config`` to a YAML string."""
        return yaml.safe_dump(
            self.config_to_dict(config), default_flow_style=False, allow_unicode=True
        )

    def config_from_yaml(self, text: str) -> Config:
        """Deserialize a ``Config`` from a YAML string."""
        return self.config_from_json(yaml_to_json(text))
