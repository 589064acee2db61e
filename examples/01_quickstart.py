#!/usr/bin/env python3
"""Example: polyspec quickstart

The same calls on a protobuf message, a pydantic model and a plain dict:
apply YAML, print JSON, pack an Any envelope and deep copy.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install polyspec
"""
from __future__ import annotations

from google.protobuf import struct_pb2
from pydantic import BaseModel, Field

import polyspec

PATCH = """
hostName: edge.example.com
port: 8443
"""


class Upstream(BaseModel):
    host_name: str = Field(default="", alias="hostName")
    port: int = 80


def main() -> None:
    print(f"polyspec version: {polyspec.__version__}")

    specs = [struct_pb2.Struct(), Upstream(), {}]
    for spec in specs:
        polyspec.apply_yaml(spec, PATCH)
        envelope = polyspec.to_any(spec)
        clone = polyspec.deep_copy(spec)
        print(f"\n{type(spec).__name__}")
        print(f"  json:     {polyspec.to_json(spec).decode()}")
        print(f"  type_url: {envelope.type_url}")
        print(f"  copy ok:  {polyspec.to_map(clone) == polyspec.to_map(spec)}")

    meta = polyspec.Meta(
        group_version_kind=polyspec.GroupVersionKind("networking.io", "v1", "Gateway"),
        name="edge",
        namespace="default",
    )
    print(f"\nschema: {meta.group_version_kind}")
    print(f"key:    {meta.key()}")


if __name__ == "__main__":
    main()
