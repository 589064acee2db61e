"""Config data model: metadata records and identity keys.

The document form lives in ``polyspec.model.serializer``; it is not
imported here because it pulls in the codec stack.
"""
from __future__ import annotations

from polyspec.model.meta import Config, GroupVersionKind, Meta, key

__all__ = [
    "Config",
    "GroupVersionKind",
    "Meta",
    "key",
]
