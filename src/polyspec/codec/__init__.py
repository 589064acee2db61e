"""Spec codecs: classification, envelopes, JSON, apply and deep copy."""
from __future__ import annotations

from polyspec.codec.apply import apply_json, apply_json_strict, apply_yaml, yaml_to_json
from polyspec.codec.classifier import ClassifiedSpec, DeepCopier, Family, classify
from polyspec.codec.deepcopy import deep_copy
from polyspec.codec.envelope import STRUCT_TYPE_URL, TYPE_URL_PREFIX, from_any, to_any
from polyspec.codec.json_codec import to_json, to_map

__all__ = [
    "ClassifiedSpec",
    "DeepCopier",
    "Family",
    "classify",
    "to_any",
    "from_any",
    "TYPE_URL_PREFIX",
    "STRUCT_TYPE_URL",
    "to_json",
    "to_map",
    "apply_json",
    "apply_json_strict",
    "apply_yaml",
    "yaml_to_json",
    "deep_copy",
]
