"""Unit tests for polyspec.codec.envelope: to_any / from_any for every family."""
from __future__ import annotations

from typing import Any

import pytest
from google.protobuf import any_pb2, api_pb2, descriptor_pb2, duration_pb2, struct_pb2
from pydantic import BaseModel, Field

from polyspec.codec.envelope import (
    STRUCT_TYPE_URL,
    TYPE_URL_PREFIX,
    from_any,
    model_type_url,
    to_any,
)
from polyspec.codec.classifier import Family
from polyspec.errors import BridgeMarshalError, MarshalError, NativeMarshalError, UnmarshalError


class Upstream(BaseModel):
    host_name: str = Field(default="", alias="hostName")
    port: int = 0


class Opaque(BaseModel):
    payload: Any = None


# ===========================================================================
# Protobuf messages
# ===========================================================================


class TestProtoEnvelope:
    def test_type_url_is_message_full_name(self) -> None:
        envelope = to_any(duration_pb2.Duration(seconds=5))
        assert envelope.type_url == "type.googleapis.com/google.protobuf.Duration"

    def test_returns_any_message(self) -> None:
        assert isinstance(to_any(duration_pb2.Duration()), any_pb2.Any)

    def test_value_is_binary_encoding(self) -> None:
        message = api_pb2.Method(name="Get", request_type_url="type.example/Req")
        assert to_any(message).value == message.SerializeToString()

    def test_message_wins_over_struct_bridge(self) -> None:
        envelope = to_any(api_pb2.Method(name="Get"))
        assert envelope.type_url == "type.googleapis.com/google.protobuf.Method"
        assert envelope.type_url != STRUCT_TYPE_URL

    def test_round_trip(self) -> None:
        message = api_pb2.Method(name="Get", request_streaming=True)
        target = api_pb2.Method()
        from_any(to_any(message), target)
        assert target == message

    def test_missing_required_field_is_native_error(self) -> None:
        incomplete = descriptor_pb2.UninterpretedOption.NamePart()
        with pytest.raises(NativeMarshalError) as exc_info:
            to_any(incomplete)
        assert exc_info.value.family is Family.PROTO
        assert isinstance(exc_info.value, MarshalError)

    def test_unpack_into_wrong_message_fails(self) -> None:
        envelope = to_any(duration_pb2.Duration(seconds=1))
        with pytest.raises(UnmarshalError):
            from_any(envelope, api_pb2.Method())


# ===========================================================================
# Pydantic models
# ===========================================================================


class TestModelEnvelope:
    def test_type_url_names_model_class(self) -> None:
        envelope = to_any(Upstream(hostName="a"))
        assert envelope.type_url == f"{TYPE_URL_PREFIX}{__name__}.Upstream"
        assert envelope.type_url == model_type_url(Upstream)

    def test_value_is_model_json(self) -> None:
        model = Upstream(hostName="a", port=80)
        assert to_any(model).value == model.model_dump_json(by_alias=True).encode()

    def test_round_trip(self) -> None:
        model = Upstream(hostName="a", port=80)
        target = Upstream()
        from_any(to_any(model), target)
        assert target == model

    def test_unserializable_value_is_native_error(self) -> None:
        with pytest.raises(NativeMarshalError) as exc_info:
            to_any(Opaque(payload=object()))
        assert exc_info.value.family is Family.MODEL

    def test_mismatched_type_url_fails(self) -> None:
        with pytest.raises(UnmarshalError):
            from_any(to_any(duration_pb2.Duration()), Upstream())


# ===========================================================================
# Generic values
# ===========================================================================


class TestGenericEnvelope:
    def test_dict_is_bridged_through_struct(self) -> None:
        envelope = to_any({"host": "a", "ports": [80, 443]})
        assert envelope.type_url == STRUCT_TYPE_URL

    def test_bridged_payload_decodes_as_struct(self) -> None:
        envelope = to_any({"host": "a", "enabled": True})
        bridge = struct_pb2.Struct()
        assert envelope.Unpack(bridge)
        assert bridge["host"] == "a"
        assert bridge["enabled"] is True

    def test_round_trip(self) -> None:
        spec = {"host": "a", "weights": [1, 2], "nested": {"x": None}}
        target: dict[str, Any] = {}
        from_any(to_any(spec), target)
        assert target == spec

    def test_array_cannot_be_bridged(self) -> None:
        with pytest.raises(BridgeMarshalError) as exc_info:
            to_any([1, 2, 3])
        assert exc_info.value.family is Family.GENERIC

    def test_unserializable_value_is_bridge_error(self) -> None:
        with pytest.raises(BridgeMarshalError):
            to_any({"tags": {"a", "b"}})

    def test_nan_is_bridge_error(self) -> None:
        with pytest.raises(BridgeMarshalError):
            to_any({"ratio": float("nan")})

    def test_bridge_error_is_distinct_from_native_error(self) -> None:
        with pytest.raises(MarshalError) as exc_info:
            to_any([1])
        assert not isinstance(exc_info.value, NativeMarshalError)

    def test_non_struct_envelope_rejected_for_generic_target(self) -> None:
        with pytest.raises(UnmarshalError):
            from_any(to_any(duration_pb2.Duration()), {})
