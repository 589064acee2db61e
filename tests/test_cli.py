"""Tests for the polyspec command-line interface."""
from __future__ import annotations

import base64
import json
from pathlib import Path

from click.testing import CliRunner
from google.protobuf import struct_pb2

from polyspec.cli.main import cli
from polyspec.codec.envelope import STRUCT_TYPE_URL


def _write(tmp_path: Path, name: str, text: str) -> str:
    path = tmp_path / name
    path.write_text(text, encoding="utf-8")
    return str(path)


class TestIdentityCommands:
    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_key(self) -> None:
        result = self.runner.invoke(cli, ["key", "route-rule", "bar", "foo"])
        assert result.exit_code == 0
        assert result.output.strip() == "route-rule/bar/foo"

    def test_gvk_core(self) -> None:
        result = self.runner.invoke(cli, ["gvk", "Pod"])
        assert result.output.strip() == "core/v1/Pod"

    def test_gvk_group(self) -> None:
        result = self.runner.invoke(cli, ["gvk", "Gateway", "--group", "networking.io", "--version", "v1beta1"])
        assert result.output.strip() == "networking.io/v1beta1/Gateway"

    def test_version(self) -> None:
        result = self.runner.invoke(cli, ["version"])
        assert result.exit_code == 0
        assert "polyspec" in result.output


class TestConvertCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_yaml_to_json(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "spec.yaml", "host: edge\nports: [80, 443]\n")
        result = self.runner.invoke(cli, ["convert", path])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"host": "edge", "ports": [80, 443]}

    def test_envelope(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "spec.json", '{"host": "edge"}')
        result = self.runner.invoke(cli, ["convert", path, "--to", "envelope"])
        assert result.exit_code == 0
        assert STRUCT_TYPE_URL in result.output
        expected = struct_pb2.Struct()
        expected.update({"host": "edge"})
        assert base64.b64encode(expected.SerializeToString()).decode() in result.output

    def test_map(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "spec.yaml", "host: edge\n")
        result = self.runner.invoke(cli, ["convert", path, "--to", "map"])
        assert result.exit_code == 0
        assert "edge" in result.output

    def test_missing_file(self, tmp_path: Path) -> None:
        result = self.runner.invoke(cli, ["convert", str(tmp_path / "absent.yaml")])
        assert result.exit_code == 1

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "spec.yaml", "host: [edge\n")
        result = self.runner.invoke(cli, ["convert", path])
        assert result.exit_code == 1

    def test_array_cannot_become_envelope(self, tmp_path: Path) -> None:
        path = _write(tmp_path, "spec.yaml", "- a\n- b\n")
        result = self.runner.invoke(cli, ["convert", path, "--to", "envelope"])
        assert result.exit_code == 1


class TestApplyCommand:
    def setup_method(self) -> None:
        self.runner = CliRunner()

    def test_patch_is_merged(self, tmp_path: Path) -> None:
        base = _write(tmp_path, "base.yaml", "host: edge\nport: 80\n")
        patch = _write(tmp_path, "patch.yaml", "port: 8080\n")
        result = self.runner.invoke(cli, ["apply", base, patch])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"host": "edge", "port": 8080}

    def test_strict_rejects_new_keys(self, tmp_path: Path) -> None:
        base = _write(tmp_path, "base.yaml", "host: edge\n")
        patch = _write(tmp_path, "patch.yaml", "bogus: 1\n")
        result = self.runner.invoke(cli, ["apply", base, patch, "--strict"])
        assert result.exit_code == 1

    def test_strict_accepts_known_keys(self, tmp_path: Path) -> None:
        base = _write(tmp_path, "base.yaml", "host: edge\n")
        patch = _write(tmp_path, "patch.json", '{"host": "core"}')
        result = self.runner.invoke(cli, ["apply", base, patch, "--strict"])
        assert result.exit_code == 0
        assert json.loads(result.output) == {"host": "core"}
