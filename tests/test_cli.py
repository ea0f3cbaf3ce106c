"""
Unit tests for the ignvol Click CLI.
"""

import json

import pytest
from click.testing import CliRunner

import ignvol.cli.cli as cli_module
from ignvol.cli.cli import cli
from ignvol.lib.identifier import decode

from conftest import FakeConnection, FakeSession


IGNITION = '{"ignition":{"version":"3.2.0"}}'


@pytest.fixture
def fake_conn(monkeypatch):
    conn = FakeConnection()
    conn.add_pool("default")

    class Session(FakeSession):
        def __init__(self, config, logger=None):
            super().__init__(conn)

        def connect(self):
            pass

        def disconnect(self):
            pass

    monkeypatch.setattr(cli_module, "VirtSession", Session)
    return conn


@pytest.fixture
def config_file(tmp_path):
    temp_directory = tmp_path / "tmp"
    temp_directory.mkdir()
    path = tmp_path / "ignvol.yaml"
    path.write_text(
        "libvirt:\n"
        "  uri: test:///default\n"
        "provisioner:\n"
        f"  temp_directory: {temp_directory}\n"
        "  refresh_backoff: 0\n"
        "logging:\n"
        "  console_logging: false\n"
    )
    return str(path)


def _run(config_file, *args, **kwargs):
    return CliRunner().invoke(cli, ["--config", config_file, "--no-colour", *args], **kwargs)


class TestCreate:
    def test_create(self, fake_conn, config_file):
        result = _run(config_file, "create", "--name", "node1.ign", "--pool", "default", IGNITION)

        assert result.exit_code == 0, result.output
        volume = fake_conn.pools["default"].volumes["node1.ign"]
        assert decode(result.output.strip()) == volume.key()

    def test_invalid_content(self, fake_conn, config_file):
        result = _run(config_file, "create", "--name", "node1.ign", "not a path and not json")

        assert result.exit_code == 1
        assert "neither a file nor a valid JSON object" in result.output
        assert fake_conn.calls == []

    def test_missing_pool(self, fake_conn, config_file):
        result = _run(config_file, "create", "--name", "node1.ign", "--pool", "missing", IGNITION)

        assert result.exit_code == 1
        assert "Can't find storage pool 'missing'" in result.output

    def test_missing_config(self, fake_conn, tmp_path):
        result = _run(str(tmp_path / "missing.yaml"), "create", "--name", "node1.ign", IGNITION)

        assert result.exit_code == 1
        assert "Configuration file is malformed" in result.output

    def test_missing_log_directory(self, fake_conn, tmp_path):
        path = tmp_path / "ignvol.yaml"
        path.write_text(
            "libvirt:\n"
            "  uri: test:///default\n"
            "logging:\n"
            "  console_logging: false\n"
            "  file_logging: true\n"
            f"  log_directory: {tmp_path / 'missing'}\n"
        )

        result = _run(str(path), "create", "--name", "node1.ign", IGNITION)

        assert result.exit_code == 1
        assert "Failed to open log file" in result.output
        assert fake_conn.calls == []


class TestShowDelete:
    def _create(self, config_file):
        result = _run(config_file, "create", "--name", "node1.ign", IGNITION)
        return result.output.strip()

    def test_show_pretty(self, fake_conn, config_file):
        external_id = self._create(config_file)

        result = _run(config_file, "show", external_id)

        assert result.exit_code == 0, result.output
        assert result.output.splitlines()[1].split() == ["node1.ign", "default"]

    def test_show_json(self, fake_conn, config_file):
        external_id = self._create(config_file)

        result = _run(config_file, "show", external_id, "--format", "json")

        assert json.loads(result.output) == {"name": "node1.ign", "pool": "default"}

    def test_show_malformed(self, fake_conn, config_file):
        result = _run(config_file, "show", "novalidseparator")

        assert result.exit_code == 1
        assert "novalidseparator is not a valid key" in result.output

    def test_delete(self, fake_conn, config_file):
        external_id = self._create(config_file)

        result = _run(config_file, "delete", external_id, "--yes")

        assert result.exit_code == 0, result.output
        assert "node1.ign" not in fake_conn.pools["default"].volumes

    def test_delete_declined(self, fake_conn, config_file):
        external_id = self._create(config_file)

        result = _run(config_file, "delete", external_id, input="n\n")

        assert result.exit_code == 1
        assert "node1.ign" in fake_conn.pools["default"].volumes


def test_version():
    result = CliRunner().invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert "version" in result.output
