import json

import pytest
from typer.testing import CliRunner

from socksvpn.cli import app

runner = CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "vpn.json"
    path.write_text(
        json.dumps(
            {
                "commands": [
                    {"name": "office", "description": "Office VPN", "server": "office.example.com"},
                ]
            }
        )
    )
    return path


def test_init_writes_template(tmp_path):
    path = tmp_path / "vpn.json"

    result = runner.invoke(app, ["--config", str(path), "init"])

    assert result.exit_code == 0
    assert json.loads(path.read_text())["commands"][0]["name"] == "example"


def test_init_refuses_to_overwrite(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "init"])

    assert result.exit_code == 1
    assert "already exists" in result.output
    assert "office" in config_file.read_text()


def test_init_force_overwrites(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "init", "--force"])

    assert result.exit_code == 0
    assert "your-server-name-or-ip" in config_file.read_text()


def test_profiles_table(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "profiles"])

    assert result.exit_code == 0
    assert "office.example.com" in result.output
    assert "Office VPN" in result.output


def test_missing_config_exits_with_hint(tmp_path):
    result = runner.invoke(app, ["--config", str(tmp_path / "nope.json"), "profiles"])

    assert result.exit_code == 1
    assert "socksvpn init" in result.output


def test_connect_unknown_profile_fails(config_file):
    result = runner.invoke(app, ["--config", str(config_file), "connect", "mars"])

    assert result.exit_code == 1
    assert "'mars' not found" in result.output
