import json

import pytest

from socksvpn.config import ConfigStore, Configuration
from socksvpn.errors import ConfigurationError


def test_empty_server_options_use_documented_defaults(write_config):
    store = write_config({"server_options": {}, "commands": []})

    config = store.load()

    assert config.server_options.server_alive_interval == 10
    assert config.server_options.server_alive_count_max == 3
    assert config.local_port == 1234
    assert config.interface == "Wi-Fi"
    assert config.autossh_path == "/opt/homebrew/bin/autossh"


def test_zero_and_missing_fields_default_independently(write_config):
    store = write_config(
        {
            "autossh_path": "",
            "local_port": 0,
            "interface": "Ethernet",
            "server_options": {"server_alive_interval": 0, "server_alive_count_max": 7},
        }
    )

    config = store.load()

    assert config.autossh_path == "/opt/homebrew/bin/autossh"
    assert config.local_port == 1234
    assert config.interface == "Ethernet"
    assert config.server_options.server_alive_interval == 10
    assert config.server_options.server_alive_count_max == 7
    assert config.commands == ()


def test_null_sections_fall_back_to_defaults(write_config):
    config = write_config({"server_options": None, "commands": None}).load()

    assert config.server_options.server_alive_interval == 10
    assert config.commands == ()


def test_unknown_fields_are_ignored(write_config):
    store = write_config(
        {
            "local_port": 9050,
            "theme": "dark",
            "commands": [{"name": "a", "server": "a.example.com", "color": "red"}],
        }
    )

    config = store.load()

    assert config.local_port == 9050
    assert config.commands[0].description == ""
    assert config.commands[0].server == "a.example.com"


def test_commands_keep_file_order(write_config):
    store = write_config(
        {
            "commands": [
                {"name": "b", "description": "B", "server": "b.example.com"},
                {"name": "a", "description": "A", "server": "a.example.com"},
            ]
        }
    )

    assert store.load().profile_names == ["b", "a"]


def test_duplicate_profile_names_are_rejected(write_config):
    store = write_config(
        {
            "commands": [
                {"name": "office", "server": "one.example.com"},
                {"name": "office", "server": "two.example.com"},
            ]
        }
    )

    with pytest.raises(ConfigurationError, match="duplicate profile name"):
        store.load()


@pytest.mark.parametrize("port", [-1, 65536, 70000])
def test_local_port_out_of_range(write_config, port):
    with pytest.raises(ConfigurationError, match="local_port"):
        write_config({"local_port": port}).load()


def test_negative_keepalive_is_rejected(write_config):
    store = write_config({"server_options": {"server_alive_interval": -5}})

    with pytest.raises(ConfigurationError, match="server_alive_interval"):
        store.load()


def test_profile_without_server_is_rejected(write_config):
    with pytest.raises(ConfigurationError, match="server"):
        write_config({"commands": [{"name": "x", "description": "no server"}]}).load()


def test_missing_file(tmp_path):
    store = ConfigStore(tmp_path / "absent.json")

    assert not store.exists()
    with pytest.raises(ConfigurationError, match="does not exist"):
        store.load()


def test_unparseable_file(write_config):
    with pytest.raises(ConfigurationError, match="failed to parse"):
        write_config("{not json").load()


def test_non_object_document(write_config):
    with pytest.raises(ConfigurationError, match="JSON object"):
        write_config("[1, 2, 3]").load()


def test_create_default_then_load(tmp_path):
    store = ConfigStore(tmp_path / "nested" / ".vpn.json")

    store.create_default()
    config = store.load()

    assert len(config.commands) == 1
    assert config.commands[0].name == "example"
    assert config.commands[0].description == "Example VPN Server"
    assert config.commands[0].server == "your-server-name-or-ip"
    assert config.local_port == 1234


def test_create_default_writes_readable_json(tmp_path):
    store = ConfigStore(tmp_path / ".vpn.json")
    store.create_default()

    text = store.path.read_text()
    data = json.loads(text)

    assert text.startswith("{\n  ")
    assert data["server_options"] == {"server_alive_interval": 10, "server_alive_count_max": 3}
    assert data["commands"] == [
        {"name": "example", "description": "Example VPN Server", "server": "your-server-name-or-ip"}
    ]
    assert not (tmp_path / ".vpn.json.tmp").exists()


def test_reload_picks_up_new_content(write_config):
    store = write_config({"commands": [{"name": "a", "server": "a.example.com"}]})
    first = store.load()

    store.path.write_text(json.dumps({"commands": [{"name": "b", "server": "b.example.com"}]}))
    second = store.reload()

    assert first.profile_names == ["a"]
    assert second.profile_names == ["b"]


def test_profile_lookup(office_config):
    assert office_config.profile("home").server == "home.example.com"
    with pytest.raises(ConfigurationError, match="'missing' not found"):
        office_config.profile("missing")


def test_configuration_is_frozen(office_config):
    with pytest.raises(Exception):
        office_config.local_port = 1


def test_binary_name_is_basename_of_path():
    assert Configuration(autossh_path="/usr/bin/autossh").binary_name == "autossh"
    assert Configuration().binary_name == "autossh"
