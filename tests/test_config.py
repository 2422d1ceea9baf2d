import json
from pathlib import Path

import pytest

from nodemcu_cli.config import (
    FlashMode, PipelineConfig, config_path, default_firmware_dir, load_config, save_config,
)


@pytest.mark.parametrize("value", ["qio", "dio", "dout"])
def test_flash_mode_accepts_known_values(value):
    assert FlashMode.parse(value).value == value


@pytest.mark.parametrize("value", ["QIO", "fast", ""])
def test_flash_mode_rejects_unknown_values(value):
    with pytest.raises(ValueError, match="allowed values are qio, dio, dout"):
        FlashMode.parse(value)


def test_defaults_derive_from_home():
    assert default_firmware_dir("/home/alice") == Path("/home/alice/nodemcu-firmware")
    assert config_path("/home/alice") == Path("/home/alice/.nodemcu_cli_config.json")


def test_pipeline_config_is_immutable(tmp_path):
    config = PipelineConfig(tmp_path)
    assert config.flash_mode is FlashMode.DIO
    with pytest.raises(AttributeError):
        config.port = "/dev/ttyUSB9"


def test_config_round_trip(tmp_path):
    path = tmp_path / "cfg.json"
    assert load_config(path) == {}
    save_config(path, {"port": "/dev/ttyUSB3"})
    assert json.loads(path.read_text()) == {"port": "/dev/ttyUSB3"}
    assert load_config(path) == {"port": "/dev/ttyUSB3"}


def test_corrupted_config_is_ignored(tmp_path, capsys):
    path = tmp_path / "cfg.json"
    path.write_text("{not json")
    assert load_config(path) == {}
    assert "corrupted" in capsys.readouterr().err


def test_non_utf8_config_is_ignored(tmp_path, capsys):
    path = tmp_path / "cfg.json"
    path.write_bytes(b'{"port": "/dev/tty\xff"}')
    assert load_config(path) == {}
    assert "Using defaults" in capsys.readouterr().err


def test_unreadable_config_is_ignored(tmp_path, capsys):
    path = tmp_path / "cfg.json"
    path.mkdir()
    assert load_config(path) == {}
    assert "unreadable" in capsys.readouterr().err
