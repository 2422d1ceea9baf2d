import json
from types import SimpleNamespace

import pytest

from nodemcu_cli import cli


def fake_ports(*devices):
    return [SimpleNamespace(device=d, description="USB Serial") for d in devices]


def test_upload_alias_uses_defaults(tmp_path, runner):
    src = tmp_path / "src"
    src.mkdir()
    (src / "init.lua").write_text("")

    cli.main(["up", "-s", str(src)], home=tmp_path, runner=runner)

    (args, _), = runner.calls
    assert args[:6] == ["nodemcu-uploader", "--port", "/dev/ttyUSB0", "--baud", "115200", "upload"]
    assert args[-1] == "--restart"


def test_upload_uses_configured_port(tmp_path, runner):
    (tmp_path / ".nodemcu_cli_config.json").write_text(json.dumps({"port": "/dev/ttyACM0"}))
    src = tmp_path / "src"
    src.mkdir()
    (src / "init.lua").write_text("")

    cli.main(["upload", "--source-path", str(src), "-b", "9600"], home=tmp_path, runner=runner)

    args, _ = runner.calls[0]
    assert args[1:5] == ["--port", "/dev/ttyACM0", "--baud", "9600"]


def test_upload_requires_source_path(tmp_path, runner):
    with pytest.raises(SystemExit) as exc:
        cli.main(["upload"], home=tmp_path, runner=runner)
    assert exc.value.code == 2


def test_missing_tool_exits_before_touching_filesystem(tmp_path, make_runner, capsys):
    runner = make_runner(available=("git", "make"))
    target = tmp_path / "fw"

    with pytest.raises(SystemExit) as exc:
        cli.main(["firmware", "-d", str(target)], home=tmp_path, runner=runner)

    assert exc.value.code == 1
    assert not target.exists()
    assert runner.calls == []
    assert '"esptool.py" not found' in capsys.readouterr().err


def test_firmware_rejects_unknown_flash_mode(tmp_path, runner, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main(["firm", "-f", "fast"], home=tmp_path, runner=runner)
    assert exc.value.code == 2
    assert "allowed values are qio, dio, dout" in capsys.readouterr().err


def test_firmware_default_directory_under_home(tmp_path):
    args = cli.build_parser(tmp_path).parse_args(["firmware"])
    assert args.directory == tmp_path / "nodemcu-firmware"
    assert args.flash_mode.value == "dio"
    assert args.force_download is False


def test_firmware_fetches_into_new_directory(tmp_path, runner, capsys):
    target = tmp_path / "fw"

    # the fake clone leaves the directory empty, so patching the headers fails
    with pytest.raises(SystemExit) as exc:
        cli.main(["firmware", "-d", str(target), "-f", "qio"], home=tmp_path, runner=runner)

    assert exc.value.code == 1
    assert target.is_dir()
    (args, _), = runner.calls
    assert args[:2] == ["git", "clone"]
    assert "user_modules.h" in capsys.readouterr().err


def test_device_saves_listed_port(tmp_path, monkeypatch, capsys):
    monkeypatch.setattr(cli, "list_ports", lambda: fake_ports("/dev/ttyUSB1"))
    cli.main(["device", "/dev/ttyUSB1"], home=tmp_path)
    saved = json.loads((tmp_path / ".nodemcu_cli_config.json").read_text())
    assert saved == {"port": "/dev/ttyUSB1"}
    assert "Selected port set to /dev/ttyUSB1." in capsys.readouterr().out


def test_device_refuses_unlisted_port_without_force(tmp_path, monkeypatch):
    monkeypatch.setattr(cli, "list_ports", lambda: fake_ports("/dev/ttyUSB1"))
    with pytest.raises(SystemExit):
        cli.main(["device", "/dev/ttyUSB7"], home=tmp_path)
    assert not (tmp_path / ".nodemcu_cli_config.json").exists()

    cli.main(["device", "/dev/ttyUSB7", "--force"], home=tmp_path)
    assert json.loads((tmp_path / ".nodemcu_cli_config.json").read_text())["port"] == "/dev/ttyUSB7"


def test_devices_marks_selected_port(tmp_path, monkeypatch, capsys):
    (tmp_path / ".nodemcu_cli_config.json").write_text(json.dumps({"port": "/dev/ttyUSB1"}))
    monkeypatch.setattr(cli, "list_ports", lambda: fake_ports("/dev/ttyUSB0", "/dev/ttyUSB1"))
    cli.main(["devices"], home=tmp_path)
    out = capsys.readouterr().out
    assert "*/dev/ttyUSB1*" in out
    assert "Selected port: /dev/ttyUSB1" in out
