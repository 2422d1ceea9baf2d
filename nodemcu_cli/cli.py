# File: nodemcu_cli/cli.py

#!/usr/bin/env python3
"""
nodemcu_cli (cli.py)

Manage NodeMCU boards from the command line: build and flash the NodeMCU
firmware with esptool, and upload Lua scripts with nodemcu-uploader.

Usage:
  nodemcu <command> [<args>...]
"""
from pathlib import Path
import argparse
import sys
import serial.tools.list_ports

from .config import (
    DEFAULT_BAUD_RATE, DEFAULT_FLASH_MODE, DEFAULT_PORT, FlashMode, PipelineConfig, UploadConfig,
    config_path, default_firmware_dir, load_config, save_config,
)
from .errors import NodeMCUError
from .firmware import firmware_pipeline
from .pipeline import run_pipeline
from .tools import FIRMWARE_TOOLS, UPLOAD_TOOLS, ProcessRunner, require_tools
from .upload import upload_pipeline


def list_ports():
    return list(serial.tools.list_ports.comports())


def flash_mode_arg(value):
    try:
        return FlashMode.parse(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def cmd_devices(cfg):
    selected_port = cfg.get("port")
    available_ports = list_ports()
    if not available_ports:
        print("No serial ports found.")
        return

    print("Available serial ports:")
    for p in available_ports:
        marker = "*" if p.device == selected_port else ""
        print(f"  {marker}{p.device}{marker} - {p.description}")

    if selected_port and selected_port not in [p.device for p in available_ports]:
        print(f"\nWarning: The selected port '{selected_port}' is not available. Please reconfigure.")
    elif not selected_port:
        print(f"\nNo port selected, {DEFAULT_PORT} is used. Use 'nodemcu device <PORT_NAME>' to set one.")
    else:
        print(f"\nSelected port: {selected_port} (use 'nodemcu device <PORT_NAME>' to change it).")


def cmd_device(cfg_file, port_arg, force=False):
    available = [p.device for p in list_ports()]
    if port_arg not in available and not force:
        print(f"Error: Port {port_arg} not found among available ports: {', '.join(available) if available else 'None'}", file=sys.stderr)
        print(f"To set {port_arg} anyway, use --force.", file=sys.stderr)
        sys.exit(1)

    cfg = load_config(cfg_file)
    cfg["port"] = port_arg
    save_config(cfg_file, cfg)
    if port_arg in available:
        print(f"Selected port set to {port_arg}.")
    else:
        print(f"Selected port set to {port_arg} (forced).")


def cmd_firmware(config, runner):
    require_tools(FIRMWARE_TOOLS, runner)
    run_pipeline(firmware_pipeline(config, runner))
    print("\nNodeMCU firmware flashed. Reset the board to boot it.")


def cmd_upload(config, runner):
    require_tools(UPLOAD_TOOLS, runner)
    run_pipeline(upload_pipeline(config, runner))


def build_parser(home):
    parser = argparse.ArgumentParser(
        prog="nodemcu",
        description="Manage your NodeMCU boards in your command line.",
        epilog="Use 'nodemcu <command> --help' for more information on a specific command."
    )
    subparsers = parser.add_subparsers(dest="cmd", required=True, title="Available commands", metavar="<command>")

    subparsers.add_parser("devices", help="List available serial ports and show the selected port.")

    dev_parser = subparsers.add_parser("device", help="Set the default serial port.")
    dev_parser.add_argument("port_name", metavar="PORT", help="The serial port to use by default.")
    dev_parser.add_argument("--force", "-f", action="store_true", help="Set the port even if it is not currently listed.")

    up_parser = subparsers.add_parser("upload", aliases=["up"], help="Upload lua code to NodeMCU.")
    up_parser.add_argument("--source-path", "-s", required=True, help="Source code base directory. Every .lua file directly inside it is uploaded.")
    up_parser.add_argument("--baud-rate", "-b", type=int, default=DEFAULT_BAUD_RATE, help=f"The speed of the NodeMCU serial connection (Default: {DEFAULT_BAUD_RATE}).")
    up_parser.add_argument("--port", "-p", help=f"NodeMCU USB port (Default: configured port or {DEFAULT_PORT}).")

    firm_parser = subparsers.add_parser("firmware", aliases=["firm"], help="Build and flash firmware to NodeMCU.")
    firm_parser.add_argument("--flash-mode", "-f", type=flash_mode_arg, default=DEFAULT_FLASH_MODE,
                             metavar="{" + ",".join(m.value for m in FlashMode) + "}",
                             help=f"NodeMCU flash mode (Default: {DEFAULT_FLASH_MODE}).")
    firm_parser.add_argument("--port", "-p", help=f"NodeMCU USB port (Default: configured port or {DEFAULT_PORT}).")
    firm_parser.add_argument("--directory", "-d", type=Path, default=default_firmware_dir(home), help="Download firmware directory (Default: %(default)s).")
    firm_parser.add_argument("--force-download", action="store_true", help="Clean the existing folder and download new firmware.")
    firm_parser.add_argument("--baud", type=int, default=None, help="Baud rate for flashing (Default: esptool's own default).")
    return parser


def main(argv=None, home=None, runner=None):
    home = Path(home) if home is not None else Path.home()
    runner = runner or ProcessRunner()
    cfg_file = config_path(home)
    cfg = load_config(cfg_file)

    parser = build_parser(home)
    args = parser.parse_args(argv)
    port = getattr(args, "port", None) or cfg.get("port") or DEFAULT_PORT

    try:
        if args.cmd == "devices":
            cmd_devices(cfg)
        elif args.cmd == "device":
            cmd_device(cfg_file, args.port_name, args.force)
        elif args.cmd in ("upload", "up"):
            cmd_upload(UploadConfig(Path(args.source_path), port, args.baud_rate), runner)
        elif args.cmd in ("firmware", "firm"):
            cmd_firmware(PipelineConfig(args.directory, port, args.flash_mode, args.force_download, args.baud), runner)
    except (NodeMCUError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
