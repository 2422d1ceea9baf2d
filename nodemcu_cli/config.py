"""Run configuration for the firmware and upload commands, plus the persisted JSON settings."""
from enum import Enum
from pathlib import Path
from dataclasses import dataclass
from typing import Optional
import json
import sys

CONFIG_FILE_NAME = ".nodemcu_cli_config.json"
FIRMWARE_DIR_NAME = "nodemcu-firmware"
DEFAULT_PORT = "/dev/ttyUSB0"
DEFAULT_BAUD_RATE = 115200


class FlashMode(str, Enum):
    """SPI flash mode passed to esptool with ``-fm``."""
    QIO = "qio"
    DIO = "dio"
    DOUT = "dout"

    @classmethod
    def parse(cls, value):
        for mode in cls:
            if mode.value == value:
                return mode
        allowed = ", ".join(mode.value for mode in cls)
        raise ValueError(f"allowed values are {allowed}")

    def __str__(self):
        return self.value


DEFAULT_FLASH_MODE = FlashMode.DIO


@dataclass(frozen=True)
class PipelineConfig:
    firmware_dir: Path
    port: str = DEFAULT_PORT
    flash_mode: FlashMode = DEFAULT_FLASH_MODE
    force_download: bool = False
    baud_rate: Optional[int] = None


@dataclass(frozen=True)
class UploadConfig:
    source_path: Path
    port: str = DEFAULT_PORT
    baud_rate: int = DEFAULT_BAUD_RATE


def default_firmware_dir(home):
    return Path(home) / FIRMWARE_DIR_NAME


def config_path(home):
    return Path(home) / CONFIG_FILE_NAME


def load_config(path):
    path = Path(path)
    if path.exists():
        try:
            return json.loads(path.read_text())
        except (json.JSONDecodeError, OSError, UnicodeDecodeError):
            print(f"Warning: Config file {path} is corrupted or unreadable. Using defaults.", file=sys.stderr)
    return {}


def save_config(path, cfg):
    try:
        Path(path).write_text(json.dumps(cfg, indent=2))
    except OSError as e:
        print(f"Error saving config file {path}: {e}", file=sys.stderr)
