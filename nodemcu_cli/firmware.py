"""
Firmware pipeline: fetch the NodeMCU firmware source, enable the modules we need,
build it and flash the two images to the board.

Every step checks the filesystem first and skips work that looks already done.
There is no freshness check: an existing clone or an existing ``.bin`` is trusted.
"""
from pathlib import Path
import os
import re
import shutil
import tempfile

from .errors import BuildError, FetchError, FilesystemError, FlashError
from .pipeline import Step
from .tools import ESPTOOL, GIT, MAKE, resolve_tool

FIRMWARE_REPO_URL = "https://github.com/nodemcu/nodemcu-firmware.git"
FIRMWARE_BRANCH = "release"

BIN_DIR_NAME = "bin"
BIN_SUFFIX = ".bin"
# (offset, image) pairs, written in this order
FLASH_IMAGES = (
    ("0x00000", "0x00000.bin"),
    ("0x10000", "0x10000.bin"),
)

USER_MODULES_FILE = Path("app", "include", "user_modules.h")
USER_CONFIG_FILE = Path("app", "include", "user_config.h")
ENABLED_MODULES = ("HTTP", "PWM", "SJSON", "TLS")
ENABLED_USER_CONFIG = ("CLIENT_SSL_ENABLE",)

COMMENT_MARKER = "//"
DEFINE_PATTERN = re.compile(r"^(//)?#define\s+")


def prepare_directory(path):
    """Create ``path`` if missing. Returns True when it had to be created."""
    path = Path(path)
    if path.is_dir():
        return False
    try:
        path.mkdir()
    except OSError as e:
        raise FilesystemError(f"Error creating the firmware directory '{path}': {e}") from e
    print(f"Created firmware directory '{path}'.")
    return True


def fetch_source(firmware_dir, force, runner):
    """Clone the firmware source into ``firmware_dir`` unless it already holds something.

    With ``force`` the directory is wiped first. git is resolved before anything
    is deleted.
    """
    firmware_dir = Path(firmware_dir)
    git = resolve_tool(GIT, runner)

    if force:
        print(f"Removing existing firmware source in '{firmware_dir}'...")
        try:
            shutil.rmtree(firmware_dir)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise FilesystemError(f"Error removing '{firmware_dir}': {e}") from e
        prepare_directory(firmware_dir)
    else:
        try:
            entries = os.listdir(firmware_dir)
        except OSError as e:
            raise FilesystemError(f"Error reading the firmware directory '{firmware_dir}': {e}") from e
        if entries:
            print(f"Firmware source already present in '{firmware_dir}'. Use --force-download to fetch it again.")
            return False

    print(f"Cloning {FIRMWARE_REPO_URL} (branch {FIRMWARE_BRANCH}) into '{firmware_dir}'...")
    returncode = runner.run([
        git, "clone", "--recurse-submodules",
        "-b", FIRMWARE_BRANCH,
        FIRMWARE_REPO_URL, str(firmware_dir),
    ])
    if returncode != 0:
        raise FetchError("git clone of the firmware source failed", returncode)
    return True


def ends_with_target(line, targets):
    return any(line.endswith(target) for target in targets)


def module_line_matcher(targets):
    """Matches any line ending with one of ``targets``."""
    def matches(line):
        return ends_with_target(line, targets)
    return matches


def define_line_matcher(targets):
    """Matches ``#define`` lines, commented or not, ending with one of ``targets``."""
    def matches(line):
        return bool(DEFINE_PATTERN.match(line)) and ends_with_target(line, targets)
    return matches


def uncomment(line):
    return line.replace(COMMENT_MARKER, "", 1)


def split_lines(text):
    """Split on newlines only. Drops one trailing CR per line and the empty tail after a final newline."""
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def patch_config_file(path, matches):
    """Uncomment every line of ``path`` accepted by ``matches``.

    This is a suffix test, not a C parser: an unrelated line that happens to end
    with a target name gets uncommented as well.

    The file is rewritten through a temporary file in the same directory and
    renamed over the original. Returns the number of changed lines.
    """
    path = Path(path)
    with open(path, encoding="utf-8", errors="surrogateescape", newline="") as f:
        lines = split_lines(f.read())

    changed = 0
    patched = []
    for line in lines:
        if matches(line):
            new_line = uncomment(line)
            if new_line != line:
                changed += 1
            line = new_line
        patched.append(line)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="") as tmp:
            for line in patched:
                tmp.write(line + "\n")
        shutil.copymode(path, tmp_name)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    return changed


def select_firmware_modules(firmware_dir):
    path = Path(firmware_dir) / USER_MODULES_FILE
    changed = patch_config_file(path, module_line_matcher(ENABLED_MODULES))
    print(f"Enabled modules {', '.join(ENABLED_MODULES)} in '{path}' ({changed} line(s) changed).")
    return changed > 0


def select_user_config(firmware_dir):
    path = Path(firmware_dir) / USER_CONFIG_FILE
    changed = patch_config_file(path, define_line_matcher(ENABLED_USER_CONFIG))
    print(f"Enabled {', '.join(ENABLED_USER_CONFIG)} in '{path}' ({changed} line(s) changed).")
    return changed > 0


def built_images(firmware_dir):
    bin_dir = Path(firmware_dir) / BIN_DIR_NAME
    if not bin_dir.is_dir():
        return []
    return sorted(p.name for p in bin_dir.iterdir() if p.is_file() and p.name.endswith(BIN_SUFFIX))


def build_firmware(firmware_dir, runner):
    images = built_images(firmware_dir)
    if images:
        print(f"Firmware already built ({', '.join(images)}). Skipping make.")
        return False

    make = resolve_tool(MAKE, runner)
    print(f"Building firmware in '{firmware_dir}'. This can take a while...")
    returncode = runner.run([make], cwd=str(firmware_dir))
    if returncode != 0:
        raise BuildError("Firmware build failed", returncode)
    return True


def flash_firmware(firmware_dir, port, flash_mode, runner, baud_rate=None):
    esptool = resolve_tool(ESPTOOL, runner)
    bin_dir = Path(firmware_dir) / BIN_DIR_NAME

    for offset, image in FLASH_IMAGES:
        print(f"Writing '{image}' at {offset} on {port} (flash mode {flash_mode})...")
        args = [esptool, "--port", port]
        if baud_rate:
            args += ["--baud", str(baud_rate)]
        args += ["write_flash", "-fm", str(flash_mode), offset, image]
        returncode = runner.run(args, cwd=str(bin_dir))
        if returncode != 0:
            raise FlashError(offset, returncode)
    print("Firmware flashed successfully.")
    return True


def firmware_pipeline(config, runner):
    firmware_dir = config.firmware_dir
    return [
        Step("prepare firmware directory", lambda: prepare_directory(firmware_dir)),
        Step("fetch firmware source", lambda: fetch_source(firmware_dir, config.force_download, runner)),
        Step("select firmware modules", lambda: select_firmware_modules(firmware_dir)),
        Step("select user config", lambda: select_user_config(firmware_dir)),
        Step("build firmware", lambda: build_firmware(firmware_dir, runner)),
        Step("flash firmware", lambda: flash_firmware(
            firmware_dir, config.port, config.flash_mode, runner, config.baud_rate)),
    ]
