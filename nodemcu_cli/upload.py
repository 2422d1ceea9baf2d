"""Upload pipeline: send every Lua script of a directory to the board with nodemcu-uploader."""
from pathlib import Path
import os

from .errors import NoSourceFilesError, PathError, UploadError
from .pipeline import Step
from .tools import UPLOADER, resolve_tool

SCRIPT_SUFFIX = ".lua"


def scan_sources(source_path):
    """Return ``(local_path, remote_name)`` pairs for the ``.lua`` files directly inside ``source_path``.

    Sub-directories are not descended into and every file lands in the device root.
    """
    abs_source = Path(os.path.abspath(source_path))
    try:
        entries = sorted(abs_source.iterdir(), key=lambda p: p.name)
    except (OSError, ValueError) as e:
        raise PathError(f"Error reading the provided source path '{abs_source}': {e}") from e

    files = [(str(p), p.name) for p in entries if p.name.endswith(SCRIPT_SUFFIX) and p.is_file()]
    if not files:
        raise NoSourceFilesError(f"The source path '{abs_source}' does not have any {SCRIPT_SUFFIX} file")
    return files


def uploader_args(uploader, files, port, baud_rate):
    args = [uploader, "--port", port, "--baud", str(baud_rate), "upload"]
    args += [f"{local}:{remote}" for local, remote in files]
    args.append("--restart")
    return args


def upload_sources(files, port, baud_rate, runner):
    uploader = resolve_tool(UPLOADER, runner)
    print(f"Uploading {len(files)} file(s) to {port} at {baud_rate} baud...")
    returncode = runner.run(uploader_args(uploader, files, port, baud_rate))
    if returncode != 0:
        raise UploadError("nodemcu-uploader failed", returncode)
    print("Upload complete. The board is restarting.")
    return True


def upload_pipeline(config, runner):
    scanned = []

    def scan():
        scanned[:] = scan_sources(config.source_path)
        for local, remote in scanned:
            print(f"  {local} -> {remote}")
        return True

    return [
        Step("scan source files", scan),
        Step("upload source files", lambda: upload_sources(scanned, config.port, config.baud_rate, runner)),
    ]
