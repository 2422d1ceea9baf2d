"""External programs the pipelines drive, and the runner that invokes them."""
from dataclasses import dataclass
from typing import Tuple
import os
import shutil
import subprocess

from .errors import FilesystemError, ToolNotFoundError


@dataclass(frozen=True)
class Tool:
    name: str
    commands: Tuple[str, ...]
    hint: str = ""


GIT = Tool("git", ("git",), "Please, install git to continue.")
MAKE = Tool("make", ("make",), "Please, install make and the ESP8266 toolchain to continue.")
# esptool >= 5 installs "esptool" and keeps "esptool.py" only as a deprecated alias
ESPTOOL = Tool("esptool.py", ("esptool.py", "esptool"), 'Please, use "pip install esptool" to install it.')
UPLOADER = Tool("nodemcu-uploader", ("nodemcu-uploader",),
                'Please, use "pip install nodemcu-uploader" to install it.')

FIRMWARE_TOOLS = (GIT, MAKE, ESPTOOL)
UPLOAD_TOOLS = (UPLOADER,)


class ProcessRunner:
    """Runs external programs with the terminal's stdout/stderr, blocking until they exit."""

    def which(self, command):
        return shutil.which(command)

    def run(self, args, cwd=None):
        if cwd is not None and not os.path.isdir(cwd):
            raise FilesystemError(f"Working directory '{cwd}' does not exist")
        print(f"Executing command: {' '.join(str(a) for a in args)}")
        try:
            process = subprocess.run(args, cwd=cwd, check=False)
        except FileNotFoundError as e:
            raise ToolNotFoundError(args[0]) from e
        return process.returncode


def resolve_tool(tool, runner):
    """Return the first command of ``tool`` found on PATH."""
    for command in tool.commands:
        if runner.which(command):
            return command
    raise ToolNotFoundError(tool.name, tool.hint)


def require_tools(tools, runner):
    return {tool.name: resolve_tool(tool, runner) for tool in tools}
