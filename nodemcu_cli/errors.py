"""Errors raised by the firmware and upload pipelines.

Config file patching raises the built-in ``FileNotFoundError`` / ``OSError``
instead of one of these.
"""


class NodeMCUError(Exception):
    """Base class for every error the CLI reports and exits on."""


class ToolNotFoundError(NodeMCUError):
    def __init__(self, tool, hint=None):
        self.tool = tool
        self.hint = hint
        msg = f'"{tool}" not found in $PATH.'
        if hint:
            msg += f" {hint}"
        super().__init__(msg)


class FilesystemError(NodeMCUError):
    pass


class ProcessError(NodeMCUError):
    """An external tool exited with a non-zero status."""

    def __init__(self, message, returncode):
        self.returncode = returncode
        super().__init__(f"{message} (exit code {returncode})")


class FetchError(ProcessError):
    pass


class BuildError(ProcessError):
    pass


class FlashError(ProcessError):
    def __init__(self, offset, returncode):
        self.offset = offset
        super().__init__(f"Flashing the image at offset {offset} failed", returncode)


class UploadError(ProcessError):
    pass


class PathError(NodeMCUError):
    pass


class NoSourceFilesError(NodeMCUError):
    pass
