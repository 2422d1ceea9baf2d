import pytest


class FakeRunner:
    """Records invocations instead of running them."""

    def __init__(self, available=("git", "make", "esptool.py", "nodemcu-uploader"), returncodes=None):
        self.available = set(available)
        self.returncodes = list(returncodes or [])
        self.calls = []

    def which(self, command):
        return f"/usr/bin/{command}" if command in self.available else None

    def run(self, args, cwd=None):
        self.calls.append((list(args), cwd))
        return self.returncodes.pop(0) if self.returncodes else 0


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    return FakeRunner
