"""Manage NodeMCU boards from the command line: build and flash firmware, upload Lua scripts."""

__version__ = "0.1.0"
