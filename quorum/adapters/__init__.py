"""Adapters for carrying out approved actions on external systems."""

from .command_adapter import CommandExecutor, run_command  # noqa: F401
