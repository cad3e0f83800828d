"""Custom exceptions for apigate."""

from __future__ import annotations


class ApiGateError(Exception):
    """Base exception for all apigate errors."""


class ConfigError(ApiGateError):
    """Configuration-related errors."""


class GitError(ApiGateError):
    """A git command failed (bad ref, not a repository, ...)."""

    def __init__(self, command: list[str], returncode: int, stderr: str = ""):
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"'{' '.join(command)}' exited with {returncode}"
        if self.stderr:
            message += f": {self.stderr}"
        super().__init__(message)

class DependencyError(ApiGateError):
    """Raised when a required external binary is missing or cannot be installed."""

    def __init__(self, binary: str, hint: str = ""):
        self.binary = binary
        message = f"Required command '{binary}' is not available"
        if hint:
            message += f". {hint}"
        super().__init__(message)
