"""Exceptions raised by pydzi."""

from __future__ import annotations

from typing import Sequence


class DziError(Exception):
    """Base class for all pydzi errors."""


class CommandError(DziError):
    """An image backend operation failed.

    Raised for a subprocess exiting non-zero as well as for in-process
    backend failures. The run that triggered it is aborted.

    Attributes:
        command: Argument list of the failed command
        returncode: Exit status (-1 when the command could not be started)
        stderr: Captured error output, possibly empty
    """

    def __init__(
        self, command: Sequence[str], returncode: int, stderr: str = ""
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr.strip()
        message = f"Could not run [{' '.join(self.command)}]. Return code was: {returncode}"
        if self.stderr:
            message += f"\n{self.stderr}"
        super().__init__(message)


class ConfigurationError(DziError, ValueError):
    """Invalid options, e.g. a tile size that leaves no room for overlap."""


class DescriptorError(DziError):
    """A descriptor file could not be parsed."""
