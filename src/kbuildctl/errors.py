"""
Exceptions raised by the build steps. The CLI turns any BuildError into an
error line, a Telegram notification and exit status 1.
"""

from typing import Optional, Sequence


class BuildError(Exception):
    """Base class for failures that abort the build."""


class CommandError(BuildError):
    """An external command failed or could not be started."""

    def __init__(self, message: str, command: Sequence[str] = (), returncode: Optional[int] = None):
        super().__init__(message)
        self.command = list(command)
        self.returncode = returncode


class DependencyError(BuildError):
    """A required tool or input file is missing."""


class ImageNotFoundError(BuildError):
    """No kernel image was produced by the build."""


class PackagingError(BuildError):
    """AnyKernel3 setup or zip creation failed."""
