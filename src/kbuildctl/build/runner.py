"""
Thin wrapper over subprocess for the external tools the build drives.
"""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Optional, Sequence, Union

from kbuildctl.errors import CommandError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class CommandRunner:
    """Runs commands with inherited stdio; failures raise CommandError."""

    def run(
        self,
        command: Sequence[PathLike],
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Run a command to completion, streaming its output to the terminal.

        Raises:
            CommandError: If the executable is missing or the exit status is non-zero.
        """
        cmd = [str(part) for part in command]
        logger.info("Running: %s", " ".join(cmd))
        try:
            result = subprocess.run(cmd, cwd=cwd, env=env)
        except OSError as e:
            raise CommandError(f"Could not run {cmd[0]}: {e}", cmd) from e
        if result.returncode != 0:
            raise CommandError(
                f"Command failed with exit status {result.returncode}: {' '.join(cmd)}",
                cmd,
                result.returncode,
            )

    def output(
        self,
        command: Sequence[PathLike],
        cwd: Optional[PathLike] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> Optional[str]:
        """
        Capture stdout of a query command. Returns None if the command fails.
        """
        cmd = [str(part) for part in command]
        logger.debug("Querying: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, cwd=cwd, env=env, capture_output=True, text=True
            )
        except OSError as e:
            logger.debug("Could not run %s: %s", cmd[0], e)
            return None
        if result.returncode != 0:
            logger.debug("%s exited with %s", cmd[0], result.returncode)
            return None
        return result.stdout.strip()

    def which(self, name: str) -> Optional[str]:
        return shutil.which(name)
