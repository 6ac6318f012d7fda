"""
Blocking execution of external command-line tools.
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from ..error_handling import MissingDependencyError, CommandError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    """Outcome of one external command."""
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """
    Runs external commands synchronously and captures their output.

    This is the only place the tool starts subprocesses, so tests can swap
    it for a fake and never touch the real ``helm`` or ``aws`` binaries.
    """

    def require(self, binary: str) -> str:
        """
        Resolve an executable on PATH.

        Args:
            binary: Executable name or path

        Returns:
            Resolved path of the executable

        Raises:
            MissingDependencyError: If the executable cannot be found
        """
        resolved = shutil.which(binary)
        if resolved is None:
            raise MissingDependencyError(
                f"'{binary}' was not found. It must be installed and on your PATH",
                binary=binary
            )
        return resolved

    def run(self, args: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> CommandResult:
        """
        Run a command and wait for it to exit.

        A non-zero exit status is reported in the result, not raised.

        Raises:
            MissingDependencyError: If the executable does not exist
        """
        args = [str(arg) for arg in args]
        logger.debug(f"Running: {' '.join(args)}")

        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                capture_output=True,
                text=True,
                check=False
            )
        except FileNotFoundError as e:
            raise MissingDependencyError(
                f"'{args[0]}' was not found. It must be installed and on your PATH",
                binary=args[0], cause=e
            )

        result = CommandResult(
            args=args,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or ""
        )
        logger.debug(f"Exit status {result.returncode}: {args[0]}")
        return result

    def check(self, args: Sequence[str], cwd: Optional[Union[str, Path]] = None) -> CommandResult:
        """
        Run a command that must succeed.

        Raises:
            CommandError: If the command exits non-zero
        """
        result = self.run(args, cwd=cwd)
        if not result.ok:
            stderr = result.stderr.strip()
            message = f"Command '{' '.join(result.args)}' failed with exit status {result.returncode}"
            if stderr:
                message += f": {stderr}"
            raise CommandError(
                message,
                command=result.args,
                returncode=result.returncode,
                stderr=result.stderr
            )
        return result
