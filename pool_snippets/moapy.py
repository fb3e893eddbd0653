import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Sequence

from .errors import MoapyCommandError, MoapyNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class CommandResult:
    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class MoapyRunner:
    """Runs moapy subcommands and collects their output"""

    def __init__(self, binary: str = "moapy"):
        self.binary = binary

    def command(self, args: Sequence[str]) -> List[str]:
        return [self.binary, *[str(arg) for arg in args]]

    def run(self, args: Sequence[str], check: bool = False, capture: bool = True) -> CommandResult:
        """
        Execute ``moapy <args>``.

        With ``check`` a non-zero exit raises MoapyCommandError, which callers
        use to stop before acting on the output of a failed transaction.
        """
        cmd = self.command(args)
        logger.debug(f"Running: {shlex.join(cmd)}")
        try:
            completed = subprocess.run(cmd, capture_output=capture, text=True)
        except FileNotFoundError:
            raise MoapyNotFoundError(f"Could not find '{self.binary}'. Is moapy installed and on PATH?") from None

        result = CommandResult(
            args=cmd,
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )
        if not result.ok:
            summary = f"moapy {' '.join(cmd[1:3])} failed with status {result.returncode}: {result.stderr.strip()}"
            if check:
                logger.error(summary)
                raise MoapyCommandError(result)
            logger.warning(summary)
        return result

    # --- Local key/value storage ---

    def data_load(self, key: str) -> Optional[str]:
        """Return the stored value for ``key``, or None when nothing is stored"""
        result = self.run(["data", "load", f"--key={key}"])
        if not result.ok:
            return None
        value = result.stdout.strip()
        return value or None

    def data_store(self, key: str, value: str) -> None:
        self.run(["data", "store", f"--key={key}", f"--value={value}"], check=True)
        logger.info(f"Stored {key}={value}")

    def data_parse(self, file: str, expression: str) -> str:
        result = self.run(["data", "parse", f"--file={file}", f"--expression={expression}"], check=True)
        return result.stdout.strip()
