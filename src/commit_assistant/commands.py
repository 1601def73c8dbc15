"""Subprocess execution for non-git executables (gpg)."""

import subprocess
from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass
class CommandResult:
    """Outcome of one external command.

    Attributes:
        returncode: Process exit status
        stdout: Raw standard output
        stderr: Raw standard error
    """
    returncode: int
    stdout: bytes = b""
    stderr: bytes = b""

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace").strip()


class CommandRunner:
    """Runs a command and captures its output.

    Tests substitute an object with the same ``run`` signature that returns
    scripted results.
    """

    def run(
        self,
        args: Sequence[str],
        input_data: Optional[bytes] = None,
        env: Optional[dict] = None,
    ) -> CommandResult:
        """Run ``args`` to completion.

        A missing executable is reported as exit status 127 rather than
        raised, matching what a shell would return.
        """
        try:
            completed = subprocess.run(
                list(args),
                input=input_data,
                stdin=None if input_data is not None else subprocess.DEVNULL,
                capture_output=True,
                env=env,
                check=False,
            )
        except FileNotFoundError as e:
            return CommandResult(returncode=127, stderr=str(e).encode())
        return CommandResult(
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )
