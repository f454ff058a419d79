"""Process runners for tool programs.

A runner turns (script, argv) into a finished process.  DirectRunner
executes the script on the host; DockerRunner executes it inside a
container image that already has the tools installed.  Both capture
stdout and stderr as a single stream and enforce a wall-clock timeout.
"""

from __future__ import annotations

import logging
import subprocess
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompletedRun:
    """Exit status and combined output of one tool process."""

    returncode: int
    output: str


@runtime_checkable
class Runner(Protocol):
    """Executes a tool program."""

    def command(self, script: Path, args: Sequence[str]) -> list[str]:
        """Return the argv that runs ``script`` with ``args``."""
        ...

    def run(self, script: Path, args: Sequence[str], *, timeout: float | None) -> CompletedRun:
        """Run to completion.

        Raises:
            subprocess.TimeoutExpired: If ``timeout`` elapses first.
            OSError: If the program cannot be started.
        """
        ...


class DirectRunner:
    """Runs tool scripts as host processes."""

    def command(self, script: Path, args: Sequence[str]) -> list[str]:
        return [str(script), *args]

    def run(self, script: Path, args: Sequence[str], *, timeout: float | None) -> CompletedRun:
        return self._execute(self.command(script, args), timeout=timeout)

    def _execute(self, argv: list[str], *, timeout: float | None) -> CompletedRun:
        logger.debug("Executing: %s", " ".join(argv))
        proc = subprocess.run(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
            check=False,
        )
        return CompletedRun(returncode=proc.returncode, output=proc.stdout or "")


class DockerRunner(DirectRunner):
    """Runs tool scripts inside a container.

    The image is expected to carry every tool script on its PATH under the
    same file name as in the tools folder.  Building the image is not this
    class's job.

    Every run gets its own ``--name`` so that a run that exceeds its
    timeout can be followed by ``docker kill``: killing the ``docker run``
    client alone leaves the container running.
    """

    def __init__(
        self,
        image: str,
        *,
        docker: str = "docker",
        extra_args: Sequence[str] = (),
        kill_timeout: float = 10.0,
    ) -> None:
        self.image = image
        self.docker = docker
        self.extra_args = tuple(extra_args)
        self.kill_timeout = kill_timeout

    def command(self, script: Path, args: Sequence[str], *, name: str | None = None) -> list[str]:
        naming = ["--name", name] if name else []
        return [self.docker, "run", "--rm", *naming, *self.extra_args, self.image, script.name, *args]

    def run(self, script: Path, args: Sequence[str], *, timeout: float | None) -> CompletedRun:
        name = f"toolloop-{uuid.uuid4().hex[:12]}"
        try:
            return self._execute(self.command(script, args, name=name), timeout=timeout)
        except subprocess.TimeoutExpired:
            self.kill(name)
            raise

    def kill(self, name: str) -> None:
        """Kill container ``name``; failures are logged, not raised."""
        try:
            proc = subprocess.run(
                [self.docker, "kill", name],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                timeout=self.kill_timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            logger.warning("Could not kill container %s: %s", name, exc)
            return
        if proc.returncode != 0:
            logger.warning("docker kill %s exited with status %d", name, proc.returncode)


def query_stdout(script: Path, flag: str, *, timeout: float | None) -> str:
    """Run ``script flag`` on the host and return its stripped stdout.

    Used for the read-only metadata flags (--name, --description,
    --parameters).  stderr is discarded; a non-zero exit yields "".
    """
    proc = subprocess.run(
        [str(script), flag],
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE,
        stderr=subprocess.DEVNULL,
        text=True,
        errors="replace",
        timeout=timeout,
        check=False,
    )
    if proc.returncode != 0:
        logger.debug("%s %s exited with status %d", script, flag, proc.returncode)
        return ""
    return (proc.stdout or "").strip()
