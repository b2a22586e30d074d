"""Step execution: runs the transport utility and classifies the result."""

import asyncio
import logging
from typing import Protocol, Sequence

from provisioner.models.events import StepOutcome
from provisioner.models.status import FailureKind


class StepExecutor(Protocol):
    """Anything that can run one external invocation with a bounded timeout."""

    async def execute(
        self, program: str, args: Sequence[str], timeout: float
    ) -> StepOutcome:
        ...


class SubprocessExecutor:
    """Runs the transport utility as a child process.

    A child that outlives its timeout is killed and reaped before the
    outcome is returned, so no stray transport process keeps talking to
    the device while the pipeline moves on.
    """

    KILL_GRACE = 5.0  # seconds to wait for a killed child to be reaped

    def __init__(self):
        """Initialize subprocess executor."""
        self.logger = logging.getLogger("provisioner.executor")

    async def execute(
        self, program: str, args: Sequence[str], timeout: float
    ) -> StepOutcome:
        """Run program with args, waiting at most timeout seconds.

        Args:
            program: Executable name or path (resolved via PATH)
            args: Ordered arguments
            timeout: Upper bound in seconds for the whole invocation

        Returns:
            StepOutcome with captured stdout/stderr and the failure kind, if any
        """
        command = " ".join([program, *args])
        self.logger.info(f"Running: {command}")

        try:
            process = await asyncio.create_subprocess_exec(
                program,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            self.logger.error(f"Failed to spawn {program}: {e}")
            return StepOutcome.failed(FailureKind.SPAWN_ERROR, stderr=str(e))

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            self.logger.error(f"{command} timed out after {timeout}s, killing it")
            await self._kill(process)
            return StepOutcome.failed(
                FailureKind.TIMEOUT, stderr=f"timed out after {timeout:g} seconds"
            )

        stdout_text = _decode(stdout)
        stderr_text = _decode(stderr)
        returncode = process.returncode
        self.logger.info(f"{program} completed with exit status: {returncode}")

        if returncode == 0:
            return StepOutcome.ok(stdout=stdout_text, stderr=stderr_text, exit_status=returncode)

        return StepOutcome.failed(
            FailureKind.NON_ZERO_EXIT,
            stdout=stdout_text,
            stderr=stderr_text,
            exit_status=returncode,
        )

    async def _kill(self, process) -> None:
        try:
            process.kill()
        except ProcessLookupError:
            # Already exited between the timeout and the kill
            pass
        try:
            await asyncio.wait_for(process.wait(), timeout=self.KILL_GRACE)
        except asyncio.TimeoutError:
            self.logger.warning(f"Process {process.pid} was not reaped after kill")


def _decode(data) -> str:
    if not data:
        return ""
    return data.decode("utf-8", errors="replace")
