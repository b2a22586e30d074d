"""Provisioning pipeline: ordered uploads to the badge as a state machine.

A run walks a fixed table of steps. Each step's action produces a
StepOutcome; the pure transition() function turns (state, outcome) into the
next state and exactly one event, which the driver puts on the run's
EventChannel. Every run ends with a single Complete event.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import AsyncIterator, List, Optional, Tuple

from provisioner.config import Settings, get_settings
from provisioner.models.events import Complete, ProgressEvent, StepOutcome, StepUpdate
from provisioner.models.request import ProvisioningRequest
from provisioner.models.status import FailureKind, PipelineState
from provisioner.services.artifacts import (
    CONFIG_FILE_NAME,
    SETTINGS_FILE_NAME,
    ArtifactWriteError,
    resolve_image_asset,
    write_artifacts,
)
from provisioner.services.channel import EventChannel
from provisioner.services.executor import StepExecutor, SubprocessExecutor
from provisioner.utils import diagnostics


SUCCESS_MESSAGE = "Configuration completed successfully!"

REMOTE_CONFIG_PATH = "/build_a_badge.txt"
REMOTE_IMAGE_PATH = "/images/build_a_badge.fwi"
REMOTE_SETTINGS_PATH = "/settings.txt"

logger = logging.getLogger("provisioner.pipeline")


@dataclass(frozen=True)
class PipelineStep:
    """Static description of one pipeline state."""

    state: PipelineState
    label: str  # used in failure lines: "✗ <label> failed: ..."
    action: Optional[str]  # "<program> <action> completed ..."; None: no transport call
    success_text: str
    next_state: PipelineState
    next_description: Optional[str]  # None: the run completes after this step
    next_fraction: float
    fatal: bool = True


STEPS = {
    step.state: step
    for step in (
        PipelineStep(
            state=PipelineState.START,
            label="Artifact generation",
            action=None,
            success_text="Configuration files generated",
            next_state=PipelineState.UPLOAD_CONFIG,
            next_description="Step 1: Uploading configuration file...",
            next_fraction=0.1,
        ),
        PipelineStep(
            state=PipelineState.UPLOAD_CONFIG,
            label="Configuration upload",
            action="command",
            success_text="Configuration file uploaded successfully",
            next_state=PipelineState.UPLOAD_IMAGE,
            next_description="Step 2: Uploading image file...",
            next_fraction=0.3,
        ),
        PipelineStep(
            state=PipelineState.UPLOAD_IMAGE,
            label="Image upload",
            action="image upload",
            success_text="Image file uploaded successfully",
            next_state=PipelineState.UPLOAD_WASM,
            next_description="Step 3: Uploading WASM file...",
            next_fraction=0.5,
        ),
        PipelineStep(
            state=PipelineState.UPLOAD_WASM,
            label="WASM upload",
            action="WASM upload",
            success_text="WASM file uploaded successfully",
            next_state=PipelineState.UPLOAD_SETTINGS,
            next_description="Step 4: Uploading settings file...",
            next_fraction=0.7,
            fatal=False,
        ),
        PipelineStep(
            state=PipelineState.UPLOAD_SETTINGS,
            label="Settings upload",
            action="settings upload",
            success_text="Settings file uploaded successfully",
            next_state=PipelineState.RUN_WASM,
            next_description="Step 5: Running WASM application...",
            next_fraction=0.9,
        ),
        PipelineStep(
            state=PipelineState.RUN_WASM,
            label="WASM execution",
            action="WASM run",
            success_text="WASM application executed successfully",
            next_state=PipelineState.DONE,
            next_description=None,
            next_fraction=1.0,
        ),
    )
}


def transition(
    state: PipelineState, outcome: StepOutcome, console: str = ""
) -> Tuple[PipelineState, ProgressEvent]:
    """Next state and the single event emitted when leaving state.

    Args:
        state: State whose action produced outcome
        outcome: Result of that action
        console: Console text of the action; becomes the error payload of a
            fatal failure and the detail of a StepUpdate otherwise

    Returns:
        (next_state, event)

    Raises:
        ValueError: If state is DONE, which has no action and no way out
    """
    if state is PipelineState.DONE:
        raise ValueError("done is terminal; start a new run instead")

    step = STEPS[state]

    if not outcome.succeeded and step.fatal:
        message = console or diagnostics.aggregate_failure([], step.label, outcome)
        return PipelineState.DONE, Complete.error(message)

    if step.next_description is None:
        return PipelineState.DONE, Complete.ok(SUCCESS_MESSAGE)

    return step.next_state, StepUpdate(
        description=step.next_description,
        fraction=step.next_fraction,
        state=step.next_state,
        detail=console,
    )


class PipelineDriver:
    """Drives one provisioning run from START to DONE.

    The driver is single-use: once DONE it performs no further actions.
    Only one run may be in flight per application instance; callers are
    responsible for refusing to start a second one (see ProvisioningSession).
    """

    def __init__(
        self,
        request: ProvisioningRequest,
        executor: StepExecutor,
        channel: EventChannel,
        settings: Optional[Settings] = None,
    ):
        """Initialize pipeline driver.

        Args:
            request: What to write to the badge
            executor: Runs transport utility invocations
            channel: Receives this run's events, in order
            settings: Paths, program name and timeout (global settings if None)
        """
        self.request = request
        self.executor = executor
        self.channel = channel
        self.settings = settings or get_settings()
        self.console: List[str] = []
        self.result: Optional[Complete] = None
        self._state = PipelineState.START

    @property
    def state(self) -> PipelineState:
        return self._state

    async def run(self) -> Complete:
        """Advance until DONE and return the terminal event."""
        logger.info(f"Starting configuration process for badge '{self.request.badge_name}'")
        try:
            while self._state is not PipelineState.DONE:
                await self.advance()
        except asyncio.CancelledError:
            logger.warning(f"Pipeline cancelled in state {self._state.value}")
            await self._abort("Run cancelled")
            raise
        except Exception as e:
            logger.error(f"Pipeline aborted in state {self._state.value}: {e}", exc_info=True)
            await self._abort(f"Unexpected error: {e}")
        logger.info("Reached done state - configuration process complete")
        return self.result

    async def _abort(self, message: str) -> None:
        """End the run with a failed Complete unless one was already emitted."""
        self._state = PipelineState.DONE
        if self.channel.closed:
            return
        event = Complete.error(message)
        self._record(event, "")
        await self.channel.put(event)

    async def advance(self) -> Optional[ProgressEvent]:
        """Perform the current state's action and emit its event.

        Returns:
            The emitted event, or None when already DONE
        """
        state = self._state
        if state is PipelineState.DONE:
            return None

        step = STEPS[state]
        outcome, console = await self._perform(step)
        next_state, event = transition(state, outcome, console)

        if not outcome.succeeded:
            if step.fatal:
                logger.error(f"{step.label} failed ({outcome.failure_kind.value}), stopping")
            else:
                logger.warning(
                    f"{step.label} failed ({outcome.failure_kind.value}), continuing"
                )

        self._record(event, console)
        self._state = next_state
        await self.channel.put(event)
        return event

    async def _perform(self, step: PipelineStep) -> Tuple[StepOutcome, str]:
        if step.action is None:
            return await self._write_artifacts(step)

        program = self.settings.transport_program
        timeout = self.settings.step_timeout
        logger.info(f"Starting {step.label.lower()}")
        outcome = await self.executor.execute(program, self._arguments(step.state), timeout)

        lines = diagnostics.output_lines(program, step.action, outcome)
        if outcome.succeeded:
            lines.append(diagnostics.success_line(step.success_text))
            return outcome, "\n".join(lines)
        if not step.fatal:
            lines.append(diagnostics.tolerated_line(step.label, outcome))
            return outcome, "\n".join(lines)
        return outcome, diagnostics.aggregate_failure(lines, step.label, outcome, timeout)

    async def _write_artifacts(self, step: PipelineStep) -> Tuple[StepOutcome, str]:
        try:
            artifacts = await write_artifacts(self.request, self.settings.work_dir)
        except ArtifactWriteError as e:
            return StepOutcome.failed(FailureKind.LOCAL_IO, stderr=str(e)), str(e)
        lines = [
            f"Generated configuration file content:\n{artifacts.config_content.rstrip()}",
            diagnostics.success_line(step.success_text),
        ]
        return StepOutcome.ok(exit_status=None), "\n".join(lines)

    def _arguments(self, state: PipelineState) -> List[str]:
        settings = self.settings
        device_index = str(settings.device_index)
        wasm_path = str(settings.wasm_path)

        if state is PipelineState.UPLOAD_CONFIG:
            local = str(settings.work_dir / CONFIG_FILE_NAME)
            return ["-s", local, "-fn", REMOTE_CONFIG_PATH, "-mi", device_index]
        if state is PipelineState.UPLOAD_IMAGE:
            asset = resolve_image_asset(self.request.image_selection, settings.assets_dir)
            logger.info(f"Using image file: {asset}")
            return ["-s", str(asset), "-fn", REMOTE_IMAGE_PATH]
        if state is PipelineState.UPLOAD_WASM:
            return ["-s", wasm_path, "-fn", f"/{settings.wasm_bundle}"]
        if state is PipelineState.UPLOAD_SETTINGS:
            local = str(settings.work_dir / SETTINGS_FILE_NAME)
            return ["-s", local, "-fn", REMOTE_SETTINGS_PATH, "-mi", device_index]
        if state is PipelineState.RUN_WASM:
            return ["-w", wasm_path]
        raise ValueError(f"No transport invocation for state {state.value}")

    def _record(self, event: ProgressEvent, console: str) -> None:
        if isinstance(event, StepUpdate):
            if console:
                self.console.append(console)
            self.console.append(event.description)
            logger.info(f"Configuration: {event.description}")
            return

        self.result = event
        if event.success:
            if console:
                self.console.append(console)
            logger.info(f"Configuration successful: {event.message}")
        else:
            logger.error(f"Configuration failed: {event.message}")
        self.console.append(event.message)


class PipelineRun:
    """Caller-owned handle on one in-flight (or finished) run."""

    def __init__(self, driver: PipelineDriver, task: "asyncio.Task"):
        self._driver = driver
        self._task = task

    @property
    def request(self) -> ProvisioningRequest:
        return self._driver.request

    @property
    def state(self) -> PipelineState:
        return self._driver.state

    @property
    def console(self) -> List[str]:
        return list(self._driver.console)

    @property
    def done(self) -> bool:
        return self._task.done()

    def events(self) -> AsyncIterator[ProgressEvent]:
        """Events in emission order; iteration ends after Complete."""
        return self._driver.channel.__aiter__()

    async def wait(self) -> Complete:
        """Wait for the run to reach DONE and return its Complete event."""
        return await asyncio.shield(self._task)


def start(
    request: ProvisioningRequest,
    executor: Optional[StepExecutor] = None,
    settings: Optional[Settings] = None,
) -> PipelineRun:
    """Start a fresh run as a background task and return its handle.

    Must be called from a running event loop.
    """
    channel = EventChannel()
    driver = PipelineDriver(request, executor or SubprocessExecutor(), channel, settings)
    task = asyncio.get_running_loop().create_task(driver.run(), name="provisioning-run")
    return PipelineRun(driver, task)
