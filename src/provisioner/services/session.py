"""Owner of the application's single in-flight provisioning run."""

import asyncio
import logging
from typing import Optional

from provisioner.config import Settings, get_settings
from provisioner.models.request import ProvisioningRequest
from provisioner.services.executor import StepExecutor
from provisioner.services.pipeline import PipelineRun, start
from provisioner.services.reporter import ReportService
from provisioner.services.status_tracker import StatusTracker


class RunInProgressError(RuntimeError):
    """A provisioning run is already in flight."""


class ProvisioningSession:
    """Starts runs one at a time and drains their events.

    The session is the caller that honours the pipeline's contract: it
    refuses a second run while one is active and consumes every event until
    Complete, feeding the status tracker and the optional reporter.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        executor: Optional[StepExecutor] = None,
        reporter: Optional[ReportService] = None,
        tracker: Optional[StatusTracker] = None,
    ):
        self.logger = logging.getLogger("provisioner.session")
        self.settings = settings or get_settings()
        self.executor = executor
        self.reporter = reporter or ReportService(self.settings.report_url)
        self.tracker = tracker or StatusTracker()
        self.current_run: Optional[PipelineRun] = None
        self._consumer: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        """True until the current run's Complete event has been consumed."""
        return self._consumer is not None and not self._consumer.done()

    def begin(self, request: ProvisioningRequest) -> PipelineRun:
        """Start a new run.

        Raises:
            RunInProgressError: If the previous run has not finished
        """
        if self.active:
            raise RunInProgressError(
                f"Configuration already in progress: {self.current_run.state.value}"
            )

        self.logger.info(
            f"Starting run: image={request.image_selection}, "
            f"led_mode={request.led_mode}, name='{request.badge_name}'"
        )
        self.tracker.begin()
        run = start(request, executor=self.executor, settings=self.settings)
        self.current_run = run
        self._consumer = asyncio.get_running_loop().create_task(
            self._consume(run), name="provisioning-consumer"
        )
        return run

    async def wait(self) -> None:
        """Wait until the current run's events have all been consumed."""
        if self._consumer is not None:
            await asyncio.shield(self._consumer)

    async def _consume(self, run: PipelineRun) -> None:
        async for event in run.events():
            try:
                self.tracker.apply(event)
            except Exception as e:
                self.logger.error(f"Failed to record event: {e}", exc_info=True)
            await self.reporter.report_event(event, run.request.badge_name)
