"""In-memory status of the latest provisioning run, for GET /progress."""

import logging
from typing import List, Optional

from provisioner.api.models import ProgressData
from provisioner.models.events import Complete, ProgressEvent, StepUpdate
from provisioner.models.status import PipelineState


class StatusTracker:
    """Mirrors a run's events into a pollable status.

    Holds the status line, progress fraction, error text and the running
    console transcript the caller displays. Nothing is persisted; a new run
    starts from a clean slate.
    """

    def __init__(self):
        """Initialize status tracker."""
        self.logger = logging.getLogger("provisioner.status")
        self.reset()

    def reset(self) -> None:
        """Back to idle (no run started yet)."""
        self._is_configuring = False
        self._state: Optional[PipelineState] = None
        self._progress = 0.0
        self._status = "Ready"
        self._error: Optional[str] = None
        self._console: List[str] = []

    def begin(self) -> None:
        """Clear the previous run's status when a new run starts."""
        self._is_configuring = True
        self._state = PipelineState.START
        self._progress = 0.0
        self._status = "Starting configuration..."
        self._error = None
        self._console = []
        self.logger.debug("Status cleared for new run")

    def apply(self, event: ProgressEvent) -> None:
        """Fold one event into the status.

        The pipeline state comes from the event itself, so a consumer lagging
        behind the run still reports the state that matches the status line.
        """
        if isinstance(event, StepUpdate):
            if event.state is not None:
                self._state = event.state
            self._status = event.description
            self._progress = event.fraction
            if event.detail:
                self._console.append(event.detail)
            self._console.append(event.description)
            self.logger.debug(f"Status updated: {event.description} ({event.fraction:.0%})")
            return

        if isinstance(event, Complete):
            self._is_configuring = False
            self._progress = 1.0
            self._state = PipelineState.DONE
            if event.success:
                self._status = "Configuration successful!"
                self._error = None
            else:
                self._status = "Configuration failed"
                self._error = event.message
            self._console.append(event.message)
            self.logger.debug(f"Run finished: {self._status}")

    @property
    def is_configuring(self) -> bool:
        return self._is_configuring

    @property
    def console_output(self) -> str:
        return "\n".join(self._console)

    def get_status(self) -> ProgressData:
        """Get current status for GET /progress endpoint."""
        return ProgressData(
            is_configuring=self._is_configuring,
            state=self._state,
            progress=self._progress,
            status=self._status,
            error=self._error,
            console_output=self.console_output,
        )
