"""Optional forwarding of provisioning events to an HTTP callback."""

import logging
from typing import Optional

import httpx

from provisioner.api.models import ReportPayload
from provisioner.models.events import ProgressEvent


class ReportService:
    """Posts each event to a callback URL, if one is configured."""

    def __init__(self, report_url: Optional[str] = None, timeout: float = 5.0):
        """Initialize report service.

        Args:
            report_url: Callback endpoint (reporting disabled when None)
            timeout: Per-request timeout in seconds
        """
        self.logger = logging.getLogger("provisioner.reporter")
        self.report_url = report_url
        self.timeout = timeout

    @property
    def enabled(self) -> bool:
        return bool(self.report_url)

    async def report_event(self, event: ProgressEvent, badge_name: str = "") -> None:
        """Send one event to the callback.

        Args:
            event: Event to forward
            badge_name: Name of the badge being provisioned

        Note:
            Failures are logged but not raised; reporting never affects a run
        """
        if not self.enabled:
            return

        payload = ReportPayload(badge_name=badge_name, event=event)
        self.logger.debug(f"Reporting {event.kind} to {self.report_url}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.report_url,
                    json=payload.model_dump(mode="json"),
                )
                response.raise_for_status()
                self.logger.debug("Report sent successfully")

        except httpx.HTTPError as e:
            self.logger.warning(f"Failed to report progress to {self.report_url}: {e}")
        except Exception as e:
            self.logger.error(
                f"Unexpected error reporting progress: {e}",
                exc_info=True,
            )
