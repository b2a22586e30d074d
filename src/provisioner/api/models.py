"""Pydantic models for HTTP API requests and responses."""

from typing import List, Optional

from pydantic import BaseModel, Field

from provisioner.models.events import ProgressEvent
from provisioner.models.request import LedMode, MAX_BADGE_NAME_LENGTH
from provisioner.models.status import PipelineState


class ConfigureRequest(BaseModel):
    """POST /api/v1.0/configure payload.

    Starts a provisioning run in the background. badge_name is free text;
    non-alphanumeric characters are dropped and it is cut to 23 characters.

    Example:
        {
            "image_selection": "doge",
            "led_mode": 4,
            "badge_name": "Max"
        }
    """

    image_selection: Optional[str] = Field(
        None,
        description="Picture identifier (default asset when missing or unknown)",
        examples=["defcon_logo", "doge", "puppy", "pip_boy", "vegas"],
    )
    led_mode: int = Field(
        default=int(LedMode.ACCEL),
        ge=0,
        le=13,
        description="LED mode ordinal (0-13)",
        examples=[0, 4, 13],
    )
    badge_name: str = Field(
        "",
        max_length=256,
        description="Badge name as typed by the user",
        examples=["Max", "Zero Cool"],
    )


class ProgressData(BaseModel):
    """Progress data nested in response."""

    is_configuring: bool = Field(..., description="True while a run is in flight")
    state: Optional[PipelineState] = Field(None, description="Pipeline state of the latest run")
    progress: float = Field(..., ge=0.0, le=1.0, description="Progress fraction (0-1)")
    status: str = Field(..., description="Human-readable status line")
    error: Optional[str] = Field(None, description="Aggregated diagnostic if the run failed")
    console_output: str = Field("", description="Running console transcript")


class ProgressResponse(BaseModel):
    """GET /api/v1.0/progress response.

    Returns current status with application-level status code.
    """

    code: int = Field(..., description="Application-level status code (200/500)")
    msg: str = Field(..., description="Status message or error description")
    data: ProgressData = Field(..., description="Progress data")


class SuccessResponse(BaseModel):
    """Success response for command endpoints."""

    code: int = Field(default=200, description="Application-level status code (200)")
    msg: str = Field(default="success", description="Success message")
    data: Optional[dict] = Field(None, description="Optional response data")


class ImageOption(BaseModel):
    id: str
    name: str


class LedModeOption(BaseModel):
    value: int
    name: str


class OptionsResponse(BaseModel):
    """GET /api/v1.0/options response: what a caller may put in a request."""

    images: List[ImageOption]
    led_modes: List[LedModeOption]
    default_led_mode: int = int(LedMode.ACCEL)
    max_badge_name_length: int = MAX_BADGE_NAME_LENGTH


class ReportPayload(BaseModel):
    """Payload POSTed to the configured report_url for every event."""

    badge_name: str = Field("", description="Badge being provisioned")
    event: ProgressEvent = Field(..., description="StepUpdate or Complete event")
