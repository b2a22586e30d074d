"""API route handlers for badge provisioning endpoints."""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from provisioner.api.models import (
    ConfigureRequest,
    ImageOption,
    LedModeOption,
    OptionsResponse,
    ProgressResponse,
    SuccessResponse,
)
from provisioner.models.request import (
    ImageSelection,
    LedMode,
    ProvisioningRequest,
    sanitize_badge_name,
)
from provisioner.services.session import ProvisioningSession, RunInProgressError

router = APIRouter(prefix="/api/v1.0")
logger = logging.getLogger("provisioner.api")


def get_session(request: Request) -> ProvisioningSession:
    """The session created by the application lifespan."""
    return request.app.state.session


@router.get("/progress", response_model=ProgressResponse)
async def get_progress(session: ProvisioningSession = Depends(get_session)):
    """GET /api/v1.0/progress - Query the latest run's status.

    Response format (in flight):
        {
            "code": 200,
            "msg": "success",
            "data": {
                "is_configuring": true,
                "state": "upload_image",
                "progress": 0.3,
                "status": "Step 2: Uploading image file...",
                "error": null,
                "console_output": "..."
            }
        }

    A failed run reports code 500 and the aggregated diagnostic in
    data.error.
    """
    status = session.tracker.get_status()

    if status.error is not None:
        return ProgressResponse(code=500, msg="Configuration failed", data=status)
    return ProgressResponse(code=200, msg="success", data=status)


@router.post("/configure", response_model=SuccessResponse)
async def post_configure(
    body: ConfigureRequest, session: ProvisioningSession = Depends(get_session)
):
    """POST /api/v1.0/configure - Start provisioning the connected badge.

    Returns:
        code 200 when the run started, code 409 if one is already in flight
    """
    request = ProvisioningRequest(
        image_selection=body.image_selection,
        led_mode=LedMode(body.led_mode),
        badge_name=sanitize_badge_name(body.badge_name),
    )

    try:
        session.begin(request)
    except RunInProgressError as e:
        status = session.tracker.get_status()
        logger.warning(f"Rejected configure request: {e}")
        return JSONResponse(
            status_code=200,
            content={
                "code": 409,
                "msg": str(e),
                "state": status.state.value if status.state else None,
                "progress": status.progress,
            },
        )

    return JSONResponse(
        status_code=200,
        content={
            "code": 200,
            "msg": "success",
            "data": {"badge_name": request.badge_name},
        },
    )


@router.get("/options", response_model=OptionsResponse)
async def get_options():
    """GET /api/v1.0/options - Selectable pictures and LED modes."""
    return OptionsResponse(
        images=[ImageOption(id=image.value, name=image.display_name) for image in ImageSelection],
        led_modes=[LedModeOption(value=int(mode), name=mode.display_name) for mode in LedMode],
    )
