"""Provisioning request model and the fixed option sets it draws from."""

import logging
from enum import Enum, IntEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


MAX_BADGE_NAME_LENGTH = 23


class ImageSelection(str, Enum):
    """Pictures a badge can display."""

    DEFCON_LOGO = "defcon_logo"
    DOGE = "doge"
    PUPPY = "puppy"
    PIP_BOY = "pip_boy"
    VEGAS = "vegas"

    @property
    def display_name(self) -> str:
        return _IMAGE_DISPLAY_NAMES[self]


_IMAGE_DISPLAY_NAMES = {
    ImageSelection.DEFCON_LOGO: "DEF CON Logo",
    ImageSelection.DOGE: "Doge",
    ImageSelection.PUPPY: "Puppy",
    ImageSelection.PIP_BOY: "Pip-Boy",
    ImageSelection.VEGAS: "Vegas",
}


class LedMode(IntEnum):
    """LED animation modes; the value is the ordinal written to the config file."""

    MANUAL = 0
    RAINBOW = 1
    SNOWSTORM = 2
    RED_CHASE = 3
    RAINBOW_CHASE = 4
    BLUE_CHASE = 5
    GREEN_DOT = 6
    BLUE_DOT = 7
    BLUE_SIN = 8
    WHITE_FADE = 9
    BAR_GRAPH = 10
    ZYLON = 11
    AUDIO = 12
    ACCEL = 13

    @property
    def display_name(self) -> str:
        if self is LedMode.ACCEL:
            return "Accelerometer"
        return self.name.replace("_", " ").title()


def sanitize_badge_name(raw: str) -> str:
    """Keep only alphanumeric characters, truncated to the badge limit.

    Mirrors the input filter applied while the user types, so callers can
    accept free text and still build a valid ProvisioningRequest.
    """
    filtered = "".join(c for c in raw if c.isalnum())
    return filtered[:MAX_BADGE_NAME_LENGTH]


class ProvisioningRequest(BaseModel):
    """Immutable input for one provisioning run.

    Constructed by the caller before starting a run and consumed once.
    """

    model_config = ConfigDict(frozen=True)

    image_selection: Optional[ImageSelection] = Field(
        None, description="Picture to upload (default asset when None)"
    )
    led_mode: Optional[LedMode] = Field(
        None, description="LED mode ordinal 0-13 (0 is written when None)"
    )
    badge_name: str = Field(
        "",
        max_length=MAX_BADGE_NAME_LENGTH,
        description="Badge name, alphanumeric only, may be empty",
    )

    @field_validator("image_selection", mode="before")
    @classmethod
    def unknown_image_is_none(cls, v):
        """Unrecognised pictures fall back to the default asset."""
        if v is None or isinstance(v, ImageSelection):
            return v
        try:
            return ImageSelection(v)
        except ValueError:
            logging.getLogger("provisioner.request").warning(
                f"Unknown image selection {v!r}, using default asset"
            )
            return None

    @field_validator("badge_name")
    @classmethod
    def alphanumeric_only(cls, v: str) -> str:
        if v and not v.isalnum():
            raise ValueError("Badge name must contain letters and numbers only")
        return v
