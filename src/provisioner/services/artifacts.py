"""Artifact generation: the config and settings files the badge consumes."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles

from provisioner.models.request import ImageSelection, LedMode, ProvisioningRequest


CONFIG_FILE_NAME = "build_a_badge.txt"
SETTINGS_FILE_NAME = "settings.txt"
FALLBACK_BADGE_NAME = "Boring"
NETWORK_SUFFIX = "-WiLi"

DEFAULT_IMAGE_ASSET = "badge_placeholder.fwi"
IMAGE_ASSETS = {
    ImageSelection.DEFCON_LOGO: "defcon_logo.fwi",
    ImageSelection.DOGE: "doge.fwi",
    ImageSelection.PUPPY: "puppy.fwi",
    ImageSelection.PIP_BOY: "pip_boy.fwi",
    ImageSelection.VEGAS: "vegas.fwi",
}

logger = logging.getLogger("provisioner.artifacts")


class ArtifactWriteError(Exception):
    """Writing a local artifact failed; no upload may follow."""

    def __init__(self, description: str, file_name: str, reason: str):
        self.description = description
        self.file_name = file_name
        self.reason = reason
        super().__init__(f"Failed to write {description}: {file_name} ({reason})")


@dataclass(frozen=True)
class ArtifactSet:
    """Paths and contents of the artifacts written for one run."""

    config_path: Path
    config_content: str
    settings_path: Path
    settings_content: str


def build_config_artifact(led_mode: Optional[LedMode], badge_name: str) -> str:
    """Build the two-line configuration file: network name, then LED ordinal."""
    ordinal = int(led_mode) if led_mode is not None else 0
    name = badge_name or FALLBACK_BADGE_NAME
    return f"{name}{NETWORK_SUFFIX}\n{ordinal}\n"


def build_settings_artifact(badge_name: str) -> str:
    """Build the key=value settings file with the derived network identifier."""
    ssid = f"{badge_name}{NETWORK_SUFFIX}"
    return (
        "wifiAPEn=1\n"
        f"wifiAPssid={ssid}\n"
        "wifiAPAuth=0\n"
        "btEn=1\n"
        f"btAPen={ssid}\n"
        "btTerm=1\n"
    )


def resolve_image_asset(
    selection: Optional[ImageSelection], assets_dir: Path = Path("assets")
) -> Path:
    """Map a picture selection to the local asset uploaded to the badge."""
    return Path(assets_dir) / IMAGE_ASSETS.get(selection, DEFAULT_IMAGE_ASSET)


async def write_artifacts(request: ProvisioningRequest, work_dir: Path) -> ArtifactSet:
    """Write the config and settings artifacts into work_dir.

    Existing files are overwritten. work_dir itself is never created.

    Args:
        request: Provisioning request to render
        work_dir: Directory receiving the artifacts

    Returns:
        ArtifactSet describing what was written

    Raises:
        ArtifactWriteError: If either file cannot be written
    """
    work_dir = Path(work_dir)
    config_content = build_config_artifact(request.led_mode, request.badge_name)
    settings_content = build_settings_artifact(request.badge_name)

    config_path = work_dir / CONFIG_FILE_NAME
    logger.info(f"Creating config file '{config_path}' with content:\n{config_content}")
    await _write_text(config_path, config_content, "configuration file")

    settings_path = work_dir / SETTINGS_FILE_NAME
    logger.info(f"Creating settings file '{settings_path}' with content:\n{settings_content}")
    await _write_text(settings_path, settings_content, "settings file")

    return ArtifactSet(
        config_path=config_path,
        config_content=config_content,
        settings_path=settings_path,
        settings_content=settings_content,
    )


async def _write_text(path: Path, content: str, description: str) -> None:
    try:
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(content)
    except OSError as e:
        logger.error(f"Failed to write {description} {path}: {e}")
        raise ArtifactWriteError(description, path.name, e.strerror or str(e)) from e
    logger.debug(f"Wrote {description} {path}")
