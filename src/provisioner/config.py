"""Runtime configuration, read from BADGE_* environment variables and .env."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Provisioner settings.

    Every component also accepts explicit values, so these only supply
    defaults for the bundled callers (HTTP API and CLI).
    """

    model_config = SettingsConfigDict(env_prefix="BADGE_", env_file=".env", extra="ignore")

    # --- Transport utility ---
    transport_program: str = "fwi-serial"
    step_timeout: float = Field(30.0, gt=0, description="Per-invocation bound in seconds")
    device_index: int = 1

    # --- Local files ---
    work_dir: Path = Path(".")
    assets_dir: Path = Path("assets")
    wasm_bundle: str = "build_a_badge.wasm"

    # --- Event callback ---
    report_url: Optional[str] = None

    # --- Logging ---
    log_file: str = "./logs/provisioner.log"
    log_level: str = "INFO"

    # --- HTTP API ---
    api_host: str = "0.0.0.0"
    api_port: int = 12316

    @property
    def wasm_path(self) -> Path:
        return self.work_dir / self.wasm_bundle


@lru_cache()
def get_settings() -> Settings:
    return Settings()
