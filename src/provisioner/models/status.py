"""State and failure-kind enums for the provisioning pipeline."""

from enum import Enum


class PipelineState(str, Enum):
    """Provisioning pipeline states.

    State transitions:
    start → upload_config → upload_image → upload_wasm → upload_settings → run_wasm → done
      ↓           ↓              ↓                            ↓              ↓
     done ←───────────────────────────────────────────────────────────────────

    upload_wasm never short-circuits: its failures are tolerated.
    """

    START = "start"
    UPLOAD_CONFIG = "upload_config"
    UPLOAD_IMAGE = "upload_image"
    UPLOAD_WASM = "upload_wasm"
    UPLOAD_SETTINGS = "upload_settings"
    RUN_WASM = "run_wasm"
    DONE = "done"


class FailureKind(str, Enum):
    """Why a step did not succeed."""

    LOCAL_IO = "local_io"
    SPAWN_ERROR = "spawn_error"
    NON_ZERO_EXIT = "non_zero_exit"
    TIMEOUT = "timeout"
