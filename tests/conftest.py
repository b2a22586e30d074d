"""Global pytest fixtures and configuration."""

import sys
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from provisioner.config import Settings
from provisioner.models.events import StepOutcome
from provisioner.models.status import FailureKind


class ScriptedExecutor:
    """Step executor returning queued outcomes in call order.

    Calls beyond the script succeed. Every invocation is recorded as
    (program, args, timeout).
    """

    def __init__(self, outcomes: Optional[Sequence[StepOutcome]] = None):
        self.outcomes: List[StepOutcome] = list(outcomes or [])
        self.calls: List[tuple] = []

    async def execute(self, program, args, timeout):
        self.calls.append((program, list(args), timeout))
        if self.outcomes:
            return self.outcomes.pop(0)
        return StepOutcome.ok()

    @property
    def call_args(self) -> List[List[str]]:
        return [args for _, args, _ in self.calls]


@pytest.fixture
def make_executor():
    """Factory for ScriptedExecutor instances."""

    def _make(*outcomes: StepOutcome) -> ScriptedExecutor:
        return ScriptedExecutor(outcomes)

    return _make


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings isolated from the environment, writing into tmp_path."""
    return Settings(
        _env_file=None,
        transport_program="fwi-serial",
        step_timeout=30.0,
        device_index=1,
        work_dir=tmp_path,
        assets_dir=tmp_path / "assets",
        wasm_bundle="build_a_badge.wasm",
        report_url=None,
        log_file=str(tmp_path / "logs" / "provisioner.log"),
        log_level="DEBUG",
    )


@pytest.fixture
def non_zero_exit():
    """Outcome of a transport call that exited 1 with 'device not found'."""
    return StepOutcome.failed(
        FailureKind.NON_ZERO_EXIT, stderr="device not found", exit_status=1
    )


@pytest.fixture
def spawn_error():
    return StepOutcome.failed(
        FailureKind.SPAWN_ERROR, stderr="[Errno 2] No such file or directory: 'fwi-serial'"
    )


@pytest.fixture
def timed_out():
    return StepOutcome.failed(FailureKind.TIMEOUT, stderr="timed out after 30 seconds")
