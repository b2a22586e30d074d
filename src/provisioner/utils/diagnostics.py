"""Console transcript text for pipeline steps."""

from typing import List, Optional

from provisioner.models.events import StepOutcome
from provisioner.models.status import FailureKind


STOPPED_LINE = "Configuration stopped due to error."

_FAILURE_VERBS = {
    FailureKind.NON_ZERO_EXIT: "failed",
    FailureKind.SPAWN_ERROR: "error",
    FailureKind.TIMEOUT: "timed out",
    FailureKind.LOCAL_IO: "failed",
}


def output_lines(program: str, action: str, outcome: StepOutcome) -> List[str]:
    """Exit status and captured output of an invocation that actually ran.

    Spawn errors and timeouts have no exit status and produce no lines.
    """
    if outcome.exit_status is None:
        return []
    lines = [
        f"Configuration: {program} {action} completed with exit status: {outcome.exit_status}"
    ]
    if outcome.stdout:
        lines.append(f"Configuration: stdout: {outcome.stdout.rstrip()}")
    if outcome.stderr:
        lines.append(f"Configuration: stderr: {outcome.stderr.rstrip()}")
    return lines


def success_line(success_text: str) -> str:
    return f"Configuration: ✓ {success_text}"


def failure_line(label: str, outcome: StepOutcome, timeout: Optional[float] = None) -> str:
    """One-line reason a step failed, e.g. "✗ Image upload failed: no device"."""
    kind = outcome.failure_kind
    if kind is FailureKind.TIMEOUT:
        bound = f" ({timeout:g} seconds)" if timeout is not None else ""
        return f"✗ {label} timed out{bound} - device may not be connected"
    if kind is FailureKind.LOCAL_IO:
        return outcome.stderr
    return f"✗ {label} {_FAILURE_VERBS[kind]}: {outcome.stderr.strip()}"


def tolerated_line(label: str, outcome: StepOutcome) -> str:
    verb = _FAILURE_VERBS[outcome.failure_kind]
    return f"Configuration: ✗ {label} {verb} (expected - file doesn't exist yet)"


def aggregate_failure(
    lines: List[str], label: str, outcome: StepOutcome, timeout: Optional[float] = None
) -> str:
    """Single human-readable diagnostic for a fatal step.

    Combines exit status, captured stdout and stderr with the failure reason.
    """
    if outcome.failure_kind is FailureKind.LOCAL_IO:
        return outcome.stderr
    return "\n".join(
        [*lines, f"Configuration ERROR: {failure_line(label, outcome, timeout)}", STOPPED_LINE]
    )
