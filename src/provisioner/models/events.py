"""Step outcomes and the progress events delivered to callers."""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from provisioner.models.status import FailureKind, PipelineState


class StepOutcome(BaseModel):
    """Result of one external invocation (or of the artifact write).

    failure_kind is None exactly when the step succeeded.
    """

    model_config = ConfigDict(frozen=True)

    succeeded: bool
    exit_status: Optional[int] = None
    stdout: str = ""
    stderr: str = ""
    failure_kind: Optional[FailureKind] = None

    @model_validator(mode="after")
    def kind_matches_success(self):
        if self.succeeded and self.failure_kind is not None:
            raise ValueError("A successful outcome cannot carry a failure kind")
        if not self.succeeded and self.failure_kind is None:
            raise ValueError("A failed outcome needs a failure kind")
        return self

    @classmethod
    def ok(cls, stdout: str = "", stderr: str = "", exit_status: Optional[int] = 0) -> "StepOutcome":
        return cls(succeeded=True, exit_status=exit_status, stdout=stdout, stderr=stderr)

    @classmethod
    def failed(
        cls,
        kind: FailureKind,
        stderr: str = "",
        stdout: str = "",
        exit_status: Optional[int] = None,
    ) -> "StepOutcome":
        return cls(
            succeeded=False,
            exit_status=exit_status,
            stdout=stdout,
            stderr=stderr,
            failure_kind=kind,
        )


class StepUpdate(BaseModel):
    """Progress update emitted after a non-final step."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["step_update"] = "step_update"
    description: str = Field(..., description="Human-readable step description")
    fraction: float = Field(..., ge=0.0, le=1.0, description="Overall progress (0-1)")
    state: Optional[PipelineState] = Field(
        None, description="Pipeline state entered when this update was emitted"
    )
    detail: str = Field(
        "", description="Console output of the step that was just attempted"
    )


class Complete(BaseModel):
    """Terminal event of a run: success message or aggregated error text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["complete"] = "complete"
    success: bool
    message: str

    @classmethod
    def ok(cls, message: str) -> "Complete":
        return cls(success=True, message=message)

    @classmethod
    def error(cls, message: str) -> "Complete":
        return cls(success=False, message=message)


ProgressEvent = Annotated[Union[StepUpdate, Complete], Field(discriminator="kind")]
