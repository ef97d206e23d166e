"""Models for test lifecycle events written to a result stream."""

from datetime import datetime
from typing import ClassVar, Literal

from pydantic import AwareDatetime, BaseModel, Field, model_validator

EventResult = Literal["UNSET", "PASSED", "FAILED", "ERRORED", "SKIPPED"]
FinalResult = Literal["PASSED", "FAILED", "ERRORED", "SKIPPED"]

FINAL_RESULTS: frozenset[str] = frozenset({"PASSED", "FAILED", "ERRORED", "SKIPPED"})


class TestEventDetail(BaseModel):
    """Diagnostics attached to a completion record."""

    __test__: ClassVar[bool] = False

    errors: list[str] = Field(default_factory=list, description="Error messages")
    failures: list[str] = Field(
        default_factory=list, description="Assertion failure messages"
    )
    warnings: list[str] = Field(default_factory=list, description="Warning messages")


class TestEvent(BaseModel):
    """One lifecycle observation of a single test execution.

    A preview record (written when the test starts) has ``result="UNSET"``,
    an empty ``stop`` and no ``detail``. The completion record for the same
    ``instance`` carries the outcome, the stop time and the detail.
    """

    __test__: ClassVar[bool] = False

    name: str = Field(..., description="Fully-qualified test identifier")
    monikers: list[str] = Field(default_factory=list, description="Free-form tags")
    pivots: dict[str, str] = Field(
        default_factory=dict, description="Parameterization key/value pairs"
    )
    instance: str = Field(..., description="Unique id of this execution")
    parent: str | None = Field(
        default=None, description="Instance id of the enclosing scope"
    )
    rtype: Literal["TEST"] = Field(default="TEST", description="Record kind")
    result: EventResult = Field(default="UNSET", description="Test outcome")
    start: AwareDatetime = Field(..., description="Time the test began")
    stop: Literal[""] | AwareDatetime = Field(
        default="", description="Time the test concluded, empty on preview"
    )
    detail: TestEventDetail | None = Field(
        default=None, description="Diagnostics, present only on completion"
    )

    @model_validator(mode="after")
    def _check_lifecycle(self) -> "TestEvent":
        if self.result == "UNSET":
            if self.stop != "":
                raise ValueError("preview record must have an empty stop")
            if self.detail is not None:
                raise ValueError("preview record must not carry detail")
            return self

        if self.detail is None:
            raise ValueError(f"{self.result} record requires detail")
        if not isinstance(self.stop, datetime):
            raise ValueError(f"{self.result} record requires a stop time")
        if self.stop < self.start:
            raise ValueError("stop must not be earlier than start")
        return self

    @property
    def is_preview(self) -> bool:
        """Whether this is the record written when the test started."""
        return self.result == "UNSET"

    @property
    def is_completion(self) -> bool:
        """Whether this is the record written when the test concluded."""
        return self.result != "UNSET"
