"""Models for aggregated test run outcomes."""

from pydantic import BaseModel, Field


class RunSummary(BaseModel):
    """Outcome counts of the tests recorded in one stream."""

    total: int = Field(default=0, description="Distinct test instances seen")
    passed: int = Field(default=0, description="Instances finished as PASSED")
    failed: int = Field(default=0, description="Instances finished as FAILED")
    errored: int = Field(default=0, description="Instances finished as ERRORED")
    skipped: int = Field(default=0, description="Instances finished as SKIPPED")
    incomplete: list[str] = Field(
        default_factory=list,
        description="Names of tests started but never finished",
    )
    unmatched: list[str] = Field(
        default_factory=list,
        description="Instance ids finished without a preceding start record",
    )

    @property
    def has_failures(self) -> bool:
        """Whether any test failed, errored, or never finished."""
        return bool(self.failed or self.errored or self.incomplete)
