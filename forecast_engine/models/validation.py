"""Validation result models for rule configuration checks."""

from typing import Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'invalid_value')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    substituted_value: Optional[int] = Field(
        default=None,
        description="Default used in place of the invalid value"
    )


class ValidationResult(BaseModel):
    """
    Result of validating one rule.

    A rule is never rejected. `is_valid` only says whether defaults had
    to be substituted for it to expand.
    """

    rule_id: str
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.has_warnings

    @property
    def has_warnings(self) -> bool:
        return any(issue.severity == "warning" for issue in self.issues)

    @property
    def substitutions(self) -> dict[str, int]:
        """Anchor field -> default value substituted for it."""
        return {
            issue.field: issue.substituted_value
            for issue in self.issues
            if issue.substituted_value is not None
        }
