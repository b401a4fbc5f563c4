"""
Validation Models

Payment and delivery requests are checked before anything is mutated.
Every problem is reported as a ValidationIssue with enough detail
(amounts and limits) for the caller to correct the input.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class ValidationIssue(BaseModel):
    """A single validation issue found."""
    
    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'not_positive', 'exceeds_balance', 'invalid_state')"
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
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Amounts and limits involved"
    )


class ValidationResult(BaseModel):
    """Outcome of validating one payment or delivery request."""
    
    subject: str = Field(
        ...,
        description="What was validated, e.g. 'payment' or 'delivery'"
    )
    validated_at: datetime = Field(
        default_factory=datetime.utcnow
    )
    issues: list[ValidationIssue] = Field(
        default_factory=list,
        description="All validation issues found"
    )
    
    @property
    def is_valid(self) -> bool:
        return not self.has_errors
    
    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)
    
    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")
    
    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]
    
    def summary(self) -> str:
        """One line per error, for exception messages and logs."""
        return "; ".join(
            issue.message for issue in self.issues if issue.severity == "error"
        )
