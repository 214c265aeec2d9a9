"""
Two-Stage Rule Validation

STAGE 1 - ANCHOR VALIDATION:
- Is every anchor field the rule's cadence needs present?
- Is it inside its range?
- Missing or out-of-range fields get a documented default

STAGE 2 - SEMANTIC VALIDATION:
- Validity window that can never be active
- Amount that had to be coerced on read
- Rules with no category or goal to group under

IMPORTANT: Validation never rejects a rule. Stage 1 tells the expander
which defaults to use; every substitution is a warning the caller
reports to the audit logger. Stage 2 only produces informational
issues, except coerced amounts which are warnings.
"""

from typing import Optional, Union

from forecast_engine.models.rules import (
    BudgetRule,
    Cadence,
    CadenceAnchor,
    ForecastRule,
    ForecastType,
)
from forecast_engine.models.validation import ValidationIssue, ValidationResult


Rule = Union[BudgetRule, ForecastRule]

ANCHOR_DEFAULTS: dict[str, int] = {
    "day_of_week": 0,        # Sunday
    "day_of_month": 1,
    "month_of_quarter": 0,   # First month of the quarter
    "month_of_year": 0,      # January
}

ANCHOR_RANGES: dict[str, tuple[int, int]] = {
    "day_of_week": (0, 6),
    "day_of_month": (1, 31),
    "month_of_quarter": (0, 2),
    "month_of_year": (0, 11),
}

REQUIRED_ANCHORS: dict[Cadence, tuple[str, ...]] = {
    Cadence.WEEKLY: ("day_of_week",),
    Cadence.FORTNIGHTLY: ("day_of_week",),
    Cadence.MONTHLY: ("day_of_month",),
    Cadence.QUARTERLY: ("month_of_quarter", "day_of_month"),
    Cadence.YEARLY: ("month_of_year", "day_of_month"),
}


class RuleValidator:
    """
    Validates recurring rules and resolves their anchors.

    Stateless; one instance can be shared freely.
    """

    def _validate_anchor(
        self,
        rule: Rule,
    ) -> tuple[CadenceAnchor, list[ValidationIssue]]:
        """
        Stage 1: Anchor validation.

        Returns: (resolved_anchor, list_of_issues)
        The resolved anchor has every field the cadence needs filled in.
        """
        issues = []
        resolved = {}

        for field in REQUIRED_ANCHORS[rule.cadence]:
            value: Optional[int] = getattr(rule.anchor, field)
            low, high = ANCHOR_RANGES[field]
            default = ANCHOR_DEFAULTS[field]

            if value is None:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="missing",
                    message=f"{rule.cadence.value} rule has no {field}; using {default}",
                    severity="warning",
                    substituted_value=default,
                ))
                value = default
            elif not low <= value <= high:
                issues.append(ValidationIssue(
                    field=field,
                    issue_type="out_of_range",
                    message=f"{field}={value} is outside {low}-{high}; using {default}",
                    severity="warning",
                    substituted_value=default,
                ))
                value = default

            resolved[field] = value

        return CadenceAnchor(**resolved), issues

    def _validate_semantic(self, rule: Rule) -> list[ValidationIssue]:
        """
        Stage 2: Semantic validation.

        Checks:
        - Inverted validity window
        - Coerced amount
        - Grouping key presence
        """
        issues = []

        if rule.start_date and rule.end_date and rule.end_date < rule.start_date:
            issues.append(ValidationIssue(
                field="end_date",
                issue_type="inconsistent",
                message="End date is before start date; the rule is never active",
                severity="info",
            ))

        if rule.amount_was_coerced:
            issues.append(ValidationIssue(
                field="amount_cents",
                issue_type="invalid_value",
                message="Amount was not a non-negative whole number of cents; read as 0",
                severity="warning",
            ))

        if isinstance(rule, ForecastRule) and rule.type == ForecastType.SAVINGS:
            if not rule.savings_goal_id:
                issues.append(ValidationIssue(
                    field="savings_goal_id",
                    issue_type="missing",
                    message="Savings rule has no goal; totals go to 'uncategorized'",
                    severity="info",
                ))
        elif not rule.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="Rule has no category; totals go to 'uncategorized'",
                severity="info",
            ))

        return issues

    def resolve_anchor(self, rule: Rule) -> tuple[CadenceAnchor, ValidationResult]:
        """
        Resolve the anchor a rule expands with.

        Only stage 1 runs; this is the hot path used on every expansion.
        """
        anchor, issues = self._validate_anchor(rule)
        return anchor, ValidationResult(rule_id=rule.id, issues=issues)

    def validate(self, rule: Rule) -> ValidationResult:
        """
        Run both validation stages.

        Args:
            rule: The rule to validate

        Returns:
            ValidationResult with all issues found
        """
        _, anchor_issues = self._validate_anchor(rule)
        semantic_issues = self._validate_semantic(rule)
        return ValidationResult(
            rule_id=rule.id,
            issues=anchor_issues + semantic_issues,
        )
