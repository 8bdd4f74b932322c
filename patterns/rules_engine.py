"""Pure-function rules engine pattern.

Rules are stateless functions: (inputs, config) -> RuleResult.
No database, no side effects. This makes them:
- Trivially testable (pure input/output)
- Composable (every rule runs; results are folded together)
- Auditable (deterministic, explainable)

A rule that does not fire returns a passing result with no message. A rule
that fires carries a severity: ERROR blocks processing, WARNING is advisory.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


# ---------------------------------------------------------------------------
# Result types
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class RuleResult:
    """Outcome of a single rule evaluation."""

    passed: bool
    rule_name: str
    message: str = ""
    severity: Severity = Severity.INFO
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, rule_name: str, **details: Any) -> "RuleResult":
        return cls(passed=True, rule_name=rule_name, details=details)

    @classmethod
    def error(cls, rule_name: str, message: str, **details: Any) -> "RuleResult":
        return cls(
            passed=False,
            rule_name=rule_name,
            message=message,
            severity=Severity.ERROR,
            details=details,
        )

    @classmethod
    def warning(cls, rule_name: str, message: str, **details: Any) -> "RuleResult":
        return cls(
            passed=True,
            rule_name=rule_name,
            message=message,
            severity=Severity.WARNING,
            details=details,
        )


@dataclass
class ValidationResult:
    """Aggregate outcome: errors block, warnings never affect validity."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    results: list[RuleResult] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def merge(self, other: "ValidationResult") -> "ValidationResult":
        return ValidationResult(
            errors=self.errors + other.errors,
            warnings=self.warnings + other.warnings,
            results=self.results + other.results,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "isValid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
        }


# ---------------------------------------------------------------------------
# Rule composition
# ---------------------------------------------------------------------------

def evaluate_rules(*rules: RuleResult) -> ValidationResult:
    """Fold independent rule results into a single ValidationResult.

    Every rule has already been evaluated; nothing short-circuits, so all
    errors and warnings accumulate::

        result = evaluate_rules(
            check_positive_amount(amount),
            check_known_customer_type(customer_type),
        )
        if not result.is_valid:
            reject(result.errors)
    """
    errors = [r.message for r in rules if r.severity is Severity.ERROR]
    warnings = [r.message for r in rules if r.severity is Severity.WARNING]
    return ValidationResult(errors=errors, warnings=warnings, results=list(rules))
