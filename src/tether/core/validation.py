"""Running a type's validation rule against a form submission."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from tether.core.specs import AlwaysPass, Fixed, Predicate, ValidationRule

DEFAULT_ERROR_MESSAGE = "Form Validation Error"


@dataclass(frozen=True)
class ValidationOutcome:
    passed: bool
    error_message: str | None = None


class ValidationContext:
    """Handed to predicate rules.

    Predicates inspect :attr:`submission` (and :attr:`relation` for anything
    else they need) and return a bool.  Calling :meth:`fail` records the
    message the rejection will carry and returns ``False`` so a predicate can
    ``return ctx.fail("Name required")``.  The last message set wins.
    """

    def __init__(self, relation: Any, related_type: str, submission: dict) -> None:
        self.relation = relation
        self.related_type = related_type
        self.submission = submission
        self.error_message: str | None = None

    def fail(self, message: str = DEFAULT_ERROR_MESSAGE) -> bool:
        self.error_message = message
        return False


def run_validation(rule: ValidationRule, ctx: ValidationContext) -> ValidationOutcome:
    match rule:
        case AlwaysPass():
            passed = True
        case Fixed(passed=fixed):
            passed = fixed
        case Predicate(fn=fn):
            passed = bool(fn(ctx))
        case _:
            raise TypeError(f"Not a validation rule: {rule!r}")
    if passed:
        return ValidationOutcome(True)
    return ValidationOutcome(False, ctx.error_message or DEFAULT_ERROR_MESSAGE)
