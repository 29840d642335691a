"""Tests for tether.core.validation."""

from __future__ import annotations

from tether.core.specs import AlwaysPass, Fixed, Predicate
from tether.core.validation import DEFAULT_ERROR_MESSAGE, ValidationContext, run_validation


def _ctx(submission: dict | None = None) -> ValidationContext:
    return ValidationContext(relation=None, related_type="product", submission=submission or {})


class TestRunValidation:
    def test_always_pass(self) -> None:
        outcome = run_validation(AlwaysPass(), _ctx())
        assert outcome.passed is True
        assert outcome.error_message is None

    def test_fixed_false_uses_default_message(self) -> None:
        outcome = run_validation(Fixed(False), _ctx())
        assert outcome.passed is False
        assert outcome.error_message == DEFAULT_ERROR_MESSAGE == "Form Validation Error"

    def test_predicate_message(self) -> None:
        rule = Predicate(lambda ctx: bool(ctx.submission.get("title")) or ctx.fail("Name required"))
        outcome = run_validation(rule, _ctx({"title": ""}))
        assert outcome.passed is False
        assert outcome.error_message == "Name required"

    def test_predicate_passes(self) -> None:
        rule = Predicate(lambda ctx: bool(ctx.submission.get("title")) or ctx.fail("Name required"))
        assert run_validation(rule, _ctx({"title": "Widget"})).passed is True

    def test_last_message_wins(self) -> None:
        def rule(ctx):
            ctx.fail("first")
            ctx.fail("second")
            return False

        assert run_validation(Predicate(rule), _ctx()).error_message == "second"

    def test_message_is_per_context(self) -> None:
        rule = Predicate(lambda ctx: ctx.fail("nope"))
        run_validation(rule, _ctx())
        fresh = _ctx()
        assert fresh.error_message is None
