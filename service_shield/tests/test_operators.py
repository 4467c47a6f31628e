"""
Unit tests for logic operators.
"""

import asyncio

import pytest

from service_shield.app.rules import (
    FunctionRule, Rule, RuleAnd, RuleChain, allow, and_, chain, deny, deny_with_message, not_, or_,
    race, timeout_rule
)
from service_shield.app.rules.operators import _background_tasks
from shared.test_helpers import TestDataFactory
from service_shield.tests.helpers import (
    async_allow, async_deny, async_throws_error, delayed, is_active_user, is_admin,
    is_authenticated,
    recording, returns_error_object, returns_false, returns_string_error, throws_error
)


@pytest.fixture
def context():
    """Authenticated non-admin context."""
    return TestDataFactory.create_authenticated_context()


class TestAnd:
    """Test cases for and_."""

    @pytest.mark.asyncio
    async def test_all_pass(self, context):
        """Test and_ passes when every rule passes."""
        assert await and_(allow, is_authenticated, async_allow).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_returns_first_failure_unchanged(self, context):
        """Test the first non-True result is returned as is."""
        result = await and_(allow, returns_string_error, returns_false).resolve(context, (), None)

        assert result == "String error message"

    @pytest.mark.asyncio
    async def test_short_circuits(self, context):
        """Test rules after a failure are not evaluated."""
        calls = []
        combined = and_(
            recording(True, calls, "first"),
            recording("nope", calls, "second"),
            recording(True, calls, "third"),
        )

        assert await combined.resolve(context, (), None) == "nope"
        assert calls == ["first", "second"]

    @pytest.mark.asyncio
    async def test_empty_passes(self, context):
        """Test an empty and_ passes."""
        assert await and_().resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_raising_rule_becomes_failure(self, context):
        """Test a throwing rule stops and_ with its error."""
        result = await and_(allow, throws_error).resolve(context, (), None)

        assert isinstance(result, RuntimeError)
        assert str(result) == "Test error from rule"

    def test_rejects_non_rules(self):
        """Test operators only accept rules."""
        with pytest.raises(TypeError):
            and_(allow, "not a rule")


class TestChain:
    """Test cases for chain."""

    def test_chain_is_sequential_and(self):
        """Test chain shares and_'s implementation."""
        combined = chain(allow)

        assert isinstance(combined, RuleChain)
        assert isinstance(combined, RuleAnd)

    @pytest.mark.asyncio
    async def test_maintains_order(self, context):
        """Test async steps run one after another in order."""
        calls = []

        def step(label, delay):
            async def _step(ctx, path, input_data):
                calls.append(f"{label}:start")
                await asyncio.sleep(delay)
                calls.append(f"{label}:end")
                return True
            return FunctionRule(_step)

        combined = chain(step("a", 0.02), step("b", 0.0), step("c", 0.01))

        assert await combined.resolve(context, (), None) is True
        assert calls == ["a:start", "a:end", "b:start", "b:end", "c:start", "c:end"]

    @pytest.mark.asyncio
    async def test_short_circuits(self, context):
        """Test chain stops at the first failure."""
        calls = []
        combined = chain(recording(True, calls, "a"), recording(False, calls, "b"), recording(True, calls, "c"))

        assert await combined.resolve(context, (), None) is False
        assert calls == ["a", "b"]

    @pytest.mark.asyncio
    async def test_empty_passes(self, context):
        """Test an empty chain passes."""
        assert await chain().resolve(context, (), None) is True


class TestOr:
    """Test cases for or_."""

    @pytest.mark.asyncio
    async def test_one_pass_is_enough(self, context):
        """Test or_ passes when any rule passes."""
        assert await or_(returns_false, is_authenticated).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_returns_first_failure_when_all_fail(self, context):
        """Test the first failure in evaluation order is returned."""
        result = await or_(returns_string_error, returns_error_object, returns_false).resolve(
            context, (), None
        )

        assert result == "String error message"

    @pytest.mark.asyncio
    async def test_evaluates_failures_until_pass(self, context):
        """Test failing rules run, rules after a pass do not."""
        calls = []
        combined = or_(
            recording(False, calls, "a"),
            recording("denied", calls, "b"),
            recording(True, calls, "c"),
            recording(True, calls, "d"),
        )

        assert await combined.resolve(context, (), None) is True
        assert calls == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_empty_fails_generically(self, context):
        """Test an empty or_ fails with its own message."""
        result = await or_().resolve(context, (), None)

        assert isinstance(result, Exception)
        assert str(result) == "All rules failed"

    @pytest.mark.asyncio
    async def test_async_rules(self, context):
        """Test or_ awaits async rules."""
        assert await or_(async_deny, async_allow).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_single_failing_rule(self, context):
        """Test a lone failure is returned unchanged."""
        failure = await or_(deny_with_message("only")).resolve(context, (), None)

        assert str(failure) == "only"

    @pytest.mark.asyncio
    async def test_none_result_is_first_failure(self, context):
        """Test a None result from a custom rule still counts as the first failure."""
        class ReturnsNone(Rule):
            async def resolve(self, ctx, path, input_data=None):
                return None

        result = await or_(ReturnsNone(), deny_with_message("second")).resolve(context, (), None)

        assert result is None


class TestNot:
    """Test cases for not_."""

    @pytest.mark.asyncio
    async def test_inverts_pass(self, context):
        """Test a passing rule becomes a denial."""
        result = await not_(allow).resolve(context, (), None)

        assert isinstance(result, Exception)
        assert str(result) == "Rule should not pass"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("wrapped", [returns_false, returns_string_error, returns_error_object, deny])
    async def test_inverts_failures(self, context, wrapped):
        """Test every failure shape becomes a pass."""
        assert await not_(wrapped).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_inverts_raised_error(self, context):
        """Test a throwing rule is a failure and so inverts to a pass."""
        assert await not_(async_throws_error).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_never_reproduces_wrapped_message(self, context):
        """Test the wrapped rule's message is dropped."""
        result = await not_(not_(deny_with_message("secret reason"))).resolve(context, (), None)

        assert "secret reason" not in str(result)
        assert str(result) == "Rule should not pass"

    def test_requires_a_rule(self):
        """Test not_ rejects non-rules."""
        with pytest.raises(TypeError):
            not_(lambda ctx, path, input_data: True)


class TestRace:
    """Test cases for race."""

    @pytest.mark.asyncio
    async def test_fastest_pass_wins(self, context):
        """Test the first settled result wins over slower denials."""
        combined = race(delayed(0.05, "slow denial"), delayed(0.01, True))

        assert await combined.resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_fastest_denial_wins(self, context):
        """Test a fast denial beats a slow pass."""
        combined = race(delayed(0.05, True), delayed(0.01, "fast denial"))

        assert await combined.resolve(context, (), None) == "fast denial"

    @pytest.mark.asyncio
    async def test_sync_rules(self, context):
        """Test race over immediately settling rules."""
        assert await race(allow).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_losers_keep_running(self, context):
        """Test losing branches are not cancelled."""
        finished = asyncio.Event()

        async def _slow(ctx, path, input_data):
            await asyncio.sleep(0.03)
            finished.set()
            return "late denial"

        combined = race(delayed(0.0, True), FunctionRule(_slow))

        assert await combined.resolve(context, (), None) is True
        assert not finished.is_set()
        await asyncio.wait_for(finished.wait(), timeout=1)

    @pytest.mark.asyncio
    async def test_finished_losers_are_released(self, context):
        """Test background tasks are dropped once they finish."""
        before = set(_background_tasks)
        await race(delayed(0.0, True), delayed(0.01, False)).resolve(context, (), None)
        await asyncio.sleep(0.05)

        assert not (_background_tasks - before)

    @pytest.mark.asyncio
    async def test_timeout_pattern(self, context):
        """Test racing a slow rule against a timer rule bounds it."""
        combined = race(delayed(0.2, True), timeout_rule(0.01, "Rule timed out"))

        result = await combined.resolve(context, (), None)

        assert str(result) == "Rule timed out"

    @pytest.mark.asyncio
    async def test_empty_race_fails(self, context):
        """Test an empty race fails instead of waiting forever."""
        result = await race().resolve(context, (), None)

        assert str(result) == "No rules to race"


class TestComposition:
    """Test cases for nested operators."""

    @pytest.mark.asyncio
    async def test_and_inside_or(self, context):
        """Test nested and_ within or_."""
        combined = or_(and_(is_authenticated, is_admin), is_active_user)

        assert await combined.resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_or_inside_and(self, context):
        """Test nested or_ within and_."""
        combined = and_(is_authenticated, or_(is_admin, returns_false))

        assert await combined.resolve(context, (), None) is False

    @pytest.mark.asyncio
    async def test_not_with_complex_expression(self, context):
        """Test not_ over a composed rule."""
        assert await not_(and_(is_authenticated, is_admin)).resolve(context, (), None) is True

    @pytest.mark.asyncio
    async def test_errors_propagate_from_nested_operators(self, context):
        """Test a nested failure surfaces unchanged."""
        combined = chain(allow, and_(allow, or_(deny_with_message("inner"), returns_false)))

        assert str(await combined.resolve(context, (), None)) == "inner"

    def test_operators_are_rules(self):
        """Test every operator satisfies the rule interface."""
        for combined in (and_(), or_(), not_(allow), chain(), race(allow)):
            assert isinstance(combined, Rule)

