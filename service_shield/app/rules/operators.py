"""
Logic operators composing rules into rule trees.

Every operator is itself a Rule, so operators nest freely. All operators
except race evaluate their rules one at a time in argument order.
"""

import asyncio
from typing import Any, Iterable, Set, Tuple

from .models import Path, RuleResult
from .rule import Rule

# Race branches still running, held so losers are not garbage collected
# before they finish.
_background_tasks: Set[asyncio.Task] = set()


def _check_rules(rules: Iterable[Any]) -> Tuple[Rule, ...]:
    checked = tuple(rules)
    for index, candidate in enumerate(checked):
        if not isinstance(candidate, Rule):
            raise TypeError(
                f"Operator argument {index} must be a Rule, got {type(candidate).__name__}"
            )
    return checked


async def _safe_resolve(rule: Rule, ctx: Any, path: Path, input_data: Any) -> RuleResult:
    # Built-in rules never raise; custom Rule subclasses might.
    try:
        return await rule.resolve(ctx, path, input_data)
    except Exception as e:
        return e


class LogicRule(Rule):
    """Base class for operators combining several rules."""

    def __init__(self, rules: Iterable[Rule]):
        self.rules = _check_rules(rules)

    def __repr__(self) -> str:
        inner = ", ".join(repr(r) for r in self.rules)
        return f"<{type(self).__name__} [{inner}]>"


class RuleAnd(LogicRule):
    """All rules must pass; stops at the first result that is not True."""

    async def resolve(self, ctx: Any, path: Path, input_data: Any = None) -> RuleResult:
        for rule in self.rules:
            result = await _safe_resolve(rule, ctx, path, input_data)
            if result is not True:
                return result
        return True


class RuleChain(RuleAnd):
    """Ordered pipeline of rules.

    Decides exactly like RuleAnd; the separate name documents that the
    order of the steps matters to the caller.
    """


class RuleOr(LogicRule):
    """At least one rule must pass.

    Failing rules do not stop evaluation. When nothing passes the first
    failure is returned.
    """

    async def resolve(self, ctx: Any, path: Path, input_data: Any = None) -> RuleResult:
        failures = []
        for rule in self.rules:
            result = await _safe_resolve(rule, ctx, path, input_data)
            if result is True:
                return True
            failures.append(result)
        if not failures:
            return PermissionError("All rules failed")
        return failures[0]


class RuleNot(Rule):
    """Inverts a single rule. The wrapped denial reason is dropped."""

    def __init__(self, rule: Rule):
        (self.rule,) = _check_rules([rule])

    async def resolve(self, ctx: Any, path: Path, input_data: Any = None) -> RuleResult:
        result = await _safe_resolve(self.rule, ctx, path, input_data)
        if result is True:
            return PermissionError("Rule should not pass")
        return True

    def __repr__(self) -> str:
        return f"<RuleNot {self.rule!r}>"


class RuleRace(LogicRule):
    """Returns the result of whichever rule settles first, pass or fail.

    Losing rules are not cancelled; they run to completion and their
    results are discarded.
    """

    async def resolve(self, ctx: Any, path: Path, input_data: Any = None) -> RuleResult:
        if not self.rules:
            return PermissionError("No rules to race")

        tasks = [
            asyncio.ensure_future(_safe_resolve(rule, ctx, path, input_data))
            for rule in self.rules
        ]
        for task in tasks:
            _background_tasks.add(task)
            task.add_done_callback(_background_tasks.discard)
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)

        # Several branches may settle in the same loop iteration; take the
        # earliest in argument order among them.
        winner = next(task for task in tasks if task in done)
        return winner.result()


def and_(*rules: Rule) -> Rule:
    """All rules must pass."""
    return RuleAnd(rules)


def or_(*rules: Rule) -> Rule:
    """At least one rule must pass."""
    return RuleOr(rules)


def not_(rule: Rule) -> Rule:
    """Inverts a rule."""
    return RuleNot(rule)


def chain(*rules: Rule) -> Rule:
    """Executes rules in sequence, stopping at the first failure."""
    return RuleChain(rules)


def race(*rules: Rule) -> Rule:
    """Returns the first completed rule result."""
    return RuleRace(rules)
