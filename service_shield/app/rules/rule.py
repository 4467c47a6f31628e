"""
Rule primitives for the Access Shield.

A rule wraps a decision function ``func(ctx, path, input_data)`` that may be
plain or a coroutine function. Whatever the function does, ``resolve``
always produces a RuleResult: exceptions raised inside the decision are
returned as the error-shaped result instead of propagating.
"""

import asyncio
import inspect
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, Union

from .models import DEFAULT_DENY_MESSAGE, Path, RuleResult, normalize_result

DecisionFunction = Callable[[Any, Path, Any], Union[Any, Awaitable[Any]]]


class Rule(ABC):
    """Decision capability shared by plain rules and combinators."""

    name: Optional[str] = None

    @abstractmethod
    async def resolve(self, ctx: Any, path: Path, input_data: Any = None) -> RuleResult:
        """Evaluate the rule for one call."""

    def __repr__(self) -> str:
        label = self.name or type(self).__name__
        return f"<{type(self).__name__} {label}>"


class FunctionRule(Rule):
    """Rule backed by a user supplied decision function."""

    def __init__(self, func: DecisionFunction, name: Optional[str] = None):
        if not callable(func):
            raise TypeError(f"Rule decision must be callable, got {type(func).__name__}")
        self.func = func
        self.name = name or getattr(func, "__name__", None)

    async def resolve(self, ctx: Any, path: Path, input_data: Any = None) -> RuleResult:
        try:
            value = self.func(ctx, path, input_data)
            if inspect.isawaitable(value):
                value = await value
        except Exception as e:
            return e
        return normalize_result(value)


def rule(name: Optional[str] = None) -> Callable[[DecisionFunction], FunctionRule]:
    """Decorator factory turning a decision function into a rule.

    Example::

        @rule()
        async def is_authenticated(ctx, path, input_data):
            return ctx.user is not None
    """
    def decorator(func: DecisionFunction) -> FunctionRule:
        return FunctionRule(func, name=name)
    return decorator


allow = FunctionRule(lambda ctx, path, input_data: True, name="allow")

deny = FunctionRule(lambda ctx, path, input_data: PermissionError(DEFAULT_DENY_MESSAGE), name="deny")


def deny_with_message(message: str) -> FunctionRule:
    """Rule that always denies with ``message``."""
    return FunctionRule(lambda ctx, path, input_data: PermissionError(message), name="deny_with_message")


def allow_all() -> FunctionRule:
    """Alias for :data:`allow`."""
    return allow


def timeout_rule(seconds: float, message: str = "Rule evaluation timed out") -> FunctionRule:
    """Rule that denies after ``seconds``; race it against a slow rule to bound it."""
    async def _expire(ctx, path, input_data):
        await asyncio.sleep(seconds)
        return PermissionError(message)

    return FunctionRule(_expire, name="timeout")
