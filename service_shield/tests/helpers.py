"""
Common rules for shield tests.
"""

import asyncio
from typing import List

from service_shield.app.rules import FunctionRule, rule


@rule()
def is_authenticated(ctx, path, input_data):
    return ctx.is_authenticated


@rule()
def is_admin(ctx, path, input_data):
    return ctx.user is not None and ctx.user.role == "admin"


@rule()
def is_active_user(ctx, path, input_data):
    return ctx.user is not None and ctx.user.is_active


@rule()
def throws_error(ctx, path, input_data):
    raise RuntimeError("Test error from rule")


@rule()
def returns_string_error(ctx, path, input_data):
    return "String error message"


@rule()
def returns_false(ctx, path, input_data):
    return False


@rule()
def returns_error_object(ctx, path, input_data):
    return ValueError("Error object message")


@rule()
async def async_allow(ctx, path, input_data):
    await asyncio.sleep(0.01)
    return True


@rule()
async def async_deny(ctx, path, input_data):
    await asyncio.sleep(0.01)
    return False


@rule()
async def async_throws_error(ctx, path, input_data):
    await asyncio.sleep(0.01)
    raise RuntimeError("Async error")


def delayed(delay: float, result, name: str = None) -> FunctionRule:
    """Rule settling to ``result`` after ``delay`` seconds."""
    async def _delayed(ctx, path, input_data):
        await asyncio.sleep(delay)
        return result
    return FunctionRule(_delayed, name=name)


def recording(result, calls: List[str], label: str) -> FunctionRule:
    """Rule recording ``label`` in ``calls`` each time it is evaluated."""
    def _record(ctx, path, input_data):
        calls.append(label)
        return result
    return FunctionRule(_record, name=label)
