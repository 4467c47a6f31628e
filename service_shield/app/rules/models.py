"""
Rule result and path types for the Access Shield.
"""

from typing import Any, Sequence, Tuple, Union

# Procedure path, e.g. ("users", "profile", "update"). Empty is the root procedure.
Path = Tuple[str, ...]

# True allows; a string or an exception denies with that message.
# False is accepted by the shield as a denial with the default message.
RuleResult = Union[bool, str, Exception]

DEFAULT_DENY_MESSAGE = "Access denied"


def normalize_path(path: Sequence[str]) -> Path:
    """Normalize a caller supplied path to an immutable tuple."""
    if isinstance(path, str):
        raise TypeError("path must be a sequence of segments, not a string")
    return tuple(path)


def normalize_result(value: Any) -> RuleResult:
    """Coerce a decision function's return value into a RuleResult.

    Anything outside ``bool | str | Exception`` counts as ``False``.
    """
    if isinstance(value, (bool, str, Exception)):
        return value
    return False


def error_message(result: Exception) -> str:
    """Message carried by an error-shaped result."""
    message = str(result)
    return message if message else type(result).__name__
