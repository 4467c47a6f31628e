"""
Rule tree validation.

Trees are checked once, when a shield is built, so a malformed tree
never reaches request handling.
"""

from collections.abc import Mapping
from typing import Any, FrozenSet, Tuple

from shared.errors import RuleTreeError
from ..rules.rule import Rule
from .models import SubTree


def validate_rule_tree(rules: Any, path: Tuple[str, ...] = (),
                       _ancestors: FrozenSet[int] = frozenset()) -> None:
    """Validate a rule tree, raising RuleTreeError at the first bad entry.

    A nested mapping that contains itself is rejected as cyclic. The same
    mapping may still appear under sibling branches.
    """
    if not isinstance(rules, Mapping):
        raise RuleTreeError(path, "Expected nested rules object")
    ancestors = _ancestors | {id(rules)}

    for key, value in rules.items():
        if not isinstance(key, str):
            raise RuleTreeError(path + (str(key),), "Path segments must be strings")

        current_path = path + (key,)
        if isinstance(value, Rule):
            continue
        if isinstance(value, Mapping):
            if id(value) in ancestors:
                raise RuleTreeError(current_path, "Cyclic rule tree")
            validate_rule_tree(value, current_path, ancestors)
            continue
        raise RuleTreeError(current_path)


def _freeze(rules: Mapping) -> SubTree:
    return SubTree({
        key: value if isinstance(value, Rule) else _freeze(value)
        for key, value in rules.items()
    })


def build_rule_tree(rules: Mapping) -> SubTree:
    """Validate ``rules`` and return it as an immutable SubTree."""
    validate_rule_tree(rules)
    return _freeze(rules)
