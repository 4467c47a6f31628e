"""
Rule lookup by procedure path.
"""

from collections.abc import Mapping
from typing import Optional, Sequence

from ..rules.rule import Rule


def find_rule(rules: Mapping, path: Sequence[str]) -> Optional[Rule]:
    """Find the rule governing ``path``, or None.

    The path must be consumed exactly: it resolves only when its last
    segment lands on a Rule. Stopping on a sub-tree, or running past a
    Rule into further segments, is not found.
    """
    node = rules
    for segment in path:
        if not isinstance(node, Mapping):
            return None
        node = node.get(segment)
        if node is None:
            return None

    if isinstance(node, Rule):
        return node
    return None
