"""
Rule tree node types.

A rule tree node is either a leaf ``Rule`` or a ``SubTree`` mapping path
segments to further nodes.
"""

from collections.abc import Mapping
from types import MappingProxyType
from typing import Dict, Iterator, Union

from ..rules.rule import Rule


class SubTree(Mapping):
    """Immutable mapping from path segment to rule tree node."""

    __slots__ = ("_children",)

    def __init__(self, children: Dict[str, "RuleTreeNode"]):
        self._children = MappingProxyType(dict(children))

    def __getitem__(self, segment: str) -> "RuleTreeNode":
        return self._children[segment]

    def __iter__(self) -> Iterator[str]:
        return iter(self._children)

    def __len__(self) -> int:
        return len(self._children)

    def __repr__(self) -> str:
        return f"SubTree({dict(self._children)!r})"


RuleTreeNode = Union[Rule, SubTree]
