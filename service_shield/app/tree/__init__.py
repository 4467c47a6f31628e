"""
Rule tree package: node types, construction-time validation and lookup.
"""

from .models import RuleTreeNode, SubTree
from .resolver import find_rule
from .validator import build_rule_tree, validate_rule_tree

__all__ = ["RuleTreeNode", "SubTree", "build_rule_tree", "find_rule", "validate_rule_tree"]
