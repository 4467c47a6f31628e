"""
Rules package.

Defines the rule abstraction and the logic operators used to compose
rules into permission trees. Every rule resolves to a RuleResult:
True allows, a string or an exception denies with that message.

Modules of interest:
- models: Path and RuleResult types plus result helpers.
- rule: Rule base class, decision-function rules and built-ins.
- operators: and_, or_, not_, chain and race combinators.
"""

from .models import DEFAULT_DENY_MESSAGE, Path, RuleResult, error_message, normalize_path
from .rule import (
    FunctionRule, Rule, allow, allow_all, deny, deny_with_message, rule, timeout_rule
)
from .operators import (
    RuleAnd, RuleChain, RuleNot, RuleOr, RuleRace, and_, chain, not_, or_, race
)

__all__ = [
    "DEFAULT_DENY_MESSAGE",
    "FunctionRule",
    "Path",
    "Rule",
    "RuleAnd",
    "RuleChain",
    "RuleNot",
    "RuleOr",
    "RuleRace",
    "RuleResult",
    "allow",
    "allow_all",
    "and_",
    "chain",
    "deny",
    "deny_with_message",
    "error_message",
    "normalize_path",
    "not_",
    "or_",
    "race",
    "rule",
    "timeout_rule",
]
