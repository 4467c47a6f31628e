"""
Access Shield.

Declarative authorization for procedure calls. Permissions are written as
a tree of rules keyed by procedure path; the shield resolves the rule for
each call, evaluates it, and either continues the pipeline or raises a
denial.

    permissions = shield({
        "users": {
            "list": allow,
            "profile": {"get": is_authenticated, "delete": and_(is_authenticated, is_admin)},
        },
    }, deny_error_code="FORBIDDEN")

    result = await permissions(context, ("users", "profile", "get"), input_data, call_next)
"""

from shared.errors import ProtocolError, RuleTreeError, ShieldError
from .rules import (
    Path, Rule, RuleResult, allow, allow_all, and_, chain, deny, deny_with_message,
    not_, or_, race, rule, timeout_rule
)
from .tree import find_rule, validate_rule_tree
from .middleware import Shield, ShieldOptions, shield, shield_debug, shield_forbidden

__all__ = [
    "Path",
    "ProtocolError",
    "Rule",
    "RuleResult",
    "RuleTreeError",
    "Shield",
    "ShieldError",
    "ShieldOptions",
    "allow",
    "allow_all",
    "and_",
    "chain",
    "deny",
    "deny_with_message",
    "find_rule",
    "not_",
    "or_",
    "race",
    "rule",
    "shield",
    "shield_debug",
    "shield_forbidden",
    "timeout_rule",
    "validate_rule_tree",
]
