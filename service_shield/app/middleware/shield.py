"""
Shield middleware: authorizes procedure calls against a rule tree.

A shield is built once from a rule tree and then called for every request
with ``(context, path, input_data, call_next)``. It resolves the rule for
the path, evaluates it and either returns ``call_next(context)`` or raises
a denial.
"""

import inspect
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Mapping, Optional, Sequence, Tuple, Union

from shared.config import ShieldSettings, get_settings
from shared.errors import AccessLayerException, ProtocolError, ShieldError
from shared.logging import get_logger, procedure_path_var, set_procedure_path
from shared.metrics import MetricsCollector
from ..rules.models import (
    DEFAULT_DENY_MESSAGE, Path, RuleResult, error_message, normalize_path
)
from ..rules.rule import Rule, allow
from ..tree.resolver import find_rule
from ..tree.validator import build_rule_tree

Continuation = Callable[[Any], Union[Any, Awaitable[Any]]]


@dataclass(frozen=True)
class ShieldOptions:
    """Shield configuration.

    fallback_rule: rule applied when the tree has no entry for a path.
    allow_external_errors: re-raise errors from the wrapped handler
        unchanged; when False they are surfaced as denials.
    deny_error_code: when set, denials are raised as ProtocolError with
        this code (e.g. ``FORBIDDEN``) instead of ShieldError.
    debug: log every stage of each decision at info level.
    """

    fallback_rule: Rule = field(default=allow)
    allow_external_errors: bool = True
    deny_error_code: Optional[str] = None
    debug: bool = False

    def __post_init__(self):
        if not isinstance(self.fallback_rule, Rule):
            raise TypeError(
                f"fallback_rule must be a Rule, got {type(self.fallback_rule).__name__}"
            )

    @classmethod
    def from_settings(cls, settings: Optional[ShieldSettings] = None, **overrides) -> "ShieldOptions":
        """Build options from settings, then apply explicit overrides."""
        settings = settings or get_settings()
        values = {
            "allow_external_errors": settings.allow_external_errors,
            "deny_error_code": settings.deny_error_code,
            "debug": settings.debug,
        }
        values.update(overrides)
        return cls(**values)


class Shield:
    """Reusable authorization middleware built from a rule tree."""

    def __init__(self, rules: Mapping, options: Optional[ShieldOptions] = None,
                 metrics: Optional[MetricsCollector] = None):
        self.options = options or ShieldOptions()
        self.rules = build_rule_tree(rules)
        self.metrics = metrics
        self.logger = get_logger("shield.middleware")

    def _trace(self, event: str, **kwargs):
        if self.options.debug:
            self.logger.info(event, **kwargs)
        else:
            self.logger.debug(event, **kwargs)

    def resolve_rule(self, path: Sequence[str]) -> Tuple[Rule, bool]:
        """Rule governing ``path`` and whether it came from the fallback."""
        rule = find_rule(self.rules, path)
        if rule is None:
            return self.options.fallback_rule, True
        return rule, False

    async def _evaluate(self, rule: Rule, context: Any, path: Path, input_data: Any) -> RuleResult:
        try:
            if self.metrics:
                with self.metrics.time_evaluation():
                    return await rule.resolve(context, path, input_data)
            return await rule.resolve(context, path, input_data)
        except Exception as e:
            # Rule subclasses outside this package may still raise.
            return e

    def _denial(self, result: RuleResult, path: Path) -> Optional[ShieldError]:
        if result is True:
            return None
        if isinstance(result, str):
            return ShieldError(result, path)
        if isinstance(result, Exception):
            return ShieldError(error_message(result), path)
        return ShieldError(DEFAULT_DENY_MESSAGE, path)

    def _map_denial(self, denial: ShieldError) -> AccessLayerException:
        if self.options.deny_error_code:
            return ProtocolError(
                self.options.deny_error_code,
                denial.message,
                details={"path": ".".join(denial.path)},
            )
        return denial

    async def __call__(self, context: Any, path: Sequence[str], input_data: Any,
                       call_next: Continuation) -> Any:
        path = normalize_path(path)
        token = set_procedure_path(path)
        try:
            return await self._authorize(context, path, input_data, call_next)
        finally:
            procedure_path_var.reset(token)

    async def _authorize(self, context: Any, path: Path, input_data: Any,
                         call_next: Continuation) -> Any:
        self._trace("Processing path", path=".".join(path))

        rule, is_fallback = self.resolve_rule(path)
        if is_fallback:
            self._trace("No rule found, using fallback", path=".".join(path), rule=repr(rule))
            if self.metrics:
                self.metrics.record_fallback()

        result = await self._evaluate(rule, context, path, input_data)
        self._trace("Rule result", path=".".join(path), result=repr(result))

        denial = self._denial(result, path)
        if denial is not None:
            if self.metrics:
                self.metrics.record_decision("denied")
            self.logger.info("Access denied", path=".".join(path), reason=denial.message)
            mapped = self._map_denial(denial)
            if mapped is denial:
                raise denial
            raise mapped from denial

        if self.metrics:
            self.metrics.record_decision("allowed")

        try:
            output = call_next(context)
            if inspect.isawaitable(output):
                output = await output
        except ShieldError as e:
            # Raised by a shield further down the pipeline.
            if self.metrics:
                self.metrics.record_decision("downstream_denied")
            mapped = self._map_denial(e)
            if mapped is e:
                raise
            raise mapped from e
        except Exception as e:
            if self.metrics:
                self.metrics.record_decision("handler_error")
            if self.options.allow_external_errors:
                raise
            self._trace("Handler error converted to denial", path=".".join(path), error=str(e))
            raise self._map_denial(ShieldError(error_message(e), path)) from e

        return output


def shield(rules: Mapping, options: Optional[ShieldOptions] = None,
           metrics: Optional[MetricsCollector] = None, **overrides) -> Shield:
    """Create shield middleware from a rule tree.

    Raises RuleTreeError if the tree is malformed.
    """
    options = options or ShieldOptions()
    if overrides:
        options = replace(options, **overrides)
    return Shield(rules, options, metrics=metrics)


def shield_debug(rules: Mapping, options: Optional[ShieldOptions] = None,
                 metrics: Optional[MetricsCollector] = None, **overrides) -> Shield:
    """Create a shield with debug logging enabled."""
    overrides["debug"] = True
    return shield(rules, options, metrics=metrics, **overrides)


def shield_forbidden(rules: Mapping, options: Optional[ShieldOptions] = None,
                     metrics: Optional[MetricsCollector] = None, **overrides) -> Shield:
    """Create a shield raising ProtocolError('FORBIDDEN') on denial."""
    options = options or ShieldOptions()
    if options.deny_error_code is None:
        overrides.setdefault("deny_error_code", "FORBIDDEN")
    return shield(rules, options, metrics=metrics, **overrides)
