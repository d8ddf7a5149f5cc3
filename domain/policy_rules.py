"""Domain policy rules — validation and defaults for detection policies.

Only stdlib and domain imports allowed.
"""

from __future__ import annotations

from domain.models import DetectionPolicy, Rule, TimeUnit, TimeWindow
from domain.time_window import window_millis


def create_default_policy():
    """Policy given to a seller who never saved settings: enabled, 1 hour, no rules."""
    return DetectionPolicy(
        is_enabled=True,
        default_time_window=TimeWindow(1, TimeUnit.HOURS),
        rules=(),
    )


def _window_errors(time_window):
    value = getattr(time_window, "value", None)
    if not isinstance(value, int) or isinstance(value, bool) or value < 1:
        return ["Time window value must be at least 1"]
    return []


def validate_rule(rule):
    """Return the list of problems with a rule (empty when valid)."""
    errors = []
    if not (rule.name or "").strip():
        errors.append("Rule name is required")
    if not rule.conditions:
        errors.append("At least one condition is required")
    errors.extend(_window_errors(rule.time_window))
    return errors


def validate_policy(policy):
    """Return the list of problems with a policy and its rules."""
    errors = [f"Default window: {e}" for e in _window_errors(policy.default_time_window)]
    for index, rule in enumerate(policy.rules):
        label = (rule.name or "").strip() or f"#{index + 1}"
        errors.extend(f"Rule {label}: {e}" for e in validate_rule(rule))
    return errors


def max_window_millis(rules: tuple[Rule, ...] | list[Rule]) -> int:
    """Widest window across *rules*, 0 when there are none."""
    return max((window_millis(r.time_window) for r in rules), default=0)
