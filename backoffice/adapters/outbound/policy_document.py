"""Codec between stored duplicate-detection settings documents and DetectionPolicy.

Documents use the camelCase layout written by the seller settings page::

    {
        "isEnabled": true,
        "defaultTimeWindow": {"value": 1, "unit": "hours"},
        "rules": [
            {
                "name": "Phone Strict Rule",
                "isActive": true,
                "logicalOperator": "AND",
                "timeWindow": {"value": 1, "unit": "hours"},
                "conditions": [{"field": "customer_phone", "enabled": true}]
            }
        ]
    }
"""

from __future__ import annotations

import logging

from jsonschema import Draft7Validator

from domain.models import (
    Condition,
    DetectionPolicy,
    FieldType,
    LogicalOperator,
    Rule,
    TimeUnit,
    TimeWindow,
)
from domain.time_window import DEFAULT_TIME_UNIT

logger = logging.getLogger(__name__)


class PolicyDocumentError(ValueError):
    """Raised when a stored settings document cannot be decoded."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("; ".join(errors))


def _enum_choices(enum_cls):
    choices = []
    for member in enum_cls:
        for label in (member.value, member.name, member.value.lower(), member.value.upper()):
            if label not in choices:
                choices.append(label)
    return choices


_TIME_WINDOW = {
    "type": "object",
    "required": ["value"],
    "properties": {
        "value": {"type": "integer", "minimum": 1},
        # Unknown units are tolerated and read as DEFAULT_TIME_UNIT.
        "unit": {"type": "string"},
    },
}

POLICY_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "DuplicateDetectionSettings",
    "type": "object",
    "properties": {
        "isEnabled": {"type": "boolean"},
        "defaultTimeWindow": _TIME_WINDOW,
        "rules": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["name", "timeWindow"],
                "properties": {
                    "name": {"type": "string"},
                    "isActive": {"type": "boolean"},
                    "logicalOperator": {"enum": _enum_choices(LogicalOperator)},
                    "timeWindow": _TIME_WINDOW,
                    "conditions": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["field"],
                            "properties": {
                                "field": {"enum": _enum_choices(FieldType)},
                                "enabled": {"type": "boolean"},
                            },
                        },
                    },
                },
            },
        },
    },
}

_VALIDATOR = Draft7Validator(POLICY_SCHEMA)


def _decode_window(raw):
    unit_raw = raw.get("unit", DEFAULT_TIME_UNIT.value)
    try:
        unit = TimeUnit(unit_raw)
    except ValueError:
        logger.warning("Unknown time unit %r, using %s", unit_raw, DEFAULT_TIME_UNIT.value)
        unit = DEFAULT_TIME_UNIT
    return TimeWindow(value=raw["value"], unit=unit)


def _decode_rule(raw):
    return Rule(
        name=raw["name"],
        is_active=raw.get("isActive", True),
        logical_operator=LogicalOperator(raw.get("logicalOperator", "AND")),
        time_window=_decode_window(raw["timeWindow"]),
        conditions=tuple(
            Condition(field=FieldType(c["field"]), enabled=c.get("enabled", True))
            for c in raw.get("conditions", [])
        ),
    )


def decode_policy(document: dict | None) -> DetectionPolicy | None:
    """Validate a settings document and build the DetectionPolicy it describes.

    ``None`` stays ``None`` (the seller has no settings).

    Raises:
        PolicyDocumentError: If the document does not match POLICY_SCHEMA.
    """
    if document is None:
        return None
    errors = sorted(_VALIDATOR.iter_errors(document), key=lambda e: list(e.absolute_path))
    if errors:
        raise PolicyDocumentError(
            [
                f"{'/'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
                for e in errors
            ]
        )
    default_window = document.get("defaultTimeWindow") or {"value": 1, "unit": "hours"}
    return DetectionPolicy(
        is_enabled=document.get("isEnabled", False),
        default_time_window=_decode_window(default_window),
        rules=tuple(_decode_rule(r) for r in document.get("rules", [])),
    )


def _encode_window(window):
    return {"value": window.value, "unit": window.unit.value}


def encode_policy(policy: DetectionPolicy) -> dict:
    """Serialize a DetectionPolicy to its settings document (JSON-safe)."""
    return {
        "isEnabled": policy.is_enabled,
        "defaultTimeWindow": _encode_window(policy.default_time_window),
        "rules": [
            {
                "name": rule.name,
                "isActive": rule.is_active,
                "logicalOperator": rule.logical_operator.value,
                "timeWindow": _encode_window(rule.time_window),
                "conditions": [
                    {"field": c.field.value, "enabled": c.enabled}
                    for c in rule.conditions
                ],
            }
            for rule in policy.rules
        ],
    }
