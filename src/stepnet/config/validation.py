"""Validation rule configuration.

Variables are classified into rule groups by ordered regex patterns
(exclude-patterns take precedence), and each group and step type carries
its own constraints.  Patterns are stored as strings so a rule set
round-trips through JSON.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Self

from pydantic import BaseModel, field_validator, model_validator

from stepnet._patterns import compiled


class GroupRule(BaseModel):
    name: str
    description: str = ""
    patterns: list[str] = []
    exclude_patterns: list[str] = []
    requires_conditions: bool = False
    max_conditions: int | None = None
    data_type: str = "Bool"
    array_name: str = ""

    @field_validator("patterns", "exclude_patterns")
    @classmethod
    def _valid_regex(cls, v: list[str]) -> list[str]:
        for p in v:
            try:
                re.compile(p)
            except re.error as e:
                raise ValueError(f"invalid pattern {p!r}: {e}") from e
        return v

    def excludes(self, text: str) -> bool:
        return any(compiled(p).search(text) for p in self.exclude_patterns)

    def includes(self, text: str) -> bool:
        return any(compiled(p).search(text) for p in self.patterns)


class StepTypeRule(BaseModel):
    allows_entry_conditions: bool = True
    allows_exit_conditions: bool = True
    max_conditions: int | None = None
    max_transitions: int | None = None


class StepRules(BaseModel):
    # The parser files every condition under a rest step as an exit
    # condition, so the entry rule only catches models built in code or
    # loaded from JSON.
    rest: StepTypeRule = StepTypeRule(
        allows_entry_conditions=False, max_conditions=10, max_transitions=0,
    )
    sequential: StepTypeRule = StepTypeRule(max_conditions=20, max_transitions=5)


class TimerRules(BaseModel):
    allowed_units: list[str] = ["Sek", "Min", "s", "m"]
    max_value: int = 3600

    def unit_allowed(self, unit: str) -> bool:
        return unit.lower() in {u.lower() for u in self.allowed_units}


class CrossReferenceMode(str, Enum):
    STRICT = "strict"     # unresolved reference is an error
    WARN = "warn"         # unresolved reference is a warning
    LENIENT = "lenient"   # not checked


class CrossReferenceRules(BaseModel):
    mode: CrossReferenceMode = CrossReferenceMode.LENIENT
    require_steps_exist: bool = True


def _default_groups() -> dict[str, GroupRule]:
    return {
        "general": GroupRule(
            name="Hulpmerker",
            description="Auxiliary markers (Bool)",
            patterns=[
                r"^[a-zA-Z][a-zA-Z0-9_]*\s*=\s*$",
                r"^[^:]+\s*=\s*$",
                r"^(Freigabe|Start|Aktuell|Aktuelle)\s+(.+)\s*=$",
                r"^(Einfuhr|Ausfuhr|Füllen|Entleeren|Umschwimmen|Freigabe)\s+(.+)\s*=$",
                r"^(Wartereihe|Beschäftigt|Gestartet|Fertig|Aktiv)\s+(.+)\s*=$",
                r"^[^=]*\b(Freigabe|Release|Enable|Enabled)\b[^=]*\s*=\s*$",
                r"^[^=]*\b(von|of|from)\b[^=]*\s*=\s*$",
                r"^[^=]*\b(Bereit|Ready|Aktiv|Active|Verfügbar|Available|Besetzt|Occupied)\b[^=]*\s*=\s*$",
            ],
            exclude_patterns=[
                r"^STORING:",
                r"^MELDING:",
                r"^TIJD\s*=",
                r"^Teller\s*=",
                r"^Variabele\s*=",
                r"(?i)\b(Störung|Storing|Fault|Alarm|Error|Fehler)\b",
                r"(?i)\b(Melding|Meldung|Message|Nachricht)\b",
                r"(?i)\b(Info|Information)\b.*\b(Display|Screen|Monitor|Anzeige)\b",
            ],
            requires_conditions=True,
            max_conditions=20,
            array_name="Hulp",
        ),
        "fault": GroupRule(
            name="Storing",
            description="Fault/alarm variables (Bool)",
            patterns=[
                r"^STORING:\s*[^=]+\s*=\s*$",
                r"^STÖRUNG:\s*[^=]+\s*=\s*$",
                r"^FAULT:\s*[^=]+\s*=\s*$",
                r"(?i)^[^=]*\b(Störung|Storing|Fault|Alarm|Error|Fehler)\b[^=]*\s*(=\s*)?$",
            ],
            requires_conditions=True,
            max_conditions=10,
            array_name="Storing",
        ),
        "message": GroupRule(
            name="Melding",
            description="Notification variables (Bool)",
            patterns=[
                r"^MELDING:\s*[^=]+\s*=\s*$",
                r"^MELDUNG:\s*[^=]+\s*=\s*$",
                r"^MESSAGE:\s*[^=]+\s*=\s*$",
                r"(?i)^[^=]*\b(Melding|Meldung|Message|Nachricht|Info|Information)\b[^=]*\s*(=\s*)?$",
            ],
            requires_conditions=True,
            max_conditions=10,
            array_name="Melding",
        ),
        "timer": GroupRule(
            name="Tijd",
            description="Timer variables (IEC_TIMER)",
            patterns=[r"(?i)^(TIJD|ZEIT|TIME)\s*=\s*[^=]+$"],
            max_conditions=0,
            data_type="IEC_TIMER",
            array_name="Tijd",
        ),
        "counter": GroupRule(
            name="Teller",
            description="Counter variables (Int)",
            patterns=[r"(?i)^(Teller|COUNTER|ZÄHLER)\s*=\s*[^=]+$"],
            max_conditions=0,
            data_type="Int",
            array_name="Teller",
        ),
        "variable": GroupRule(
            name="Variabele",
            description="General integer variables (Int)",
            patterns=[r"(?i)^(Variabele|VARIABLE)\s*=\s*[^=]+$"],
            max_conditions=0,
            data_type="Int",
            array_name="Variable",
        ),
    }


class ValidationRules(BaseModel):
    version: str = "1.1.0"
    groups: dict[str, GroupRule] = {}
    default_group: str = "general"
    steps: StepRules = StepRules()
    timer: TimerRules = TimerRules()
    cross_references: CrossReferenceRules = CrossReferenceRules()

    @model_validator(mode="before")
    @classmethod
    def _fill_default_groups(cls, data: Any) -> Any:
        if isinstance(data, dict) and "groups" not in data:
            data = {**data, "groups": _default_groups()}
        return data

    def classify(self, text: str) -> str:
        """Rule group for a declaration line; first non-excluded match wins."""
        for key, group in self.groups.items():
            if group.excludes(text):
                continue
            if group.includes(text):
                return key
        return self.default_group

    def merged(self, overrides: dict[str, Any]) -> Self:
        """Copy with *overrides* applied; ``groups`` and ``steps`` merge per key."""
        base = self.model_dump(mode="json")
        for key, value in overrides.items():
            if key in ("groups", "steps") and isinstance(value, dict):
                base[key] = {**base[key], **value}
            else:
                base[key] = value
        return type(self).model_validate(base)


DEFAULT_VALIDATION_RULES = ValidationRules()
