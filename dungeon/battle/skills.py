"""
Skill definitions - immutable data shared by combatants.
"""

from __future__ import annotations

from enum import Enum, auto
from typing import Any

from pydantic import ConfigDict, field_validator

from engine.core.component import Component


class SkillKind(Enum):
    """What a skill does when it resolves."""
    ATTACK = auto()
    HEAL = auto()
    BUFF = auto()    # accepted, no effect
    DEBUFF = auto()  # accepted, no effect


class TargetRule(Enum):
    """Who a skill lands on, relative to the user."""
    SINGLE_HOSTILE = auto()
    ALL_HOSTILES = auto()
    SELF = auto()
    SINGLE_FRIENDLY = auto()
    ALL_FRIENDLIES = auto()

    @property
    def is_single(self) -> bool:
        return self in (TargetRule.SINGLE_HOSTILE, TargetRule.SINGLE_FRIENDLY)

    @property
    def is_hostile(self) -> bool:
        return self in (TargetRule.SINGLE_HOSTILE, TargetRule.ALL_HOSTILES)


class SkillData(Component):
    """
    Static data for a skill.

    Skills are frozen: combatants reference them, never own or modify them.

    Attributes:
        id: Database key ("" for skills built in code)
        name: Display name
        mana_cost: MP spent on use, never negative
        kind: Effect family
        power: Flat amount added to attack, or healed
        target: Targeting rule
    """

    model_config = ConfigDict(frozen=True)

    id: str = ""
    name: str
    mana_cost: int = 0
    kind: SkillKind = SkillKind.ATTACK
    power: int = 0
    target: TargetRule = TargetRule.SINGLE_HOSTILE
    description: str = ""

    @field_validator("mana_cost")
    @classmethod
    def _clamp_cost(cls, value: int) -> int:
        return max(0, value)

    @classmethod
    def from_data(cls, data: dict[str, Any]) -> SkillData:
        """
        Build a skill from a database entry.

        Enum fields are given by name, case-insensitive
        ("attack", "single_hostile").
        """
        return cls(
            id=data.get("id", ""),
            name=data["name"],
            mana_cost=data.get("mp_cost", 0),
            kind=SkillKind[data.get("kind", "attack").upper()],
            power=data.get("power", 0),
            target=TargetRule[data.get("target", "single_hostile").upper()],
            description=data.get("description", ""),
        )


def basic_attack(name: str = "Attack", power: int = 0) -> SkillData:
    """A zero-cost single-target attack, the default basic skill."""
    return SkillData(
        id="basic_attack",
        name=name,
        mana_cost=0,
        kind=SkillKind.ATTACK,
        power=power,
        target=TargetRule.SINGLE_HOSTILE,
    )
