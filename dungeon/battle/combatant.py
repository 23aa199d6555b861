"""
Battle combatants - participants in combat.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Optional

from pydantic import Field

from engine.core.component import Component
from dungeon.components import Health, Mana, CombatStats
from dungeon.battle.skills import SkillData, basic_attack

logger = logging.getLogger(__name__)


class Side(Enum):
    """Battle side. The champion fights on the player side."""
    PLAYER = auto()
    HOSTILE = auto()

    @property
    def opposite(self) -> Side:
        return Side.HOSTILE if self is Side.PLAYER else Side.PLAYER


class ControlMode(Enum):
    """Who decides a combatant's actions."""
    AUTONOMOUS = auto()  # AI, resolves synchronously
    EXTERNAL = auto()    # waits for a decision event


class StatSnapshot(Component):
    """
    Stats handed across the spawn and outcome boundaries.

    Stats are already adjusted by the caller (fatigue, reputation);
    the battle engine only clamps them into range.
    """
    name: str
    max_health: int
    current_health: Optional[int] = None
    max_mana: int = 0
    current_mana: Optional[int] = None
    attack: int = 0
    defense: int = 0
    speed: int = 1
    basic_skill: SkillData = Field(default_factory=basic_attack)
    skills: list[SkillData] = Field(default_factory=list)


@dataclass(eq=False)
class Combatant:
    """
    A participant in battle.

    Wraps the stat components for convenient battle access. Identity is
    by reference: the turn order and target lists hold the same objects as
    the rosters.
    """
    entity_id: int
    name: str
    side: Side
    health: Health
    mana: Mana
    combat: CombatStats
    basic_skill: SkillData
    skills: tuple[SkillData, ...] = ()
    control: ControlMode = ControlMode.AUTONOMOUS

    @property
    def is_alive(self) -> bool:
        return not self.health.is_dead

    @property
    def is_autonomous(self) -> bool:
        return self.control is ControlMode.AUTONOMOUS

    @property
    def current_health(self) -> int:
        return self.health.current

    @property
    def max_health(self) -> int:
        return self.health.max_hp

    @property
    def current_mana(self) -> int:
        return self.mana.current

    @property
    def max_mana(self) -> int:
        return self.mana.max_mp

    @property
    def attack_power(self) -> int:
        return self.combat.attack

    @property
    def base_defense(self) -> int:
        return self.combat.base_defense

    @property
    def current_defense(self) -> int:
        return self.combat.defense

    @property
    def speed(self) -> int:
        return self.combat.speed

    @property
    def is_defending(self) -> bool:
        return self.combat.is_defending

    @property
    def defend_turns_remaining(self) -> int:
        return self.combat.defend_turns_remaining

    def can_afford(self, skill: SkillData) -> bool:
        """Check if there is enough MP for a skill."""
        return self.mana.can_afford(skill.mana_cost)

    def affordable_skills(self) -> list[SkillData]:
        """Skills from the skill list that current MP covers, in list order."""
        return [s for s in self.skills if self.can_afford(s)]

    def spend_mana(self, amount: int) -> bool:
        """Spend MP. Returns True if successful."""
        if not self.mana.spend(amount):
            return False
        logger.info(f"{self.name} used {amount} MP. Remaining MP: {self.current_mana}/{self.max_mana}")
        return True

    def take_damage(self, amount: int) -> int:
        """Take damage. Returns the HP actually lost."""
        lost = self.health.take_damage(amount)
        logger.info(f"{self.name} took {lost} damage! Remaining health: {self.current_health}/{self.max_health}")
        if not self.is_alive:
            logger.info(f"{self.name} has been defeated!")
        return lost

    def heal(self, amount: int) -> int:
        """Heal HP. Dead combatants cannot be healed."""
        if not self.is_alive:
            logger.warning(f"{self.name} is dead and cannot be healed!")
            return 0
        healed = self.health.heal(amount)
        logger.info(f"{self.name} healed {healed} HP. Current HP: {self.current_health}/{self.max_health}")
        return healed

    def start_defending(self) -> bool:
        """Enter the defend stance. Returns False if already defending."""
        if not self.combat.start_defend():
            logger.warning(f"{self.name} is already defending!")
            return False
        logger.info(f"{self.name} takes a defensive stance! Defense: {self.base_defense} -> {self.current_defense}")
        return True

    def update_defense_status(self) -> bool:
        """Resolve the defend stance at turn start. Returns True if it ended."""
        if self.combat.tick_defend():
            logger.info(f"{self.name}'s defensive stance ended. Defense: {self.current_defense}")
            return True
        return False

    def force_set_health(self, value: int) -> None:
        self.health.set(value)

    def force_set_mana(self, value: int) -> None:
        self.mana.set(value)

    def to_snapshot(self) -> StatSnapshot:
        """Export current stats for persistence outside the battle."""
        return StatSnapshot(
            name=self.name,
            max_health=self.max_health,
            current_health=self.current_health,
            max_mana=self.max_mana,
            current_mana=self.current_mana,
            attack=self.attack_power,
            defense=self.base_defense,
            speed=self.speed,
            basic_skill=self.basic_skill,
            skills=list(self.skills),
        )


def create_combatant(
    snapshot: StatSnapshot,
    entity_id: int,
    side: Side,
    control: ControlMode = ControlMode.AUTONOMOUS,
    name: Optional[str] = None,
) -> Combatant:
    """Create a Combatant from a stat snapshot."""
    current_health = snapshot.max_health if snapshot.current_health is None else snapshot.current_health
    current_mana = snapshot.max_mana if snapshot.current_mana is None else snapshot.current_mana

    health = Health(current=current_health, max_hp=snapshot.max_health)
    mana = Mana(current=current_mana, max_mp=snapshot.max_mana)
    combat = CombatStats(
        attack=snapshot.attack,
        base_defense=snapshot.defense,
        speed=snapshot.speed,
    )

    return Combatant(
        entity_id=entity_id,
        name=name or snapshot.name,
        side=side,
        health=health,
        mana=mana,
        combat=combat,
        basic_skill=snapshot.basic_skill,
        skills=tuple(snapshot.skills),
        control=control,
    )


def snapshot_from_data(
    data: dict[str, Any],
    skill_lookup: Callable[[str], Optional[dict[str, Any]]],
    **overrides: Any,
) -> StatSnapshot:
    """
    Build a snapshot from a monster or champion database entry.

    Args:
        data: Entry with hp/mp/attack/defense/speed and skill ids
        skill_lookup: Resolves a skill id to its database entry
        **overrides: Snapshot fields that replace the entry's values,
            e.g. fatigue-adjusted attack or persisted current_health
    """

    def load_skill(skill_id: str) -> Optional[SkillData]:
        entry = skill_lookup(skill_id)
        if entry is None:
            logger.warning(f"Unknown skill '{skill_id}' on {data.get('id', data.get('name'))}")
            return None
        return SkillData.from_data(entry)

    basic = None
    if data.get("basic_attack"):
        basic = load_skill(data["basic_attack"])

    skills = [s for s in (load_skill(sid) for sid in data.get("skills", [])) if s is not None]

    fields: dict[str, Any] = {
        "name": data["name"],
        "max_health": data["hp"],
        "max_mana": data.get("mp", 0),
        "attack": data.get("attack", 0),
        "defense": data.get("defense", 0),
        "speed": data.get("speed", 1),
        "basic_skill": basic or basic_attack(),
        "skills": skills,
    }
    fields.update(overrides)
    return StatSnapshot(**fields)
