"""
Battle actions - attack, skill, defend - and the skill resolver.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from dungeon.battle.combatant import Combatant
from dungeon.battle.skills import SkillData, SkillKind, TargetRule
from dungeon.battle.state import BattleState

logger = logging.getLogger(__name__)


class ActionType(Enum):
    """Types of battle actions."""
    ATTACK = auto()  # basic skill
    SKILL = auto()
    DEFEND = auto()


@dataclass
class BattleCommand:
    """
    A decided action, from either the AI or an external decision source.

    `target` is only honoured for single-target skills.
    """
    actor: Combatant
    action_type: ActionType
    skill: Optional[SkillData] = None
    target: Optional[Combatant] = None

    @property
    def resolved_skill(self) -> Optional[SkillData]:
        """The skill this command will use, if any."""
        if self.action_type is ActionType.ATTACK:
            return self.skill or self.actor.basic_skill
        if self.action_type is ActionType.SKILL:
            return self.skill
        return None


@dataclass
class ActionResult:
    """Result of executing a battle action."""
    actor: Optional[Combatant] = None
    action_type: Optional[ActionType] = None
    skill: Optional[SkillData] = None
    success: bool = True
    targets: list[Combatant] = field(default_factory=list)
    damage_dealt: dict[int, int] = field(default_factory=dict)  # entity_id -> damage
    healing_done: dict[int, int] = field(default_factory=dict)
    mp_cost: int = 0
    message: str = ""

    @property
    def total_damage(self) -> int:
        return sum(self.damage_dealt.values())

    @property
    def total_healing(self) -> int:
        return sum(self.healing_done.values())


def calculate_damage(power: int, attack: int, defense: int) -> int:
    """Damage = skill power + attack - defense, never below 1."""
    return max(1, power + attack - defense)


class SkillResolver:
    """
    Resolves skills and defend actions against a battle state.

    Holds no battle state of its own; only the random source used for
    single-target picks without an explicit target.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._rng = rng or random.Random()

    def resolve_targets(
        self,
        skill: SkillData,
        actor: Combatant,
        opposing: list[Combatant],
        friendly: list[Combatant],
        explicit_target: Optional[Combatant] = None,
    ) -> list[Combatant]:
        """
        Get the targets a skill lands on right now.

        Single-target rules use a live explicit target when given, otherwise
        a uniform random live candidate. Group rules take every live member.
        An empty list means nobody is left to hit.
        """
        rule = skill.target

        if rule is TargetRule.SELF:
            return [actor]

        roster = opposing if rule.is_hostile else friendly
        candidates = [c for c in roster if c.is_alive]

        if not rule.is_single:
            return candidates

        if not candidates:
            return []

        if explicit_target is not None and explicit_target in candidates:
            return [explicit_target]

        return [self._rng.choice(candidates)]

    def apply_attack(self, actor: Combatant, target: Combatant, skill: SkillData) -> int:
        """Deal skill damage to one target. Returns damage dealt."""
        damage = calculate_damage(skill.power, actor.attack_power, target.current_defense)
        return target.take_damage(damage)

    def apply_heal(self, target: Combatant, skill: SkillData) -> int:
        """Heal one target. Dead targets are not healed."""
        return target.heal(skill.power)

    def execute(self, command: BattleCommand, state: BattleState) -> ActionResult:
        """Execute a decided command."""
        if command.action_type is ActionType.DEFEND:
            return self.execute_defend(command.actor)

        skill = command.resolved_skill
        if skill is None:
            return ActionResult(
                actor=command.actor,
                action_type=command.action_type,
                success=False,
                message="No skill selected",
            )

        return self.execute_skill(
            command.actor,
            skill,
            opposing=state.opponents_of(command.actor),
            friendly=state.allies_of(command.actor),
            explicit_target=command.target,
            action_type=command.action_type,
        )

    def execute_skill(
        self,
        actor: Combatant,
        skill: SkillData,
        opposing: list[Combatant],
        friendly: list[Combatant],
        explicit_target: Optional[Combatant] = None,
        action_type: ActionType = ActionType.SKILL,
    ) -> ActionResult:
        """
        Execute a skill: spend MP, pick targets, apply effects.

        MP is spent before targets are resolved, so a skill whose targets
        all died in the meantime wastes the turn and the MP.
        """
        result = ActionResult(actor=actor, action_type=action_type, skill=skill)

        if not actor.can_afford(skill):
            logger.warning(
                f"{actor.name} doesn't have enough MP to use {skill.name}! "
                f"(Required: {skill.mana_cost}, Current: {actor.current_mana})"
            )
            result.success = False
            result.message = "Not enough MP!"
            return result

        if skill.kind is SkillKind.HEAL and explicit_target is not None and not explicit_target.is_alive:
            logger.warning(f"{explicit_target.name} is dead and cannot be healed!")
            result.success = False
            result.message = f"{explicit_target.name} cannot be healed"
            return result

        if skill.mana_cost > 0:
            actor.spend_mana(skill.mana_cost)
            result.mp_cost = skill.mana_cost

        logger.info(f"{actor.name} uses {skill.name}!")

        targets = self.resolve_targets(skill, actor, opposing, friendly, explicit_target)
        result.targets = targets

        if not targets:
            logger.warning(f"{actor.name}'s {skill.name} has no target left")
            result.success = False
            result.message = "No valid targets"
            return result

        if skill.kind is SkillKind.ATTACK:
            for target in targets:
                if not target.is_alive:
                    continue
                result.damage_dealt[target.entity_id] = self.apply_attack(actor, target, skill)

        elif skill.kind is SkillKind.HEAL:
            for target in targets:
                if not target.is_alive:
                    continue
                result.healing_done[target.entity_id] = self.apply_heal(target, skill)

        else:
            logger.warning(f"Skill type {skill.kind.name} not implemented yet!")
            result.message = f"{skill.name} has no effect"

        return result

    def execute_defend(self, actor: Combatant) -> ActionResult:
        """Execute defend action."""
        result = ActionResult(actor=actor, action_type=ActionType.DEFEND, targets=[actor])
        if not actor.start_defending():
            result.success = False
            result.message = f"{actor.name} is already defending"
            return result
        result.message = f"{actor.name} is defending!"
        return result
