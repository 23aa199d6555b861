"""
Autonomous actor - AI decisions for computer-controlled combatants.

One uniform sample against normalized weights picks basic attack, skill or
defend. Skills are filtered to affordable ones, and heals are skipped while
the user is missing less HP than they restore.
"""

from __future__ import annotations

import logging
import random
from enum import Enum, auto
from typing import Optional

from pydantic import ConfigDict, field_validator, model_validator

from engine.core.component import Component
from dungeon.battle.actions import ActionType, BattleCommand
from dungeon.battle.combatant import Combatant
from dungeon.battle.skills import SkillData, SkillKind
from dungeon.battle.state import BattleState

logger = logging.getLogger(__name__)


class AIAction(Enum):
    """Action families the AI chooses between."""
    BASIC_ATTACK = auto()
    SKILL = auto()
    DEFEND = auto()


class ActionWeights(Component):
    """
    Relative weights of the three AI actions.

    Each weight is clamped into [0, 1]; they are normalized before sampling,
    so only their ratio matters. At least one must be positive.
    """

    model_config = ConfigDict(frozen=True)

    basic_attack: float = 0.45
    skill: float = 0.45
    defend: float = 0.10

    @field_validator("basic_attack", "skill", "defend")
    @classmethod
    def _clamp01(cls, value: float) -> float:
        return min(1.0, max(0.0, float(value)))

    @model_validator(mode="after")
    def _check_total(self) -> ActionWeights:
        if self.total <= 0:
            raise ValueError("at least one action weight must be positive")
        return self

    @property
    def total(self) -> float:
        return self.basic_attack + self.skill + self.defend

    def normalized(self) -> tuple[float, float, float]:
        total = self.total
        return (self.basic_attack / total, self.skill / total, self.defend / total)


class AutonomousActor:
    """
    Decision procedure for AI-controlled combatants.

    Decisions are synchronous; the scheduler resolves the returned command
    right away.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        weights: Optional[ActionWeights] = None,
    ):
        self._rng = rng or random.Random()
        self.weights = weights or ActionWeights()

    def set_action_weights(self, basic_attack: float, skill: float, defend: float) -> None:
        """Set custom action weights (difficulty tuning, tests)."""
        self.weights = ActionWeights(basic_attack=basic_attack, skill=skill, defend=defend)

    def choose_action(self) -> AIAction:
        """Draw one action from the normalized weights."""
        basic, skill, _ = self.weights.normalized()
        roll = self._rng.random()

        if roll < basic:
            return AIAction.BASIC_ATTACK
        if roll < basic + skill:
            return AIAction.SKILL
        return AIAction.DEFEND

    def select_usable_skill(self, combatant: Combatant) -> Optional[SkillData]:
        """Pick a random skill worth using right now, or None."""
        usable = []
        for skill in combatant.skills:
            if not combatant.can_afford(skill):
                continue

            if skill.kind is SkillKind.HEAL:
                missing = combatant.health.missing
                if missing < skill.power:
                    logger.debug(f"Skipping heal skill: missing HP ({missing}) < heal power ({skill.power})")
                    continue

            usable.append(skill)

        if not usable:
            return None
        return self._rng.choice(usable)

    def select_target(self, skill: SkillData, opponents: list[Combatant]) -> Optional[Combatant]:
        """Random live opponent for single-hostile skills; None otherwise."""
        if not skill.target.is_hostile or not skill.target.is_single:
            return None

        alive = [c for c in opponents if c.is_alive]
        if not alive:
            return None

        # TODO: smarter targeting (lowest HP first) once monsters carry threat data
        return self._rng.choice(alive)

    def decide(self, combatant: Combatant, state: BattleState) -> Optional[BattleCommand]:
        """
        Decide this combatant's action.

        Returns None when there is nobody left to fight; the turn is then
        simply yielded.
        """
        opponents = state.alive_opponents_of(combatant)
        if not opponents:
            logger.warning(f"{combatant.name} has no one left to attack!")
            return None

        action = self.choose_action()

        if action is AIAction.DEFEND:
            return BattleCommand(actor=combatant, action_type=ActionType.DEFEND)

        if action is AIAction.SKILL:
            skill = self.select_usable_skill(combatant)
            if skill is not None:
                return BattleCommand(
                    actor=combatant,
                    action_type=ActionType.SKILL,
                    skill=skill,
                    target=self.select_target(skill, opponents),
                )
            logger.info(f"{combatant.name} has no usable skills. Using basic attack instead.")

        return BattleCommand(
            actor=combatant,
            action_type=ActionType.ATTACK,
            skill=combatant.basic_skill,
            target=self.select_target(combatant.basic_skill, opponents),
        )
