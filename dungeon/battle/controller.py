"""
External-actor coordinator - decisions for player-controlled combatants.

When such a combatant's turn starts, the coordinator publishes the actions it
may take and suspends on a future. Exactly one accepted decision resumes the
turn; a forced battle end cancels the wait without resolving anything.

Usage:
    def on_input_requested(event):
        menu = event["menu"]
        system.submit_decision(BattleCommand(menu.actor, ActionType.DEFEND))

    events.subscribe(BattleEvent.INPUT_REQUESTED, on_input_requested)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from engine.core.events import EventBus
from dungeon.battle.actions import ActionType, BattleCommand
from dungeon.battle.combatant import Combatant
from dungeon.battle.errors import InvalidDecisionError
from dungeon.battle.events import BattleEvent
from dungeon.battle.skills import SkillData, TargetRule
from dungeon.battle.state import BattleState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionMenu:
    """What the decision source may choose for the waiting combatant."""
    actor: Combatant
    skills: tuple[SkillData, ...]
    affordable_skills: tuple[SkillData, ...]
    allies: tuple[Combatant, ...]
    basic_attack_enabled: bool = True
    defend_enabled: bool = True

    @property
    def skill_menu_enabled(self) -> bool:
        """The skill menu opens only when at least one skill is affordable."""
        return bool(self.affordable_skills)


class ExternalActorCoordinator:
    """
    Suspends a turn until an external decision arrives.

    Only one turn can be pending at a time; the scheduler never starts another
    turn while this coordinator is waiting.
    """

    def __init__(self, events: EventBus):
        self.events = events
        self._pending: Optional[asyncio.Future] = None
        self._menu: Optional[ActionMenu] = None
        self._state: Optional[BattleState] = None
        self._cancelled = False

    @property
    def is_waiting(self) -> bool:
        return self._pending is not None and not self._pending.done()

    @property
    def pending_menu(self) -> Optional[ActionMenu]:
        return self._menu if self.is_waiting else None

    @property
    def current_actor(self) -> Optional[Combatant]:
        return self._menu.actor if self.is_waiting else None

    def build_menu(self, actor: Combatant, state: BattleState) -> ActionMenu:
        return ActionMenu(
            actor=actor,
            skills=actor.skills,
            affordable_skills=tuple(actor.affordable_skills()),
            allies=tuple(state.alive(actor.side)),
            defend_enabled=not actor.is_defending,
        )

    async def request_decision(self, actor: Combatant, state: BattleState) -> Optional[BattleCommand]:
        """
        Wait for the decision of one turn.

        Returns:
            The accepted command, or None if the turn was yielded (nobody left
            to fight) or cancelled by a forced battle end
        """
        if self.is_waiting:
            raise RuntimeError("a decision is already pending")

        if not state.alive_opponents_of(actor):
            logger.warning(f"No alive opponent for {actor.name}!")
            return None

        loop = asyncio.get_running_loop()
        self._pending = loop.create_future()
        self._menu = self.build_menu(actor, state)
        self._state = state
        self._cancelled = False

        logger.info(f"Waiting for player input for {actor.name}...")
        self.events.publish(BattleEvent.INPUT_REQUESTED, actor=actor, menu=self._menu)

        try:
            return await self._pending
        except asyncio.CancelledError:
            if not self._cancelled:
                raise
            logger.info(f"Decision for {actor.name} cancelled")
            return None
        finally:
            self._pending = None
            self._menu = None
            self._state = None
            self._cancelled = False

    def submit(self, command: BattleCommand) -> None:
        """
        Deliver the decision for the waiting turn.

        Raises:
            InvalidDecisionError: nothing is waiting, or the command is not
                allowed; the turn keeps waiting for a valid one
        """
        if not self.is_waiting:
            raise InvalidDecisionError("No turn is waiting for a decision")

        self._validate(command, self._menu)
        logger.info(f"{command.actor.name} - {command.action_type.name} selected")
        self._pending.set_result(command)

    def cancel(self) -> bool:
        """Drop the pending wait without resolving an action."""
        if not self.is_waiting:
            return False
        self._cancelled = True
        self._pending.cancel()
        return True

    def _validate(self, command: BattleCommand, menu: ActionMenu) -> None:
        actor = menu.actor

        if command.actor is not actor:
            raise InvalidDecisionError(f"It is {actor.name}'s turn, not {command.actor.name}'s")

        if command.action_type is ActionType.DEFEND:
            if actor.is_defending:
                raise InvalidDecisionError(f"{actor.name} is already defending")
            return

        if command.action_type is ActionType.ATTACK:
            if command.skill is not None and command.skill != actor.basic_skill:
                raise InvalidDecisionError("Basic attack only uses the basic skill")
            return

        skill = command.skill
        if skill is None or skill not in actor.skills:
            raise InvalidDecisionError(f"{actor.name} cannot use that skill")

        if not actor.can_afford(skill):
            raise InvalidDecisionError(
                f"Not enough MP for {skill.name} (Required: {skill.mana_cost}, Current: {actor.current_mana})"
            )

        if skill.target is TargetRule.SINGLE_FRIENDLY:
            if command.target is None:
                raise InvalidDecisionError(f"{skill.name} needs an ally target")
            if command.target not in menu.allies or not command.target.is_alive:
                raise InvalidDecisionError(f"{command.target.name} is not a valid ally target")
