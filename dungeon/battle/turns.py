"""
Turn scheduler - speed-ordered turns, rounds and battle termination.

The scheduler owns the turn loop of one battle. Each turn is routed by the
combatant's control mode: autonomous combatants are decided synchronously by
the AI, external ones suspend until the coordinator receives a decision.
Both paths resolve through the same SkillResolver.
"""

from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from engine.core.events import EventBus
from dungeon.battle.actions import ActionResult, BattleCommand, SkillResolver
from dungeon.battle.ai import AutonomousActor
from dungeon.battle.combatant import Combatant, Side
from dungeon.battle.controller import ExternalActorCoordinator
from dungeon.battle.errors import BattleError
from dungeon.battle.events import BattleEvent
from dungeon.battle.state import BattleOutcome, BattleState

logger = logging.getLogger(__name__)

ActionGate = Callable[[ActionResult], Awaitable[None]]


class TurnScheduler:
    """
    Drives turns until the battle reaches a terminal outcome.

    Usage:
        scheduler = TurnScheduler(state, events, resolver, ai, coordinator)
        outcome = await scheduler.run()
    """

    def __init__(
        self,
        state: BattleState,
        events: EventBus,
        resolver: SkillResolver,
        ai: AutonomousActor,
        coordinator: ExternalActorCoordinator,
        action_gate: Optional[ActionGate] = None,
    ):
        self.state = state
        self.events = events
        self.resolver = resolver
        self.ai = ai
        self.coordinator = coordinator
        self.action_gate = action_gate
        self._running = False

    @property
    def current_combatant(self) -> Optional[Combatant]:
        return self.state.current_combatant

    @property
    def round_number(self) -> int:
        return self.state.round_number

    @property
    def turn_order(self) -> list[Combatant]:
        """Copy of the turn order."""
        return list(self.state.turn_order)

    def initialize_turn_order(self) -> list[Combatant]:
        """
        Sort every living combatant by speed, fastest first.

        The sort is stable over the player roster followed by the hostile
        roster, so ties keep that order.
        """
        alive = [c for c in self.state.combatants if c.is_alive]
        self.state.turn_order = sorted(alive, key=lambda c: c.speed, reverse=True)
        self.state.turn_index = 0
        self.state.round_number = 1

        logger.info("Turn order initialized:")
        for i, combatant in enumerate(self.state.turn_order):
            logger.info(f"{i + 1}. {combatant.name} (Speed: {combatant.speed})")

        return self.turn_order

    async def start_turn(self) -> None:
        """
        Run the turn of the combatant in the current slot.

        Dead combatants are skipped without acting. The defend stance is
        resolved before the turn-start notification.
        """
        if self.state.is_finished:
            return

        actor = self.current_combatant
        if actor is None or not actor.is_alive:
            return

        logger.info(f"=== {actor.name}'s turn (Speed: {actor.speed}) ===")
        actor.update_defense_status()
        self.events.publish(BattleEvent.TURN_STARTED, actor=actor, round=self.state.round_number)
        if self.state.is_finished:
            return

        if actor.is_autonomous:
            command = self.ai.decide(actor, self.state)
        else:
            command = await self.coordinator.request_decision(actor, self.state)

        if command is None or self.state.is_finished:
            return

        await self._perform(command)

    def next_turn(self) -> bool:
        """
        Advance to the next slot, wrapping into a new round.

        Returns:
            False if the battle has ended, True if another turn should start
        """
        if self.state.is_finished:
            return False

        previous = self.current_combatant
        if previous is not None:
            self.events.publish(BattleEvent.TURN_ENDED, actor=previous, round=self.state.round_number)
            if self.state.is_finished:
                return False

        self.state.turn_index += 1

        if self.state.turn_index >= len(self.state.turn_order):
            self.state.turn_index = 0
            self.state.round_number += 1
            logger.info(f"--- Round {self.state.round_number} ---")
            self.events.publish(BattleEvent.ROUND_STARTED, round=self.state.round_number)

        return not self.check_battle_end()

    def check_battle_end(self) -> bool:
        """
        Set the outcome once a side is wiped out.

        A fallen player side is checked first, so a simultaneous wipe is a
        defeat.
        """
        if self.state.is_finished:
            return True

        if self.state.side_defeated(Side.PLAYER):
            logger.info("Champion defeated! Monsters win!")
            self._end(BattleOutcome.PLAYER_DEFEAT, forced=False)
            return True

        if self.state.side_defeated(Side.HOSTILE):
            logger.info("All monsters defeated! Champion wins!")
            self._end(BattleOutcome.PLAYER_VICTORY, forced=False)
            return True

        return False

    def force_end(self, outcome: BattleOutcome) -> bool:
        """
        End the battle immediately with the given outcome.

        A pending external decision is cancelled without resolving anything.

        Returns:
            False if the battle had already ended
        """
        if not outcome.is_terminal:
            raise ValueError("force_end needs a terminal outcome")

        if self.state.is_finished:
            return False

        self.coordinator.cancel()
        logger.info(f"Battle force-ended: {outcome.name}")
        self._end(outcome, forced=True)
        return True

    async def run(self) -> BattleOutcome:
        """
        Run turns until the battle ends.

        Raises:
            BattleError: the loop is already running for this battle
        """
        if self._running:
            raise BattleError("The battle loop is already running")

        self._running = True
        try:
            if not self.state.turn_order:
                self.initialize_turn_order()

            if self.check_battle_end():
                return self.state.outcome

            while not self.state.is_finished:
                await self.start_turn()
                if not self.next_turn():
                    break

            return self.state.outcome
        finally:
            self._running = False

    def reset(self, state: Optional[BattleState] = None) -> None:
        """
        Clear turn order, index and round so another battle can be hosted.

        Event subscriptions are untouched.
        """
        if state is not None:
            self.state = state
        self.state.turn_order = []
        self.state.turn_index = 0
        self.state.round_number = 0

    async def _perform(self, command: BattleCommand) -> Optional[ActionResult]:
        actor = command.actor
        self.events.publish(BattleEvent.ACTION_STARTED, actor=actor, command=command)
        if self.state.is_finished:
            return None

        result = self.resolver.execute(command, self.state)

        self.events.publish(BattleEvent.ACTION_RESOLVED, actor=actor, result=result)

        if self.action_gate is not None:
            await self.action_gate(result)

        return result

    def _end(self, outcome: BattleOutcome, forced: bool) -> None:
        self.state.outcome = outcome
        self.events.publish(
            BattleEvent.BATTLE_ENDED,
            state=self.state,
            outcome=outcome,
            rounds=self.state.round_number,
            forced=forced,
        )
