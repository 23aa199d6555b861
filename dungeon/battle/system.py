"""
Battle system - owns one battle at a time.

Builds the combatants from stat snapshots, wires the scheduler with its
resolver, AI and external-actor coordinator, and reports the outcome with
final snapshots for the caller to persist.

Usage:
    system = BattleSystem(events)
    system.start_battle(champion_snapshot, [slime, slime])
    report = await system.run()
"""

from __future__ import annotations

import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Callable, Optional

from engine.core.events import Event, EventBus
from dungeon.battle.actions import BattleCommand, SkillResolver
from dungeon.battle.ai import AutonomousActor
from dungeon.battle.combatant import (
    Combatant,
    ControlMode,
    Side,
    StatSnapshot,
    create_combatant,
)
from dungeon.battle.config import BattleConfig
from dungeon.battle.controller import ActionMenu, ExternalActorCoordinator
from dungeon.battle.errors import BattleError, BattleNotFinishedError, BattleSetupError
from dungeon.battle.events import BattleEvent
from dungeon.battle.state import BattleOutcome, BattleState
from dungeon.battle.turns import ActionGate, TurnScheduler

logger = logging.getLogger(__name__)

HOSTILE_ID_START = 10000


@dataclass
class BattleReport:
    """Outcome of a battle with the final stats of both rosters."""
    outcome: BattleOutcome
    rounds: int
    player_side: list[StatSnapshot] = field(default_factory=list)
    hostile_side: list[StatSnapshot] = field(default_factory=list)

    @property
    def player_won(self) -> bool:
        return self.outcome is BattleOutcome.PLAYER_VICTORY


def disambiguate_names(names: list[str]) -> list[str]:
    """Number repeated names in order: ["Slime", "Slime"] -> ["Slime 1", "Slime 2"]."""
    totals = Counter(names)
    seen: Counter[str] = Counter()
    result = []
    for name in names:
        if totals[name] > 1:
            seen[name] += 1
            result.append(f"{name} {seen[name]}")
        else:
            result.append(name)
    return result


class BattleSystem:
    """
    Battle controller facade.

    Manages:
    - Spawning combatants from snapshots
    - Wiring scheduler, resolver and both actors
    - Routing external decisions
    - Forced ends and the outcome report
    """

    def __init__(
        self,
        events: Optional[EventBus] = None,
        config: Optional[BattleConfig] = None,
        rng: Optional[random.Random] = None,
        action_gate: Optional[ActionGate] = None,
    ):
        self.events = events or EventBus()
        self.config = config or BattleConfig()
        self._rng = rng or random.Random(self.config.seed)

        self.resolver = SkillResolver(self._rng)
        self.ai = AutonomousActor(self._rng, self.config.ai_weights)
        self.coordinator = ExternalActorCoordinator(self.events)
        self.scheduler = TurnScheduler(
            BattleState(),
            self.events,
            self.resolver,
            self.ai,
            self.coordinator,
            action_gate=action_gate,
        )

        self._started = False
        self._on_battle_end: Optional[Callable[[BattleReport], None]] = None

        self.events.subscribe(BattleEvent.BATTLE_ENDED, self._handle_battle_end)

    @property
    def state(self) -> BattleState:
        return self.scheduler.state

    @property
    def is_active(self) -> bool:
        """True between start_battle and a terminal outcome."""
        return self._started and not self.state.is_finished

    @property
    def party(self) -> list[Combatant]:
        return list(self.state.player_side)

    @property
    def enemies(self) -> list[Combatant]:
        return list(self.state.hostile_side)

    @property
    def current_actor(self) -> Optional[Combatant]:
        return self.state.current_combatant if self.is_active else None

    @property
    def pending_menu(self) -> Optional[ActionMenu]:
        return self.coordinator.pending_menu

    def on_battle_end(self, callback: Optional[Callable[[BattleReport], None]]) -> None:
        """Set a callback that receives the report when the battle ends."""
        self._on_battle_end = callback

    def start_battle(
        self,
        player: StatSnapshot,
        hostiles: list[StatSnapshot],
        player_control: ControlMode = ControlMode.AUTONOMOUS,
        hostile_control: ControlMode = ControlMode.EXTERNAL,
    ) -> BattleState:
        """
        Set up a battle.

        Args:
            player: The champion's snapshot
            hostiles: Zero to `config.max_hostiles` monster snapshots
            player_control: Who decides for the champion
            hostile_control: Who decides for the monsters

        Raises:
            BattleSetupError: a battle is in progress or too many hostiles
        """
        if self.is_active:
            raise BattleSetupError("A battle is already in progress")

        if len(hostiles) > self.config.max_hostiles:
            raise BattleSetupError(
                f"At most {self.config.max_hostiles} hostiles per battle, got {len(hostiles)}"
            )

        champion = create_combatant(player, entity_id=1, side=Side.PLAYER, control=player_control)

        names = disambiguate_names([s.name for s in hostiles])
        monsters = [
            create_combatant(
                snapshot,
                entity_id=HOSTILE_ID_START + i,
                side=Side.HOSTILE,
                control=hostile_control,
                name=names[i],
            )
            for i, snapshot in enumerate(hostiles)
        ]

        state = BattleState(player_side=[champion], hostile_side=monsters)
        self.scheduler.reset(state)
        self.scheduler.initialize_turn_order()
        self._started = True

        logger.info(f"Battle started: {champion.name} vs {', '.join(m.name for m in monsters) or 'nobody'}")
        self.events.publish(BattleEvent.BATTLE_STARTED, state=state)
        return state

    async def run(self) -> BattleReport:
        """Run the battle to its end and return the report."""
        if not self._started:
            raise BattleError("No battle has been started")

        await self.scheduler.run()
        return self.report()

    def submit_decision(self, command: BattleCommand) -> None:
        """
        Deliver the decision for the waiting external combatant.

        Raises:
            InvalidDecisionError: the decision was rejected; the turn still waits
        """
        self.coordinator.submit(command)

    def force_end(self, player_won: bool) -> bool:
        """End the battle now, cancelling any pending decision."""
        outcome = BattleOutcome.PLAYER_VICTORY if player_won else BattleOutcome.PLAYER_DEFEAT
        return self.scheduler.force_end(outcome)

    def report(self) -> BattleReport:
        """Snapshot of the outcome and both rosters."""
        return BattleReport(
            outcome=self.state.outcome,
            rounds=self.state.round_number,
            player_side=[c.to_snapshot() for c in self.state.player_side],
            hostile_side=[c.to_snapshot() for c in self.state.hostile_side],
        )

    def force_set_vitals(
        self,
        combatant: Combatant,
        health: Optional[int] = None,
        mana: Optional[int] = None,
    ) -> None:
        """
        Overwrite a combatant's HP/MP, e.g. to sync persisted stats.

        Raises:
            BattleNotFinishedError: the battle has no terminal outcome yet
        """
        if not self.state.is_finished:
            raise BattleNotFinishedError("HP/MP can only be force-set after the battle has ended")

        if combatant not in self.state.combatants:
            raise BattleError(f"{combatant.name} is not part of this battle")

        if health is not None:
            combatant.force_set_health(health)
        if mana is not None:
            combatant.force_set_mana(mana)

    def end_battle(self) -> BattleReport:
        """
        Tear down a finished battle so another can start.

        Raises:
            BattleNotFinishedError: the battle is still running
        """
        if self.is_active:
            raise BattleNotFinishedError("Battle is still in progress")

        report = self.report()
        self.scheduler.reset(BattleState())
        self._started = False
        return report

    def _handle_battle_end(self, event: Event) -> None:
        if event.get("state") is not self.state:
            return
        logger.info(f"Battle ended: {event['outcome'].name} after {event['rounds']} round(s)")
        if self._on_battle_end is not None:
            self._on_battle_end(self.report())
