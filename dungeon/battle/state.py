"""
Battle state - the two rosters, turn order and outcome of one battle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Optional

from dungeon.battle.combatant import Combatant, Side


class BattleOutcome(Enum):
    """Result of a battle, from the player side's point of view."""
    UNDETERMINED = auto()
    PLAYER_VICTORY = auto()
    PLAYER_DEFEAT = auto()

    @property
    def is_terminal(self) -> bool:
        return self is not BattleOutcome.UNDETERMINED


@dataclass
class BattleState:
    """
    Aggregate state of one battle.

    The turn order holds references into the rosters, never copies.
    Dead combatants stay in the turn order and are skipped.
    """
    player_side: list[Combatant] = field(default_factory=list)
    hostile_side: list[Combatant] = field(default_factory=list)
    turn_order: list[Combatant] = field(default_factory=list)
    turn_index: int = 0
    round_number: int = 0
    outcome: BattleOutcome = BattleOutcome.UNDETERMINED

    @property
    def is_finished(self) -> bool:
        return self.outcome.is_terminal

    @property
    def combatants(self) -> list[Combatant]:
        """Every combatant, player roster first."""
        return self.player_side + self.hostile_side

    @property
    def current_combatant(self) -> Optional[Combatant]:
        if 0 <= self.turn_index < len(self.turn_order):
            return self.turn_order[self.turn_index]
        return None

    def roster(self, side: Side) -> list[Combatant]:
        return self.player_side if side is Side.PLAYER else self.hostile_side

    def alive(self, side: Side) -> list[Combatant]:
        return [c for c in self.roster(side) if c.is_alive]

    def allies_of(self, combatant: Combatant) -> list[Combatant]:
        """The combatant's own roster (including itself)."""
        return self.roster(combatant.side)

    def opponents_of(self, combatant: Combatant) -> list[Combatant]:
        return self.roster(combatant.side.opposite)

    def alive_opponents_of(self, combatant: Combatant) -> list[Combatant]:
        return self.alive(combatant.side.opposite)

    def side_defeated(self, side: Side) -> bool:
        """True once every member of a roster is dead (or the roster is empty)."""
        return not self.alive(side)
