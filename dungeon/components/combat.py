"""
Combat components - attack, defense, speed and the defend stance.
"""

from __future__ import annotations

from engine.core.component import Component

DEFEND_DURATION = 1
DEFEND_MULTIPLIER = 2


class CombatStats(Component):
    """
    Battle stats of one combatant.

    Attack, base defense and speed come from an externally computed snapshot
    and never change during a battle. Only the defend stance moves
    `defense` away from `base_defense`.

    Attributes:
        attack: Added to skill power when attacking
        base_defense: Defense outside of the defend stance
        defense: Effective defense (doubled while defending)
        speed: Turn order key, at least 1
        is_defending: Defend stance active
        defend_turns_remaining: Owner turn starts left before the stance drops
    """
    attack: int = 0
    base_defense: int = 0
    defense: int = 0
    speed: int = 1
    is_defending: bool = False
    defend_turns_remaining: int = 0

    def model_post_init(self, __context) -> None:
        self.attack = max(0, self.attack)
        self.base_defense = max(0, self.base_defense)
        self.speed = max(1, self.speed)
        self._sync_defense()

    def _sync_defense(self) -> None:
        if self.is_defending:
            self.defense = self.base_defense * DEFEND_MULTIPLIER
        else:
            self.defense = self.base_defense

    def start_defend(self) -> bool:
        """
        Enter the defend stance.

        Returns:
            False if already defending (stances never stack)
        """
        if self.is_defending:
            return False
        self.is_defending = True
        self.defend_turns_remaining = DEFEND_DURATION
        self._sync_defense()
        return True

    def tick_defend(self) -> bool:
        """
        Count down the stance at the start of the owner's turn.

        Returns:
            True if the stance ended on this tick
        """
        if not self.is_defending:
            return False

        self.defend_turns_remaining = max(0, self.defend_turns_remaining - 1)
        if self.defend_turns_remaining > 0:
            return False

        self.is_defending = False
        self._sync_defense()
        return True
