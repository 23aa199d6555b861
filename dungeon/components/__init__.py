"""
Dungeon battle components - pydantic data models for combatant stats.
"""

from dungeon.components.character import Health, Mana
from dungeon.components.combat import CombatStats, DEFEND_DURATION, DEFEND_MULTIPLIER

__all__ = [
    "Health",
    "Mana",
    "CombatStats",
    "DEFEND_DURATION",
    "DEFEND_MULTIPLIER",
]
