"""
Battle configuration.
"""

from __future__ import annotations

import logging
from typing import Optional

from dungeon.battle.ai import ActionWeights


class BattleConfig:
    """Configuration for the battle system."""

    def __init__(
        self,
        basic_attack_weight: float = 0.45,
        skill_weight: float = 0.45,
        defend_weight: float = 0.10,
        max_hostiles: int = 3,
        seed: Optional[int] = None,
        log_level: int | str = logging.INFO,
    ):
        self.basic_attack_weight = basic_attack_weight
        self.skill_weight = skill_weight
        self.defend_weight = defend_weight
        self.max_hostiles = max_hostiles
        self.seed = seed
        self.log_level = log_level

    @property
    def ai_weights(self) -> ActionWeights:
        return ActionWeights(
            basic_attack=self.basic_attack_weight,
            skill=self.skill_weight,
            defend=self.defend_weight,
        )

    def configure_logging(self) -> None:
        """Set up root logging for scripts and demos."""
        logging.basicConfig(
            level=self.log_level,
            format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
        )
