"""
Battle module - turn-based combat system.

Provides:
- Combatants built from stat snapshots
- Skill resolution (attack, heal, defend)
- Speed-ordered turn scheduling and win/lose conditions
- AI decisions for autonomous combatants
- Suspended decisions for externally controlled combatants
"""

from dungeon.battle.skills import (
    SkillData,
    SkillKind,
    TargetRule,
    basic_attack,
)
from dungeon.battle.combatant import (
    Combatant,
    ControlMode,
    Side,
    StatSnapshot,
    create_combatant,
    snapshot_from_data,
)
from dungeon.battle.state import BattleOutcome, BattleState
from dungeon.battle.actions import (
    ActionResult,
    ActionType,
    BattleCommand,
    SkillResolver,
    calculate_damage,
)
from dungeon.battle.ai import AIAction, ActionWeights, AutonomousActor
from dungeon.battle.controller import ActionMenu, ExternalActorCoordinator
from dungeon.battle.events import BattleEvent
from dungeon.battle.turns import TurnScheduler
from dungeon.battle.config import BattleConfig
from dungeon.battle.system import BattleReport, BattleSystem
from dungeon.battle.errors import (
    BattleError,
    BattleNotFinishedError,
    BattleSetupError,
    InvalidDecisionError,
)

__all__ = [
    # Skills
    "SkillData",
    "SkillKind",
    "TargetRule",
    "basic_attack",
    # Combatants
    "Combatant",
    "ControlMode",
    "Side",
    "StatSnapshot",
    "create_combatant",
    "snapshot_from_data",
    # State
    "BattleOutcome",
    "BattleState",
    # Actions
    "ActionResult",
    "ActionType",
    "BattleCommand",
    "SkillResolver",
    "calculate_damage",
    # Actors
    "AIAction",
    "ActionWeights",
    "AutonomousActor",
    "ActionMenu",
    "ExternalActorCoordinator",
    # Turns
    "BattleEvent",
    "TurnScheduler",
    # System
    "BattleConfig",
    "BattleReport",
    "BattleSystem",
    # Errors
    "BattleError",
    "BattleNotFinishedError",
    "BattleSetupError",
    "InvalidDecisionError",
]
