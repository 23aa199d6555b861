"""
Battle event types published on the engine's EventBus.
"""

from enum import Enum, auto


class BattleEvent(Enum):
    """
    Battle lifecycle and action notifications.

    Payload keys:
        BATTLE_STARTED: state
        ROUND_STARTED: round
        TURN_STARTED: actor, round
        TURN_ENDED: actor, round
        INPUT_REQUESTED: actor, menu
        ACTION_STARTED: actor, command
        ACTION_RESOLVED: actor, result
        BATTLE_ENDED: state, outcome, rounds, forced
    """
    BATTLE_STARTED = auto()
    ROUND_STARTED = auto()
    TURN_STARTED = auto()
    TURN_ENDED = auto()
    INPUT_REQUESTED = auto()
    ACTION_STARTED = auto()
    ACTION_RESOLVED = auto()
    BATTLE_ENDED = auto()
