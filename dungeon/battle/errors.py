"""
Battle errors.
"""


class BattleError(Exception):
    """Base class for battle engine errors."""


class BattleSetupError(BattleError):
    """A battle could not be started with the given rosters."""


class InvalidDecisionError(BattleError):
    """An external decision was rejected. The turn keeps waiting for another."""


class BattleNotFinishedError(BattleError):
    """An operation that needs a terminal outcome was called mid-battle."""
