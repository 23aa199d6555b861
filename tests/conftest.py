import os
import random
import sys
import pytest

# Ensure engine modules can be imported
sys.path.append(os.getcwd())


class ScriptedRandom(random.Random):
    """
    Random source with queued answers.

    random() pops from `rolls`; choice() pops an index from `picks`.
    Falls back to a seeded generator when a queue runs dry.
    """

    def __init__(self, rolls=None, picks=None):
        super().__init__(1234)
        self.rolls = list(rolls or [])
        self.picks = list(picks or [])

    def random(self):
        if self.rolls:
            return self.rolls.pop(0)
        return super().random()

    def choice(self, seq):
        if self.picks:
            return seq[self.picks.pop(0)]
        return super().choice(seq)


@pytest.fixture
def event_bus():
    """Fresh EventBus for each test."""
    from engine.core.events import EventBus
    return EventBus()


@pytest.fixture
def scripted_random():
    """Factory for ScriptedRandom instances."""
    return ScriptedRandom


@pytest.fixture
def make_skill():
    """Factory for skills with sensible defaults."""
    from dungeon.battle.skills import SkillData, SkillKind, TargetRule

    def _make(name="Slash", mana_cost=0, kind=SkillKind.ATTACK, power=0,
              target=TargetRule.SINGLE_HOSTILE):
        return SkillData(name=name, mana_cost=mana_cost, kind=kind, power=power, target=target)

    return _make


@pytest.fixture
def make_combatant():
    """Factory for combatants built from snapshot fields."""
    from dungeon.battle.combatant import ControlMode, Side, StatSnapshot, create_combatant

    counter = iter(range(1, 1000))

    def _make(name="Hero", side=Side.PLAYER, hp=100, mp=0, attack=10, defense=5, speed=5,
              skills=(), control=ControlMode.AUTONOMOUS, current_hp=None, current_mp=None,
              **extra):
        snapshot = StatSnapshot(
            name=name,
            max_health=hp,
            current_health=current_hp,
            max_mana=mp,
            current_mana=current_mp,
            attack=attack,
            defense=defense,
            speed=speed,
            skills=list(skills),
            **extra,
        )
        return create_combatant(snapshot, entity_id=next(counter), side=side, control=control)

    return _make


@pytest.fixture
def make_state():
    """Build a BattleState from two rosters."""
    from dungeon.battle.state import BattleState

    def _make(player_side, hostile_side):
        return BattleState(player_side=list(player_side), hostile_side=list(hostile_side))

    return _make
