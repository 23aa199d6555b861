import asyncio
import pytest
from dungeon.battle.actions import ActionType, BattleCommand, SkillResolver
from dungeon.battle.ai import ActionWeights, AutonomousActor
from dungeon.battle.combatant import ControlMode, Side
from dungeon.battle.controller import ExternalActorCoordinator
from dungeon.battle.errors import BattleError
from dungeon.battle.events import BattleEvent
from dungeon.battle.state import BattleOutcome
from dungeon.battle.turns import TurnScheduler

@pytest.fixture
def make_scheduler(event_bus, scripted_random):
    def _make(state, weights=None, action_gate=None, rng=None):
        rng = rng or scripted_random()
        return TurnScheduler(
            state,
            event_bus,
            SkillResolver(rng),
            AutonomousActor(rng, weights),
            ExternalActorCoordinator(event_bus),
            action_gate=action_gate,
        )
    return _make

@pytest.fixture
def recorder(event_bus):
    """Collects (event type, payload) for every battle event."""
    log = []
    def record(event):
        log.append((event.type, event.data))
    for event_type in BattleEvent:
        event_bus.subscribe(event_type, record, weak=False)
    return log

ATTACK_ONLY = ActionWeights(basic_attack=1, skill=0, defend=0)

def _started(log):
    return [data["actor"].name for kind, data in log if kind is BattleEvent.TURN_STARTED]

def test_turn_order_by_speed(make_combatant, make_state, make_scheduler):
    hero = make_combatant("Hero", speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5)
    bat = make_combatant("Bat", side=Side.HOSTILE, speed=8)
    scheduler = make_scheduler(make_state([hero], [goblin, bat]))

    order = scheduler.initialize_turn_order()

    assert [c.name for c in order] == ["Hero", "Bat", "Goblin"]
    assert scheduler.round_number == 1
    assert scheduler.current_combatant is hero

def test_turn_order_ties_keep_roster_order(make_combatant, make_state, make_scheduler):
    hero = make_combatant("Hero", speed=5)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5)
    bat = make_combatant("Bat", side=Side.HOSTILE, speed=5)
    ghost = make_combatant("Ghost", side=Side.HOSTILE, speed=9, current_hp=0)
    scheduler = make_scheduler(make_state([hero], [goblin, bat, ghost]))

    assert [c.name for c in scheduler.initialize_turn_order()] == ["Hero", "Goblin", "Bat"]

def test_round_increments_on_wrap(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5)
    scheduler = make_scheduler(make_state([hero], [goblin]))
    scheduler.initialize_turn_order()

    assert scheduler.next_turn()
    assert scheduler.round_number == 1
    assert scheduler.current_combatant is goblin

    assert scheduler.next_turn()
    assert scheduler.round_number == 2
    assert scheduler.current_combatant is hero

    rounds = [data["round"] for kind, data in recorder if kind is BattleEvent.ROUND_STARTED]
    ended = [data["actor"] for kind, data in recorder if kind is BattleEvent.TURN_ENDED]
    assert rounds == [2]
    assert ended == [hero, goblin]

@pytest.mark.asyncio
async def test_defend_lasts_until_owner_turn(event_bus, make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", defense=8, speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, attack=20, speed=5, control=ControlMode.EXTERNAL)
    scheduler = make_scheduler(make_state([hero], [goblin]), weights=ActionWeights(basic_attack=0, skill=0, defend=1))

    def goblin_attacks(event):
        scheduler.coordinator.submit(BattleCommand(event["actor"], ActionType.ATTACK, target=hero))
    event_bus.subscribe(BattleEvent.INPUT_REQUESTED, goblin_attacks)

    scheduler.initialize_turn_order()
    await scheduler.start_turn()
    assert hero.current_defense == 16

    scheduler.next_turn()
    await scheduler.start_turn()
    # 20 + 0 - 16
    assert hero.current_health == 96
    assert hero.current_defense == 16

    scheduler.next_turn()
    defense_at_turn_start = []
    def on_turn(event):
        defense_at_turn_start.append(event["actor"].current_defense)
    event_bus.subscribe(BattleEvent.TURN_STARTED, on_turn)
    await scheduler.start_turn()

    assert defense_at_turn_start == [8]

def test_victory_when_last_hostile_falls(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5)
    state = make_state([hero], [goblin])
    scheduler = make_scheduler(state)
    scheduler.initialize_turn_order()

    goblin.take_damage(999)

    assert not scheduler.next_turn()
    assert state.outcome is BattleOutcome.PLAYER_VICTORY
    ended = [data for kind, data in recorder if kind is BattleEvent.BATTLE_ENDED]
    assert len(ended) == 1
    assert ended[0]["outcome"] is BattleOutcome.PLAYER_VICTORY
    assert ended[0]["forced"] is False

def test_simultaneous_wipe_is_defeat(make_combatant, make_state, make_scheduler):
    hero = make_combatant("Hero")
    goblin = make_combatant("Goblin", side=Side.HOSTILE)
    state = make_state([hero], [goblin])
    scheduler = make_scheduler(state)
    scheduler.initialize_turn_order()

    hero.take_damage(999)
    goblin.take_damage(999)

    assert scheduler.check_battle_end()
    assert state.outcome is BattleOutcome.PLAYER_DEFEAT

@pytest.mark.asyncio
async def test_dead_combatants_are_skipped(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", speed=10)
    bat = make_combatant("Bat", side=Side.HOSTILE, speed=8)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5)
    scheduler = make_scheduler(make_state([hero], [bat, goblin]), weights=ATTACK_ONLY)
    scheduler.initialize_turn_order()

    bat.take_damage(999)
    scheduler.next_turn()
    await scheduler.start_turn()

    assert _started(recorder) == []
    assert bat.current_health == 0

@pytest.mark.asyncio
async def test_run_to_victory(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", attack=30, speed=10)
    bat = make_combatant("Bat", side=Side.HOSTILE, hp=20, attack=5, speed=8)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, hp=40, attack=5, speed=5)
    state = make_state([hero], [bat, goblin])
    scheduler = make_scheduler(state, weights=ATTACK_ONLY)

    outcome = await scheduler.run()

    assert outcome is BattleOutcome.PLAYER_VICTORY
    assert not bat.is_alive and not goblin.is_alive
    kinds = [kind for kind, _ in recorder]
    assert kinds[-1] is BattleEvent.BATTLE_ENDED
    assert kinds.count(BattleEvent.BATTLE_ENDED) == 1
    # every resolved action was announced first
    assert kinds.count(BattleEvent.ACTION_STARTED) == kinds.count(BattleEvent.ACTION_RESOLVED)

@pytest.mark.asyncio
async def test_run_with_no_hostiles_is_immediate_victory(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero")
    state = make_state([hero], [])
    scheduler = make_scheduler(state)

    assert await scheduler.run() is BattleOutcome.PLAYER_VICTORY
    assert _started(recorder) == []

@pytest.mark.asyncio
async def test_action_gate_awaited_per_action(make_combatant, make_state, make_scheduler):
    hero = make_combatant("Hero", attack=30, speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, hp=50, attack=5, speed=5)
    gated = []

    async def gate(result):
        gated.append(result.actor.name)
        await asyncio.sleep(0)

    scheduler = make_scheduler(make_state([hero], [goblin]), weights=ATTACK_ONLY, action_gate=gate)
    await scheduler.run()

    # 30 - 5 = 25 per hit: hero, goblin, hero
    assert gated == ["Hero", "Goblin", "Hero"]

@pytest.mark.asyncio
async def test_force_end_while_waiting(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", attack=1, speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, hp=500, speed=5, control=ControlMode.EXTERNAL)
    state = make_state([hero], [goblin])
    scheduler = make_scheduler(state, weights=ATTACK_ONLY)

    task = asyncio.create_task(scheduler.run())
    while not scheduler.coordinator.is_waiting:
        await asyncio.sleep(0)
    hero_health = hero.current_health

    assert scheduler.force_end(BattleOutcome.PLAYER_DEFEAT)
    assert await task is BattleOutcome.PLAYER_DEFEAT

    assert hero.current_health == hero_health
    assert not scheduler.coordinator.is_waiting
    resolved = [data["actor"] for kind, data in recorder if kind is BattleEvent.ACTION_RESOLVED]
    assert goblin not in resolved
    ended = [data for kind, data in recorder if kind is BattleEvent.BATTLE_ENDED]
    assert len(ended) == 1 and ended[0]["forced"] is True
    # no further turns after the forced end
    assert recorder[-1][0] is BattleEvent.BATTLE_ENDED

def test_force_end_rules(make_combatant, make_state, make_scheduler):
    state = make_state([make_combatant()], [make_combatant("Goblin", side=Side.HOSTILE)])
    scheduler = make_scheduler(state)
    scheduler.initialize_turn_order()

    with pytest.raises(ValueError):
        scheduler.force_end(BattleOutcome.UNDETERMINED)

    assert scheduler.force_end(BattleOutcome.PLAYER_VICTORY)
    assert not scheduler.force_end(BattleOutcome.PLAYER_DEFEAT)
    assert state.outcome is BattleOutcome.PLAYER_VICTORY
    assert not scheduler.next_turn()

def test_reset_keeps_subscriptions(event_bus, make_combatant, make_state, make_scheduler, recorder):
    state = make_state([make_combatant()], [make_combatant("Goblin", side=Side.HOSTILE)])
    scheduler = make_scheduler(state)
    scheduler.initialize_turn_order()
    scheduler.next_turn()

    scheduler.reset()

    assert scheduler.turn_order == []
    assert scheduler.round_number == 0
    assert state.turn_index == 0
    assert event_bus.has_subscribers(BattleEvent.TURN_ENDED)

@pytest.mark.asyncio
async def test_force_end_from_turn_start_handler(event_bus, make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5, control=ControlMode.EXTERNAL)
    scheduler = make_scheduler(make_state([hero], [goblin]), weights=ATTACK_ONLY)

    def retreat(event):
        if event["actor"] is goblin:
            scheduler.force_end(BattleOutcome.PLAYER_VICTORY)
    event_bus.subscribe(BattleEvent.TURN_STARTED, retreat)

    assert await scheduler.run() is BattleOutcome.PLAYER_VICTORY
    assert not scheduler.coordinator.is_waiting
    kinds = [kind for kind, _ in recorder]
    assert BattleEvent.INPUT_REQUESTED not in kinds

def test_force_end_from_turn_end_handler(event_bus, make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=5)
    state = make_state([hero], [goblin])
    scheduler = make_scheduler(state)
    scheduler.initialize_turn_order()
    scheduler.next_turn()

    def retreat(event):
        if event["actor"] is goblin:
            scheduler.force_end(BattleOutcome.PLAYER_VICTORY)
    event_bus.subscribe(BattleEvent.TURN_ENDED, retreat)

    assert not scheduler.next_turn()
    assert state.outcome is BattleOutcome.PLAYER_VICTORY
    assert scheduler.round_number == 1
    assert state.turn_index == 1
    kinds = [kind for kind, _ in recorder]
    assert BattleEvent.ROUND_STARTED not in kinds
    assert kinds[-1] is BattleEvent.BATTLE_ENDED
    ended = [data for kind, data in recorder if kind is BattleEvent.BATTLE_ENDED]
    assert ended[0]["rounds"] == scheduler.round_number

@pytest.mark.asyncio
async def test_run_cannot_be_reentered(make_combatant, make_state, make_scheduler, recorder):
    hero = make_combatant("Hero", speed=10)
    goblin = make_combatant("Goblin", side=Side.HOSTILE, speed=20, control=ControlMode.EXTERNAL)
    scheduler = make_scheduler(make_state([hero], [goblin]), weights=ATTACK_ONLY)

    task = asyncio.create_task(scheduler.run())
    while not scheduler.coordinator.is_waiting:
        await asyncio.sleep(0)

    with pytest.raises(BattleError):
        await scheduler.run()

    assert _started(recorder) == ["Goblin"]
    assert scheduler.coordinator.current_actor is goblin

    scheduler.force_end(BattleOutcome.PLAYER_DEFEAT)
    assert await task is BattleOutcome.PLAYER_DEFEAT
