"""
Battle Demo: headless dungeon battle

Demonstrates:
- Loading champions, monsters and skills from the JSON database
- The champion fighting on its own (AI)
- Monsters waiting for decisions typed on stdin
- Turn/round/action events on the event bus

Run: python -m demos.battle_demo
     python -m demos.battle_demo --auto --seed 42
"""

import argparse
import asyncio
import logging
from pathlib import Path

from engine.core import EventBus
from engine.resources.database import Database
from dungeon.battle import (
    ActionType,
    BattleCommand,
    BattleConfig,
    BattleEvent,
    BattleSystem,
    ControlMode,
    InvalidDecisionError,
    TargetRule,
    snapshot_from_data,
)

DATA_PATH = Path(__file__).resolve().parent.parent / "data"


# ============================================================================
# CONSOLE INPUT
# ============================================================================

async def ask(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return (await loop.run_in_executor(None, input, prompt)).strip()


async def ask_index(prompt: str, count: int) -> int | None:
    """Read a 1-based choice; None on anything else."""
    answer = await ask(prompt)
    if not answer.isdigit() or not 1 <= int(answer) <= count:
        return None
    return int(answer) - 1


async def build_command(system: BattleSystem, menu) -> BattleCommand | None:
    actor = menu.actor
    print(f"\n{actor.name}  HP {actor.current_health}/{actor.max_health}  MP {actor.current_mana}/{actor.max_mana}")
    options = [ActionType.ATTACK, ActionType.DEFEND]
    if menu.skill_menu_enabled:
        options.insert(1, ActionType.SKILL)
    for i, option in enumerate(options, 1):
        print(f"  {i}) {option.name.title()}")

    choice = await ask_index("> ", len(options))
    if choice is None:
        return None
    action = options[choice]

    if action is ActionType.DEFEND:
        return BattleCommand(actor, ActionType.DEFEND)

    skill = actor.basic_skill
    if action is ActionType.SKILL:
        for i, s in enumerate(menu.skills, 1):
            mark = "" if s in menu.affordable_skills else "  (not enough MP)"
            print(f"  {i}) {s.name} - {s.mana_cost} MP{mark}")
        index = await ask_index("skill> ", len(menu.skills))
        if index is None:
            return None
        skill = menu.skills[index]

    target = None
    if skill.target is TargetRule.SINGLE_HOSTILE:
        candidates = system.state.alive_opponents_of(actor)
    elif skill.target is TargetRule.SINGLE_FRIENDLY:
        candidates = list(menu.allies)
    else:
        candidates = []

    if candidates:
        for i, c in enumerate(candidates, 1):
            print(f"  {i}) {c.name} ({c.current_health}/{c.max_health})")
        index = await ask_index("target> ", len(candidates))
        if index is None:
            return None
        target = candidates[index]

    return BattleCommand(actor, action, skill=skill, target=target)


async def prompt_until_accepted(system: BattleSystem, menu) -> None:
    while system.pending_menu is menu:
        command = await build_command(system, menu)
        if command is None:
            print("Invalid choice.")
            continue
        try:
            system.submit_decision(command)
        except InvalidDecisionError as e:
            print(f"Rejected: {e}")


# ============================================================================
# MAIN
# ============================================================================

class ConsoleView:
    """Prints battle events and starts input prompts."""

    def __init__(self, system: BattleSystem, events: EventBus):
        self.system = system
        self._prompts: set[asyncio.Task] = set()
        events.subscribe(BattleEvent.ROUND_STARTED, self.on_round)
        events.subscribe(BattleEvent.ACTION_RESOLVED, self.on_action)
        events.subscribe(BattleEvent.INPUT_REQUESTED, self.on_input)
        events.subscribe(BattleEvent.BATTLE_ENDED, self.on_end)

    def on_round(self, event) -> None:
        print(f"\n--- Round {event['round']} ---")

    def on_action(self, event) -> None:
        result = event["result"]
        if result.message:
            print(f"  {result.message}")
        for target in result.targets:
            if target.entity_id in result.damage_dealt:
                print(f"  {target.name} takes {result.damage_dealt[target.entity_id]} damage")
            if target.entity_id in result.healing_done:
                print(f"  {target.name} recovers {result.healing_done[target.entity_id]} HP")

    def on_input(self, event) -> None:
        task = asyncio.create_task(prompt_until_accepted(self.system, event["menu"]))
        self._prompts.add(task)
        task.add_done_callback(self._prompts.discard)

    def on_end(self, event) -> None:
        print(f"\n=== {event['outcome'].name} after {event['rounds']} round(s) ===")


async def main() -> None:
    parser = argparse.ArgumentParser(description="Headless dungeon battle")
    parser.add_argument("--auto", action="store_true", help="let the AI control the monsters too")
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--delay", type=float, default=0.0, help="pause after each action (seconds)")
    parser.add_argument("--monsters", nargs="*", default=["monster_slime", "monster_goblin", "monster_slime"])
    args = parser.parse_args()

    config = BattleConfig(seed=args.seed, log_level=logging.WARNING)
    config.configure_logging()

    db = Database(DATA_PATH)
    db.load_all()

    unknown = [mid for mid in args.monsters if db.get_monster(mid) is None]
    if unknown:
        parser.error(f"unknown monster id(s): {', '.join(unknown)}")

    champion = snapshot_from_data(db.get_champion("champion_hero"), db.get_skill)
    monsters = [snapshot_from_data(db.get_monster(mid), db.get_skill) for mid in args.monsters]

    async def pause(result) -> None:
        await asyncio.sleep(args.delay)

    events = EventBus()
    system = BattleSystem(events, config, action_gate=pause)
    view = ConsoleView(system, events)

    system.start_battle(
        champion,
        monsters,
        hostile_control=ControlMode.AUTONOMOUS if args.auto else ControlMode.EXTERNAL,
    )
    report = await system.run()

    for snapshot in report.player_side + report.hostile_side:
        print(f"{snapshot.name}: {snapshot.current_health}/{snapshot.max_health} HP")


if __name__ == "__main__":
    asyncio.run(main())
