#!/usr/bin/env python3
"""
Command-line arena simulator.

Runs auto-battles between combatant templates on a deterministic scheduler,
prints the battle log and the final track, and can write the battle record
as JSON or replay it turn by turn.
"""

import argparse
import random
import sys
from typing import Optional

from .core.data import BattleRole, LogCategory
from .core.engine import ManualScheduler
from .core.events import EventManager, EventType, ReplayTurnChanged
from .game.battle_config import BattleEngineConfig, load_battle_config
from .game.combat import DamageCalculator, SkillSystem
from .game.entities import (
    create_combatant,
    create_combatant_gems,
    load_combatant_templates,
    load_gem_templates,
)
from .game.history import (
    REPLAY_SPEEDS,
    BattleRecord,
    BattleRecorder,
    InMemoryBattleHistoryStore,
    ReplayController,
)
from .game.managers import ArenaManager, AutoBattleController, LogLevel, LogManager


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Card arena battle simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cardarena --list                                  # Show available combatants and gems
  cardarena --challenger knight --opponent ranger   # Run one auto-battle
  cardarena --seed 7 --record battle.json           # Reproducible battle, saved as JSON
  cardarena --rounds 5 --seed 1                     # Several battles with a history summary
  cardarena --replay --replay-speed 4               # Replay the battle after it ends
        """
    )
    parser.add_argument("--challenger", default="knight", help="Challenger template id")
    parser.add_argument("--opponent", default="ranger", help="Opponent template id")
    parser.add_argument("--seed", type=int, help="Random seed for reproducible battles")
    parser.add_argument("--rounds", type=int, default=1, help="Number of battles to run")
    parser.add_argument("--record", help="Write the last battle record to this JSON file")
    parser.add_argument("--replay", action="store_true", help="Replay the last battle turn by turn")
    parser.add_argument(
        "--replay-speed", type=int, default=1, choices=REPLAY_SPEEDS, help="Replay playback speed"
    )
    parser.add_argument("--config", help="Battle engine configuration YAML file")
    parser.add_argument("--save-log", metavar="DIR", help="Save the full log to a file in DIR")
    parser.add_argument("--list", action="store_true", help="List combatant and gem templates")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug and event messages")
    return parser


def list_templates() -> None:
    gems = load_gem_templates()
    print("Combatants:")
    for template_id, template in load_combatant_templates().items():
        combatant = create_combatant(template)
        gem_names = ", ".join(gems[gem_id].name for gem_id in template.gem_ids) or "none"
        print(
            f"  {template_id:<12} {template.name:<12} HP {combatant.max_hp:<5} "
            f"ATK {combatant.stats.atk:<4} range {combatant.effective_range}  gems: {gem_names}"
        )

    print("\nGems:")
    for gem_id, gem in gems.items():
        print(
            f"  {gem_id:<12} {gem.name:<12} {gem.skill_type.value:<14} "
            f"{gem.activation_chance:>5}%  cooldown {gem.cooldown}"
        )


def run_battle(
    challenger_id: str,
    opponent_id: str,
    config: BattleEngineConfig,
    scheduler: ManualScheduler,
    event_manager: EventManager,
    rng: random.Random,
) -> tuple[ArenaManager, Optional[BattleRecord]]:
    """Run one auto-battle to completion on the manual scheduler.

    Raises:
        KeyError: If a template id is unknown
    """
    templates = load_combatant_templates()
    gems = load_gem_templates()
    for template_id in (challenger_id, opponent_id):
        if template_id not in templates:
            raise KeyError(f"Unknown combatant template: {template_id}")

    challenger_template = templates[challenger_id]
    opponent_template = templates[opponent_id]

    # Battle time follows the scheduler clock
    clock = lambda: scheduler.current_time  # noqa: E731
    arena = ArenaManager(
        event_manager=event_manager,
        damage_calculator=DamageCalculator(config.combat, rng=rng),
        skill_system=SkillSystem(rng=rng),
        recorder=BattleRecorder(clock=clock),
        clock=clock,
        danger_threshold=config.danger_threshold,
    )
    auto_battle = AutoBattleController(arena, scheduler, config.auto_battle_delay_ms)

    arena.init_arena(
        create_combatant(challenger_template),
        create_combatant(opponent_template),
        create_combatant_gems(challenger_template, gems),
        create_combatant_gems(opponent_template, gems),
    )
    arena.toggle_auto_battle()
    scheduler.run_until_idle()
    auto_battle.dispose()

    return arena, arena.last_record


def replay_battle(
    record: BattleRecord,
    config: BattleEngineConfig,
    scheduler: ManualScheduler,
    event_manager: EventManager,
    speed: int,
) -> None:
    def show_turn(event) -> None:
        assert isinstance(event, ReplayTurnChanged), f"Expected ReplayTurnChanged, got {type(event)}"
        turn = replay.current_turn_record
        header = f"Turn {event.current_turn}/{replay.total_turns}"
        if turn is not None:
            header += f": {turn.attacker_name} hits {turn.defender_name} for {turn.damage.final_damage}"
            if turn.damage.is_crit:
                header += " (CRIT)"
        print(header)
        print(
            f"    {record.challenger.name} {replay.challenger_hp}/{record.challenger.max_hp} HP | "
            f"{record.opponent.name} {replay.opponent_hp}/{record.opponent.max_hp} HP"
        )

    replay = ReplayController(
        record,
        scheduler,
        on_complete=lambda: print(f"Replay complete: {record.winner_name} wins"),
        event_manager=event_manager,
        base_delay_ms=config.replay_base_delay_ms,
    )
    event_manager.subscribe(EventType.REPLAY_TURN_CHANGED, show_turn, subscriber_name="cli.replay")

    print(f"\n=== Replay ({speed}x) ===")
    replay.set_speed(speed)
    replay.play()
    scheduler.run_until_idle()
    replay.dispose()
    event_manager.unsubscribe(EventType.REPLAY_TURN_CHANGED, show_turn)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.list:
        list_templates()
        return 0

    config = load_battle_config(args.config)
    rng = random.Random(args.seed)
    scheduler = ManualScheduler()
    event_manager = EventManager(enable_debug_logging=args.verbose)
    log_manager = LogManager(
        event_manager, default_level=LogLevel.DEBUG if args.verbose else LogLevel.INFO
    )
    event_manager.set_debug_callback(log_manager.debug)
    history = InMemoryBattleHistoryStore()

    record: Optional[BattleRecord] = None
    for round_number in range(1, max(1, args.rounds) + 1):
        log_manager.clear()
        arena, record = run_battle(args.challenger, args.opponent, config, scheduler, event_manager, rng)

        print(f"=== Battle {round_number}: {arena.challenger.name} vs {arena.opponent.name} ===")
        for line in log_manager.get_formatted_messages():
            print(line)
        print(arena.track.render())
        for role in BattleRole:
            combatant = arena.get_combatant(role)
            danger = "  (in danger)" if arena.is_in_danger(role) else ""
            print(f"{combatant.name}: {combatant.current_hp}/{combatant.max_hp} HP{danger}")
        print(f"Turns: {arena.turn_count}\n")

        if record is not None:
            history.save_battle(record)

    if args.rounds > 1:
        page = history.get_battles(page=1, limit=args.rounds)
        wins: dict[str, int] = {}
        for battle in page.data:
            wins[battle.winner_name] = wins.get(battle.winner_name, 0) + 1
        print(f"=== History: {page.total} battles ===")
        for name, count in sorted(wins.items()):
            print(f"  {name}: {count} wins")

    if record is not None and args.record:
        with open(args.record, "w", encoding="utf-8") as f:
            f.write(record.to_json(indent=2))
        log_manager.log(f"Battle record written to {args.record}", LogCategory.SYSTEM)
        print(f"Battle record written to {args.record}")

    if record is not None and args.replay:
        replay_battle(record, config, scheduler, event_manager, args.replay_speed)

    if args.save_log:
        path = log_manager.save_log_to_file(args.save_log)
        if path is None:
            return 1
        print(f"Log saved to {path}")

    return 0


def run() -> None:
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nSimulation interrupted by user")
        sys.exit(130)
    except (KeyError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)


if __name__ == "__main__":
    run()
