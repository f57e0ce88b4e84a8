"""
IdleCity Simulator - CLI Entry Point
=====================================
Usage:
    python cli.py simulate <playthrough.yaml> [--duration 600] [--save out.yaml] [--export-json out.json]
    python cli.py status <save.yaml>
    python cli.py catalog
    python cli.py achievements [--save save.yaml]
    python cli.py interactive
    python cli.py web [--port 8080]

Global options --config, --catalog and --achievement-set load YAML overrides.
"""

import argparse
import sys

from idle_sim.engine import GameSession, run_playthrough
from idle_sim.format import (
    fmt_number, print_achievements, print_buildings, print_full_report,
    print_status,
)
from idle_sim.io import (
    export_snapshot_json, load_playthrough, load_snapshot, save_snapshot,
)
from idle_sim.models import GameConfig, MalformedDataError


def _load_config(args) -> GameConfig:
    if not args.config:
        return GameConfig()
    from idle_sim.io import load_game_config
    cfg = load_game_config(args.config)
    print(f"[config] {args.config}: tick={cfg.tick_interval}s, "
          f"offline={'on' if cfg.offline_progress else 'off'}")
    return cfg


def _load_catalog(args):
    if not args.catalog:
        return None
    from idle_sim.io import load_catalog
    catalog = load_catalog(args.catalog)
    print(f"[config] catalog {args.catalog}: {len(catalog)} entries")
    return catalog


def _load_achievements(args):
    if not args.achievement_set:
        return None
    from idle_sim.achievements import AchievementEvaluator
    from idle_sim.io import load_achievements
    evaluator = AchievementEvaluator(load_achievements(args.achievement_set))
    print(f"[config] achievements {args.achievement_set}: {len(evaluator.ids())} defined")
    return evaluator


def _build_session(args) -> GameSession:
    return GameSession(
        catalog=_load_catalog(args),
        achievements=_load_achievements(args),
        config=_load_config(args),
    )


def _restore(session: GameSession, path: str):
    """Load ``path`` into ``session`` or exit with a message."""
    try:
        credited = session.load(load_snapshot(path))
    except FileNotFoundError:
        print(f"[load] Save not found: {path}", file=sys.stderr)
        sys.exit(1)
    except MalformedDataError as e:
        print(f"[load] Rejected {path}: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"[load] {path}")
    if credited:
        print(f"[load] Offline progress credited: {fmt_number(credited)}s")


def cmd_simulate(args):
    pt = load_playthrough(args.file)
    if args.step:
        pt.step = args.step

    try:
        result = run_playthrough(
            pt,
            catalog=_load_catalog(args),
            achievements=_load_achievements(args),
            config=_load_config(args),
            duration=args.duration,
        )
    except ValueError as e:
        print(f"[simulate] {e}", file=sys.stderr)
        sys.exit(1)
    print_full_report(result)

    if args.save:
        save_snapshot(result.final_snapshot, args.save)
        print(f"\n[save] {args.save}")
    if args.export_json:
        export_snapshot_json(result.final_snapshot, args.export_json)
        print(f"\nExported JSON to {args.export_json}")


def cmd_status(args):
    session = _build_session(args)
    _restore(session, args.file)
    print_status(session)


def cmd_catalog(args):
    session = _build_session(args)
    if args.save:
        _restore(session, args.save)
    print_buildings(session)


def cmd_achievements(args):
    session = _build_session(args)
    if args.save:
        _restore(session, args.save)
    print_achievements(session)


def cmd_interactive(args):
    from idle_sim.repl import IdleCityREPL
    repl = IdleCityREPL(_build_session(args))
    repl.cmdloop()


def cmd_web(args):
    from idle_sim.web import start_server
    start_server(port=args.port, session=_build_session(args))


def main():
    parser = argparse.ArgumentParser(
        description="IdleCity Simulator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--config", default=None,
                        help="Game config YAML (tick interval, autosave, offline progress)")
    parser.add_argument("--catalog", default=None,
                        help="Catalog YAML replacing the built-in buildings and upgrades")
    parser.add_argument("--achievement-set", default=None,
                        help="Achievements YAML replacing the built-in set")
    sub = parser.add_subparsers(dest="command", help="Command to run")

    # simulate
    p_sim = sub.add_parser("simulate", aliases=["sim"],
                           help="Run a scripted playthrough from YAML")
    p_sim.add_argument("file", help="Path to playthrough YAML file")
    p_sim.add_argument("--duration", "-d", type=float, default=None,
                       help="Simulated seconds (default: the script's duration)")
    p_sim.add_argument("--step", type=float, default=None,
                       help="Simulated seconds per tick (default: the script's step)")
    p_sim.add_argument("--save", default=None,
                       help="Write the final state as a YAML save")
    p_sim.add_argument("--export-json", default=None,
                       help="Write the final state as a JSON save")

    # status
    p_st = sub.add_parser("status", help="Show a saved session")
    p_st.add_argument("file", help="Path to a YAML or JSON save")

    # catalog
    p_cat = sub.add_parser("catalog", help="List buildings and upgrades")
    p_cat.add_argument("--save", default=None,
                       help="Show costs for the session in this save")

    # achievements
    p_ach = sub.add_parser("achievements", aliases=["ach"],
                           help="List achievements and progress")
    p_ach.add_argument("--save", default=None,
                       help="Show progress for the session in this save")

    # interactive
    sub.add_parser("interactive", aliases=["repl", "i"],
                   help="Interactive REPL mode")

    # web
    p_web = sub.add_parser("web", aliases=["serve"],
                           help="Start the HTTP API")
    p_web.add_argument("--port", type=int, default=8080,
                       help="Port to serve on (default: 8080)")

    args = parser.parse_args()

    if args.command in ("simulate", "sim"):
        cmd_simulate(args)
    elif args.command == "status":
        cmd_status(args)
    elif args.command == "catalog":
        cmd_catalog(args)
    elif args.command in ("achievements", "ach"):
        cmd_achievements(args)
    elif args.command in ("interactive", "repl", "i"):
        cmd_interactive(args)
    elif args.command in ("web", "serve"):
        cmd_web(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
