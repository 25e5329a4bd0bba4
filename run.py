"""Drysland CLI entry point.

Provides subcommands for running the Socket.IO server, generating a grid from
the command line and reading/writing GameConfig rows. Accepts configuration
via flags and environment variables, with optional .env loading.

Run `python run.py --help` for details.
"""

import argparse
import json
import os
import signal
import sys
from textwrap import dedent

from colorama import Fore, Style
from colorama import init as _color_init
from dotenv import load_dotenv

from drysland import __version__

_color_init()
# Disable colors if output is not a real terminal (e.g., during pytest capture)
_COLOR_ENABLED = sys.stdout.isatty()


def parse_args(argv: list[str]) -> argparse.Namespace:
    description = """
    Drysland Grid Server

    Run the real-time Flask-SocketIO server, generate a grid in the terminal,
    or inspect configuration rows. Configuration can be provided via CLI flags
    or environment variables. If both are present, CLI flags take precedence.
    """

    epilog = dedent(
        """
        Environment variables:
          HOST                  Bind address for the web server (default: 0.0.0.0)
          PORT                  Port for the web server (default: 5000)
          DATABASE_URL          SQLAlchemy database URI (default: sqlite:///instance/drysland.db)
          DRYSLAND_DEBUG_PANEL  Enable the /api/debug/grid tuning endpoints (1/0)

        Examples:
          # Run the server on the default host and port
          python run.py server

          # Generate a radius 4 grid with Prim's strategy and a fixed seed
          python run.py generate --radius 4 --coverage 0.7 --strategy prim --seed 42

          # Generate the grid for level 7 of the configured level curve
          python run.py generate --level 7

          # Tune the level curve
          python run.py config-set grid_levels '{"levels_per_radius": 2}'
        """
    )

    parser = argparse.ArgumentParser(
        prog="Drysland",
        description=dedent(description),
        epilog=epilog,
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument(
        "--env-file",
        dest="env_file",
        help="Path to a .env file to load before processing flags",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Drysland Server {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command")

    # server subcommand
    server_parser = subparsers.add_parser(
        "server",
        help="Run the Socket.IO web server",
        formatter_class=argparse.RawTextHelpFormatter,
        description="Run the real-time Flask/Socket.IO server",
    )
    server_parser.add_argument("--host", default=None, help="Host interface to bind (default: env HOST or 0.0.0.0)")
    server_parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: env PORT or 5000)")
    server_parser.add_argument(
        "--db",
        dest="db_uri",
        default=None,
        help="Database URI (default: env DATABASE_URL or sqlite:///instance/drysland.db)",
    )
    server_parser.add_argument("--debug", action="store_true", help="Enable Flask debug mode with verbose error pages")
    server_parser.set_defaults(command="server")

    # generate subcommand
    gen_parser = subparsers.add_parser(
        "generate",
        help="Generate a grid and print a summary with an ASCII map",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    gen_parser.add_argument("--level", type=int, default=None, help="Use the default level curve for this 1-based level")
    gen_parser.add_argument("--radius", type=int, default=3)
    gen_parser.add_argument("--coverage", type=float, default=0.6)
    gen_parser.add_argument("--strategy", default="dfs", help="dfs | bfs | prim")
    gen_parser.add_argument("--extra-links", dest="extra_links", type=float, default=0.0)
    gen_parser.add_argument("--min-dead-ends", dest="min_dead_ends", type=int, default=2)
    gen_parser.add_argument("--seed", type=int, default=None)
    gen_parser.add_argument("--json", action="store_true", help="Print the saved-level payload instead of the map")
    gen_parser.set_defaults(command="generate")

    # config-get
    cfg_get_parser = subparsers.add_parser(
        "config-get",
        help="Print a GameConfig value by key",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    cfg_get_parser.add_argument("key", help="Config key")
    cfg_get_parser.set_defaults(command="config-get")

    # config-set
    cfg_set_parser = subparsers.add_parser(
        "config-set",
        help="Set a GameConfig key to a value (raw string)",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    cfg_set_parser.add_argument("key", help="Config key")
    cfg_set_parser.add_argument("value", help="Raw value (quote JSON externally)")
    cfg_set_parser.set_defaults(command="config-set")

    # If no subcommand provided, default to server
    if len(argv) == 0:
        argv = ["server"]

    return parser.parse_args(argv)


def _generate(args) -> int:
    from drysland.grid import ConfigurationError, GridParams, LevelConfig, generate_grid, serialize
    from drysland.grid.render import render_ascii

    try:
        if args.level is not None:
            params = LevelConfig().generate_level(args.level - 1)
            if args.seed is not None:
                params = GridParams.from_dict({"seed": args.seed}, base=params)
        else:
            params = GridParams(
                radius=args.radius,
                coverage=args.coverage,
                strategy=args.strategy,
                extra_links=args.extra_links,
                min_dead_ends=args.min_dead_ends,
                seed=args.seed,
            )
        grid = generate_grid(params)
    except ConfigurationError as exc:
        print(f"[ERROR] {exc}")
        return 2
    if args.json:
        print(json.dumps(serialize(grid, args.level or 1).to_dict()))
        return 0
    summary = grid.to_dict()
    print(render_ascii(grid))
    print()
    for key in ("radius", "cells", "tree_edges", "loop_edges", "dead_ends", "start", "goal"):
        print(f"{key:>11}: {summary[key]}")
    print(f"{'seed':>11}: {grid.seed}")
    if grid.shortfall:
        warn = f"{Fore.YELLOW}[WARN]{Style.RESET_ALL}" if _COLOR_ENABLED else "[WARN]"
        print(f"{warn} under-constrained: {grid.shortfall.to_dict()}")
    return 0


def main(argv: list[str]) -> int:
    args = parse_args(argv)
    if getattr(args, "env_file", None):
        load_dotenv(args.env_file)
    else:
        # Load default .env if present (no error if missing)
        load_dotenv()

    mode = (getattr(args, "command", None) or "server").lower()
    if mode == "generate":
        return _generate(args)

    # Resolve configuration from CLI flags or env vars
    host = getattr(args, "host", None) or os.getenv("HOST", "0.0.0.0")
    port = int(getattr(args, "port", None) or os.getenv("PORT", "5000"))
    db_uri_cli = getattr(args, "db_uri", None)

    # Make DATABASE_URL available to the Flask app BEFORE it is created
    if db_uri_cli:
        os.environ["DATABASE_URL"] = db_uri_cli
    db_banner = db_uri_cli or os.getenv("DATABASE_URL") or "auto (instance/drysland.db)"

    if mode == "config-get":
        from drysland import create_app
        from drysland.models import GameConfig

        app = create_app()
        with app.app_context():
            val = GameConfig.get(getattr(args, "key"))
            if val is None:
                print("[NOT FOUND]")
                return 1
            print(val)
            return 0
    elif mode == "config-set":
        from drysland import create_app
        from drysland.models import GameConfig

        app = create_app()
        with app.app_context():
            GameConfig.set(getattr(args, "key"), getattr(args, "value"))
            print("[OK]")
            return 0

    def handle_sigint(sig, frame):
        print("\n[INFO] Shutting down server...")
        sys.exit(0)

    signal.signal(signal.SIGINT, handle_sigint)

    from drysland.logging_utils import log
    from drysland.server import start_server

    title = f"{Fore.CYAN}{Style.BRIGHT}Drysland Server Bootup{Style.RESET_ALL}" if _COLOR_ENABLED else "Drysland Server Bootup"

    def label(text: str) -> str:
        return f"{Fore.YELLOW}{text}{Style.RESET_ALL}" if _COLOR_ENABLED else text

    def value(val: str | int) -> str:
        return f"{Fore.GREEN}{val}{Style.RESET_ALL}" if _COLOR_ENABLED else str(val)

    debug_panel = os.getenv("DRYSLAND_DEBUG_PANEL", "0").lower() in ("1", "true", "yes", "on")
    divider = (Fore.MAGENTA + "=" * 40 + Style.RESET_ALL) if _COLOR_ENABLED else "=" * 40
    lines = [
        divider,
        f"  {title}",
        divider,
        f"  {label('Host:'):12} {value(host)}",
        f"  {label('Port:'):12} {value(port)}",
        f"  {label('Database:'):12} {value(db_banner)}",
        f"  {label('WebSockets:'):12} {value('enabled')}",
        f"  {label('Debug Panel:'):12} {value('YES' if debug_panel else 'NO')}",
        divider,
        "",
    ]
    print("\n".join(lines))
    debug = bool(getattr(args, "debug", False) or os.getenv("FLASK_DEBUG") == "1")
    log.info(event="startup", host=host, port=port, db=db_banner, debug=debug)
    start_server(host=host, port=port, debug=debug)
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
