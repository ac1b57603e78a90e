"""Entry point for boardsync."""

import argparse
import logging
import sys

from boardsync.config import DEFAULT_PATH, ConfigError, read_config


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="boardsync", description="Live-synced kanban boards")
    parser.add_argument("--config", default=str(DEFAULT_PATH), help=f"Config file (default: {DEFAULT_PATH})")
    parser.add_argument("--board", help="Open this board id directly")
    return parser


def main():
    args = build_parser().parse_args()

    try:
        config = read_config(args.config)
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        sys.exit(1)

    # The TUI owns the terminal, so only log when there is somewhere to log to
    if config["log_file"]:
        logging.basicConfig(
            filename=config["log_file"],
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
            level=config["log_level"].upper(),
        )

    if not config["supabase_url"] or not config["supabase_key"]:
        print("error: set SUPABASE_URL and SUPABASE_KEY or supabase-url/supabase-key in the config", file=sys.stderr)
        sys.exit(1)

    from boardsync.ui import BoardsyncApp

    app = BoardsyncApp(config, board_id=args.board)
    app.run()


if __name__ == "__main__":
    main()
