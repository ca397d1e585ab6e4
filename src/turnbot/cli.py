from __future__ import annotations

import argparse
import json
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import Any, Optional

from . import __version__
from .daemon.monitor import TurnMonitor
from .kernel.players import ConfigError
from .kernel.scanner import ScanError
from .kernel.settings import config_to_public_dict, load_config, log_config_summary
from .ports.notify.discord import DiscordWebhookNotifier
from .util.obslog import setup_root_json_logging

logger = logging.getLogger("turnbot.cli")


def _print_json(obj: Any) -> None:
    print(json.dumps(obj, ensure_ascii=False, indent=2))


def _path_or_none(value: Optional[str]) -> Optional[Path]:
    s = str(value or "").strip()
    return Path(s).expanduser() if s else None


def cmd_check(args: argparse.Namespace) -> int:
    try:
        cfg = load_config(config_path=_path_or_none(args.config), env_file=_path_or_none(args.env_file))
    except ConfigError as e:
        _print_json({"ok": False, "error": {"code": "invalid_config", "message": str(e)}})
        return 1
    _print_json({"ok": True, "config": config_to_public_dict(cfg)})
    return 0


def cmd_run(args: argparse.Namespace) -> int:
    setup_root_json_logging(component="turnbot", level=str(args.log_level or "INFO"))
    try:
        cfg = load_config(config_path=_path_or_none(args.config), env_file=_path_or_none(args.env_file))
    except ConfigError as e:
        logger.error(f"Failed to load configuration: {e}. Check USER_MAPPINGS (e.g. '1 User1 ID1,2 User2 ID2').")
        return 1

    if args.log_level is None and cfg.log_level:
        setup_root_json_logging(component="turnbot", level=cfg.log_level, force=True)
    log_config_summary(cfg)

    notifier = DiscordWebhookNotifier(cfg.webhook_url, cfg.game_name)
    monitor = TurnMonitor(cfg, notifier)
    try:
        monitor.seed()
    except ScanError as e:
        logger.error(f"Cannot start monitoring: {e}")
        return 1

    if args.once:
        monitor.tick()
        return 0

    stop_event = threading.Event()

    def _signal_handler(signum: int, frame: Any) -> None:
        logger.info(f"Received signal {signum}, stopping...")
        stop_event.set()

    signal.signal(signal.SIGTERM, _signal_handler)
    signal.signal(signal.SIGINT, _signal_handler)

    monitor.run_forever(stop_event)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="turnbot",
        description="Watch a play-by-email save folder and ping the next player on Discord",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd", required=True)

    def _common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--config", default="", help="YAML config file (environment variables override it)")
        p.add_argument("--env-file", default="", help="dotenv file to load when USER_MAPPINGS/GAME_NAME are unset")

    p_run = sub.add_parser("run", help="Monitor the save directory in the foreground")
    _common(p_run)
    p_run.add_argument("--once", action="store_true", help="Seed, run a single tick, then exit")
    p_run.add_argument("--log-level", default=None, help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ...)")
    p_run.set_defaults(func=cmd_run)

    p_check = sub.add_parser("check", help="Validate configuration and print it (IDs masked)")
    _common(p_check)
    p_check.set_defaults(func=cmd_check)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    sys.exit(main())
