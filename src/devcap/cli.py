from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Optional

import pyperclip
from colorama import just_fix_windows_console

from .aggregate import summary_line
from .config import default_config_path, infer_author, load_config
from .git import DEFAULT_TIMEOUT_S
from .periods import Period, PeriodError, parse_period
from .render import DEPTH_COMMITS, DEPTHS, NO_COMMITS_MESSAGE, render_json, render_plain, render_text
from .run import capture, default_jobs

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="devcap",
        description="Aggregate git commits across repos for standups and time tracking.",
    )
    parser.add_argument("-p", "--period", type=str, default=None, help="Time period: today, yesterday, 24h, 3d, 7d, week (default: today).")
    parser.add_argument("--path", type=Path, default=None, help="Root directory to scan for git repos (default: current directory).")
    parser.add_argument("-a", "--author", type=str, default=None, help="Filter by author name (defaults to git config user.name).")
    parser.add_argument("--all-authors", action="store_true", help="Include commits from every author.")
    parser.add_argument("--json", action="store_true", help="Output as JSON.")
    parser.add_argument("--no-color", action="store_true", help="Disable colored output (overrides TTY auto-detection).")
    parser.add_argument("-d", "--depth", choices=DEPTHS, default=None, help="Output depth: projects, branches, commits (default: commits).")
    parser.add_argument("-o", "--show-origin", action="store_true", help="Show repository origin (GitHub, GitLab, etc.).")
    parser.add_argument("-j", "--jobs", type=int, default=None, help="Parallel git jobs.")
    parser.add_argument("--timeout", type=float, default=None, help=f"Seconds before a git call is abandoned (default: {DEFAULT_TIMEOUT_S}).")
    parser.add_argument("--copy", action="store_true", help="Copy the report to the clipboard as plain text (for stand-ups).")
    parser.add_argument("--config", type=Path, default=None, help=f"Path to config file (default: ~/{default_config_path().name}).")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log skipped repositories and git failures to stderr.")
    return parser


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_period(cli_value: Optional[str], config: dict[str, Any]) -> Period:
    if cli_value is not None:
        return parse_period(cli_value)
    cfg_value = config.get("period")
    if cfg_value:
        try:
            return parse_period(cfg_value)
        except PeriodError as e:
            logger.warning("ignoring config period: %s", e)
    return parse_period("today")


def _resolve_author(args: argparse.Namespace, config: dict[str, Any]) -> Optional[str]:
    if args.all_authors:
        return None
    author = args.author or config.get("author") or infer_author()
    return author or None


def _use_color(args: argparse.Namespace, config: dict[str, Any]) -> bool:
    if args.no_color or args.json:
        return False
    if "color" in config:
        return bool(config["color"])
    return sys.stdout.isatty()


def _copy_to_clipboard(text: str) -> None:
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        print(f"Warning: clipboard unavailable: {e}", file=sys.stderr)
        return
    print("Copied to clipboard.", file=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    parser = _build_parser()
    args = parser.parse_args(argv)
    if args.json and args.depth is not None:
        parser.error("--depth cannot be used with --json")
    if args.jobs is not None and args.jobs < 1:
        parser.error("--jobs must be at least 1")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be positive")

    _setup_logging(bool(args.verbose))

    config = load_config(args.config if args.config is not None else default_config_path())

    try:
        period = _resolve_period(args.period, config)
    except PeriodError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    root = args.path or Path(config.get("path") or ".").expanduser()
    author = _resolve_author(args, config)
    show_origin = bool(args.show_origin or config.get("show_origin", False))
    color = _use_color(args, config)
    jobs = args.jobs or config.get("jobs") or default_jobs()
    timeout_s = args.timeout or config.get("timeout") or DEFAULT_TIMEOUT_S
    if timeout_s <= 0:
        timeout_s = DEFAULT_TIMEOUT_S
    depth = args.depth or DEPTH_COMMITS

    if not args.json:
        who = author if author else "all authors"
        print(f"Scanning {root} for {who} ({period.label})...", file=sys.stderr)

    result = capture(root, period, author, jobs=max(1, int(jobs)), timeout_s=float(timeout_s))

    if result.repo_count == 0:
        if args.json:
            print("[]")
        else:
            print(f"No git repositories found in: {root}", file=sys.stderr)
        return 0

    projects = list(result.projects)
    if args.verbose:
        for skip in result.skipped:
            print(f"skipped {skip.path}: {skip.reason}", file=sys.stderr)

    if args.json:
        print(render_json(projects))
    elif not projects:
        print(NO_COMMITS_MESSAGE, file=sys.stderr)
    else:
        print(f"✓ {summary_line(projects)}", file=sys.stderr)
        if color:
            just_fix_windows_console()
        print("")
        print(render_text(projects, depth=depth, show_origin=show_origin, color=color))

    if args.copy:
        _copy_to_clipboard(render_plain(projects, depth=depth, show_origin=show_origin))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
