from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Optional

from .aggregate import sort_branches
from .git import DEFAULT_TIMEOUT_S, detect_origin, list_branches, log_branch_raw
from .models import BranchLog, Commit, ProjectLog, SkippedRepo
from .periods import TimeRange

logger = logging.getLogger(__name__)

FIELD_SEP = "\x00"

EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)

COMMIT_TYPES = frozenset({"feat", "fix", "refactor", "docs", "test", "chore", "perf", "ci", "build", "style"})


def detect_commit_type(message: str) -> Optional[str]:
    end = len(message)
    for ch in (":", "("):
        i = message.find(ch)
        if i != -1 and i < end:
            end = i
    prefix = message[:end].strip()
    if prefix in COMMIT_TYPES:
        return prefix
    return None


def format_relative(now: dt.datetime, then: dt.datetime) -> str:
    seconds = int((now - then).total_seconds())
    mins = seconds // 60
    if mins < 1:
        return "just now"
    if mins < 60:
        return f"{mins}m ago"
    if mins < 24 * 60:
        return f"{mins // 60}h ago"
    return f"{mins // (24 * 60)}d ago"


def parse_iso_timestamp(value: str) -> Optional[dt.datetime]:
    s = (value or "").strip()
    if not s:
        return None
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        d = dt.datetime.fromisoformat(s)
    except ValueError:
        return None
    if d.tzinfo is None:
        return None
    return d


def parse_commit_line(line: str, now: dt.datetime) -> Optional[Commit]:
    parts = line.split(FIELD_SEP)
    if len(parts) != 3:
        return None
    sha, subject, iso = parts
    ts = parse_iso_timestamp(iso)
    if ts is None or not sha:
        return None
    ts = ts.astimezone(now.tzinfo) if now.tzinfo is not None else ts
    return Commit(
        hash=sha,
        message=subject,
        commit_type=detect_commit_type(subject),
        timestamp=ts,
        relative_time=format_relative(now, ts),
    )


def parse_log_output(text: str, now: dt.datetime) -> list[Commit]:
    """
    Parse `git log --format=%h%x00%s%x00%aI` output.

    Exactly three NUL-separated fields per line; the timestamp must be
    ISO-8601 with an offset. Any other line is dropped and parsing goes on.
    """
    commits: list[Commit] = []
    for line in text.split("\n"):
        line = line.rstrip("\r")
        if not line:
            continue
        c = parse_commit_line(line, now)
        if c is None:
            logger.debug("dropping malformed log record: %r", line)
            continue
        commits.append(c)
    return commits


def log_branch(
    repo: Path,
    branch: str,
    time_range: TimeRange,
    author: Optional[str],
    now: dt.datetime,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> list[Commit]:
    out = log_branch_raw(
        repo,
        branch,
        # git cannot express bounds before the epoch; such windows are open-ended
        since_iso=time_range.since.isoformat(timespec="seconds") if time_range.since > EPOCH else None,
        until_iso=time_range.until.isoformat(timespec="seconds") if time_range.until is not None else None,
        author=author,
        timeout_s=timeout_s,
    )
    return parse_log_output(out, now)


def collect_project_log(
    repo: Path,
    time_range: TimeRange,
    author: Optional[str],
    now: dt.datetime,
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> tuple[Optional[ProjectLog], Optional[SkippedRepo]]:
    branches = list_branches(repo, timeout_s=timeout_s)
    if not branches:
        return None, SkippedRepo(path=str(repo), reason="no_branches")

    branch_logs: list[BranchLog] = []
    for name in branches:
        commits = log_branch(repo, name, time_range, author, now, timeout_s=timeout_s)
        if commits:
            branch_logs.append(BranchLog(name=name, commits=tuple(commits)))

    if not branch_logs:
        return None, SkippedRepo(path=str(repo), reason="no_commits")

    origin, remote_url = detect_origin(repo, timeout_s=timeout_s)
    project = ProjectLog(
        project=repo.name,
        path=str(repo),
        origin=origin,
        branches=tuple(sort_branches(branch_logs)),
        remote_url=remote_url,
    )
    return project, None
