from __future__ import annotations

import datetime as dt
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Optional

from .aggregate import aggregate
from .git import DEFAULT_TIMEOUT_S, SKIP_DIRNAMES, discover_git_roots
from .history import collect_project_log
from .models import CaptureResult, ProjectLog, SkippedRepo
from .periods import Period, TimeRange

logger = logging.getLogger(__name__)


def default_jobs() -> int:
    return max(1, min(8, (os.cpu_count() or 4)))


def capture(
    root: Path,
    period: Period | TimeRange,
    author: Optional[str] = None,
    *,
    jobs: int | None = None,
    timeout_s: float = DEFAULT_TIMEOUT_S,
    now: dt.datetime | None = None,
) -> CaptureResult:
    """
    Collect commits under `root` for `period` and return the ordered report.

    One worker task per repository; branches inside a repository are logged
    sequentially. Per-repository failures never abort the run.
    """
    if isinstance(period, Period):
        time_range = period.to_time_range(now)
    else:
        time_range = period
    if now is None:
        now = dt.datetime.now().astimezone()

    scan_root = root.resolve()
    repos = discover_git_roots(scan_root, SKIP_DIRNAMES)
    logger.debug("found %d repo roots under %s", len(repos), scan_root)
    if not repos:
        return CaptureResult(projects=(), skipped=(), repo_count=0)

    results: list[Optional[ProjectLog]] = []
    skipped: list[SkippedRepo] = []
    with ThreadPoolExecutor(max_workers=jobs or default_jobs()) as ex:
        futs = [ex.submit(collect_project_log, repo, time_range, author, now, timeout_s) for repo in repos]
        for fut in as_completed(futs):
            project, skip = fut.result()
            results.append(project)
            if skip is not None:
                logger.debug("skipped %s: %s", skip.path, skip.reason)
                skipped.append(skip)

    skipped.sort(key=lambda s: s.path)
    return CaptureResult(
        projects=tuple(aggregate(results)),
        skipped=tuple(skipped),
        repo_count=len(repos),
    )
