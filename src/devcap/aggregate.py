from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from .models import BranchLog, ProjectLog

PRIMARY_BRANCHES = ("main", "master")


def is_primary_branch(name: str) -> bool:
    return name in PRIMARY_BRANCHES


def sort_branches(branches: Iterable[BranchLog]) -> list[BranchLog]:
    return sorted(branches, key=lambda b: (0 if is_primary_branch(b.name) else 1, b.name))


def sort_projects(projects: Iterable[ProjectLog]) -> list[ProjectLog]:
    """Most recently active project first; projects without a timestamp last."""

    def sort_key(p: ProjectLog) -> tuple[int, float, str, str]:
        latest: Optional[dt.datetime] = p.latest_timestamp()
        if latest is None:
            return (1, 0.0, p.project, p.path)
        return (0, -latest.timestamp(), p.project, p.path)

    return sorted(projects, key=sort_key)


def aggregate(results: Iterable[Optional[ProjectLog]]) -> list[ProjectLog]:
    return sort_projects(p for p in results if p is not None)


def total_commits(projects: Iterable[ProjectLog]) -> int:
    return sum(p.total_commits() for p in projects)


def summary_line(projects: list[ProjectLog]) -> str:
    commits = total_commits(projects)
    count = len(projects)
    if commits == 0:
        return "No commits found."
    commit_word = "commit" if commits == 1 else "commits"
    project_word = "project" if count == 1 else "projects"
    return f"Found {commits} {commit_word} in {count} {project_word}"
