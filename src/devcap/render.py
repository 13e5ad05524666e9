from __future__ import annotations

import json
from typing import Any

from colorama import Fore, Style

from .models import BranchLog, Commit, ProjectLog

DEPTH_PROJECTS = "projects"
DEPTH_BRANCHES = "branches"
DEPTH_COMMITS = "commits"
DEPTHS = (DEPTH_PROJECTS, DEPTH_BRANCHES, DEPTH_COMMITS)

NO_COMMITS_MESSAGE = "No commits found for the given period."

_TYPE_COLORS = {
    "feat": Fore.GREEN + Style.BRIGHT,
    "fix": Fore.RED + Style.BRIGHT,
    "refactor": Fore.CYAN,
    "docs": Fore.BLUE,
    "test": Fore.YELLOW,
    "style": Fore.YELLOW,
    "perf": Fore.MAGENTA,
}


class Painter:
    """ANSI styling that collapses to plain text when color is off."""

    def __init__(self, color: bool) -> None:
        self.color = color

    def paint(self, text: str, style: str) -> str:
        if not self.color or not style:
            return text
        return f"{style}{text}{Style.RESET_ALL}"

    def dim(self, text: str) -> str:
        return self.paint(text, Style.DIM)

    def project(self, text: str) -> str:
        return self.paint(text, Style.BRIGHT + Fore.WHITE)

    def marker(self, text: str) -> str:
        return self.paint(text, Style.BRIGHT + Fore.CYAN)

    def branch(self, text: str) -> str:
        return self.paint(text, Fore.GREEN)

    def commit_type(self, commit_type: str) -> str:
        return self.paint(commit_type, _TYPE_COLORS.get(commit_type, Style.DIM))


def origin_suffix(project: ProjectLog, show_origin: bool) -> str:
    if not show_origin or project.origin is None:
        return ""
    return f" [{project.origin.label}]"


def _project_summary(p: Painter, project: ProjectLog, show_origin: bool) -> list[str]:
    commits = project.total_commits()
    branches = len(project.branches)
    latest = project.latest_activity() or "-"
    summary = p.dim(f"({commits} commits, {branches} branches, {latest})")
    return [f"{p.marker('::')} {p.project(project.project)}{origin_suffix(project, show_origin)}  {summary}"]


def _project_with_branches(p: Painter, project: ProjectLog, show_origin: bool) -> list[str]:
    latest = project.latest_activity() or "-"
    lines = [f"{p.marker('::')} {p.project(project.project)}{origin_suffix(project, show_origin)}  {p.dim(f'({latest})')}"]
    for branch in project.branches:
        branch_latest = branch.latest_activity() or "-"
        summary = p.dim(f"({len(branch.commits)} commits, {branch_latest})")
        lines.append(f"  {p.branch('>>')} {p.branch(branch.name)}  {summary}")
    return lines


def _commit_line(p: Painter, commit: Commit) -> str:
    head = f"    {p.dim('*')} {p.dim(commit.hash)}"
    if commit.commit_type:
        head += f" {p.commit_type(commit.commit_type)}"
    return f"{head} - {commit.display_message}  {p.dim(commit.relative_time)}"


def _branch_full(p: Painter, branch: BranchLog) -> list[str]:
    lines = [f"  {p.branch('>>')} {p.branch(branch.name)}"]
    lines.extend(_commit_line(p, c) for c in branch.commits)
    return lines


def _project_full(p: Painter, project: ProjectLog, show_origin: bool) -> list[str]:
    lines = [f"{p.marker('::')} {p.project(project.project)}{origin_suffix(project, show_origin)}"]
    for branch in project.branches:
        lines.extend(_branch_full(p, branch))
    return lines


def render_text(projects: list[ProjectLog], *, depth: str = DEPTH_COMMITS, show_origin: bool = False, color: bool = False) -> str:
    if depth not in DEPTHS:
        raise ValueError(f"Unknown depth: {depth!r} (expected one of: {', '.join(DEPTHS)})")
    if not projects:
        return NO_COMMITS_MESSAGE

    p = Painter(color)
    blocks: list[str] = []
    for project in projects:
        if depth == DEPTH_PROJECTS:
            lines = _project_summary(p, project, show_origin)
        elif depth == DEPTH_BRANCHES:
            lines = _project_with_branches(p, project, show_origin)
        else:
            lines = _project_full(p, project, show_origin)
        blocks.append("\n".join(lines))
    sep = "\n" if depth == DEPTH_PROJECTS else "\n\n"
    return sep.join(blocks)


def render_plain(projects: list[ProjectLog], *, depth: str = DEPTH_COMMITS, show_origin: bool = False) -> str:
    return render_text(projects, depth=depth, show_origin=show_origin, color=False)


def commit_to_dict(c: Commit) -> dict[str, Any]:
    out: dict[str, Any] = {"hash": c.hash, "message": c.message}
    if c.commit_type is not None:
        out["commit_type"] = c.commit_type
    out["timestamp"] = c.timestamp.isoformat()
    out["relative_time"] = c.relative_time
    return out


def project_to_dict(project: ProjectLog) -> dict[str, Any]:
    out: dict[str, Any] = {"project": project.project, "path": project.path}
    if project.origin is not None:
        out["origin"] = project.origin.label
    if project.remote_url:
        out["remote_url"] = project.remote_url
    out["branches"] = [{"name": b.name, "commits": [commit_to_dict(c) for c in b.commits]} for b in project.branches]
    return out


def render_json(projects: list[ProjectLog]) -> str:
    return json.dumps([project_to_dict(p) for p in projects], indent=2, ensure_ascii=False)
