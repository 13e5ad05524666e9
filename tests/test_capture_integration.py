from __future__ import annotations

import datetime as dt
import os
import shutil
import subprocess
from pathlib import Path

import pytest

from devcap.models import RepoOrigin
from devcap.periods import DAYS, TODAY, Period, TimeRange
from devcap.run import capture

pytestmark = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")

AUTHOR = "Test User"


def _run(cmd: list[str], *, cwd: Path, env: dict[str, str] | None = None) -> str:
    proc = subprocess.run(cmd, cwd=str(cwd), env=env, check=True, capture_output=True, text=True)
    return proc.stdout


def _git_env(when: dt.datetime, author: str = AUTHOR) -> dict[str, str]:
    env = os.environ.copy()
    stamp = when.isoformat(timespec="seconds")
    env["GIT_AUTHOR_NAME"] = author
    env["GIT_AUTHOR_EMAIL"] = "test@example.com"
    env["GIT_COMMITTER_NAME"] = author
    env["GIT_COMMITTER_EMAIL"] = "test@example.com"
    env["GIT_AUTHOR_DATE"] = stamp
    env["GIT_COMMITTER_DATE"] = stamp
    return env


def _init_repo(repo: Path, *, remote: str = "") -> None:
    repo.mkdir(parents=True, exist_ok=True)
    _run(["git", "init", "-q"], cwd=repo)
    _run(["git", "symbolic-ref", "HEAD", "refs/heads/main"], cwd=repo)
    _run(["git", "config", "commit.gpgsign", "false"], cwd=repo)
    if remote:
        _run(["git", "remote", "add", "origin", remote], cwd=repo)


def _commit(repo: Path, message: str, when: dt.datetime, author: str = AUTHOR) -> str:
    name = f"f{len(list(repo.glob('f*.txt')))}.txt"
    (repo / name).write_text(message + "\n", encoding="utf-8")
    _run(["git", "add", name], cwd=repo)
    _run(["git", "commit", "-q", "-m", message], cwd=repo, env=_git_env(when, author))
    return _run(["git", "rev-parse", "--short", "HEAD"], cwd=repo).strip()


@pytest.fixture()
def now() -> dt.datetime:
    return dt.datetime.now().astimezone().replace(microsecond=0)


def test_capture_builds_ordered_report(tmp_path: Path, now: dt.datetime) -> None:
    root = tmp_path / "work"

    api = root / "api"
    _init_repo(api, remote="git@github.com:org/api.git")
    base = _commit(api, "feat(auth): add OAuth", now - dt.timedelta(hours=5))
    _run(["git", "checkout", "-q", "-b", "feature/x"], cwd=api)
    topic = _commit(api, "fix: handle empty token", now - dt.timedelta(hours=1))
    _run(["git", "checkout", "-q", "main"], cwd=api)

    web = root / "clients" / "web"
    _init_repo(web, remote="https://gitlab.company.internal/group/web")
    _commit(web, "update README", now - dt.timedelta(hours=3))

    stale = root / "stale"
    _init_repo(stale)
    _commit(stale, "ancient", now - dt.timedelta(days=400))

    buried = root / "node_modules" / "dep"
    _init_repo(buried)
    _commit(buried, "should never be seen", now - dt.timedelta(minutes=10))

    result = capture(root, Period(DAYS, 1), AUTHOR, jobs=2, now=now)

    assert result.repo_count == 3
    assert [p.project for p in result.projects] == ["api", "web"]
    assert [(s.path, s.reason) for s in result.skipped] == [(str(stale.resolve()), "no_commits")]

    api_log = result.projects[0]
    assert api_log.path == str(api.resolve())
    assert api_log.origin == RepoOrigin.github()
    assert api_log.remote_url == "git@github.com:org/api.git"
    assert [b.name for b in api_log.branches] == ["main", "feature/x"]
    assert [c.hash for c in api_log.branches[0].commits] == [base]
    assert [c.hash for c in api_log.branches[1].commits] == [topic, base]
    assert api_log.total_commits() == 2
    assert api_log.branches[1].commits[0].relative_time == "1h ago"
    assert api_log.branches[0].commits[0].commit_type == "feat"
    assert api_log.branches[0].commits[0].display_message == "add OAuth"

    web_log = result.projects[1]
    assert web_log.origin == RepoOrigin.gitlab_self_hosted()
    assert web_log.branches[0].commits[0].commit_type is None


def test_capture_filters_by_author(tmp_path: Path, now: dt.datetime) -> None:
    repo = tmp_path / "repo"
    _init_repo(repo)
    _commit(repo, "mine", now - dt.timedelta(hours=2))
    _commit(repo, "theirs", now - dt.timedelta(hours=1), author="Someone Else")

    mine = capture(tmp_path, Period(DAYS, 1), AUTHOR, now=now)
    assert [c.message for c in mine.projects[0].branches[0].commits] == ["mine"]

    everyone = capture(tmp_path, Period(DAYS, 1), None, now=now)
    assert [c.message for c in everyone.projects[0].branches[0].commits] == ["theirs", "mine"]

    nobody = capture(tmp_path, Period(DAYS, 1), "Nobody Here", now=now)
    assert nobody.projects == ()
    assert nobody.repo_count == 1
    assert nobody.is_empty


def test_capture_respects_bounded_window(tmp_path: Path, now: dt.datetime) -> None:
    repo = tmp_path / "repo"
    _init_repo(repo)
    _commit(repo, "three days ago", now - dt.timedelta(days=3))
    _commit(repo, "two days ago", now - dt.timedelta(days=2))
    _commit(repo, "today", now - dt.timedelta(minutes=5))

    window = TimeRange(since=now - dt.timedelta(days=2, hours=12), until=now - dt.timedelta(days=1))
    result = capture(tmp_path, window, AUTHOR, now=now)
    assert [c.message for c in result.projects[0].branches[0].commits] == ["two days ago"]


def test_capture_excludes_merge_commits(tmp_path: Path, now: dt.datetime) -> None:
    repo = tmp_path / "repo"
    _init_repo(repo)
    _commit(repo, "base", now - dt.timedelta(hours=4))
    _run(["git", "checkout", "-q", "-b", "topic"], cwd=repo)
    _commit(repo, "topic work", now - dt.timedelta(hours=3))
    _run(["git", "checkout", "-q", "main"], cwd=repo)
    _commit(repo, "main work", now - dt.timedelta(hours=2))
    _run(
        ["git", "merge", "-q", "--no-ff", "--no-edit", "-m", "Merge branch 'topic'", "topic"],
        cwd=repo,
        env=_git_env(now - dt.timedelta(hours=1)),
    )

    result = capture(tmp_path, Period(DAYS, 1), AUTHOR, now=now)
    main = result.projects[0].branches[0]
    assert main.name == "main"
    assert "Merge branch 'topic'" not in [c.message for c in main.commits]
    assert result.projects[0].total_commits() == 3


def test_capture_empty_root(tmp_path: Path) -> None:
    result = capture(tmp_path, Period(TODAY), AUTHOR)
    assert result.repo_count == 0
    assert result.projects == ()
    assert result.skipped == ()


def test_capture_repo_without_commits_is_skipped(tmp_path: Path) -> None:
    _init_repo(tmp_path / "fresh")
    result = capture(tmp_path, Period(TODAY), None)
    assert result.repo_count == 1
    assert result.projects == ()
    assert [s.reason for s in result.skipped] == ["no_branches"]
