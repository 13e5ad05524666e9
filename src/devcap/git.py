from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

from .models import RepoOrigin

logger = logging.getLogger(__name__)

SKIP_DIRNAMES = frozenset(
    {
        "node_modules",
        "vendor",
        "target",
        ".bundle",
        "Pods",
        ".build",
        "dist",
        "build",
        ".next",
        ".cache",
    }
)

DEFAULT_TIMEOUT_S = 60


def run_git(args: list[str], cwd: Path, timeout_s: float = DEFAULT_TIMEOUT_S) -> tuple[int, str, str]:
    try:
        proc = subprocess.run(
            ["git", *args],
            cwd=str(cwd),
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout_s,
        )
    except subprocess.TimeoutExpired:
        logger.debug("git %s timed out after %ss in %s", " ".join(args), timeout_s, cwd)
        return -1, "", f"timed out after {timeout_s}s"
    except OSError as e:
        logger.debug("git %s failed to start in %s: %s", " ".join(args), cwd, e)
        return -1, "", str(e)
    return proc.returncode, proc.stdout, proc.stderr


def discover_git_roots(root: Path, exclude_dirnames: frozenset[str] | set[str] = SKIP_DIRNAMES) -> list[Path]:
    roots: list[Path] = []

    def onerror(err: OSError) -> None:
        logger.debug("skipping unreadable directory: %s", err)

    for dirpath, dirnames, filenames in os.walk(root, onerror=onerror):
        if ".git" in dirnames:
            roots.append(Path(dirpath))
            dirnames[:] = []
            continue
        dirnames[:] = [d for d in dirnames if d not in exclude_dirnames]
    return roots


def get_global_user_name() -> str:
    code, out, _ = run_git(["config", "--global", "--get", "user.name"], cwd=Path.cwd())
    if code == 0:
        return out.strip()
    return ""


def list_branches(repo: Path, timeout_s: float = DEFAULT_TIMEOUT_S) -> list[str]:
    code, out, err = run_git(["branch", "--format=%(refname:short)"], cwd=repo, timeout_s=timeout_s)
    if code != 0:
        logger.debug("git branch failed in %s (exit %s): %s", repo, code, err.strip())
        return []
    return [line.strip() for line in out.splitlines() if line.strip()]


def log_branch_raw(
    repo: Path,
    branch: str,
    since_iso: Optional[str],
    until_iso: Optional[str],
    author: Optional[str],
    timeout_s: float = DEFAULT_TIMEOUT_S,
) -> str:
    """
    Run `git log` for one branch and return its raw stdout, or "" on failure.

    Records are `%h NUL %s NUL %aI`, one per line, newest first.
    """
    args = [
        "log",
        branch,
        "--format=%h%x00%s%x00%aI",
        "--no-merges",
    ]
    if since_iso:
        args.append(f"--after={since_iso}")
    if until_iso:
        args.append(f"--before={until_iso}")
    if author:
        args.append(f"--author={author}")
    args.append("--")
    code, out, err = run_git(args, cwd=repo, timeout_s=timeout_s)
    if code != 0:
        logger.debug("git log %s failed in %s (exit %s): %s", branch, repo, code, err.strip())
        return ""
    return out


def get_remote_origin(repo: Path, timeout_s: float = DEFAULT_TIMEOUT_S) -> str:
    code, out, _ = run_git(["config", "--get", "remote.origin.url"], cwd=repo, timeout_s=timeout_s)
    if code == 0:
        return out.strip()
    return ""


def extract_hostname(url: str) -> Optional[str]:
    r = (url or "").strip()
    if not r:
        return None

    # scp-like: user@host:path
    if "://" not in r:
        if ":" not in r or "@" not in r.split(":", 1)[0]:
            return None
        left = r.split(":", 1)[0]
        host = left.split("@", 1)[1]
        return host or None

    try:
        parsed = urlparse(r)
        host = parsed.hostname
    except ValueError:
        return None
    if not parsed.scheme or not host:
        return None
    # urlparse lowercases hostname; keep the original spelling for Custom(...)
    netloc = parsed.netloc.rsplit("@", 1)[-1]
    if netloc.startswith("["):
        return host
    return netloc.split(":", 1)[0] or None


def classify_host(hostname: str) -> RepoOrigin:
    lower = hostname.lower()
    if lower == "github.com":
        return RepoOrigin.github()
    if lower == "gitlab.com":
        return RepoOrigin.gitlab()
    if lower == "bitbucket.org":
        return RepoOrigin.bitbucket()
    if "gitlab" in lower:
        return RepoOrigin.gitlab_self_hosted()
    return RepoOrigin.custom(hostname)


def detect_origin(repo: Path, timeout_s: float = DEFAULT_TIMEOUT_S) -> tuple[Optional[RepoOrigin], Optional[str]]:
    url = get_remote_origin(repo, timeout_s=timeout_s)
    if not url:
        return None, None
    host = extract_hostname(url)
    if host is None:
        logger.debug("unrecognized remote url in %s: %s", repo, url)
        return None, url
    return classify_host(host), url
