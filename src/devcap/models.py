from __future__ import annotations

import dataclasses
import datetime as dt
from typing import Optional

GITHUB = "github"
GITLAB = "gitlab"
BITBUCKET = "bitbucket"
GITLAB_SELF_HOSTED = "gitlab_self_hosted"
CUSTOM = "custom"

_ORIGIN_LABELS = {
    GITHUB: "GitHub",
    GITLAB: "GitLab",
    BITBUCKET: "Bitbucket",
    GITLAB_SELF_HOSTED: "GitLab (self-hosted)",
}


def strip_type_prefix(message: str) -> str:
    colon = message.find(":")
    paren = message.find("(")
    # a scope may itself contain ':' as in "fix(a:b): msg"
    if 0 <= paren < colon:
        close = message.find(")", paren)
        if close != -1:
            after = message.find(":", close)
            if after != -1:
                colon = after
    if colon == -1:
        return message
    return message[colon + 1 :].lstrip()


@dataclasses.dataclass(frozen=True)
class RepoOrigin:
    kind: str
    host: str = ""  # only set for CUSTOM

    @classmethod
    def github(cls) -> RepoOrigin:
        return cls(GITHUB)

    @classmethod
    def gitlab(cls) -> RepoOrigin:
        return cls(GITLAB)

    @classmethod
    def bitbucket(cls) -> RepoOrigin:
        return cls(BITBUCKET)

    @classmethod
    def gitlab_self_hosted(cls) -> RepoOrigin:
        return cls(GITLAB_SELF_HOSTED)

    @classmethod
    def custom(cls, host: str) -> RepoOrigin:
        return cls(CUSTOM, host)

    @property
    def label(self) -> str:
        if self.kind == CUSTOM:
            return self.host
        return _ORIGIN_LABELS[self.kind]

    def __str__(self) -> str:
        return self.label


@dataclasses.dataclass(frozen=True)
class Commit:
    hash: str
    message: str
    commit_type: Optional[str]
    timestamp: dt.datetime
    relative_time: str

    @property
    def display_message(self) -> str:
        if self.commit_type is None:
            return self.message
        return strip_type_prefix(self.message)


@dataclasses.dataclass(frozen=True)
class BranchLog:
    name: str
    commits: tuple[Commit, ...]  # newest first, never empty

    def latest_activity(self) -> Optional[str]:
        if not self.commits:
            return None
        return self.commits[0].relative_time


@dataclasses.dataclass(frozen=True)
class ProjectLog:
    project: str
    path: str
    origin: Optional[RepoOrigin]
    branches: tuple[BranchLog, ...]  # never empty
    remote_url: Optional[str] = None

    def total_commits(self) -> int:
        """Distinct commits across all branches; a hash reachable from several branches counts once."""
        return len({c.hash for b in self.branches for c in b.commits})

    def latest_commit(self) -> Optional[Commit]:
        heads = [b.commits[0] for b in self.branches if b.commits]
        if not heads:
            return None
        return max(heads, key=lambda c: c.timestamp)

    def latest_timestamp(self) -> Optional[dt.datetime]:
        c = self.latest_commit()
        return c.timestamp if c is not None else None

    def latest_activity(self) -> Optional[str]:
        c = self.latest_commit()
        return c.relative_time if c is not None else None


@dataclasses.dataclass(frozen=True)
class SkippedRepo:
    path: str
    reason: str  # "no_branches" | "no_commits"


@dataclasses.dataclass(frozen=True)
class CaptureResult:
    projects: tuple[ProjectLog, ...]
    skipped: tuple[SkippedRepo, ...]
    repo_count: int

    @property
    def is_empty(self) -> bool:
        return not self.projects
