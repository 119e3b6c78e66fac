"""Commit history models, parsed from the GitHub commits API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

SHORT_SHA_LEN = 7


class UserInfo(BaseModel):
    """Author or committer identity."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str


class CommitInfo(BaseModel):
    """One commit of the tracked branch.

    Examples
    --------
    >>> from datetime import datetime, timezone
    >>> ts = datetime(2026, 1, 2, 3, 4, tzinfo=timezone.utc)
    >>> c = CommitInfo(
    ...     sha="0123456789abcdef", author=UserInfo(name="a", email="a@x"),
    ...     author_date=ts, committer=UserInfo(name="a", email="a@x"),
    ...     commit_date=ts, message="Fix parser\\n\\nDetails", view_url="https://x",
    ... )
    >>> c.sha_short, c.message_headline
    ('0123456', 'Fix parser')
    """

    model_config = ConfigDict(frozen=True)

    sha: str
    author: UserInfo
    author_date: datetime
    committer: UserInfo
    commit_date: datetime
    message: str
    view_url: str

    @property
    def sha_short(self) -> str:
        return self.sha[:SHORT_SHA_LEN]

    @property
    def message_headline(self) -> str:
        return self.message.split("\n", 1)[0]

    def author_date_str(self) -> str:
        """Author date in local time, ``YYYY-MM-DD HH:MM``."""
        return self.author_date.astimezone().strftime("%Y-%m-%d %H:%M")

    @classmethod
    def from_github(cls, data: dict[str, Any]) -> CommitInfo:
        """Build from one element of ``GET /repos/{repo}/commits``."""
        commit = data["commit"]
        author = commit["author"]
        committer = commit["committer"]
        return cls(
            sha=data["sha"],
            author=UserInfo(name=author["name"], email=author["email"]),
            author_date=author["date"],
            committer=UserInfo(name=committer["name"], email=committer["email"]),
            commit_date=committer["date"],
            message=commit["message"],
            view_url=data["html_url"],
        )
