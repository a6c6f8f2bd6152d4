"""GitHub remote URL matching and rewriting.

Two URL shapes are recognized, each with an optional ``.git`` suffix:

- SSH:   git@github.com:owner/repo.git
- HTTPS: https://github.com/owner/repo.git

Owners are compared case-insensitively.
"""

import re
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from username_migrator.core.exceptions import PatternError
from username_migrator.core.models.repository import MatchedRemote, Remote

GITHUB_HOST = "github.com"
GIT_SUFFIX = ".git"


@lru_cache(maxsize=16)
def _url_patterns(host: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    escaped = re.escape(host)
    ssh = re.compile(rf"git@{escaped}:([^/]+)/(.+?)(?:\.git)?")
    https = re.compile(rf"https://{escaped}/([^/]+)/(.+?)(?:\.git)?")
    return ssh, https


def _parse(url: str, host: str) -> tuple[str, str, str, str] | None:
    """Split a URL into (shape, owner, repo, suffix)."""
    ssh, https = _url_patterns(host)
    suffix = GIT_SUFFIX if url.endswith(GIT_SUFFIX) else ""
    for shape, pattern in (("ssh", ssh), ("https", https)):
        match = pattern.fullmatch(url)
        if match:
            return shape, match.group(1), match.group(2), suffix
    return None


def is_github_url(url: str, host: str = GITHUB_HOST) -> bool:
    return _parse(url, host) is not None


def extract_owner(url: str, host: str = GITHUB_HOST) -> str | None:
    """Return the owner segment of a recognized URL, else None."""
    parsed = _parse(url, host)
    return parsed[1] if parsed else None


def owner_equals(url: str, candidate: str, host: str = GITHUB_HOST) -> bool:
    owner = extract_owner(url, host)
    return owner is not None and owner.lower() == candidate.lower()


def rename_owner(url: str, old_owner: str, new_owner: str, host: str = GITHUB_HOST) -> str:
    """Swap the owner of a recognized URL.

    The URL is returned unchanged unless its owner equals ``old_owner``
    (case-insensitively). Presence of the ``.git`` suffix is preserved.
    """
    parsed = _parse(url, host)
    if parsed is None:
        return url

    shape, owner, repo, suffix = parsed
    if owner.lower() != old_owner.lower():
        return url

    if shape == "ssh":
        return f"git@{host}:{new_owner}/{repo}{suffix}"
    return f"https://{host}/{new_owner}/{repo}{suffix}"


def compile_pattern(pattern: str) -> re.Pattern[str]:
    try:
        return re.compile(pattern)
    except re.error as e:
        raise PatternError(
            f"Invalid URL pattern {pattern!r}: {e}",
            details={"pattern": pattern},
        ) from e


_TEMPLATE_REF_RE = re.compile(r"\$(\$|&|\d{1,2})")


def expand_template(template: str, match: re.Match[str]) -> str:
    """Expand ``$N``, ``$NN``, ``$&`` and ``$$`` references in a template.

    References to groups that do not exist are kept literally; groups that
    did not take part in the match expand to an empty string.
    """
    group_count = match.re.groups

    def _group(index: int) -> str:
        return match.group(index) or ""

    def _replace(ref: re.Match[str]) -> str:
        token = ref.group(1)
        if token == "$":
            return "$"
        if token == "&":
            return match.group(0)
        if len(token) == 2 and 1 <= int(token) <= group_count:
            return _group(int(token))
        if 1 <= int(token[0]) <= group_count:
            return _group(int(token[0])) + token[1:]
        return ref.group(0)

    return _TEMPLATE_REF_RE.sub(_replace, template)


def apply_custom_pattern(url: str, from_pattern: str | re.Pattern[str], to_template: str) -> str:
    """Replace the first match of ``from_pattern`` in the URL using ``to_template``."""
    regex = compile_pattern(from_pattern) if isinstance(from_pattern, str) else from_pattern
    return regex.sub(lambda m: expand_template(to_template, m), url, count=1)


class CustomPattern(BaseModel):
    """A user supplied regex/replacement pair for URLs."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    from_pattern: str = Field(alias="from")
    to_template: str = Field(alias="to")


class _MatchModeBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    def matches(self, url: str) -> bool:
        raise NotImplementedError

    def rewrite(self, url: str) -> str:
        raise NotImplementedError

    def match_remotes(self, remotes: list[Remote]) -> list[MatchedRemote]:
        """Return the remotes this mode would actually change."""
        matched = []
        for remote in remotes:
            if not self.matches(remote.url):
                continue
            new_url = self.rewrite(remote.url)
            if new_url != remote.url:
                matched.append(MatchedRemote(remote=remote, new_url=new_url))
        return matched


class UsernameMode(_MatchModeBase):
    """Rewrite GitHub URLs owned by ``old_owner`` to ``new_owner``."""

    kind: Literal["username"] = "username"
    old_owner: str
    new_owner: str
    host: str = GITHUB_HOST

    @property
    def old_identifier(self) -> str:
        return self.old_owner

    @property
    def new_identifier(self) -> str:
        return self.new_owner

    def matches(self, url: str) -> bool:
        return owner_equals(url, self.old_owner, self.host)

    def rewrite(self, url: str) -> str:
        return rename_owner(url, self.old_owner, self.new_owner, self.host)


class PatternMode(_MatchModeBase):
    """Rewrite any URL matching a regular expression.

    Bypasses owner-based matching entirely. The regex is compiled on
    construction, so an invalid pattern fails before any scan starts.
    """

    kind: Literal["pattern"] = "pattern"
    from_pattern: str
    to_template: str

    _regex: re.Pattern[str] = PrivateAttr()

    def model_post_init(self, __context) -> None:
        self._regex = compile_pattern(self.from_pattern)

    @property
    def old_identifier(self) -> str:
        return self.from_pattern

    @property
    def new_identifier(self) -> str:
        return self.to_template

    def matches(self, url: str) -> bool:
        return self._regex.search(url) is not None

    def rewrite(self, url: str) -> str:
        return apply_custom_pattern(url, self._regex, self.to_template)


MatchMode = Annotated[UsernameMode | PatternMode, Field(discriminator="kind")]


def select_match_mode(
    old_owner: str,
    new_owner: str,
    custom_pattern: CustomPattern | None = None,
) -> UsernameMode | PatternMode:
    """Pick the matching mode for one scan or migration run."""
    if custom_pattern is not None:
        return PatternMode(
            from_pattern=custom_pattern.from_pattern,
            to_template=custom_pattern.to_template,
        )
    return UsernameMode(old_owner=old_owner, new_owner=new_owner)
