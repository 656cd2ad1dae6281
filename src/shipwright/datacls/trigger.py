"""
Pipeline trigger events.

A run starts either from a pushed tag or from a manual dispatch. The tag name
is informational only: the release version always comes from the manifest.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

import git
from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..exceptions import TriggerError
from ..rules.version import Version

logger = logging.getLogger(__name__)


def pick_release_tag(names: List[str]) -> str:
    """
    Highest semantic version among ``names`` (an optional leading 'v' is ignored);
    when none of them parses, the last name in string order.
    """
    versions = []
    for name in sorted(names):
        candidate = name[1:] if name[:1] in ("v", "V") else name
        if Version.is_valid(candidate):
            versions.append((Version(candidate), name))
    if versions:
        return max(versions, key=lambda item: item[0])[1]
    return sorted(names)[-1]


class TriggerKind(str, Enum):
    TAG = "tag"
    MANUAL = "manual"


class TriggerEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: TriggerKind
    ref: Optional[str] = None
    commit: Optional[str] = None
    # seconds since epoch of the triggering commit; feeds SOURCE_DATE_EPOCH
    commit_time: Optional[int] = Field(None, ge=0)

    @model_validator(mode='after')
    def check_ref(self) -> 'TriggerEvent':
        if self.kind == TriggerKind.TAG and not self.ref:
            raise TriggerError("A tag trigger requires a tag ref.")
        return self

    @classmethod
    def tag(cls, ref: str, commit: Optional[str] = None, commit_time: Optional[int] = None) -> 'TriggerEvent':
        if ref.startswith("refs/tags/"):
            ref = ref[len("refs/tags/"):]
        return cls(kind=TriggerKind.TAG, ref=ref, commit=commit, commit_time=commit_time)

    @classmethod
    def manual(cls, commit: Optional[str] = None, commit_time: Optional[int] = None) -> 'TriggerEvent':
        return cls(kind=TriggerKind.MANUAL, commit=commit, commit_time=commit_time)

    @classmethod
    def from_repo(cls, path: Union[str, Path] = ".") -> 'TriggerEvent':
        """
        Derive the trigger from a git checkout: a tag pointing at HEAD makes it a
        tag trigger, otherwise it is a manual dispatch of the current commit.
        """
        try:
            repo = git.Repo(str(path), search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise TriggerError(f"Not a git repository: {path} ({e})")

        try:
            head = repo.head.commit
        except ValueError as e:
            raise TriggerError(f"Repository at {path} has no commits: {e}")

        tags = [t.name for t in repo.tags if t.commit == head]
        commit_time = int(head.committed_date)
        if tags:
            chosen = pick_release_tag(tags)
            logger.debug(f"HEAD {head.hexsha[:12]} is tagged {sorted(tags)}, using '{chosen}'.")
            return cls.tag(chosen, commit=head.hexsha, commit_time=commit_time)
        logger.debug(f"HEAD {head.hexsha[:12]} carries no tag, treating as manual dispatch.")
        return cls.manual(commit=head.hexsha, commit_time=commit_time)

    def describe(self) -> str:
        if self.kind == TriggerKind.TAG:
            return f"tag '{self.ref}'"
        return "manual dispatch"
