from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BuiltImage(BaseModel):
    """
    Result of assembling a target stage. Nothing is tagged yet; the fields
    are what a publisher needs to push the same content.
    """
    model_config = ConfigDict(frozen=True)

    target: str
    context: Path
    dockerfile: Path
    platforms: List[str] = Field(default_factory=list)
    build_args: Dict[str, str] = Field(default_factory=dict)
    # local image id, only known for single-platform builds loaded into the daemon
    image_id: Optional[str] = None
    user: str = "root"


class PublishedArtifact(BaseModel):
    """Content digest and the tags that point at it."""
    model_config = ConfigDict(frozen=True)

    digest: str
    tags: List[str] = Field(min_length=1)

    @model_validator(mode='after')
    def check_tags_unique(self) -> 'PublishedArtifact':
        if len(set(self.tags)) != len(self.tags):
            raise ValueError(f"Duplicate tags: {self.tags}")
        return self
