from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .ops import AnyOp, Copy
from .. import constants
from ..exceptions import StageDefinitionError


def is_pinned(image: str) -> bool:
    """
    True when ``image`` names an exact version: a digest, or a tag other than ``latest``.
    """
    if "@sha256:" in image:
        return True
    # a ':' after the last '/' is a tag, otherwise it's a registry port
    name = image.rsplit("/", 1)[-1]
    if ":" not in name:
        return False
    tag = name.split(":", 1)[1]
    return bool(tag) and tag != constants.FLOATING_TAG


class Stage(BaseModel):
    """
    Immutable descriptor of one build stage.

    A stage either starts from a distribution image (``base_image``) or
    inherits a prior stage of the same plan, referenced by its index (``parent``).
    ``entrypoint`` of None means "inherit".
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    base_image: Optional[str] = None
    parent: Optional[int] = None
    ops: List[AnyOp] = Field(default_factory=list)
    entrypoint: Optional[List[str]] = None

    @model_validator(mode='after')
    def check_source(self) -> 'Stage':
        if (self.base_image is None) == (self.parent is None):
            raise StageDefinitionError(
                f"Stage '{self.name}' must have exactly one of 'base_image' or 'parent'."
            )
        if self.base_image is not None and not is_pinned(self.base_image):
            raise StageDefinitionError(
                f"Stage '{self.name}' uses floating base image '{self.base_image}'; pin an exact version."
            )
        if self.parent is not None and self.parent < 0:
            raise StageDefinitionError(f"Stage '{self.name}' has a negative parent index.")
        return self

    @property
    def copy_sources(self) -> List[str]:
        """Names of stages this stage copies files from."""
        return [op.from_stage for op in self.ops if isinstance(op, Copy) and op.from_stage]
