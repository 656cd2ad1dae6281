"""
Layer operations

Each operation renders to exactly one Dockerfile instruction, so one operation
is one image layer (or one metadata change for WORKDIR/USER).
"""

import json
import re
import shlex
from typing import List, Literal, Optional, Union, Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .. import constants

PACKAGE_NAME_RE = re.compile(constants.PACKAGE_NAME_PATTERN)


class LayerOp(BaseModel):
    """Base class for a single layer operation of a stage."""
    model_config = ConfigDict(frozen=True)

    def instruction(self) -> str:
        raise NotImplementedError


class Workdir(LayerOp):
    kind: Literal["workdir"] = "workdir"
    path: str

    def instruction(self) -> str:
        return f"WORKDIR {self.path}"


class Copy(LayerOp):
    """COPY from the build context, or from an earlier stage when ``from_stage`` is set."""
    kind: Literal["copy"] = "copy"
    sources: List[str] = Field(min_length=1)
    dest: str
    from_stage: Optional[str] = None

    def instruction(self) -> str:
        src = " ".join(self.sources)
        if self.from_stage:
            return f"COPY --from={self.from_stage} {src} {self.dest}"
        return f"COPY {src} {self.dest}"


class Run(LayerOp):
    kind: Literal["run"] = "run"
    command: str = Field(min_length=1)

    def instruction(self) -> str:
        return f"RUN {self.command}"


class Install(LayerOp):
    """
    Installs OS packages and drops the package index in the same layer,
    so the index never ends up in the image.
    """
    kind: Literal["install"] = "install"
    packages: List[str] = Field(min_length=1)

    @field_validator('packages')
    @classmethod
    def check_package_names(cls, packages: List[str]) -> List[str]:
        for pkg in packages:
            if not PACKAGE_NAME_RE.match(pkg):
                raise ValueError(f"Invalid package name: {pkg!r}")
        return packages

    def instruction(self) -> str:
        pkgs = " ".join(self.packages)
        return (
            "RUN apt-get update \\\n"
            f"    && apt-get install -y {pkgs} \\\n"
            f"    && rm -rf {constants.APT_LISTS_DIR}"
        )


class CreateUser(LayerOp):
    """Creates a group and a user sharing fixed numeric ids, with a home directory."""
    kind: Literal["create_user"] = "create_user"
    name: str = Field(min_length=1)
    uid: int = Field(gt=0)
    gid: int = Field(gt=0)

    @property
    def home(self) -> str:
        return f"/home/{self.name}"

    def instruction(self) -> str:
        name = shlex.quote(self.name)
        return (
            f"RUN groupadd -g {self.gid} {name} \\\n"
            f"    && useradd --create-home -u {self.uid} -g {self.gid} {name}"
        )


class SetUser(LayerOp):
    kind: Literal["user"] = "user"
    name: str = Field(min_length=1)

    def instruction(self) -> str:
        return f"USER {self.name}"


def render_entrypoint(argv: List[str]) -> str:
    """Exec-form ENTRYPOINT, no default arguments."""
    return f"ENTRYPOINT {json.dumps(argv)}"


AnyOp = Annotated[
    Union[Workdir, Copy, Run, Install, CreateUser, SetUser],
    Field(discriminator="kind"),
]
