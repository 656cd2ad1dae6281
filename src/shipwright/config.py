import re
import yaml
import logging
from pathlib import Path
from typing import Dict, Any, List, Optional, Union
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator, ConfigDict

from . import constants
from .stages.stage import is_pinned
from .exceptions import (
    ConfigParsingError,
    ConfigFileMissingError,
    ConfigValidationError,
    StageDefinitionError,
)


logger = logging.getLogger(__name__)


class VersionModel(BaseModel):
    """
        Class Config-Validation Model describe `version`
    """
    scan_lines: int = Field(constants.VERSION_SCAN_LINES, ge=1)
    strict: bool = False
    model_config = ConfigDict(extra="forbid")


class BuilderStageModel(BaseModel):
    """
        Class Config-Validation Model describe `builder`
    """
    image: str = constants.DEFAULT_BUILDER_IMAGE
    workdir: str = constants.DEFAULT_BUILDER_WORKDIR
    lock_files: List[str] = Field(default_factory=lambda: list(constants.DEFAULT_LOCK_FILES))
    sources: List[str] = Field(default_factory=lambda: list(constants.DEFAULT_SOURCES))
    command: str = constants.DEFAULT_BUILD_COMMAND
    artifact: str = constants.DEFAULT_ARTIFACT
    model_config = ConfigDict(extra="forbid")


class BaseStageModel(BaseModel):
    """
        Class Config-Validation Model describe `base`
    """
    image: str = constants.DEFAULT_BASE_IMAGE
    binary_dir: str = constants.DEFAULT_BINARY_DIR
    packages: List[str] = Field(default_factory=lambda: list(constants.DEFAULT_RUNTIME_PACKAGES))
    model_config = ConfigDict(extra="forbid")

    @field_validator('packages')
    @classmethod
    def check_package_names(cls, packages: List[str]) -> List[str]:
        for pkg in packages:
            if not re.match(constants.PACKAGE_NAME_PATTERN, pkg):
                raise ValueError(f"Invalid package name: {pkg!r}")
        return packages


class RootlessStageModel(BaseModel):
    """
        Class Config-Validation Model describe `rootless`
    """
    user: Optional[str] = None
    uid: int = Field(constants.DEFAULT_ROOTLESS_UID, gt=0)
    gid: Optional[int] = Field(None, gt=0)
    model_config = ConfigDict(extra="forbid")


class RegistryModel(BaseModel):
    """
        Class Config-Validation Model describe `registry`
    """
    server: Optional[str] = None
    username_env: str = constants.DEFAULT_USERNAME_ENV
    token_env: str = constants.DEFAULT_TOKEN_ENV
    model_config = ConfigDict(extra="forbid")


class ReleaseConfigModel(BaseModel):
    """
        Class Config-Validation Model desribe top-level of release config
    """
    name: str = Field(min_length=1)
    image: str = Field(min_length=1)
    manifest: str = constants.DEFAULT_MANIFEST
    context: str = "."
    dockerfile: str = constants.DEFAULT_DOCKERFILE
    target: str = constants.PUBLISH_TARGET
    platforms: List[str] = Field(default_factory=lambda: list(constants.DEFAULT_PLATFORMS))
    version: VersionModel = Field(default_factory=VersionModel)
    builder: BuilderStageModel = Field(default_factory=BuilderStageModel)
    base: BaseStageModel = Field(default_factory=BaseStageModel)
    rootless: RootlessStageModel = Field(default_factory=RootlessStageModel)
    registry: RegistryModel = Field(default_factory=RegistryModel)
    model_config = ConfigDict(extra="forbid")

    @field_validator('image')
    @classmethod
    def check_image_untagged(cls, image: str) -> str:
        """Tags are derived by the pipeline, the repository must come without one."""
        if ":" in image.rsplit("/", 1)[-1] or "@" in image:
            raise ValueError(f"'image' must be a repository without tag or digest, got '{image}'")
        return image

    @field_validator('platforms')
    @classmethod
    def check_platforms(cls, platforms: List[str]) -> List[str]:
        for platform in platforms:
            parts = platform.split("/")
            if len(parts) not in (2, 3) or not all(parts):
                raise ValueError(f"Invalid platform '{platform}', expected 'os/arch[/variant]'")
        if len(set(platforms)) != len(platforms):
            raise ValueError(f"Duplicate platforms in {platforms}")
        return platforms

    @model_validator(mode='after')
    def check_pinned_images(self) -> 'ReleaseConfigModel':
        """Stage base images must name an exact version for reproducible builds."""
        for stage, image in ((constants.BUILDER_STAGE, self.builder.image), (constants.BASE_STAGE, self.base.image)):
            if not is_pinned(image):
                raise StageDefinitionError(
                    f"The '{stage}' image '{image}' is not pinned; use an exact tag or digest."
                )
        return self

    @model_validator(mode='after')
    def check_target(self) -> 'ReleaseConfigModel':
        known = (constants.BUILDER_STAGE, constants.BASE_STAGE, constants.ROOTLESS_STAGE)
        if self.target not in known:
            raise ConfigValidationError(f"Unknown target '{self.target}', must be one of {known}.")
        return self


class Config:
    """
    Loads and validates the release.yml file using Pydantic models.
    It is the sole gatekeeper for configuration.
    """
    def __init__(self, config_path: Union[str, Path]):
        self.path = Path(config_path)
        logger.info(f"Loading configuration from '{self.path}'...")
        raw_data = self._load_raw_config()

        logger.info("Validating configuration structure with Pydantic...")
        try:
            self.model = ReleaseConfigModel.model_validate(raw_data)
        except ValidationError as e:
            raise ConfigValidationError(f"Configuration validation failed:\n{e}")
        logger.debug(f"Configuration model validated successfully: \n{self.model.model_dump_json(indent=2)}")
        logger.info("Configuration validation passed.")

    def _load_raw_config(self) -> Dict[str, Any]:
        try:
            content = self.path.read_text(encoding='utf-8')
            config_data = yaml.safe_load(content)
            if not isinstance(config_data, dict):
                raise ConfigParsingError("Configuration file must be a YAML document containing a dictionary.")
            logger.debug(f"Successfully parsed YAML from '{self.path}'.")
            return config_data
        except FileNotFoundError:
            raise ConfigFileMissingError(f"Configuration file not found at: {self.path}")
        except yaml.YAMLError as e:
            raise ConfigParsingError(f"Error parsing YAML file: {e}")

    @property
    def root(self) -> Path:
        """Directory relative paths in the config are resolved against."""
        return self.path.parent

    @property
    def name(self) -> str:
        return self.model.name

    @property
    def image(self) -> str:
        return self.model.image

    @property
    def target(self) -> str:
        return self.model.target

    @property
    def platforms(self) -> List[str]:
        return list(self.model.platforms)

    @property
    def context_dir(self) -> Path:
        return self.root / self.model.context

    @property
    def manifest_path(self) -> Path:
        return self.context_dir / self.model.manifest

    @property
    def dockerfile_path(self) -> Path:
        return self.context_dir / self.model.dockerfile

    @property
    def rootless_user(self) -> str:
        return self.model.rootless.user or self.model.name

    @property
    def rootless_gid(self) -> int:
        return self.model.rootless.gid or self.model.rootless.uid

    def expand(self, template: str) -> str:
        """Expand '{name}' placeholders in builder settings."""
        return template.replace("{name}", self.model.name)
