"""
Release orchestration.

    IDLE --trigger--> TRIGGERED --resolve, assemble, push--> PUBLISHED
                          \\--any error--> FAILED

A pipeline instance serves exactly one run. Concurrent triggers get their own
instances; they share nothing but the registry namespace.
"""

import logging
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from . import constants
from .assembler import ImageAssembler
from .config import Config
from .datacls.artifacts import PublishedArtifact
from .datacls.trigger import TriggerEvent
from .protocols import ImageBuilderProtocol, PublisherProtocol
from .resolver import VersionResolver
from .exceptions import ResolutionError, BuildError, PublishError, TriggerError

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    IDLE = "idle"
    TRIGGERED = "triggered"
    PUBLISHED = "published"
    FAILED = "failed"


class ReleaseResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: PipelineState
    trigger: TriggerEvent
    version: Optional[str] = None
    tags: List[str] = []
    artifact: Optional[PublishedArtifact] = None
    error: Optional[str] = None


class ReleasePipeline:

    def __init__(
        self,
        config: Config,
        builder: ImageBuilderProtocol,
        publisher: PublisherProtocol,
        resolver: Optional[VersionResolver] = None,
    ):
        self.config = config
        self.publisher = publisher
        self.assembler = ImageAssembler(config, builder)
        self.resolver = resolver or VersionResolver(
            scan_lines=config.model.version.scan_lines,
            strict=config.model.version.strict,
        )
        self.state = PipelineState.IDLE
        self.result: Optional[ReleaseResult] = None

    def tags_for(self, version: str) -> List[str]:
        """Floating tag first, then the exact version."""
        image = self.config.image
        return [f"{image}:{constants.FLOATING_TAG}", f"{image}:{version}"]

    def _transition(self, state: PipelineState):
        logger.debug(f"[Pipeline] {self.state.value} -> {state.value}")
        self.state = state

    def run(self, trigger: TriggerEvent) -> ReleaseResult:
        """
        Resolve the version, build the publish target and push it under both tags.

        Every failure is terminal for the run: the state becomes FAILED, the
        error is recorded on ``self.result`` and re-raised. Nothing is pushed
        unless resolution and every build stage succeeded.
        """
        if self.state != PipelineState.IDLE:
            raise TriggerError(f"Pipeline already ran (state: {self.state.value}); start a new one.")

        self._transition(PipelineState.TRIGGERED)
        logger.info(f"[Pipeline] Release of '{self.config.name}' triggered by {trigger.describe()}.")

        version = None
        tags: List[str] = []
        try:
            version = self.resolver.resolve_file(self.config.manifest_path)
            tags = self.tags_for(version)

            build_args = {}
            if trigger.commit_time is not None:
                build_args[constants.SOURCE_DATE_EPOCH_ARG] = str(trigger.commit_time)

            built = self.assembler.assemble(target=self.config.target, build_args=build_args)
            artifact = self.publisher.push(built, tags)
        except Exception as e:
            self._transition(PipelineState.FAILED)
            if isinstance(e, (ResolutionError, BuildError, PublishError)):
                logger.error(f"[Pipeline] Release failed: {e}")
            else:
                logger.exception(f"[Pipeline] Release failed unexpectedly: {e}")
            self.result = ReleaseResult(
                state=self.state, trigger=trigger, version=version, tags=tags, error=str(e),
            )
            raise

        self._transition(PipelineState.PUBLISHED)
        self.result = ReleaseResult(
            state=self.state, trigger=trigger, version=version, tags=tags, artifact=artifact,
        )
        logger.info(f"[Pipeline] Published {artifact.digest} as {', '.join(tags)}.")
        return self.result
