"""
Shipwright Protocol Definitions

The pipeline core only talks to Docker and the registry through these
capabilities, so tests can inject in-memory implementations.
"""

from pathlib import Path
from typing import Protocol, Dict, List, Optional, Sequence, runtime_checkable

from .datacls.artifacts import BuiltImage, PublishedArtifact


@runtime_checkable
class ImageBuilderProtocol(Protocol):
    """
    Builds one stage of a Dockerfile.

    Implementations must not tag or push anything.
    """

    def build(
        self,
        dockerfile: Path,
        context: Path,
        target: str,
        platforms: Sequence[str],
        build_args: Dict[str, str],
    ) -> Optional[str]:
        """
        Build ``target`` for every platform.

        Returns:
            The local image id when the result was loaded into the daemon, else None

        Raises:
            BuildError: when any platform fails to build
        """
        ...


@runtime_checkable
class PublisherProtocol(Protocol):
    """Pushes a built image under a list of tags."""

    def push(self, image: BuiltImage, tags: List[str]) -> PublishedArtifact:
        """
        Push ``image`` so that every tag points at the same content.

        Raises:
            PublishError: on authentication or push failure, or when tags diverge
        """
        ...
