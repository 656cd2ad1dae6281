import logging
from typing import Dict, List, Optional

from python_on_whales import DockerClient, docker
from python_on_whales.exceptions import DockerException

from ..datacls.artifacts import BuiltImage, PublishedArtifact
from ..datacls.credentials import RegistryCredentials
from ..exceptions import AuthenticationError, PushError, TagMismatchError

logger = logging.getLogger(__name__)


def split_reference(ref: str) -> tuple:
    """'user/app:1.0' -> ('user/app', '1.0')"""
    head, _, last = ref.rpartition("/")
    if ":" not in last:
        return ref, None
    name, tag = last.split(":", 1)
    return (f"{head}/{name}" if head else name), tag


class DockerPublisher:
    """
    Pushes a built image to a registry with injected credentials.

    All tags go out in a single buildx push, then every tag is checked to
    resolve to the same digest.
    """

    def __init__(self, credentials: RegistryCredentials, client: Optional[DockerClient] = None):
        self.credentials = credentials
        self.client = client or docker

    def login(self):
        server = self.credentials.server or "Docker Hub"
        logger.info(f"Logging in to {server} as '{self.credentials.username}'...")
        try:
            self.client.login(
                server=self.credentials.server,
                username=self.credentials.username,
                password=self.credentials.token.get_secret_value(),
            )
        except DockerException as e:
            raise AuthenticationError(f"Registry login failed for '{self.credentials.username}': {e}") from e

    def push(self, image: BuiltImage, tags: List[str]) -> PublishedArtifact:
        self.login()
        logger.info(f"Pushing '{image.target}' as {tags}...")
        try:
            self.client.buildx.build(
                str(image.context),
                file=str(image.dockerfile),
                target=image.target,
                platforms=image.platforms or None,
                build_args=image.build_args,
                tags=list(tags),
                push=True,
            )
        except DockerException as e:
            raise PushError(f"Push of {tags} failed: {e}") from e

        digests = {tag: self.digest_of(tag) for tag in tags}
        if len(set(digests.values())) != 1:
            raise TagMismatchError(f"Published tags resolve to different digests: {digests}")
        digest = next(iter(digests.values()))
        logger.info(f"Published {digest} as {', '.join(tags)}")
        return PublishedArtifact(digest=digest, tags=list(tags))

    def digest_of(self, ref: str) -> str:
        """Registry digest a tag currently points at."""
        repository, _ = split_reference(ref)
        try:
            pulled = self.client.image.pull(ref, quiet=True)
        except DockerException as e:
            raise PushError(f"Could not fetch '{ref}' after push: {e}") from e
        for entry in pulled.repo_digests or []:
            repo, _, digest = entry.partition("@")
            if repo == repository or repo.endswith(f"/{repository}"):
                return digest
        raise PushError(f"No registry digest recorded for '{ref}'.")


class DryRunPublisher:
    """Logs what would be pushed; used by `shipw release --dry-run`."""

    def __init__(self):
        self.pushed: Dict[str, str] = {}

    def push(self, image: BuiltImage, tags: List[str]) -> PublishedArtifact:
        digest = image.image_id or f"unpublished:{image.target}"
        for tag in tags:
            logger.info(f"[dry-run] Would push '{image.target}' as {tag}")
            self.pushed[tag] = digest
        return PublishedArtifact(digest=digest, tags=list(tags))
