import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Dict, Optional, Sequence

from python_on_whales import DockerClient, docker
from python_on_whales.exceptions import DockerException

from ..exceptions import StageBuildError

logger = logging.getLogger(__name__)


class DockerImageBuilder:
    """
    Builds Dockerfile stages with buildx.

    A multi-platform build runs one sub-build per platform in parallel and
    joins them before returning; the results stay in the build cache, so the
    publisher's push reuses them instead of compiling again.
    """

    def __init__(self, client: Optional[DockerClient] = None, max_workers: Optional[int] = None):
        self.client = client or docker
        self.max_workers = max_workers

    def build(
        self,
        dockerfile: Path,
        context: Path,
        target: str,
        platforms: Sequence[str],
        build_args: Dict[str, str],
    ) -> Optional[str]:
        platforms = list(platforms)
        if len(platforms) <= 1:
            return self._build_one(dockerfile, context, target, platforms, build_args, load=True)

        errors = {}
        workers = self.max_workers or len(platforms)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = {
                executor.submit(self._build_one, dockerfile, context, target, [p], build_args, False): p
                for p in platforms
            }
            for future in as_completed(futures):
                platform = futures[future]
                try:
                    future.result()
                    logger.debug(f"[{target}] Sub-build for '{platform}' finished.")
                except StageBuildError as e:
                    errors[platform] = e

        if errors:
            failed = ", ".join(sorted(errors))
            raise StageBuildError(f"Stage '{target}' failed for platform(s): {failed}")
        logger.info(f"[{target}] Built for {len(platforms)} platforms.")
        return None

    def _build_one(self, dockerfile, context, target, platforms, build_args, load: bool) -> Optional[str]:
        label = platforms[0] if platforms else "host"
        logger.debug(f"[{target}] buildx build ({label}) from {dockerfile}")
        try:
            result = self.client.buildx.build(
                str(context),
                file=str(dockerfile),
                target=target,
                platforms=platforms or None,
                build_args=build_args,
                load=load,
                push=False,
            )
        except DockerException as e:
            logger.error(f"[{target}] Build failed on {label}: {e}")
            raise StageBuildError(f"Stage '{target}' failed on {label}: {e}") from e
        return getattr(result, "id", None)
