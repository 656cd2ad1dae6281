"""
Image Assembler

Turns the release configuration into the three-stage plan

    builder  (toolchain image, compiles the binary)
    base     (slim runtime: binary + TLS, CA certificates, tzdata) -- published
    rootless (base + non-privileged user)                           -- opt-in

and builds the stages a target needs, in order.
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from . import constants
from .config import Config
from .datacls.artifacts import BuiltImage
from .protocols import ImageBuilderProtocol
from .stages import StagePlan, Stage, Workdir, Copy, Run, Install, CreateUser, SetUser
from .exceptions import BuildError, StageBuildError, DefinitionError

logger = logging.getLogger(__name__)


class ImageAssembler:

    def __init__(self, config: Config, builder: Optional[ImageBuilderProtocol] = None):
        self.config = config
        self.builder = builder
        self._plan: Optional[StagePlan] = None

    def plan(self) -> StagePlan:
        """The builder -> base -> rootless stage plan, built once per assembler."""
        if self._plan is None:
            plan = StagePlan()
            plan.add(self._builder_stage())
            base_idx = plan.add(self._base_stage())
            plan.add(self._rootless_stage(base_idx))
            plan.validate()
            logger.debug(f"[Assembler] Stage plan: {plan.names}")
            self._plan = plan
        return self._plan

    def _builder_stage(self) -> Stage:
        conf = self.config.model.builder
        ops = [
            Workdir(path=conf.workdir),
            # lock files first so dependency layers survive source-only changes
            Copy(sources=list(conf.lock_files), dest="./"),
        ]
        for source in conf.sources:
            ops.append(Copy(sources=[source], dest=f"./{source.rstrip('/')}"))
        ops.append(Run(command=self.config.expand(conf.command)))
        return Stage(name=constants.BUILDER_STAGE, base_image=conf.image, ops=ops)

    def _base_stage(self) -> Stage:
        conf = self.config.model.base
        binary_dir = conf.binary_dir.rstrip("/")
        artifact = self.config.expand(self.config.model.builder.artifact)
        ops = [Copy(sources=[artifact], dest=f"{binary_dir}/", from_stage=constants.BUILDER_STAGE)]
        if conf.packages:
            ops.append(Install(packages=list(conf.packages)))
        binary = f"{binary_dir}/{Path(artifact).name}"
        return Stage(name=constants.BASE_STAGE, base_image=conf.image, ops=ops, entrypoint=[binary])

    def _rootless_stage(self, base_idx: int) -> Stage:
        user = CreateUser(
            name=self.config.rootless_user,
            uid=self.config.model.rootless.uid,
            gid=self.config.rootless_gid,
        )
        ops = [user, Workdir(path=user.home), SetUser(name=user.name)]
        return Stage(name=constants.ROOTLESS_STAGE, parent=base_idx, ops=ops)

    def dockerfile(self) -> str:
        return self.plan().render()

    def write_dockerfile(self, path: Optional[Path] = None) -> Path:
        path = Path(path) if path else self.config.dockerfile_path
        content = self.dockerfile()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding='utf-8')
        except OSError as e:
            raise BuildError(f"Cannot write Dockerfile to {path}: {e}") from e
        logger.info(f"Dockerfile written to {path}")
        return path

    def assemble(
        self,
        target: Optional[str] = None,
        platforms: Optional[Sequence[str]] = None,
        build_args: Optional[Dict[str, str]] = None,
    ) -> BuiltImage:
        """
        Build every stage ``target`` depends on, then the target itself.

        A failing stage stops the assembly before any dependent stage runs.
        """
        if self.builder is None:
            raise DefinitionError("No image builder was provided to the assembler.")

        target = target or self.config.target
        platforms: List[str] = list(self.config.platforms if platforms is None else platforms)
        build_args = dict(build_args or {})
        plan = self.plan()
        chain = plan.requires(target)
        dockerfile = self.write_dockerfile()
        context = self.config.context_dir

        logger.info(f"[Assembler] Building '{target}' via {[s.name for s in chain]} for {platforms or ['host']}...")
        image_id = None
        for stage in chain:
            logger.info(f"[Assembler] Building stage '{stage.name}'...")
            try:
                image_id = self.builder.build(dockerfile, context, stage.name, platforms, build_args)
            except StageBuildError:
                logger.error(f"[Assembler] Stage '{stage.name}' failed; skipping dependent stages.")
                raise
            except BuildError as e:
                logger.error(f"[Assembler] Stage '{stage.name}' failed; skipping dependent stages.")
                raise StageBuildError(f"Stage '{stage.name}' failed: {e}") from e

        built = BuiltImage(
            target=target,
            context=context,
            dockerfile=dockerfile,
            platforms=platforms,
            build_args=build_args,
            image_id=image_id,
            user=plan.effective_user(target),
        )
        logger.info(f"[Assembler] Stage '{target}' built (runs as '{built.user}').")
        return built
