import logging
from typing import Dict, List, Optional

from .ops import SetUser, Workdir
from .stage import Stage
from .render import render_dockerfile
from .. import constants
from ..exceptions import (
    StageDefinitionError,
    CircularDependencyError,
    ReferenceNotFoundError,
)

logger = logging.getLogger(__name__)


class StagePlan:
    """
    Ordered arena of stage descriptors.

    Stages refer to each other by index (FROM inheritance) or by name
    (COPY --from). Every reference must point at an earlier stage, which
    keeps the plan acyclic and makes list order a valid build order.
    """

    def __init__(self, stages: Optional[List[Stage]] = None):
        self.stages: List[Stage] = []
        self._index: Dict[str, int] = {}
        for stage in stages or []:
            self.add(stage)

    def __len__(self) -> int:
        return len(self.stages)

    def __iter__(self):
        return iter(self.stages)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    @property
    def names(self) -> List[str]:
        return [stage.name for stage in self.stages]

    def add(self, stage: Stage) -> int:
        """Append ``stage`` and return its index."""
        if stage.name in self._index:
            raise StageDefinitionError(f"Duplicate stage name: '{stage.name}'.")
        position = len(self.stages)
        if stage.parent is not None and stage.parent >= position:
            raise CircularDependencyError(
                f"Stage '{stage.name}' inherits index {stage.parent}, which is not an earlier stage."
            )
        for source in stage.copy_sources:
            if source == stage.name:
                raise CircularDependencyError(f"Stage '{stage.name}' copies from itself.")
            if source not in self._index:
                raise ReferenceNotFoundError(
                    f"Stage '{stage.name}' copies from '{source}', which is not an earlier stage."
                )
        self.stages.append(stage)
        self._index[stage.name] = position
        logger.debug(f"[StagePlan] Added stage '{stage.name}' at index {position}.")
        return position

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise ReferenceNotFoundError(f"Unknown stage '{name}'. Known stages: {self.names}")

    def get(self, name: str) -> Stage:
        return self.stages[self.index_of(name)]

    def parent_of(self, name: str) -> Optional[Stage]:
        stage = self.get(name)
        return None if stage.parent is None else self.stages[stage.parent]

    def chain(self, name: str) -> List[Stage]:
        """FROM-ancestry of ``name``, root first, ending with the stage itself."""
        chain = []
        idx: Optional[int] = self.index_of(name)
        while idx is not None:
            stage = self.stages[idx]
            chain.append(stage)
            idx = stage.parent
        chain.reverse()
        return chain

    def dependencies(self, stage: Stage) -> List[str]:
        """Names of the stages ``stage`` inherits from or copies from."""
        deps = []
        if stage.parent is not None:
            deps.append(self.stages[stage.parent].name)
        for source in stage.copy_sources:
            if source not in deps:
                deps.append(source)
        return deps

    def validate(self) -> 'StagePlan':
        """
        Check the plan is a single linear chain: unique names, every reference
        pointing at an earlier stage, at most one dependency per stage (no
        diamonds) and at most one dependent per stage (no branches).
        """
        seen: Dict[str, int] = {}
        dependents: Dict[str, List[str]] = {}
        roots = []
        for position, stage in enumerate(self.stages):
            if stage.name in seen:
                raise StageDefinitionError(f"Duplicate stage name: '{stage.name}'.")
            if stage.parent is not None and stage.parent >= position:
                raise CircularDependencyError(
                    f"Stage '{stage.name}' inherits index {stage.parent}, which is not an earlier stage."
                )
            for source in stage.copy_sources:
                if source not in seen:
                    raise ReferenceNotFoundError(
                        f"Stage '{stage.name}' copies from '{source}', which is not an earlier stage."
                    )
            deps = self.dependencies(stage)
            if len(deps) > 1:
                raise StageDefinitionError(
                    f"Stage '{stage.name}' depends on {deps}; a stage may depend on one prior stage only."
                )
            if not deps:
                roots.append(stage.name)
            for dep in deps:
                dependents.setdefault(dep, []).append(stage.name)
            seen[stage.name] = position

        for name, children in dependents.items():
            if len(children) > 1:
                raise StageDefinitionError(
                    f"Stage '{name}' is used by {children}; the stage chain must not branch."
                )
        if len(roots) > 1:
            raise StageDefinitionError(f"Stages {roots} start separate chains; expected a single chain.")
        logger.debug(f"[StagePlan] Validated linear chain {self.names}.")
        return self

    def requires(self, name: str) -> List[Stage]:
        """
        Every stage needed to build ``name`` (inheritance and COPY --from
        sources, transitively), in build order, ending with ``name``.
        """
        needed = set()
        pending = [self.index_of(name)]
        while pending:
            idx = pending.pop()
            if idx in needed:
                continue
            needed.add(idx)
            stage = self.stages[idx]
            if stage.parent is not None:
                pending.append(stage.parent)
            pending.extend(self._index[src] for src in stage.copy_sources)
        return [self.stages[idx] for idx in sorted(needed)]

    def effective_user(self, name: str) -> str:
        """The user the image of ``name`` runs as."""
        user = constants.ROOT_USER
        for stage in self.chain(name):
            for op in stage.ops:
                if isinstance(op, SetUser):
                    user = op.name
        return user

    def working_dir(self, name: str) -> Optional[str]:
        workdir = None
        for stage in self.chain(name):
            for op in stage.ops:
                if isinstance(op, Workdir):
                    workdir = op.path
        return workdir

    def entrypoint(self, name: str) -> Optional[List[str]]:
        """Entrypoint of ``name``, inherited from the closest ancestor that sets one."""
        for stage in reversed(self.chain(name)):
            if stage.entrypoint is not None:
                return stage.entrypoint
        return None

    def source_of(self, stage: Stage) -> str:
        """What the stage's FROM line refers to."""
        if stage.parent is not None:
            return self.stages[stage.parent].name
        return stage.base_image

    def render(self) -> str:
        """Render the whole plan as a multi-stage Dockerfile."""
        return render_dockerfile(self)
