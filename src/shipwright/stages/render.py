import logging
from importlib import resources

from jinja2 import Environment, StrictUndefined

from .ops import render_entrypoint
from .. import constants

logger = logging.getLogger(__name__)

_env = Environment(
    trim_blocks=True,
    lstrip_blocks=True,
    keep_trailing_newline=True,
    undefined=StrictUndefined,
)


def _load_template():
    text = resources.files('shipwright.resources.templates').joinpath(
        constants.DOCKERFILE_TEMPLATE
    ).read_text(encoding='utf-8')
    return _env.from_string(text)


def render_dockerfile(plan) -> str:
    """Render a StagePlan with the packaged Dockerfile template."""
    stages = []
    for stage in plan:
        stages.append({
            "name": stage.name,
            "source": plan.source_of(stage),
            "instructions": [op.instruction() for op in stage.ops],
            "entrypoint": render_entrypoint(stage.entrypoint) if stage.entrypoint is not None else None,
        })
    content = _load_template().render(stages=stages)
    logger.debug(f"Rendered Dockerfile with {len(stages)} stages.")
    return content
