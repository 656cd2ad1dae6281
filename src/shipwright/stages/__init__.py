"""
Shipwright Stages Module

Multi-stage image definitions as an arena of descriptors referenced by index.

- ops: Layer operations (WORKDIR, COPY, RUN, package install, user creation, USER)
- stage: Immutable stage descriptor
- plan: Ordered stage arena with dependency queries
- render: Dockerfile rendering
"""

from .ops import LayerOp, Workdir, Copy, Run, Install, CreateUser, SetUser
from .stage import Stage, is_pinned
from .plan import StagePlan
from .render import render_dockerfile

__all__ = [
    'LayerOp',
    'Workdir',
    'Copy',
    'Run',
    'Install',
    'CreateUser',
    'SetUser',
    'Stage',
    'is_pinned',
    'StagePlan',
    'render_dockerfile',
]
