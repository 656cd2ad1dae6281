"""
Shipwright Docker Module

python-on-whales backed implementations of the builder and publisher protocols.
"""

from .builder import DockerImageBuilder
from .publisher import DockerPublisher, DryRunPublisher, split_reference

__all__ = [
    'DockerImageBuilder',
    'DockerPublisher',
    'DryRunPublisher',
    'split_reference',
]
