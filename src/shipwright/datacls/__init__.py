"""
Shipwright Data Classes Module

- trigger: TriggerEvent (tag push or manual dispatch)
- artifacts: BuiltImage and PublishedArtifact
- credentials: RegistryCredentials
"""

from .trigger import TriggerEvent, TriggerKind
from .artifacts import BuiltImage, PublishedArtifact
from .credentials import RegistryCredentials

__all__ = [
    'TriggerEvent',
    'TriggerKind',
    'BuiltImage',
    'PublishedArtifact',
    'RegistryCredentials',
]
