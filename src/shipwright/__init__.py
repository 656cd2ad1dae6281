"""
Shipwright

Release packaging: derive the version from the project manifest, build a
multi-stage (builder -> base -> rootless) container image and publish the
base stage as `{image}:latest` and `{image}:{version}`.

Main modules:
- resolver: Version Resolver (bounded-window, quote-delimited manifest scan)
- stages: Stage arena, layer operations and Dockerfile rendering
- assembler: Image Assembler building the three-stage plan
- docker: python-on-whales builder and publisher
- pipeline: Release orchestration state machine
- config: Configuration loading and validation
- datacls: Trigger events, build and publish artifacts, credentials
- utils: Logging setup

Quick start example:
```python
from shipwright import Config, ReleasePipeline, TriggerEvent
from shipwright.docker import DockerImageBuilder, DryRunPublisher

config = Config("release.yml")
pipeline = ReleasePipeline(config, DockerImageBuilder(), DryRunPublisher())
result = pipeline.run(TriggerEvent.manual())
```
"""

__version__ = "0.3.0"

from .protocols import ImageBuilderProtocol, PublisherProtocol
from .config import Config, ReleaseConfigModel
from .resolver import VersionResolver
from .stages import StagePlan, Stage
from .assembler import ImageAssembler
from .pipeline import ReleasePipeline, PipelineState, ReleaseResult
from .datacls import TriggerEvent, TriggerKind, BuiltImage, PublishedArtifact, RegistryCredentials
from .exceptions import (
    ShipwrightError,
    ConfigurationError,
    DefinitionError,
    ResolutionError,
    BuildError,
    PublishError,
    TriggerError,
)

__all__ = [
    # Version
    '__version__',
    # Protocols
    'ImageBuilderProtocol',
    'PublisherProtocol',
    # Config
    'Config',
    'ReleaseConfigModel',
    # Core
    'VersionResolver',
    'StagePlan',
    'Stage',
    'ImageAssembler',
    'ReleasePipeline',
    'PipelineState',
    'ReleaseResult',
    # Data classes
    'TriggerEvent',
    'TriggerKind',
    'BuiltImage',
    'PublishedArtifact',
    'RegistryCredentials',
    # Exceptions
    'ShipwrightError',
    'ConfigurationError',
    'DefinitionError',
    'ResolutionError',
    'BuildError',
    'PublishError',
    'TriggerError',
]
