class ShipwrightError(Exception):
    """Base exception for all application-specific errors."""

    pass


# --- 1. Errors related to loading and parsing the release configuration ---
class ConfigurationError(ShipwrightError):
    """Base class for errors encountered while finding, reading, or parsing config files."""

    pass


class ConfigFileMissingError(ConfigurationError):
    """Raised when the release configuration file cannot be found."""

    pass


class ConfigParsingError(ConfigurationError):
    """Raised when a YAML configuration file is syntactically incorrect."""

    pass


class ConfigValidationError(ConfigurationError):
    """Raised when the configuration fails structural validation (e.g., Pydantic)."""

    pass


class CredentialsError(ConfigurationError):
    """Raised when registry credentials cannot be found in the environment."""

    pass


# --- 2. Errors related to the logical definition of image stages ---
class DefinitionError(ShipwrightError):
    """Base class for errors in the logical definition and references of stages."""

    pass


class StageDefinitionError(DefinitionError):
    """Raised for logical errors in a stage, like a floating base image or a duplicate name."""

    pass


class CircularDependencyError(DefinitionError):
    """Raised when a stage inherits from itself or from a later stage."""

    pass


class ReferenceNotFoundError(DefinitionError):
    """Raised when a stage name or parent index points to nothing."""

    pass


# --- 3. Errors raised while deriving the release version ---
class ResolutionError(ShipwrightError):
    """Base class for errors deriving the version tag from the manifest."""

    pass


class ManifestMissingError(ResolutionError):
    """Raised when the manifest file does not exist."""

    pass


class ManifestUnreadableError(ResolutionError):
    """Raised when the manifest exists but cannot be read or decoded."""

    pass


class VersionNotFoundError(ResolutionError):
    """Raised when no quoted version line exists within the scan window."""

    pass


class EmptyVersionError(ResolutionError):
    """Raised when the quoted version value is empty."""

    pass


class MalformedVersionError(ResolutionError):
    """Raised in strict mode when the version is not a semantic version."""

    pass


# --- 4. Errors that occur while building image stages ---
class BuildError(ShipwrightError):
    """Base class for errors that occur while building image stages."""

    pass


class StageBuildError(BuildError):
    """Raised when a stage (compile or package install step) fails to build."""

    pass


# --- 5. Errors that occur while publishing to the registry ---
class PublishError(ShipwrightError):
    """Base class for errors pushing an image to the registry."""

    pass


class AuthenticationError(PublishError):
    """Raised when the registry rejects the injected credentials."""

    pass


class PushError(PublishError):
    """Raised when the push itself fails (network, permissions, ...)."""

    pass


class TagMismatchError(PublishError):
    """Raised when the published tags do not resolve to the same digest."""

    pass


# --- 6. Errors related to the pipeline trigger ---
class TriggerError(ShipwrightError):
    """Raised for an unusable trigger event."""

    pass
