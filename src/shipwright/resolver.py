"""
Version Resolver

Derives the release tag from the project manifest. Only a bounded leading
window of the manifest is scanned, and the value is whatever sits between the
first pair of double quotes on the ``version`` line. No manifest parser is
involved: formatting noise elsewhere in the file is irrelevant.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional, Union

from . import constants
from .rules.version import Version
from .exceptions import (
    ManifestMissingError,
    ManifestUnreadableError,
    VersionNotFoundError,
    EmptyVersionError,
    MalformedVersionError,
)

logger = logging.getLogger(__name__)


class VersionResolver:
    """
    Extracts the quoted ``version`` value from the first ``scan_lines`` lines of a manifest.

    In strict mode the extracted value must also be a semantic version; by default
    any quoted string (``"abc"`` included) is passed through unchanged.
    """

    def __init__(self, scan_lines: int = constants.VERSION_SCAN_LINES, strict: bool = False,
                 key: str = constants.VERSION_KEY):
        if scan_lines < 1:
            raise ValueError(f"scan_lines must be positive, got {scan_lines}")
        self.scan_lines = scan_lines
        self.strict = strict
        self.key = key

    def resolve(self, text: str) -> str:
        """Return the version string found in manifest ``text``."""
        window = text.splitlines()[:self.scan_lines]
        line = self._find_line(window)
        if line is None:
            raise VersionNotFoundError(
                f"No '{self.key}' line found within the first {self.scan_lines} lines of the manifest."
            )

        value = self._unquote(line)
        if value is None:
            raise VersionNotFoundError(f"The '{self.key}' line is not quoted: {line.strip()!r}")
        if not value:
            raise EmptyVersionError(f"The '{self.key}' value in the manifest is empty.")

        if self.strict and not Version.is_valid(value):
            raise MalformedVersionError(f"Manifest version '{value}' is not a semantic version.")

        logger.debug(f"Resolved version '{value}' from line {line.strip()!r}")
        return value

    def resolve_file(self, path: Union[str, Path]) -> str:
        """Read the manifest at ``path`` and resolve its version."""
        path = Path(path)
        try:
            text = path.read_text(encoding='utf-8')
        except FileNotFoundError:
            raise ManifestMissingError(f"Manifest not found at: {path}")
        except IsADirectoryError:
            raise ManifestMissingError(f"Manifest path is a directory: {path}")
        except UnicodeDecodeError as e:
            raise ManifestUnreadableError(f"Manifest at {path} is not valid UTF-8: {e}")
        except OSError as e:
            raise ManifestUnreadableError(f"Cannot read manifest at {path}: {e}")
        logger.info(f"Resolving release version from '{path}'...")
        version = self.resolve(text)
        logger.info(f"Release version: {version}")
        return version

    def _find_line(self, lines: Iterable[str]) -> Optional[str]:
        for line in lines:
            if '=' not in line:
                continue
            key = line.split('=', 1)[0].strip()
            if key == self.key:
                return line
        return None

    @staticmethod
    def _unquote(line: str) -> Optional[str]:
        parts = line.split('"')
        # need an opening and a closing quote
        if len(parts) < 3:
            return None
        return parts[1]
