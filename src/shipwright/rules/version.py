from functools import total_ordering
import re

@total_ordering
class Version:
    """
        Class describe a semantic version of a released project
    """
    # 1:Major, 2:Minor, 3:Patch, 4:Prerelease, 5:Build
    SEMVER_REGEX = re.compile(
        r"^(?P<major>0|[1-9]\d*)\."
        r"(?P<minor>0|[1-9]\d*)\."
        r"(?P<patch>0|[1-9]\d*)"
        r"(?:-(?P<prerelease>(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*)"
        r"(?:\.(?:0|[1-9]\d*|\d*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
        r"(?:\+(?P<build>[0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
    )

    def __init__(self, version_str: str):
        self.version_str = version_str

        match = self.SEMVER_REGEX.match(version_str)
        if not match:
            raise ValueError(f"Unrecognized Version '{version_str}'")

        parts = match.groupdict()
        self.core = (int(parts['major']), int(parts['minor']), int(parts['patch']))
        self.prerelease = self._parse_prerelease(parts.get('prerelease'))
        self.build = parts.get('build')

    @classmethod
    def is_valid(cls, version_str: str) -> bool:
        return cls.SEMVER_REGEX.match(version_str) is not None

    def _parse_prerelease(self, prerelease_str):
        if prerelease_str is None:
            return None
        parts = []
        for part in prerelease_str.split('.'):
            # numeric identifiers sort before alphanumeric ones
            parts.append((0, int(part), "") if part.isdigit() else (1, 0, part))
        return tuple(parts)

    def __str__(self):
        return self.version_str

    def __repr__(self):
        return f"Version('{self.version_str}')"

    def __eq__(self, other):
        if not isinstance(other, Version):
            return NotImplemented
        return self.core == other.core and self.prerelease == other.prerelease

    def __lt__(self, other):
        if not isinstance(other, Version):
            return NotImplemented

        if self.core != other.core:
            return self.core < other.core

        if self.prerelease is None and other.prerelease is not None:
            return False
        if self.prerelease is not None and other.prerelease is None:
            return True

        if self.prerelease is not None:
            return self.prerelease < other.prerelease

        return False
