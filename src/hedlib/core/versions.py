"""
Versions, library names and schema file names.

Schema versions follow semantic versioning (MAJOR.MINOR.PATCH). Library
schemas are distributed as HED_<libraryName>_<version>.xml and the standard
schema as HED<version>.xml. Datasets refer to schemas with version specs of
the form [nickname:][library_]version.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional

from packaging.version import Version, InvalidVersion

from .errors import HedVersionError


_SEMVER_RE = re.compile(r'^\d+\.\d+\.\d+$')
_NAME_RE = re.compile(r'^[A-Za-z]+$')
_FILE_NAME_RE = re.compile(
    r'^HED(?:_(?P<library>[A-Za-z]+)_|_?)(?P<version>\d+\.\d+\.\d+)(?P<extension>\.xml|\.mediawiki)$'
)

SCHEMA_EXTENSIONS = ('.xml', '.mediawiki')


@dataclass(frozen=True)
class VersionSpec:
    """A reference to one schema: optional nickname, optional library, version."""

    nickname: str = ''
    """Local namespace prefix (e.g., 'dp'); empty for unprefixed tags."""

    library: str = ''
    """Library name (e.g., 'driving'); empty for the standard schema."""

    version: str = ''
    """Semantic version string (e.g., '1.0.0')."""

    def __str__(self) -> str:
        text = f"{self.library}_{self.version}" if self.library else self.version
        if self.nickname:
            text = f"{self.nickname}:{text}"
        return text


def is_valid_semver(version: Optional[str]) -> bool:
    """
    Check whether a string is a strict MAJOR.MINOR.PATCH version.

    Args:
        version: The version string to check.

    Returns:
        True if the string is a valid semantic version.
    """
    return bool(version) and _SEMVER_RE.match(version) is not None


def is_valid_name(name: Optional[str]) -> bool:
    """
    Check whether a library name or nickname is purely alphabetic.

    Args:
        name: The name to check.

    Returns:
        True if the name consists of letters only.
    """
    return bool(name) and _NAME_RE.match(name) is not None


def parse_version(version: str) -> Version:
    """
    Parse a semantic version string into a comparable version.

    Args:
        version: Version string such as '8.2.0'.

    Returns:
        A packaging Version instance.

    Raises:
        HedVersionError: If the string is not MAJOR.MINOR.PATCH.
    """
    if not isinstance(version, str) or not is_valid_semver(version.strip()):
        raise HedVersionError(
            f"Invalid schema version {version!r}: expected 'MAJOR.MINOR.PATCH' (e.g. '8.2.0')"
        )
    try:
        return Version(version.strip())
    except InvalidVersion as e:
        raise HedVersionError(f"Invalid schema version {version!r}: {e}") from e


def latest_version(versions: Iterable[str]) -> Optional[str]:
    """
    Pick the highest version from a collection, ignoring malformed entries.

    Args:
        versions: Version strings.

    Returns:
        The highest valid version, or None if there is none.
    """
    valid = [v for v in versions if is_valid_semver(v)]
    if not valid:
        return None
    return max(valid, key=Version)


def parse_version_spec(spec: str) -> VersionSpec:
    """
    Parse a version spec such as '8.2.0', 'score_1.0.0' or 'sc:score_1.0.0'.

    Args:
        spec: The version spec string.

    Returns:
        The parsed VersionSpec.

    Raises:
        HedVersionError: If the nickname, library name or version is malformed.
    """
    if not isinstance(spec, str) or not spec.strip():
        raise HedVersionError(f"Empty or non-string version spec: {spec!r}")

    text = spec.strip()
    nickname = ''
    if ':' in text:
        nickname, text = text.split(':', 1)
        nickname = nickname.strip()
        if not is_valid_name(nickname):
            raise HedVersionError(f"Invalid nickname '{nickname}' in version spec '{spec}': must be alphabetic")

    library = ''
    version = text.strip()
    if '_' in version:
        library, version = version.rsplit('_', 1)
        if not is_valid_name(library):
            raise HedVersionError(f"Invalid library name '{library}' in version spec '{spec}': must be alphabetic")

    if not is_valid_semver(version):
        raise HedVersionError(f"Invalid version '{version}' in version spec '{spec}'")

    return VersionSpec(nickname=nickname, library=library, version=version)


def schema_file_name(library: str, version: str, extension: str = '.xml') -> str:
    """
    Build the conventional file name for a schema.

    Args:
        library: Library name, or empty for the standard schema.
        version: Semantic version.
        extension: '.xml' or '.mediawiki'.

    Returns:
        File name such as 'HED_driving_1.0.0.xml' or 'HED8.2.0.xml'.
    """
    if library:
        return f"HED_{library}_{version}{extension}"
    return f"HED{version}{extension}"


def parse_schema_file_name(file_name: str) -> Optional[tuple[str, str, str]]:
    """
    Split a conventional schema file name into its parts.

    Args:
        file_name: Base name of a schema file.

    Returns:
        (library, version, extension) with an empty library for the standard
        schema, or None if the name does not follow the convention.
    """
    match = _FILE_NAME_RE.match(file_name)
    if match is None:
        return None
    return match.group('library') or '', match.group('version'), match.group('extension')
