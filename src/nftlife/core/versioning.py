"""
Layout version metadata and helpers for persisted nftlife records and journal tables.

Exposes the canonical layout version (SCHEMA_V) used by the binary record codec
(the discriminator is derived from the major component) and embedded in journal
Parquet metadata, and provides compatibility and successor checks. Zero-IO.
"""

from dataclasses import dataclass
from datetime import date

SCHEMA_MAJOR_VERSION = 1
SCHEMA_MINOR_VERSION = 0


@dataclass(frozen=True)
class SchemaVersion:
    """
    Immutable semantic version with ISO release date for nftlife artifacts.

    Attributes:
        major (int): Non-negative major component; bumps change the record discriminator.
        minor (int): Non-negative minor component for additive, non-breaking changes.
        date (str): ISO YYYY-MM-DD release date.

    Raises:
        ValueError: If any component is negative or the date is not ISO compliant.
    """

    major: int
    minor: int
    date: str  # ISO YYYY-MM-DD

    def __post_init__(self) -> None:
        if self.major < 0:
            raise ValueError(f"SchemaVersion major must be non-negative, got {self.major}")
        if self.minor < 0:
            raise ValueError(f"SchemaVersion minor must be non-negative, got {self.minor}")
        try:
            date.fromisoformat(self.date)
        except ValueError as exc:
            raise ValueError(
                f"SchemaVersion date must be ISO YYYY-MM-DD, got {self.date!r}"
            ) from exc

    def tag(self) -> str:
        """Compact ``major.minor@date`` form used in Parquet metadata."""
        return f"{self.major}.{self.minor}@{self.date}"


SCHEMA_V = SchemaVersion(SCHEMA_MAJOR_VERSION, SCHEMA_MINOR_VERSION, "2026-10-19")
SCHEMA_COMPAT_MAJOR = SCHEMA_V.major
SCHEMA_COMPAT_MINOR = SCHEMA_V.minor


def is_compatible(ver: SchemaVersion) -> bool:
    """
    Check whether a version matches the supported layout contract.

    Examples:
        >>> from nftlife.core.versioning import SCHEMA_V, is_compatible
        >>> is_compatible(SCHEMA_V)
        True
    """
    return ver.major == SCHEMA_COMPAT_MAJOR and ver.minor == SCHEMA_COMPAT_MINOR


def is_successor_of(candidate: SchemaVersion, current: SchemaVersion) -> bool:
    """
    Determine whether a version is the immediate successor of another.

    Minor bumps increase minor with major fixed; major bumps increase major by one
    and reset minor to zero. Larger jumps are non-sequential.
    """
    if candidate.major == current.major:
        return candidate.minor == current.minor + 1
    if candidate.major == current.major + 1 and candidate.minor == 0:
        return True
    return False


def parse_version_tag(tag: str) -> SchemaVersion:
    """
    Parse a ``major.minor@date`` tag back into a SchemaVersion.

    Raises:
        ValueError: If the tag is malformed.
    """
    try:
        nums, day = tag.split("@", 1)
        major, minor = nums.split(".", 1)
        return SchemaVersion(int(major), int(minor), day)
    except ValueError as exc:
        raise ValueError(f"malformed schema version tag {tag!r}") from exc
