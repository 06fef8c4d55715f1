"""Classification table for probed OS and ABI tokens.

Every enumeration member carries its canonical raw token (the exact string
the probe header emits) and the API version it was introduced in. The table
only grows: a new platform gets a new member tagged with a new version, and
existing members never change their introduction version.
"""

from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Type


# Ascending. Append a new version here before tagging members with it.
API_VERSIONS = (1, 2, 3)
LATEST_VERSION = API_VERSIONS[-1]


class TableError(ValueError):
    """Raised when a classification table violates its invariants."""


class Kind(Enum):
    """Which enumeration a token is classified against."""
    OS = "operating system"
    ABI = "ABI"

    @property
    def noun(self) -> str:
        return self.value


class _TableValue(Enum):
    """Enum base whose members are ``(raw_name, introduced)`` pairs."""

    def __init__(self, raw_name: str, introduced: int):
        self.raw_name = raw_name
        self.introduced = introduced

    def available_at(self, version: int) -> bool:
        return self.introduced <= version


class OsValue(_TableValue):
    """Operating systems reported by ``DKML_OS_NAME``."""
    Unknown = ("Unknown", 3)
    Android = ("Android", 1)
    IOS = ("IOS", 1)
    Linux = ("Linux", 1)
    OSX = ("OSX", 1)
    Windows = ("Windows", 1)


class AbiValue(_TableValue):
    """ABIs reported by ``DKML_ABI``."""
    Unknown = ("unknown", 3)
    Android_arm64v8a = ("android_arm64v8a", 1)
    Android_arm32v7a = ("android_arm32v7a", 1)
    Android_x86 = ("android_x86", 1)
    Android_x86_64 = ("android_x86_64", 1)
    Darwin_arm64 = ("darwin_arm64", 1)
    Darwin_x86_64 = ("darwin_x86_64", 1)
    Linux_arm64 = ("linux_arm64", 1)
    Linux_arm32v6 = ("linux_arm32v6", 1)
    Linux_arm32v7 = ("linux_arm32v7", 1)
    Linux_x86_64 = ("linux_x86_64", 1)
    Linux_x86 = ("linux_x86", 2)
    Windows_x86_64 = ("windows_x86_64", 1)
    Windows_x86 = ("windows_x86", 1)
    Windows_arm64 = ("windows_arm64", 1)
    Windows_arm32 = ("windows_arm32", 1)


# Real platforms that are deliberately reported as Unknown rather than
# rejected as unrecognized.
KNOWN_UNSUPPORTED_ABIS = ("darwin_ppc64", "linux_ppc64", "linux_s390x")


def variants_at(enum_type: Type[_TableValue], version: int) -> List[_TableValue]:
    """Return the members of *enum_type* available at *version*, in declaration order."""
    return [member for member in enum_type if member.available_at(version)]


class ClassificationTable:
    """Read-only mapping from raw probe tokens to enumeration members."""

    def __init__(self, kind: Kind, enum_type: Type[_TableValue],
                 extra_tokens: Mapping[str, _TableValue] = None):
        self.kind = kind
        self.enum_type = enum_type
        entries: Dict[str, _TableValue] = {m.raw_name: m for m in enum_type}
        for token, member in (extra_tokens or {}).items():
            if token in entries:
                raise TableError(
                    f"{kind.noun} token {token!r} is already mapped to "
                    f"{entries[token].name}"
                )
            entries[token] = member
        self.entries = MappingProxyType(entries)
        self.validate()

    def validate(self) -> None:
        """Check injectivity, round-tripping and version tags.

        Raises:
            TableError: If any invariant does not hold
        """
        # Enum folds members with equal values into aliases of the first one.
        for alias, member in self.enum_type.__members__.items():
            if alias != member.name:
                raise TableError(
                    f"{self.kind.noun} variants {member.name} and {alias} "
                    f"share raw name {member.raw_name!r}"
                )

        seen: Dict[str, str] = {}
        for member in self.enum_type:
            if member.raw_name in seen:
                raise TableError(
                    f"{self.kind.noun} variants {seen[member.raw_name]} and "
                    f"{member.name} share raw name {member.raw_name!r}"
                )
            seen[member.raw_name] = member.name

            if self.entries.get(member.raw_name) is not member:
                raise TableError(
                    f"{self.kind.noun} variant {member.name} does not round-trip "
                    f"through raw name {member.raw_name!r}"
                )
            if member.introduced not in API_VERSIONS:
                raise TableError(
                    f"{self.kind.noun} variant {member.name} is tagged with "
                    f"undeclared API version {member.introduced}"
                )

        for token, member in self.entries.items():
            if not isinstance(member, self.enum_type):
                raise TableError(
                    f"token {token!r} maps to {member!r}, which is not a "
                    f"{self.enum_type.__name__}"
                )

    def lookup(self, token: str):
        """Return the member for *token*, or None if the token is unrecognized."""
        return self.entries.get(token)

    def tokens(self) -> Iterable[str]:
        return sorted(self.entries)

    def __contains__(self, token: str) -> bool:
        return token in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def __repr__(self) -> str:
        return f"ClassificationTable({self.kind.name}, {len(self)} tokens)"


OS_TABLE = ClassificationTable(Kind.OS, OsValue)
ABI_TABLE = ClassificationTable(
    Kind.ABI,
    AbiValue,
    extra_tokens={token: AbiValue.Unknown for token in KNOWN_UNSUPPORTED_ABIS},
)


def table_for(kind: Kind) -> ClassificationTable:
    return OS_TABLE if kind is Kind.OS else ABI_TABLE
