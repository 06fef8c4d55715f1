"""Resolve raw probe tokens against the classification tables."""

from dataclasses import dataclass
from typing import Union

from .probe import PROBE_HEADER_NAME
from .table import ABI_TABLE, OS_TABLE, ClassificationTable, Kind


@dataclass(frozen=True)
class Resolved:
    """A successfully classified token.

    ``name`` is the canonical raw name of ``variant``, which can differ from
    the probed token for known-unsupported platforms (``darwin_ppc64`` resolves
    to ``Unknown`` / ``"unknown"``).
    """
    variant: object
    name: str
    kind: Kind

    ok = True


@dataclass(frozen=True)
class ClassificationError:
    """The probe returned a token that no table entry matches."""
    token: str
    kind: Kind
    header: str = PROBE_HEADER_NAME

    ok = False

    @property
    def message(self) -> str:
        return (
            f"Unknown {self.kind.noun} {self.token!r}: "
            f"no detection found in {self.header}"
        )

    def __str__(self) -> str:
        return self.message


Classification = Union[Resolved, ClassificationError]


def classify(token: str, table: ClassificationTable,
             header: str = PROBE_HEADER_NAME) -> Classification:
    """Classify *token* by exact match against *table*.

    Args:
        token: Raw string returned by the probe
        table: Table for the enumeration being resolved
        header: Probe header file name, quoted in the failure message

    Returns:
        Resolved on a match, ClassificationError otherwise
    """
    variant = table.lookup(token)
    if variant is None:
        return ClassificationError(token=token, kind=table.kind, header=header)
    return Resolved(variant=variant, name=variant.raw_name, kind=table.kind)


def classify_os(token: str, header: str = PROBE_HEADER_NAME) -> Classification:
    return classify(token, OS_TABLE, header)


def classify_abi(token: str, header: str = PROBE_HEADER_NAME) -> Classification:
    return classify(token, ABI_TABLE, header)
