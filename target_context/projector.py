"""Project a classification onto a historical API version."""

from dataclasses import dataclass
from typing import Union

from .classifier import Classification
from .table import API_VERSIONS, Kind


@dataclass(frozen=True)
class VersionGateError:
    """A classified value that did not exist yet in the targeted API version."""
    kind: Kind
    variant: str
    name: str
    required: int
    target: int

    ok = False

    @property
    def message(self) -> str:
        label = "OS" if self.kind is Kind.OS else "ABI"
        shown = self.variant if self.name == self.variant else f"{self.variant} ({self.name})"
        return (
            f"{label} {shown} is only available in API version {self.required} "
            f"or later; this module targets version {self.target}"
        )

    def __str__(self) -> str:
        return self.message


Projection = Union[Classification, VersionGateError]


def project(classification: Projection, target_version: int) -> Projection:
    """Gate *classification* by the introduction version of its variant.

    Failures pass through unchanged, so a version gate never masks an earlier
    error. A success is returned as-is when its variant exists at
    *target_version*.

    Raises:
        ValueError: If target_version is not a declared API version
    """
    if target_version not in API_VERSIONS:
        raise ValueError(
            f"Unsupported API version {target_version}. "
            f"Declared versions: {', '.join(str(v) for v in API_VERSIONS)}"
        )
    if not classification.ok:
        return classification

    variant = classification.variant
    if variant.available_at(target_version):
        return classification
    return VersionGateError(
        kind=classification.kind,
        variant=variant.name,
        name=classification.name,
        required=variant.introduced,
        target=target_version,
    )
