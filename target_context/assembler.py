"""Combine OS and ABI classifications into one bundle per API version."""

from dataclasses import dataclass, field
from typing import Iterable, List, Union

from .projector import Projection, project
from .table import API_VERSIONS


@dataclass(frozen=True)
class VersionedBundle:
    """Projected OS and ABI outcomes for a single API version."""
    version: int
    os: Projection
    abi: Projection

    @property
    def abi_name(self) -> Union[str, Projection]:
        """Canonical raw ABI name, or the same failure as ``abi``."""
        return self.abi.name if self.abi.ok else self.abi


@dataclass(frozen=True)
class ModuleSpec:
    """A named, ordered (oldest first) list of bundles to render."""
    name: str
    bundles: List[VersionedBundle] = field(default_factory=list)

    @property
    def versions(self) -> List[int]:
        return [b.version for b in self.bundles]

    @property
    def latest(self) -> VersionedBundle:
        return self.bundles[-1]

    def bundle(self, version: int) -> VersionedBundle:
        for b in self.bundles:
            if b.version == version:
                return b
        raise KeyError(f"No bundle for API version {version} in module {self.name!r}")


def assemble(os_classification: Projection, abi_classification: Projection,
             versions: Iterable[int] = API_VERSIONS) -> List[VersionedBundle]:
    """Project both classifications to every version, oldest first."""
    return [
        VersionedBundle(
            version=version,
            os=project(os_classification, version),
            abi=project(abi_classification, version),
        )
        for version in sorted(set(versions))
    ]


def build_module_spec(name: str, os_classification: Projection,
                      abi_classification: Projection,
                      versions: Iterable[int] = API_VERSIONS) -> ModuleSpec:
    bundles = assemble(os_classification, abi_classification, versions)
    if not bundles:
        raise ValueError(f"Module {name!r} needs at least one API version")
    return ModuleSpec(name=name, bundles=bundles)
