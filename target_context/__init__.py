"""Detect the OS and ABI targeted by a native C toolchain.

Provides:
- A classification table of known OS/ABI tokens, tagged by API version
- Classification of raw probe tokens into typed values
- Projection of a classification onto older API versions
- Generation of a Python module exposing one namespace per API version
"""

__version__ = "0.1.0"

from .table import API_VERSIONS, LATEST_VERSION, AbiValue, Kind, OsValue, TableError
from .classifier import ClassificationError, Resolved, classify, classify_abi, classify_os
from .projector import VersionGateError, project
from .assembler import ModuleSpec, VersionedBundle, assemble, build_module_spec
from .probe import ProbeError, ProbeResult, Toolchain, probe
from .render import render, write

__all__ = [
    'API_VERSIONS',
    'LATEST_VERSION',
    'AbiValue',
    'Kind',
    'OsValue',
    'TableError',
    'ClassificationError',
    'Resolved',
    'classify',
    'classify_abi',
    'classify_os',
    'VersionGateError',
    'project',
    'ModuleSpec',
    'VersionedBundle',
    'assemble',
    'build_module_spec',
    'ProbeError',
    'ProbeResult',
    'Toolchain',
    'probe',
    'render',
    'write',
]
