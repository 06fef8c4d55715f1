"""High-level discovery façade used by the CLI."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .assembler import ModuleSpec, build_module_spec
from .classifier import Classification, classify_abi, classify_os
from .config import DiscoverConfig
from .probe import ProbeResult, Toolchain, probe
from .render import render, write

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Discovery:
    """Everything computed by one configuration run."""
    tokens: ProbeResult
    os: Classification
    abi: Classification
    module: ModuleSpec

    @property
    def unrecognized(self) -> list:
        return [c for c in (self.os, self.abi) if not c.ok]


class TargetDiscovery:
    """Probe once, classify once, assemble once."""

    def __init__(self, config: Optional[DiscoverConfig] = None) -> None:
        self.config = config or DiscoverConfig()

    def probe(self) -> ProbeResult:
        toolchain = Toolchain(
            command=list(self.config.compiler),
            cflags=list(self.config.cflags),
            timeout=self.config.timeout,
        )
        return probe(toolchain, scratch_dir=self.config.scratch_dir)

    def discover(self, os_token: Optional[str] = None,
                 abi_token: Optional[str] = None) -> Discovery:
        """Classify the toolchain's tokens, probing only when a token is not given."""
        if os_token is None or abi_token is None:
            probed = self.probe()
            tokens = ProbeResult(
                os_token=probed.os_token if os_token is None else os_token,
                abi_token=probed.abi_token if abi_token is None else abi_token,
                compiler=probed.compiler,
            )
        else:
            tokens = ProbeResult(os_token=os_token, abi_token=abi_token)

        os_result = classify_os(tokens.os_token)
        abi_result = classify_abi(tokens.abi_token)
        for result in (os_result, abi_result):
            if not result.ok:
                logger.warning("%s", result.message)

        module = build_module_spec(self.config.module_name, os_result, abi_result)
        return Discovery(tokens=tokens, os=os_result, abi=abi_result, module=module)

    def emit(self, discovery: Discovery) -> bool:
        """Render and write the generated module; True if the file changed."""
        return write(render(discovery.module), self.config.output)
