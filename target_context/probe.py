"""Ask the native C toolchain which OS and ABI it targets.

The probe writes a small header that turns compiler-predefined macros into
``DKML_OS_NAME`` and ``DKML_ABI`` string literals, runs the preprocessor over a
source file that expands both macros, and reads the two strings back.
"""

import logging
import os
import re
import shlex
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional

logger = logging.getLogger(__name__)


PROBE_HEADER_NAME = "target_context_probe.h"
PROBE_SOURCE_NAME = "target_context_probe.c"

PROBE_HEADER = """\
#ifndef TARGET_CONTEXT_PROBE_H
#define TARGET_CONTEXT_PROBE_H

#if defined(__ANDROID__)
#  define DKML_OS_NAME "Android"
#elif defined(__APPLE__)
#  include <TargetConditionals.h>
#  if TARGET_OS_IPHONE
#    define DKML_OS_NAME "IOS"
#  else
#    define DKML_OS_NAME "OSX"
#  endif
#elif defined(__linux__)
#  define DKML_OS_NAME "Linux"
#elif defined(_WIN32)
#  define DKML_OS_NAME "Windows"
#else
#  define DKML_OS_NAME "Unknown"
#endif

#if defined(__ANDROID__)
#  if defined(__aarch64__)
#    define DKML_ABI "android_arm64v8a"
#  elif defined(__arm__)
#    define DKML_ABI "android_arm32v7a"
#  elif defined(__x86_64__)
#    define DKML_ABI "android_x86_64"
#  elif defined(__i386__)
#    define DKML_ABI "android_x86"
#  else
#    define DKML_ABI "unknown"
#  endif
#elif defined(__APPLE__)
#  if defined(__aarch64__) || defined(__arm64__)
#    define DKML_ABI "darwin_arm64"
#  elif defined(__x86_64__)
#    define DKML_ABI "darwin_x86_64"
#  elif defined(__ppc64__)
#    define DKML_ABI "darwin_ppc64"
#  else
#    define DKML_ABI "unknown"
#  endif
#elif defined(__linux__)
#  if defined(__aarch64__)
#    define DKML_ABI "linux_arm64"
#  elif defined(__arm__) && defined(__ARM_ARCH) && __ARM_ARCH >= 7
#    define DKML_ABI "linux_arm32v7"
#  elif defined(__arm__) && defined(__ARM_ARCH) && __ARM_ARCH == 6
#    define DKML_ABI "linux_arm32v6"
#  elif defined(__x86_64__)
#    define DKML_ABI "linux_x86_64"
#  elif defined(__i386__)
#    define DKML_ABI "linux_x86"
#  elif defined(__powerpc64__)
#    define DKML_ABI "linux_ppc64"
#  elif defined(__s390x__)
#    define DKML_ABI "linux_s390x"
#  else
#    define DKML_ABI "unknown"
#  endif
#elif defined(_WIN32)
#  if defined(_M_ARM64) || defined(__aarch64__)
#    define DKML_ABI "windows_arm64"
#  elif defined(_M_ARM) || defined(__arm__)
#    define DKML_ABI "windows_arm32"
#  elif defined(_M_X64) || defined(__x86_64__)
#    define DKML_ABI "windows_x86_64"
#  elif defined(_M_IX86) || defined(__i386__)
#    define DKML_ABI "windows_x86"
#  else
#    define DKML_ABI "unknown"
#  endif
#else
#  define DKML_ABI "unknown"
#endif

#endif /* TARGET_CONTEXT_PROBE_H */
"""

_OS_MARKER = "target_context_os"
_ABI_MARKER = "target_context_abi"

PROBE_SOURCE = f"""\
#include "{PROBE_HEADER_NAME}"
{_OS_MARKER} DKML_OS_NAME
{_ABI_MARKER} DKML_ABI
"""

_MARKER_RE = re.compile(r'^\s*(target_context_os|target_context_abi)\s+"([^"\\]*)"\s*$')


class ProbeError(RuntimeError):
    """Raised when the toolchain cannot be invoked or the macros are missing."""


@dataclass(frozen=True)
class ProbeResult:
    """Raw tokens returned by the toolchain."""
    os_token: str
    abi_token: str
    compiler: str = ""


@dataclass
class Toolchain:
    """C compiler command used for the probe.

    ``command`` may carry its own leading flags (``["clang", "--target=..."]``);
    when empty it falls back to ``$CC`` and then ``cc``.
    """
    command: List[str] = field(default_factory=list)
    cflags: List[str] = field(default_factory=list)
    timeout: float = 60.0

    def __post_init__(self):
        if not self.command:
            self.command = shlex.split(os.environ.get("CC", "")) or ["cc"]

    def resolve(self) -> List[str]:
        """Return the command with its executable resolved to an absolute path.

        Raises:
            ProbeError: If the executable is not found in PATH
        """
        executable = shutil.which(self.command[0])
        if not executable:
            raise ProbeError(
                f"C compiler {self.command[0]!r} not found in PATH. "
                f"Set CC or pass --cc."
            )
        return [executable, *self.command[1:]]


@contextmanager
def _scratch(scratch_dir: Optional[Path]) -> Iterator[Path]:
    """Yield a directory for the probe files and clean them up afterwards.

    A caller-supplied directory is kept, only the files written into it are
    removed; otherwise a temporary directory is created and deleted.
    """
    if scratch_dir is None:
        with tempfile.TemporaryDirectory(prefix="target-context-") as tmp:
            yield Path(tmp)
        return

    scratch_dir = Path(scratch_dir)
    scratch_dir.mkdir(parents=True, exist_ok=True)
    written = [scratch_dir / PROBE_HEADER_NAME, scratch_dir / PROBE_SOURCE_NAME]
    existing = [path.name for path in written if path.exists()]
    if existing:
        raise ProbeError(
            f"Refusing to overwrite {', '.join(existing)} in scratch directory "
            f"{scratch_dir}; remove it or choose another --scratch-dir"
        )
    try:
        yield scratch_dir
    finally:
        for path in written:
            try:
                path.unlink()
            except FileNotFoundError:
                pass


def parse_preprocessed(output: str) -> ProbeResult:
    """Extract the two macro strings from preprocessor output.

    Raises:
        ProbeError: If either marker is missing or was left unexpanded
    """
    found = {}
    for line in output.splitlines():
        if line.lstrip().startswith("#"):
            continue
        match = _MARKER_RE.match(line)
        if match:
            found[match.group(1)] = match.group(2)

    missing = [m for m in (_OS_MARKER, _ABI_MARKER) if m not in found]
    if missing:
        macros = {_OS_MARKER: "DKML_OS_NAME", _ABI_MARKER: "DKML_ABI"}
        raise ProbeError(
            f"No detection found in {PROBE_HEADER_NAME}: "
            f"{', '.join(macros[m] for m in missing)} did not expand to a string"
        )
    return ProbeResult(os_token=found[_OS_MARKER], abi_token=found[_ABI_MARKER])


def probe(toolchain: Optional[Toolchain] = None,
          scratch_dir: Optional[Path] = None) -> ProbeResult:
    """Run the C preprocessor and return the raw OS and ABI tokens.

    Args:
        toolchain: Compiler to probe (default: $CC or cc)
        scratch_dir: Where to write the probe files; a temporary directory
            is used when omitted. Probe files are removed on every exit path.

    Raises:
        ProbeError: If the compiler is missing, fails, times out or does not
            define the macros
    """
    toolchain = toolchain or Toolchain()
    command = toolchain.resolve()

    with _scratch(scratch_dir) as workdir:
        (workdir / PROBE_HEADER_NAME).write_text(PROBE_HEADER)
        source = workdir / PROBE_SOURCE_NAME
        source.write_text(PROBE_SOURCE)

        cmd = [*command, *toolchain.cflags, "-E", "-I", str(workdir), str(source)]
        logger.debug("Probing toolchain: %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd, capture_output=True, text=True, check=False,
                timeout=toolchain.timeout, cwd=str(workdir),
            )
        except FileNotFoundError:
            raise ProbeError(f"C compiler executable not found: {command[0]!r}") from None
        except subprocess.TimeoutExpired as e:
            logger.error("Timed out after %ss while probing %s", toolchain.timeout, command[0])
            raise ProbeError(f"Timed out while probing {command[0]}") from e

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        raise ProbeError(
            f"C preprocessor failed (rc={result.returncode}): {stderr[-300:] or '(no output)'}"
        )

    parsed = parse_preprocessed(result.stdout)
    logger.info("Toolchain reports OS=%s ABI=%s", parsed.os_token, parsed.abi_token)
    return ProbeResult(os_token=parsed.os_token, abi_token=parsed.abi_token,
                       compiler=command[0])
