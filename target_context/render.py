"""Render a ModuleSpec as Python source and write it to disk."""

import io
import json
import logging
from pathlib import Path
from typing import Union

from .assembler import ModuleSpec, VersionedBundle
from .probe import PROBE_HEADER_NAME
from .table import AbiValue, OsValue, variants_at

logger = logging.getLogger(__name__)

INDENT = "    "


def _result_expr(outcome, value_expr: str) -> str:
    if outcome.ok:
        return f"Ok({value_expr})"
    return f"Error({outcome.message!r})"


def _render_enum(w, class_name: str, enum_type, version: int) -> None:
    w(f"{INDENT}class {class_name}(enum.Enum):")
    for member in variants_at(enum_type, version):
        w(f"{INDENT * 2}{member.name} = {member.raw_name!r}")
    w()


def _render_query(w, name: str, annotation: str, body: str) -> None:
    w(f"{INDENT}@staticmethod")
    w(f"{INDENT}@functools.lru_cache(maxsize=None)")
    w(f"{INDENT}def {name}() -> {annotation!r}:")
    w(f"{INDENT * 2}return {body}")


def _render_version(w, bundle: VersionedBundle, latest: int) -> None:
    ns = f"V{bundle.version}"
    w(f"class {ns}:")
    if bundle.version == latest:
        w(f'{INDENT}"""Enumerations of the operating system and the ABI, '
          f'from an introspection of the native C compiler."""')
    else:
        w(f'{INDENT}"""New applications should use :class:`V{latest}` instead."""')
    w()
    _render_enum(w, "TOs", OsValue, bundle.version)
    _render_enum(w, "TAbi", AbiValue, bundle.version)

    os_value = f"{ns}.TOs.{bundle.os.variant.name}" if bundle.os.ok else ""
    abi_value = f"{ns}.TAbi.{bundle.abi.variant.name}" if bundle.abi.ok else ""
    abi_name = bundle.abi_name
    abi_name_value = repr(abi_name) if isinstance(abi_name, str) else ""

    _render_query(w, "get_os", f"Result[{ns}.TOs]", _result_expr(bundle.os, os_value))
    w()
    _render_query(w, "get_abi", f"Result[{ns}.TAbi]", _result_expr(bundle.abi, abi_value))
    w()
    _render_query(w, "get_abi_name", "Result[str]", _result_expr(bundle.abi, abi_name_value))


def render(module: ModuleSpec) -> str:
    """Render *module* as one Python module with a class per API version.

    Each ``V<n>`` class only lists the enumeration members that existed at
    version ``n``; values introduced later reach that class as ``Error``.
    """
    out = io.StringIO()

    def w(s: str = "") -> None:
        out.write(s + "\n")

    latest = module.latest.version

    w(f"# Generated by target-context from {PROBE_HEADER_NAME}. Do not edit.")
    w(repr(f"Target operating system and ABI for {module.name}."))
    w()
    w("import dataclasses")
    w("import enum")
    w("import functools")
    w("import typing")
    w()
    w("T = typing.TypeVar(\"T\")")
    w()
    w()
    w("@dataclasses.dataclass(frozen=True)")
    w("class Ok(typing.Generic[T]):")
    w(f"{INDENT}value: T")
    w()
    w(f"{INDENT}ok = True")
    w()
    w()
    w("@dataclasses.dataclass(frozen=True)")
    w("class Error:")
    w(f"{INDENT}message: str")
    w()
    w(f"{INDENT}ok = False")
    w()
    w()
    w("Result = typing.Union[Ok[T], Error]")
    for bundle in module.bundles:
        w()
        w()
        _render_version(w, bundle, latest)

    w()
    w()
    exported = ["Ok", "Error", "Result"] + [f"V{v}" for v in module.versions]
    w(f"__all__ = [{', '.join(json.dumps(name) for name in exported)}]")
    return out.getvalue()


def write(text: str, path: Union[str, Path]) -> bool:
    """Write *text* to *path*, leaving the file untouched if it is unchanged.

    Returns:
        True if the file was (re)written
    """
    path = Path(path)
    data = text.encode("utf-8")
    if path.is_file() and path.read_bytes() == data:
        logger.debug("%s is up to date", path)
        return False
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Wrote %s", path)
    return True
