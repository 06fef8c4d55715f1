"""CLI interface for target-context."""

import argparse
import json
import logging
import shlex
import sys
from pathlib import Path

from . import __version__
from .assembler import build_module_spec
from .classifier import classify_abi, classify_os
from .config import DiscoverConfig
from .discovery import TargetDiscovery
from .probe import ProbeError
from .table import ABI_TABLE, API_VERSIONS, LATEST_VERSION, OS_TABLE

EXIT_UNRECOGNIZED = 2


def _outcome_to_dict(outcome, value) -> dict:
    if outcome.ok:
        return {"ok": True, "value": value}
    return {"ok": False, "error": outcome.message}


def _bundle_to_dict(bundle) -> dict:
    return {
        "version": bundle.version,
        "os": _outcome_to_dict(bundle.os, bundle.os.variant.name if bundle.os.ok else None),
        "abi": _outcome_to_dict(bundle.abi, bundle.abi.variant.name if bundle.abi.ok else None),
        "abi_name": _outcome_to_dict(bundle.abi, bundle.abi_name if bundle.abi.ok else None),
    }


def _print_bundles(bundles, out=None) -> None:
    out = out or sys.stdout
    for bundle in bundles:
        print(f"V{bundle.version}:", file=out)
        for label, outcome, value in (
            ("os", bundle.os, bundle.os.variant.name if bundle.os.ok else None),
            ("abi", bundle.abi, bundle.abi.variant.name if bundle.abi.ok else None),
            ("abi_name", bundle.abi, bundle.abi_name if bundle.abi.ok else None),
        ):
            shown = value if outcome.ok else f"error: {outcome.message}"
            print(f"  {label:<9} {shown}", file=out)


def _load_config(args) -> DiscoverConfig:
    config = DiscoverConfig.load(args.config) if args.config else DiscoverConfig()
    return config.override(
        compiler=shlex.split(args.cc) if args.cc else None,
        cflags=shlex.split(args.cflags) if args.cflags else None,
        output=args.output,
        module_name=args.module_name,
        scratch_dir=args.scratch_dir,
        strict=True if args.strict else None,
        timeout=args.timeout,
    )


def cmd_discover(args):
    """Probe the toolchain and write the generated module."""
    try:
        config = _load_config(args)
        discoverer = TargetDiscovery(config)
        discovery = discoverer.discover(os_token=args.os_token, abi_token=args.abi_token)
    except (ProbeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if discovery.unrecognized and config.strict:
        for failure in discovery.unrecognized:
            print(f"Error: {failure.message}", file=sys.stderr)
        return EXIT_UNRECOGNIZED

    try:
        changed = discoverer.emit(discovery)
    except OSError as e:
        print(f"Error: cannot write {config.output}: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        _print_bundles(discovery.module.bundles, out=sys.stderr)
    state = "written" if changed else "unchanged"
    print(f"{config.output}: {state} "
          f"(OS={discovery.tokens.os_token}, ABI={discovery.tokens.abi_token})")
    return 0


def cmd_classify(args):
    """Classify explicit tokens and show the outcome for every API version."""
    os_result = classify_os(args.os_token)
    abi_result = classify_abi(args.abi_token)
    try:
        module = build_module_spec("c_abi", os_result, abi_result,
                                   versions=args.versions or API_VERSIONS)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps([_bundle_to_dict(b) for b in module.bundles], indent=2))
    else:
        _print_bundles(module.bundles)

    return 0 if os_result.ok and abi_result.ok else EXIT_UNRECOGNIZED


def cmd_table(args):
    """Print the classification tables."""
    version = LATEST_VERSION if args.at_version is None else args.at_version
    if version not in API_VERSIONS:
        print(f"Error: unsupported API version {version}", file=sys.stderr)
        return 1

    rows = []
    for table in (OS_TABLE, ABI_TABLE):
        for token in table.tokens():
            variant = table.lookup(token)
            if variant.available_at(version):
                rows.append({
                    "kind": table.kind.name,
                    "token": token,
                    "variant": variant.name,
                    "name": variant.raw_name,
                    "introduced": variant.introduced,
                })

    if args.format == "json":
        print(json.dumps(rows, indent=2))
    else:
        print(f"Classification table at API version {version} ({len(rows)} tokens):")
        for row in rows:
            alias = "" if row["token"] == row["name"] else f" -> {row['name']}"
            print(f"  {row['kind']:<3}  {row['token']:<18} {row['variant']:<18} "
                  f"v{row['introduced']}{alias}")
    return 0


def create_parser():
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="target-context",
        description="Detect the OS and ABI targeted by the native C compiler and "
                    "generate versioned Python enumerations for them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Probe $CC and write c_abi.py
  target-context discover --output src/c_abi.py

  # Probe a cross compiler configured in YAML
  target-context discover --config target-context.yaml

  # Inspect how tokens project onto each API version
  target-context classify Linux linux_x86

Exit codes:
  0 = Success
  1 = Error (toolchain, configuration or I/O)
  2 = Unrecognized OS or ABI token (discover --strict, classify)
"""
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # discover
    disc = subparsers.add_parser("discover", help="Probe the toolchain and write the generated module")
    disc.add_argument("--config", type=Path, help="YAML configuration file")
    disc.add_argument("--cc", help="C compiler command (default: $CC or cc)")
    disc.add_argument("--cflags", metavar="FLAGS",
                      help="Extra compiler flags as one string, e.g. --cflags=\"-m64 -O2\"")
    disc.add_argument("--output", type=Path, help="Generated module path (default: c_abi.py)")
    disc.add_argument("--module-name", help="Name recorded in the generated module docstring")
    disc.add_argument("--scratch-dir", type=Path,
                      help="Directory for the temporary probe files (default: a temp dir)")
    disc.add_argument("--timeout", type=float, help="Compiler timeout in seconds")
    disc.add_argument("--os-token", help="Use this OS token instead of probing")
    disc.add_argument("--abi-token", help="Use this ABI token instead of probing")
    disc.add_argument("--strict", action="store_true",
                      help="Fail instead of embedding an unrecognized-token error in the output")
    disc.add_argument("-v", "--verbose", action="store_true")

    # classify
    cls = subparsers.add_parser("classify", help="Classify OS and ABI tokens per API version")
    cls.add_argument("os_token", help="Raw OS token (e.g. Linux)")
    cls.add_argument("abi_token", help="Raw ABI token (e.g. linux_x86_64)")
    cls.add_argument("--versions", type=int, nargs="+", metavar="N",
                     help="API versions to project onto (default: all)")
    cls.add_argument("--format", choices=["text", "json"], default="text")
    cls.add_argument("-v", "--verbose", action="store_true")

    # table
    tbl = subparsers.add_parser("table", help="Print the classification table")
    tbl.add_argument("--at-version", type=int, metavar="N",
                     help="Only show variants available at API version N")
    tbl.add_argument("--format", choices=["text", "json"], default="text")
    tbl.add_argument("-v", "--verbose", action="store_true")

    return parser


def main(argv=None):
    """Entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    handlers = {
        "discover": cmd_discover,
        "classify": cmd_classify,
        "table":    cmd_table,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
