"""Configuration for a discovery run.

Values come from an optional YAML file and are overridden by command-line
flags. Example::

    compiler: [clang, --target=aarch64-linux-gnu]
    cflags: [-I, vendor/include]
    output: src/c_abi.py
    module_name: c_abi
    scratch_dir: build/probe
    strict: false
    timeout: 60
"""

import shlex
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml


@dataclass
class DiscoverConfig:
    """Settings for probing the toolchain and writing the generated module."""
    compiler: List[str] = field(default_factory=list)
    cflags: List[str] = field(default_factory=list)
    output: Path = Path("c_abi.py")
    module_name: str = "c_abi"
    scratch_dir: Optional[Path] = None
    strict: bool = False
    timeout: float = 60.0

    @classmethod
    def from_dict(cls, data: Dict[str, Any], source: str = "<config>") -> "DiscoverConfig":
        """Build a config from parsed YAML.

        Raises:
            ValueError: On unknown keys or values of the wrong type
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"{source}: expected a mapping at top level")

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(
                f"{source}: unknown key(s) {', '.join(unknown)}. "
                f"Supported keys: {', '.join(sorted(known))}"
            )

        kwargs: Dict[str, Any] = {}
        for key, value in data.items():
            if key in ("compiler", "cflags"):
                kwargs[key] = _as_command(value, key, source)
            elif key in ("output", "scratch_dir"):
                if value is not None and not isinstance(value, str):
                    raise ValueError(f"{source}: '{key}' must be a path string")
                kwargs[key] = Path(value) if value is not None else None
            elif key == "module_name":
                if not isinstance(value, str) or not value:
                    raise ValueError(f"{source}: 'module_name' must be a non-empty string")
                kwargs[key] = value
            elif key == "strict":
                if not isinstance(value, bool):
                    raise ValueError(f"{source}: 'strict' must be true or false")
                kwargs[key] = value
            elif key == "timeout":
                if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                    raise ValueError(f"{source}: 'timeout' must be a positive number")
                kwargs[key] = float(value)
        if kwargs.get("output") is None:
            kwargs.pop("output", None)
        return cls(**kwargs)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "DiscoverConfig":
        """Load a YAML config file."""
        path = Path(path)
        if not path.is_file():
            raise ValueError(f"Config file not found: {path}")
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"{path}: invalid YAML: {e}") from e
        return cls.from_dict(data, source=str(path))

    def override(self, **values: Any) -> "DiscoverConfig":
        """Return a copy with every non-None value in *values* applied."""
        merged = {f.name: getattr(self, f.name) for f in fields(self)}
        for key, value in values.items():
            if key not in merged:
                raise ValueError(f"Unknown config key: {key}")
            if value is not None:
                merged[key] = value
        return DiscoverConfig(**merged)


def _as_command(value: Any, key: str, source: str) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list) and all(isinstance(v, str) for v in value):
        return list(value)
    raise ValueError(f"{source}: '{key}' must be a string or a list of strings")
