"""Configuration loading for packed-registry.

Reads an optional TOML config file from a base directory to control name
listing, override logging, argument decoding strictness and the
registration modules loaded at start-up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for <3.11
    import tomli as tomllib


CONFIG_FILENAMES = ("packed-registry.toml",)


@dataclass
class RegistrySettings:
    sort_names: bool = True
    warn_on_override: bool = True


@dataclass
class DecodeSettings:
    strict: bool = False


@dataclass
class StartupSettings:
    modules: List[str] = field(default_factory=list)


@dataclass
class PackedRegistryConfig:
    registry: RegistrySettings = field(default_factory=RegistrySettings)
    decode: DecodeSettings = field(default_factory=DecodeSettings)
    startup: StartupSettings = field(default_factory=StartupSettings)
    path: Optional[Path] = None

    @property
    def base_dir(self) -> Optional[Path]:
        return self.path.parent if self.path is not None else None

    def startup_module_paths(self) -> List[Path]:
        """Startup modules resolved against the config file's directory."""
        base = self.base_dir or Path.cwd()
        return [(base / module).resolve() for module in self.startup.modules]


def load_config(base_dir: Path) -> PackedRegistryConfig:
    """Load config from the first matching file in ``base_dir``."""

    for filename in CONFIG_FILENAMES:
        candidate = Path(base_dir) / filename
        if not candidate.exists():
            continue
        with candidate.open("rb") as f:
            data = tomllib.load(f)
        return PackedRegistryConfig(
            registry=_parse_registry(data.get("registry", {})),
            decode=_parse_decode(data.get("decode", {})),
            startup=_parse_startup(data.get("startup", {})),
            path=candidate,
        )

    return PackedRegistryConfig()


def _expect_bool(raw: dict, key: str, default: bool, section: str) -> bool:
    value = raw.get(key, default)
    if not isinstance(value, bool):
        raise ValueError(f"[{section}] {key} must be true or false, got {value!r}")
    return value


def _parse_registry(raw: dict) -> RegistrySettings:
    return RegistrySettings(
        sort_names=_expect_bool(raw, "sort_names", True, "registry"),
        warn_on_override=_expect_bool(raw, "warn_on_override", True, "registry"),
    )


def _parse_decode(raw: dict) -> DecodeSettings:
    return DecodeSettings(strict=_expect_bool(raw, "strict", False, "decode"))


def _parse_startup(raw: dict) -> StartupSettings:
    modules = raw.get("modules") or []
    if not isinstance(modules, list) or not all(isinstance(m, str) and m.strip() for m in modules):
        raise ValueError("[startup] modules must be a list of non-empty strings")
    return StartupSettings(modules=list(modules))
