"""TOML configuration for the study-quiz commands."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, MutableMapping

try:  # Python >= 3.11 ships ``tomllib`` in the stdlib.
    import tomllib
except ModuleNotFoundError as exc:  # pragma: no cover - interpreter guard
    raise RuntimeError("Python 3.11+ is required for tomllib support.") from exc

__all__ = [
    "CONFIG_FILENAME",
    "CONFIG_TEMPLATE",
    "DEFAULT_CONFIG",
    "QuizConfig",
    "TomlConfigError",
    "find_config",
    "load_config",
    "load_toml",
    "merge_defaults",
    "write_config_template",
]

CONFIG_FILENAME = "study-quiz.toml"

DEFAULT_CONFIG: Mapping[str, Any] = {
    "quiz": {"catalog": "questions.json"},
    "storage": {"directory": ""},
    "logging": {"level": "INFO", "verbose": False},
}

CONFIG_TEMPLATE = """\
# study-quiz configuration

[quiz]
# Question catalog (JSON document with a top-level "questions" list).
# Relative paths resolve against this file's directory.
catalog = "questions.json"

[storage]
# Directory for saved sessions; empty means <workspace>/sessions
directory = ""

[logging]
level = "INFO"
verbose = false
"""


class TomlConfigError(RuntimeError):
    """A ``study-quiz.toml`` file is missing, malformed or has bad keys."""


@dataclass(frozen=True)
class QuizConfig:
    """Resolved settings for one CLI invocation."""

    catalog_path: Path
    storage_dir: Path | None
    log_level: str
    verbose: bool
    source: Path | None = None


def load_toml(path: Path) -> Mapping[str, Any]:
    """Read the raw tables of a ``study-quiz.toml`` file."""

    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError as exc:
        raise TomlConfigError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise TomlConfigError(f"Could not parse {path.name}: {exc}") from exc


def merge_defaults(
    base: MutableMapping[str, Any],
    override: Mapping[str, Any],
    *,
    source: str = CONFIG_FILENAME,
    prefix: str = "",
) -> None:
    """Overlay the tables of ``override`` onto ``base`` in place.

    Only keys that already exist in ``base`` are accepted. Errors name the
    file (``source``) and the dotted key, and list the keys allowed there.
    """

    for key, value in override.items():
        dotted = f"{prefix}{key}"
        if key not in base:
            allowed = ", ".join(sorted(base))
            raise TomlConfigError(
                f"{source}: unknown key '{dotted}' (allowed: {allowed})."
            )
        current = base[key]
        if isinstance(current, MutableMapping):
            if not isinstance(value, Mapping):
                raise TomlConfigError(
                    f"{source}: '{dotted}' must be a [{dotted}] table, "
                    f"not {type(value).__name__}."
                )
            merge_defaults(current, value, source=source, prefix=f"{dotted}.")
        elif isinstance(value, Mapping):
            raise TomlConfigError(
                f"{source}: '{dotted}' is a setting, not a table."
            )
        else:
            base[key] = value


def find_config(
    explicit: str | Path | None, *, search: tuple[Path, ...] = ()
) -> Path | None:
    """Return the config path to use, or ``None`` when none exists.

    An explicit path wins; otherwise the current directory and then each
    entry of ``search`` are checked for ``study-quiz.toml``.
    """

    if explicit:
        candidate = Path(explicit).expanduser().resolve()
        if not candidate.is_file():
            raise TomlConfigError(f"Config file not found: {candidate}")
        return candidate
    for directory in (Path.cwd(), *search):
        candidate = directory / CONFIG_FILENAME
        if candidate.is_file():
            return candidate.resolve()
    return None


def load_config(path: Path | None) -> QuizConfig:
    """Build a :class:`QuizConfig` from ``path`` merged over the defaults."""

    data: MutableMapping[str, Any] = copy.deepcopy(dict(DEFAULT_CONFIG))
    base_dir = Path.cwd()
    if path is not None:
        merge_defaults(data, load_toml(path), source=path.name)
        base_dir = path.parent

    catalog = _require_str(data["quiz"], "catalog", "quiz.catalog")
    storage = _require_str(data["storage"], "directory", "storage.directory")
    level = _require_str(data["logging"], "level", "logging.level")
    verbose = data["logging"]["verbose"]
    if not isinstance(verbose, bool):
        raise TomlConfigError("'logging.verbose' must be a boolean.")

    return QuizConfig(
        catalog_path=_resolve(base_dir, catalog),
        storage_dir=_resolve(base_dir, storage) if storage.strip() else None,
        log_level=level,
        verbose=verbose,
        source=path,
    )


def write_config_template(
    path: Path, *, overwrite: bool = False, mode: int = 0o600
) -> Path:
    """Write :data:`CONFIG_TEMPLATE` to ``path``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    if path.exists() and not overwrite:
        raise TomlConfigError(f"Config already exists: {path}")
    path.write_text(CONFIG_TEMPLATE, encoding="utf-8")
    try:
        path.chmod(mode)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
    return path


def _require_str(table: Mapping[str, Any], key: str, dotted: str) -> str:
    value = table[key]
    if not isinstance(value, str):
        raise TomlConfigError(f"'{dotted}' must be a string.")
    return value


def _resolve(base_dir: Path, raw: str) -> Path:
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute():
        candidate = base_dir / candidate
    return candidate.resolve()
