"""
Configuration for the nftlife.io module.

Defines IoSettings, a frozen dataclass carrying runtime configuration for the record
files, the Parquet journal, and logging. Defaults are sourced from
nftlife.core.constants.

Precedence: env (``NFTLIFE_IO_<FIELD>``) > TOML > defaults. TOML is looked up in
``./nftlife.toml`` (an ``[io]`` table or top-level keys), then in
``./pyproject.toml`` under ``[tool.nftlife.io]``. Values that do not parse are
ignored, leaving the lower layer in place.

Import DAG discipline
- Depends only on stdlib and nftlife.core.constants.
- Does not import nftlife.lifecycle or nftlife.ledger.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Literal

from nftlife.core.constants import COMPRESSION as CORE_COMPRESSION
from nftlife.core.constants import JOURNAL_BUCKET_SECONDS as CORE_JOURNAL_BUCKET_SECONDS
from nftlife.core.constants import ROW_GROUP_SIZE as CORE_ROW_GROUP_SIZE

from .errors import IoConfigError

Compression = Literal["zstd", "lz4", "snappy"]
LogLevel = Literal["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]

_COMPRESSIONS: frozenset[str] = frozenset({"zstd", "lz4", "snappy"})
_LOG_LEVELS: frozenset[str] = frozenset(
    {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
)


def _flag(v: Any) -> bool:
    if isinstance(v, str):
        return v.strip().lower() in {"1", "true", "t", "yes", "y", "on"}
    return bool(v)


def _choice(allowed: frozenset[str], normalize: Callable[[str], str]) -> Callable[[Any], str]:
    def parse(v: Any) -> str:
        value = normalize(str(v).strip())
        if value not in allowed:
            raise ValueError(f"{v!r} not in {sorted(allowed)}")
        return value

    return parse


def _path(v: Any) -> str:
    if not isinstance(v, str) or not v.strip():
        raise ValueError("root_dir must be a non-empty string")
    return v


# Field -> parser. A parser raising ValueError/TypeError leaves the field unchanged.
_PARSERS: dict[str, Callable[[Any], Any]] = {
    "root_dir": _path,
    "journal_bucket_seconds": int,
    "row_group_size": int,
    "compression": _choice(_COMPRESSIONS, str.lower),
    "strict_schema": _flag,
    "journal_enabled": _flag,
    "log_level": _choice(_LOG_LEVELS, str.upper),
}


def _toml_section(path: str | os.PathLike[str] | None, section: str) -> dict[str, Any]:
    candidates = (
        [Path(path)] if path is not None else [Path.cwd() / "nftlife.toml", Path.cwd() / "pyproject.toml"]
    )
    for candidate in candidates:
        try:
            with candidate.open("rb") as fh:
                data = tomllib.load(fh)
        except (OSError, tomllib.TOMLDecodeError):
            continue
        if candidate.name == "pyproject.toml":
            cfg = data.get("tool", {}).get("nftlife", {}).get(section, {})
        else:
            cfg = data[section] if isinstance(data.get(section), dict) else data
        if cfg:
            return cfg
    return {}


@dataclass(frozen=True)
class IoSettings:
    """
    Runtime settings for the nftlife.io layer.

    Attributes:
        root_dir (str): Root under which records and the journal are stored.
        journal_bucket_seconds (int): Seconds per journal bucket (default one day).
            Pinned per table by its manifest once the table is written.
        row_group_size (int): Parquet row group size used for writes.
        compression (Literal["zstd","lz4","snappy"]): Parquet compression codec.
        strict_schema (bool): If True, reject journal frames with columns outside the
            nftlife.core.tables descriptor.
        journal_enabled (bool): If False, the ledger skips journal writes entirely.
        log_level (str): loguru level name applied by nftlife.io.logs.configure_logging.

    Raises:
        IoConfigError: If journal_bucket_seconds or row_group_size is < 1.

    Examples:
        >>> from nftlife.io import IoSettings
        >>> IoSettings().override({"compression": "LZ4", "row_group_size": "oops"}).compression
        'lz4'
    """

    root_dir: str = "ledger"
    journal_bucket_seconds: int = CORE_JOURNAL_BUCKET_SECONDS
    row_group_size: int = CORE_ROW_GROUP_SIZE
    compression: Compression = CORE_COMPRESSION  # type: ignore[assignment]
    strict_schema: bool = True
    journal_enabled: bool = True
    log_level: LogLevel = "INFO"

    def __post_init__(self) -> None:
        if self.journal_bucket_seconds < 1:
            raise IoConfigError("journal_bucket_seconds must be >= 1")
        if self.row_group_size < 1:
            raise IoConfigError("row_group_size must be >= 1")

    def override(self, cfg: dict[str, Any]) -> IoSettings:
        """Return a copy with every recognized, parseable key of ``cfg`` applied."""
        changes: dict[str, Any] = {}
        for name, parse in _PARSERS.items():
            if cfg.get(name) in (None, ""):
                continue
            try:
                changes[name] = parse(cfg[name])
            except (TypeError, ValueError):
                continue
        return replace(self, **changes)

    @classmethod
    def from_env(cls, base: IoSettings | None = None, prefix: str = "NFTLIFE_IO_") -> IoSettings:
        """Overlay ``<prefix><FIELD>`` variables on ``base`` (or the defaults)."""
        env = {name: os.getenv(prefix + name.upper()) for name in _PARSERS}
        return (base or cls()).override(env)

    @classmethod
    def from_toml(cls, path: str | os.PathLike[str] | None = None) -> IoSettings:
        return cls().override(_toml_section(path, "io"))

    @classmethod
    def load(cls, path: str | os.PathLike[str] | None = None) -> IoSettings:
        """Load IoSettings applying precedence: environment > TOML > defaults."""
        return cls.from_env(base=cls.from_toml(path))
