"""
Configuration for the ink localiser.

Settings come from defaults, an optional ``inkloc.yaml`` file and
environment variable overrides, in that order. Command line flags are
applied on top by the CLI.

Author: inkloc contributors | 2026-10-18
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional
import os
import logging

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "inkloc.yaml"

_TRUE_VALUES = ("true", "1", "yes", "on")


@dataclass
class LocaliserConfig:
    """
    Localiser run settings.

    Attributes:
        retag_all: Give every text run a fresh ID, replacing existing tags
        debug_output_suffix: Write patched files next to the sources
            (``<path><output_suffix>``) instead of overwriting them
        output_suffix: Suffix used when debug_output_suffix is on
        id_suffix_length: Random characters at the end of each ID
        unique_ids: Redraw IDs that collide with one already in the table
        max_id_attempts: Redraw limit for unique_ids
        file_pattern: Glob used when a folder is given
        recursive: Search sub-folders for sources
        seed: Seed for the ID generator (None = nondeterministic)
        json_output: Optional path for a JSON string table
        csv_output: Optional path for a CSV string table
    """
    retag_all: bool = False
    debug_output_suffix: bool = True
    output_suffix: str = ".txt"
    id_suffix_length: int = 4
    unique_ids: bool = False
    max_id_attempts: int = 32
    file_pattern: str = "*.ink"
    recursive: bool = True
    seed: Optional[int] = None
    json_output: Optional[str] = None
    csv_output: Optional[str] = None

    def __post_init__(self):
        if self.id_suffix_length < 1:
            logger.warning(f"id_suffix_length={self.id_suffix_length} must be >= 1, using 4")
            self.id_suffix_length = 4
        if self.max_id_attempts < 1:
            logger.warning(f"max_id_attempts={self.max_id_attempts} must be >= 1, using 1")
            self.max_id_attempts = 1
        if self.debug_output_suffix and not self.output_suffix:
            logger.warning("Empty output_suffix would overwrite sources, using '.txt'")
            self.output_suffix = ".txt"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "retag_all": self.retag_all,
            "debug_output_suffix": self.debug_output_suffix,
            "output_suffix": self.output_suffix,
            "id_suffix_length": self.id_suffix_length,
            "unique_ids": self.unique_ids,
            "max_id_attempts": self.max_id_attempts,
            "file_pattern": self.file_pattern,
            "recursive": self.recursive,
            "seed": self.seed,
            "json_output": self.json_output,
            "csv_output": self.csv_output,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "LocaliserConfig":
        output = d.get("output", {}) or {}
        return cls(
            retag_all=d.get("retag_all", False),
            debug_output_suffix=d.get("debug_output_suffix", True),
            output_suffix=d.get("output_suffix", ".txt"),
            id_suffix_length=d.get("id_suffix_length", 4),
            unique_ids=d.get("unique_ids", False),
            max_id_attempts=d.get("max_id_attempts", 32),
            file_pattern=d.get("file_pattern", "*.ink"),
            recursive=d.get("recursive", True),
            seed=d.get("seed"),
            json_output=output.get("json", d.get("json_output")),
            csv_output=output.get("csv", d.get("csv_output")),
        )


def find_config_file(start_path: Optional[Path] = None) -> Optional[Path]:
    """
    Find inkloc.yaml by searching upward from start_path.

    Search order:
    1. start_path / inkloc.yaml
    2. start_path / .inkloc / inkloc.yaml
    3. Parent directories (recursive)
    4. ~/.config/inkloc/inkloc.yaml
    """
    if start_path is None:
        start_path = Path.cwd()

    current = Path(start_path).resolve()
    for _ in range(10):  # Max 10 levels up
        for candidate in (current / CONFIG_FILE_NAME, current / ".inkloc" / CONFIG_FILE_NAME):
            if candidate.exists():
                return candidate
        parent = current.parent
        if parent == current:
            break
        current = parent

    user_config = Path.home() / ".config" / "inkloc" / CONFIG_FILE_NAME
    if user_config.exists():
        return user_config

    return None


def _apply_env_overrides(config: LocaliserConfig) -> LocaliserConfig:
    """
    Environment overrides:
    - INKLOC_RETAG_ALL -> retag_all
    - INKLOC_DEBUG_OUTPUT -> debug_output_suffix
    - INKLOC_SEED -> seed
    """
    if os.environ.get("INKLOC_RETAG_ALL"):
        config.retag_all = os.environ["INKLOC_RETAG_ALL"].lower() in _TRUE_VALUES

    if os.environ.get("INKLOC_DEBUG_OUTPUT"):
        config.debug_output_suffix = os.environ["INKLOC_DEBUG_OUTPUT"].lower() in _TRUE_VALUES

    if os.environ.get("INKLOC_SEED"):
        try:
            config.seed = int(os.environ["INKLOC_SEED"])
        except ValueError:
            logger.warning(f"Ignoring non-integer INKLOC_SEED={os.environ['INKLOC_SEED']!r}")

    return config


def load_config(config_path: Optional[Path] = None) -> LocaliserConfig:
    """
    Load configuration from YAML with environment variable overrides.

    Args:
        config_path: Path to config file (auto-detected if None)

    Returns:
        LocaliserConfig instance (defaults when no file is found)
    """
    config = LocaliserConfig()

    if config_path is None:
        config_path = find_config_file()

    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
            config = LocaliserConfig.from_dict(data)
        except (OSError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load config: {e}, using defaults")
    else:
        logger.debug("No config file found, using defaults")

    return _apply_env_overrides(config)


def save_config(config: LocaliserConfig, config_path: Path) -> Path:
    """Write the configuration as YAML."""
    config_path = Path(config_path)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
    return config_path


# ---------------------------------------------------------------------------
# Global singleton
# ---------------------------------------------------------------------------

_global_config: Optional[LocaliserConfig] = None


def get_localiser_config() -> LocaliserConfig:
    """Get global localiser configuration (lazy-loaded default)."""
    global _global_config
    if _global_config is None:
        _global_config = LocaliserConfig()
    return _global_config


def set_localiser_config(config: LocaliserConfig) -> None:
    """Set the global localiser configuration."""
    global _global_config
    _global_config = config
