"""
Configuration management for graphalign.
Handles packaged run defaults and environment-driven settings.
"""
from pathlib import Path
from typing import Any, Dict, Optional
import json
import logging
from copy import deepcopy
from importlib.resources import files

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


_RUN_DEFAULTS_FALLBACK: Dict[str, Any] = {
    "seed": 42,
    "population_size": 50,
    "elitism_count": 5,
    "max_generations": 100,
    "reset_rate": 0.5,
    "catastrophe_threshold": 20,
    "tournament_size": 3,
    "crossover_rate": 0.85,
    "mutation_rate": 0.15,
    "stagnant_rate": 0.5,
    "local_search_interval": 10,
    "target_rate": 0.8,
    "demo_vertices": 15,
    "demo_edges": 30,
}

_INT_KEYS = (
    "seed",
    "population_size",
    "elitism_count",
    "max_generations",
    "catastrophe_threshold",
    "tournament_size",
    "local_search_interval",
    "demo_vertices",
    "demo_edges",
)

_FLOAT_KEYS = (
    "reset_rate",
    "crossover_rate",
    "mutation_rate",
    "stagnant_rate",
    "target_rate",
)


def _coerce(value: Any, cast, default: Any) -> Any:
    """Cast a JSON value, falling back to the default on bad input."""
    try:
        return cast(value)
    except (TypeError, ValueError):
        return cast(default)


def _normalize_run_defaults(raw: Any) -> Dict[str, Any]:
    """Merge loaded JSON defaults with fallbacks and type coercion."""
    merged = deepcopy(_RUN_DEFAULTS_FALLBACK)
    if isinstance(raw, dict):
        merged.update({k: v for k, v in raw.items() if k in merged})

    for key in _INT_KEYS:
        merged[key] = _coerce(merged.get(key), int, _RUN_DEFAULTS_FALLBACK[key])
    for key in _FLOAT_KEYS:
        merged[key] = _coerce(merged.get(key), float, _RUN_DEFAULTS_FALLBACK[key])

    # Elites must leave room for at least one offspring.
    if merged["elitism_count"] >= merged["population_size"]:
        merged["elitism_count"] = max(0, merged["population_size"] - 1)

    return merged


def _load_packaged_run_defaults() -> Dict[str, Any]:
    """Load packaged run defaults JSON with fallback behavior."""
    raw_defaults: Any = {}
    try:
        resource = files("graphalign.defaults").joinpath("run_defaults.json")
        raw_defaults = json.loads(resource.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning(f"Could not load packaged run defaults, using fallback: {e}")
        raw_defaults = {}
    return _normalize_run_defaults(raw_defaults)


_RUN_DEFAULTS = _load_packaged_run_defaults()


def get_run_defaults() -> Dict[str, Any]:
    """Return a copy of normalized run defaults shared by the CLI and pipeline."""
    return deepcopy(_RUN_DEFAULTS)


class GraphAlignConfig(BaseSettings):
    """Environment-driven settings for graphalign."""

    model_config = SettingsConfigDict(
        env_prefix="GRAPHALIGN_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Paths
    runs_dir: Path = Field(default_factory=lambda: Path.cwd() / "graphalign_runs")

    # Logging / console
    log_level: str = "INFO"
    show_progress: bool = False


_config_instance: Optional[GraphAlignConfig] = None


def get_config() -> GraphAlignConfig:
    """Get or create the global config instance."""
    global _config_instance
    if _config_instance is None:
        _config_instance = GraphAlignConfig()
    return _config_instance
