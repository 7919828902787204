"""Harness configuration loading."""

import logging
import os
import secrets
import tomllib
from pathlib import Path

from pydantic import ValidationError

from table_fidelity.config.models import HarnessConfig
from table_fidelity.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "fidelity.toml"
SEED_ENV_VAR = "FIDELITY_SEED"


def load_harness_config(config_path: Path | None = None) -> HarnessConfig:
    """Load harness configuration from a TOML file.

    Args:
        config_path: Path to the config file (default: ``./fidelity.toml``)

    Returns:
        HarnessConfig with cluster and harness settings

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigError: If the file is not valid TOML or has invalid settings
    """
    if config_path is None:
        config_path = Path.cwd() / DEFAULT_CONFIG_FILE

    if not config_path.exists():
        raise FileNotFoundError(
            f"Harness config not found: {config_path}\n"
            f"Create it with [cluster] and [harness] tables."
        )

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML in {config_path}: {e}") from e

    try:
        return HarnessConfig(
            cluster=data.get("cluster", {}),
            harness=data.get("harness", {}),
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid settings in {config_path}: {e}") from e


def resolve_seed(config: HarnessConfig | None = None) -> int:
    """Pick the seed for a run and log it so the run can be replayed.

    Priority:
    1. ``FIDELITY_SEED`` env var
    2. ``[harness] seed`` from the config
    3. A fresh random 63-bit seed

    Raises:
        ConfigError: If the env var is not an integer
    """
    env_seed = os.environ.get(SEED_ENV_VAR)
    if env_seed:
        try:
            seed = int(env_seed)
        except ValueError:
            raise ConfigError(f"{SEED_ENV_VAR} must be an integer, got {env_seed!r}") from None
    elif config is not None and config.harness.seed is not None:
        seed = config.harness.seed
    else:
        seed = secrets.randbits(63)

    logger.info("Using seed %d (replay with %s=%d)", seed, SEED_ENV_VAR, seed)
    return seed
