# Core - Configuration
#
# Where the vault lives and how much to log.
# Precedence (lowest first): defaults, .env file, process environment,
# explicit overrides (CLI flags).
#
# The passphrase is never configuration: it is always prompted for.
# Key-derivation cost is part of the vault file format, not a setting.

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

from dotenv import dotenv_values

ENV_VAULT_PATH = "PASSMAN_VAULT"
ENV_AUDIT_DIR = "PASSMAN_AUDIT_DIR"
ENV_LOG_LEVEL = "PASSMAN_LOG_LEVEL"

DEFAULT_VAULT_FILENAME = ".passman_vault"
DEFAULT_LOG_LEVEL = "WARNING"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class PassmanConfig:
    """Resolved runtime settings."""
    vault_path: Path
    audit_dir: Optional[Path] = None
    log_level: str = DEFAULT_LOG_LEVEL


def default_vault_path() -> Path:
    return Path.home() / DEFAULT_VAULT_FILENAME


def load_config(
    env_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> PassmanConfig:
    """Resolve configuration.

    Args:
        env_file: Optional .env file. Its values never leak into os.environ.
        **overrides: vault_path / audit_dir / log_level; None values are ignored.

    Raises:
        ValueError: On an unknown log level.
    """
    settings: Dict[str, Optional[str]] = {}
    if env_file is not None:
        settings.update(dotenv_values(env_file))
    for name in (ENV_VAULT_PATH, ENV_AUDIT_DIR, ENV_LOG_LEVEL):
        if os.environ.get(name):
            settings[name] = os.environ[name]

    config = PassmanConfig(vault_path=default_vault_path())

    if settings.get(ENV_VAULT_PATH):
        config = replace(config, vault_path=Path(settings[ENV_VAULT_PATH]).expanduser())
    if settings.get(ENV_AUDIT_DIR):
        config = replace(config, audit_dir=Path(settings[ENV_AUDIT_DIR]).expanduser())
    if settings.get(ENV_LOG_LEVEL):
        config = replace(config, log_level=settings[ENV_LOG_LEVEL])

    explicit = {k: v for k, v in overrides.items() if v is not None}
    if "vault_path" in explicit:
        explicit["vault_path"] = Path(explicit["vault_path"]).expanduser()
    if "audit_dir" in explicit:
        explicit["audit_dir"] = Path(explicit["audit_dir"]).expanduser()
    config = replace(config, **explicit)

    level = config.log_level.upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level: {config.log_level}")
    return replace(config, log_level=level)
