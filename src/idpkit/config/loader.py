import os
from pathlib import Path

import yaml
from pydantic import ValidationError

from idpkit.auth.models import IdpConfigModel
from idpkit.config.references import interpolate_all

__all__ = ["CONFIG_ENV_VAR", "load_config"]

CONFIG_ENV_VAR = "IDPKIT_CONFIG"


def _default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR, Path.home() / ".idpkit" / "config.yml"))


def load_config(path: str | Path | None = None, *, resolve_refs: bool = True) -> IdpConfigModel:
    """Load provider configuration from ``path``, $IDPKIT_CONFIG or ~/.idpkit/config.yml."""
    config_path = Path(path) if path is not None else _default_config_path()

    if not config_path.exists():
        raise FileNotFoundError(f"idpkit config not found at {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"idpkit config at {config_path} is not valid YAML: {exc}") from exc

    if not isinstance(config_data, dict):
        raise ValueError("idpkit config must be a mapping")

    if resolve_refs:
        config_data = interpolate_all(config_data)

    try:
        return IdpConfigModel.model_validate(config_data)
    except ValidationError as exc:
        raise ValueError(f"Invalid idpkit config: {exc}") from exc
