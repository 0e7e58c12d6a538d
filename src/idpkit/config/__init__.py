"""Configuration loading for idpkit."""

from .loader import CONFIG_ENV_VAR, load_config
from .references import interpolate_all, resolve_value

__all__ = ["CONFIG_ENV_VAR", "interpolate_all", "load_config", "resolve_value"]
