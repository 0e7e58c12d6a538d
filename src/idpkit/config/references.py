"""External reference handling for configuration values.

Supported references:
- ``${ENV_VAR}`` anywhere inside a string
- ``file://path`` for the whole value (absolute with ``file:///``, otherwise relative to cwd)

Client secrets normally arrive through one of these instead of living in the file.
"""

import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

ENV_VAR_PATTERN = re.compile(r"\${([A-Za-z0-9_]+)}")
FILE_URL_PATTERN = re.compile(r"file://(.+)")


def is_external_reference(value: Any) -> bool:
    """Check if a value contains any external reference."""
    if not isinstance(value, str):
        return False
    return value.startswith("file://") or ENV_VAR_PATTERN.search(value) is not None


def detect_reference_type(value: str) -> str | None:
    """Detect the type of external reference in a string value."""
    if value.startswith("file://"):
        return "file"
    if ENV_VAR_PATTERN.search(value):
        return "env"
    return None


def resolve_env_var(value: str) -> str:
    """Resolve environment variable references in a string.

    Raises:
        ValueError: If an environment variable is not set
    """
    result = value
    for env_var in ENV_VAR_PATTERN.findall(value):
        if env_var not in os.environ:
            raise ValueError(f"Environment variable {env_var} is not set")
        result = result.replace(f"${{{env_var}}}", os.environ[env_var])
    return result


def resolve_file_url(file_url: str) -> str:
    """Read the value of a file:// URL, with surrounding whitespace stripped.

    Raises:
        ValueError: If the URL is malformed or the path cannot be read
        FileNotFoundError: If the file does not exist
    """
    match = FILE_URL_PATTERN.match(file_url)
    if not match:
        raise ValueError(
            f"Invalid file URL format: '{file_url}'. Expected format: file://path/to/file"
        )

    file_path_str = match.group(1)
    file_path = Path(file_path_str) if file_path_str.startswith("/") else Path.cwd() / file_path_str

    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {file_path}")
    if not file_path.is_file():
        raise ValueError(f"Path is not a file: {file_path}")

    try:
        content = file_path.read_text(encoding="utf-8").strip()
    except OSError as e:
        raise ValueError(f"Error reading file '{file_path}': {e}") from e

    if not content:
        logger.warning("Referenced file is empty", extra={"path": str(file_path)})
    return content


def resolve_value(value: str) -> str:
    """Resolve a single string value that may contain external references."""
    if value.startswith("file://"):
        return resolve_file_url(value)
    return resolve_env_var(value)


def interpolate_all(config: Any) -> Any:
    """Recursively interpolate all external references in a configuration."""
    if isinstance(config, str) and is_external_reference(config):
        return resolve_value(config)
    elif isinstance(config, dict):
        return {k: interpolate_all(v) for k, v in config.items()}
    elif isinstance(config, list):
        return [interpolate_all(item) for item in config]
    else:
        return config
