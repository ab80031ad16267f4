"""Configuration schema and loader exports."""

from gitscan.config.loader import (
    DEFAULT_CONFIG_FILE,
    ENV_PREFIX,
    ConfigLoadError,
    dump_effective_config,
    env_name_for_path,
    env_overrides,
    load_config,
    normalize_paths,
)
from gitscan.config.schema import (
    ConfigValidationError,
    ConfigValidationIssue,
    ConfigValidationResult,
    GitscanConfig,
    assert_valid_config,
    default_config,
    merge_config,
    validate_config,
)

__all__ = [
    "DEFAULT_CONFIG_FILE",
    "ENV_PREFIX",
    "ConfigLoadError",
    "ConfigValidationError",
    "ConfigValidationIssue",
    "ConfigValidationResult",
    "GitscanConfig",
    "assert_valid_config",
    "default_config",
    "dump_effective_config",
    "env_name_for_path",
    "env_overrides",
    "load_config",
    "merge_config",
    "normalize_paths",
    "validate_config",
]
