'''
Configuration management system for the SVAR Toolbox.

This module provides a layered configuration for the SVAR Toolbox:

1. Default configurations built into the package
2. A user configuration file (JSON)
3. Environment variables (``SVAR_<SECTION>_<OPTION>``)
4. Runtime modifications through ``set_config``

Sections:
    core: random seed and Numba switch
    numerical: tolerances used by the linear algebra kernel and the FEVD guard
    defaults: default options for identification (rotation cap, sign horizon,
        shock size convention, recursion mode)
    logging: level, format and console handler of the ``svar`` logger
'''

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, get_type_hints

from .exceptions import ConfigurationError
from .types import ConfigDict, ConfigPath, LogLevel

# Set up module-level logger
logger = logging.getLogger("svar.core.config")

# Constants for configuration paths and environment variables
CONFIG_ENV_PREFIX = "SVAR_"
DEFAULT_CONFIG_FILENAME = "svar_config.json"
USER_CONFIG_DIR_ENV = "SVAR_CONFIG_DIR"


class ConfigSection(Enum):
    """Enumeration of configuration sections."""
    CORE = "core"
    NUMERICAL = "numerical"
    DEFAULTS = "defaults"
    LOGGING = "logging"


@dataclass
class CoreConfig:
    """
    Core configuration settings.

    Attributes:
        random_seed: Seed for the sign-restriction rotation draws (None for fresh entropy)
        enable_numba: Whether the horizon recursions run through the Numba kernels
        user_config_dir: Directory holding the user configuration file
    """
    random_seed: Optional[int] = None
    enable_numba: bool = True
    user_config_dir: Path = field(default_factory=lambda: Path.home() / ".svar")


@dataclass
class NumericalConfig:
    """
    Numerical tolerances.

    Attributes:
        symmetry_tol: Tolerance below which a covariance is treated as symmetric
        variance_tol: Forecast error variances at or below this are degenerate
        condition_limit: Condition number above which ``I - F`` is treated as singular
    """
    symmetry_tol: float = 1e-8
    variance_tol: float = 1e-12
    condition_limit: float = 1e12


@dataclass
class DefaultsConfig:
    """
    Default identification options.

    Attributes:
        max_rotations: Rotation cap for the sign-restriction search
        sign_horizon: Number of horizons over which sign restrictions are checked
        impact: Shock size convention ("one-std-dev" or "unit")
        recursion: Propagation method ("wold" or "companion")
    """
    max_rotations: int = 500
    sign_horizon: int = 1
    impact: str = "one-std-dev"
    recursion: str = "wold"


@dataclass
class LoggingConfig:
    """
    Logging configuration for the ``svar`` logger.

    Attributes:
        log_level: Logging level
        log_format: Format string for log messages
        log_date_format: Format string for log message timestamps
        console_logging: Whether to attach a console handler
    """
    log_level: LogLevel = "WARNING"
    log_format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    log_date_format: str = "%Y-%m-%d %H:%M:%S"
    console_logging: bool = True


@dataclass
class SVARConfig:
    """Complete configuration combining all sections."""
    core: CoreConfig = field(default_factory=CoreConfig)
    numerical: NumericalConfig = field(default_factory=NumericalConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


_VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _coerce(value: Any, hint: Any, setting: str) -> Any:
    """Convert a raw (string or JSON) value to the type declared on a config field."""
    hint_str = str(hint)
    if value is None:
        if "Optional" in hint_str or "None" in hint_str:
            return None
        raise ConfigurationError(f"{setting} cannot be None", setting=setting, issue="None value")

    try:
        if hint is bool:
            if isinstance(value, str):
                return value.strip().lower() in ("true", "yes", "1", "y")
            return bool(value)
        if hint is int or "int" in hint_str and "Optional" in hint_str:
            if isinstance(value, str) and value.strip().lower() in ("", "none", "null"):
                return None
            return int(value)
        if hint is float:
            return float(value)
        if hint is Path:
            return Path(value)
        return value
    except (TypeError, ValueError) as e:
        raise ConfigurationError(
            f"Invalid value for configuration option {setting}",
            setting=setting,
            value=value,
            issue=str(e)
        ) from e


class ConfigManager:
    """
    Configuration manager for the SVAR Toolbox.

    Attributes:
        _config: The current configuration object
        _initialized: Whether the configuration manager has been initialized
        _config_file: Path to the user configuration file
        _modified_keys: Options changed at runtime
    """

    def __init__(self) -> None:
        self._config = SVARConfig()
        self._initialized = False
        self._config_file: Optional[Path] = None
        self._modified_keys: set = set()

    def initialize(self) -> None:
        """
        Initialize the configuration manager.

        Loads the user configuration file if present, applies environment
        overrides, validates, and configures the ``svar`` logger.
        """
        if self._initialized:
            return

        env_config_dir = os.environ.get(USER_CONFIG_DIR_ENV)
        if env_config_dir:
            self._config.core.user_config_dir = Path(env_config_dir)
        self._config_file = self._config.core.user_config_dir / DEFAULT_CONFIG_FILENAME

        self._load_user_config()
        self._apply_env_overrides()
        self._validate_config()
        self._setup_logging()

        self._initialized = True
        logger.debug("Configuration layers applied")

    def _load_user_config(self) -> None:
        """Load the user configuration file if it exists."""
        if not self._config_file or not self._config_file.exists():
            logger.debug("No svar_config.json found, using defaults")
            return

        try:
            with open(self._config_file, "r") as f:
                user_config = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                "Failed to load user configuration",
                config_file=self._config_file,
                issue=str(e)
            ) from e

        self._update_from_dict(user_config)
        logger.debug(f"Loaded user configuration from {self._config_file}")

    def _apply_env_overrides(self) -> None:
        """Apply ``SVAR_<SECTION>_<OPTION>`` environment variables."""
        for env_var, value in os.environ.items():
            if not env_var.startswith(CONFIG_ENV_PREFIX) or env_var == USER_CONFIG_DIR_ENV:
                continue

            key = env_var[len(CONFIG_ENV_PREFIX):]
            parts = key.lower().split("_", 1)
            if len(parts) != 2:
                continue

            section, option = parts
            try:
                ConfigSection(section)
            except ValueError:
                continue

            section_obj = getattr(self._config, section)
            if not hasattr(section_obj, option):
                continue

            hint = get_type_hints(type(section_obj))[option]
            setattr(section_obj, option, _coerce(value, hint, f"{section}.{option}"))
            logger.debug(f"Applied environment override: {env_var}={value}")

    def _setup_logging(self) -> None:
        """Configure the ``svar`` logger from the logging section."""
        package_logger = logging.getLogger("svar")

        for handler in package_logger.handlers[:]:
            package_logger.removeHandler(handler)

        package_logger.setLevel(getattr(logging, self._config.logging.log_level))

        if self._config.logging.console_logging:
            formatter = logging.Formatter(
                fmt=self._config.logging.log_format,
                datefmt=self._config.logging.log_date_format
            )
            console_handler = logging.StreamHandler()
            console_handler.setFormatter(formatter)
            package_logger.addHandler(console_handler)

    def _validate_config(self) -> None:
        """Validate option values, raising ConfigurationError on the first violation."""
        numerical = self._config.numerical
        for name in ("symmetry_tol", "variance_tol"):
            value = getattr(numerical, name)
            if not 0 <= value < 1:
                raise ConfigurationError(
                    f"numerical.{name} must be in [0, 1)",
                    setting=f"numerical.{name}",
                    value=value
                )
        if numerical.condition_limit <= 1:
            raise ConfigurationError(
                "numerical.condition_limit must exceed 1",
                setting="numerical.condition_limit",
                value=numerical.condition_limit
            )

        defaults = self._config.defaults
        if defaults.max_rotations <= 0:
            raise ConfigurationError(
                "defaults.max_rotations must be positive",
                setting="defaults.max_rotations",
                value=defaults.max_rotations
            )
        if defaults.sign_horizon <= 0:
            raise ConfigurationError(
                "defaults.sign_horizon must be positive",
                setting="defaults.sign_horizon",
                value=defaults.sign_horizon
            )
        if defaults.impact not in ("one-std-dev", "unit"):
            raise ConfigurationError(
                "defaults.impact must be 'one-std-dev' or 'unit'",
                setting="defaults.impact",
                value=defaults.impact
            )
        if defaults.recursion not in ("wold", "companion"):
            raise ConfigurationError(
                "defaults.recursion must be 'wold' or 'companion'",
                setting="defaults.recursion",
                value=defaults.recursion
            )

        if self._config.logging.log_level not in _VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"logging.log_level must be one of {list(_VALID_LOG_LEVELS)}",
                setting="logging.log_level",
                value=self._config.logging.log_level
            )

    def _update_from_dict(self, config_dict: ConfigDict) -> None:
        """Update the configuration from a nested ``{section: {option: value}}`` dict."""
        for section_name, section_values in config_dict.items():
            if not self.has_section(section_name) or not isinstance(section_values, dict):
                logger.warning(f"Ignoring unknown configuration section: {section_name}")
                continue

            section = getattr(self._config, section_name)
            hints = get_type_hints(type(section))
            for option_name, option_value in section_values.items():
                if option_name not in hints:
                    logger.warning(f"Ignoring unknown configuration option: {section_name}.{option_name}")
                    continue
                setattr(section, option_name,
                        _coerce(option_value, hints[option_name], f"{section_name}.{option_name}"))

    def save_user_config(self, path: Optional[ConfigPath] = None) -> Path:
        """
        Save the current configuration as JSON.

        Args:
            path: Target file, defaults to the user configuration file

        Returns:
            The path written
        """
        target = Path(path) if path is not None else self._config_file
        if target is None:
            raise ConfigurationError("No user configuration file path available")

        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

        logger.debug(f"Saved user configuration to {target}")
        return target

    def to_dict(self) -> Dict[str, Any]:
        """Convert the configuration to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {}
        for section_name in self.get_sections():
            section_dict = asdict(getattr(self._config, section_name))
            result[section_name] = {
                k: str(v) if isinstance(v, Path) else v for k, v in section_dict.items()
            }
        return result

    def get(self, section: str, option: str, default: Any = None) -> Any:
        """Get a configuration value, or ``default`` if it does not exist."""
        if not self.has_option(section, option):
            return default
        return getattr(getattr(self._config, section), option)

    def set(self, section: str, option: str, value: Any) -> None:
        """
        Set a configuration value.

        Raises:
            ConfigurationError: If the section or option is not found, or the
                value fails validation
        """
        if not self.has_section(section):
            raise ConfigurationError(
                f"No configuration section named {section!r}",
                setting=f"{section}.{option}",
                value=value,
                issue="Section not found"
            )

        section_obj = getattr(self._config, section)
        hints = get_type_hints(type(section_obj))
        if option not in hints:
            raise ConfigurationError(
                f"Section {section!r} has no option {option!r}",
                setting=f"{section}.{option}",
                value=value,
                issue="Option not found"
            )

        previous = getattr(section_obj, option)
        setattr(section_obj, option, _coerce(value, hints[option], f"{section}.{option}"))
        try:
            self._validate_config()
        except ConfigurationError:
            setattr(section_obj, option, previous)
            raise

        self._modified_keys.add(f"{section}.{option}")
        if section == "logging":
            self._setup_logging()
        logger.debug(f"{section}.{option} set to {value!r}")

    def reset(self, section: Optional[str] = None, option: Optional[str] = None) -> None:
        """
        Reset configuration to default values.

        Args:
            section: The section to reset, or None to reset everything
            option: The option to reset, or None to reset the whole section
        """
        if section is None:
            self._config = SVARConfig()
            self._modified_keys.clear()
            if self._initialized:
                self._setup_logging()
            logger.debug("All sections restored to defaults")
            return

        if not self.has_section(section):
            raise ConfigurationError(
                f"No configuration section named {section!r}",
                setting=section,
                issue="Section not found"
            )

        default_section = getattr(SVARConfig(), section)
        if option is None:
            setattr(self._config, section, default_section)
            self._modified_keys = {k for k in self._modified_keys if not k.startswith(f"{section}.")}
            if section == "logging" and self._initialized:
                self._setup_logging()
            logger.debug(f"Section {section} restored to defaults")
            return

        if not self.has_option(section, option):
            raise ConfigurationError(
                f"Section {section!r} has no option {option!r}",
                setting=f"{section}.{option}",
                issue="Option not found"
            )

        setattr(getattr(self._config, section), option, getattr(default_section, option))
        self._modified_keys.discard(f"{section}.{option}")
        logger.debug(f"{section}.{option} restored to its default")

    def is_modified(self, section: str, option: str) -> bool:
        """Check whether an option was changed at runtime."""
        return f"{section}.{option}" in self._modified_keys

    def has_section(self, section: str) -> bool:
        return section in {s.value for s in ConfigSection}

    def has_option(self, section: str, option: str) -> bool:
        if not self.has_section(section):
            return False
        return option in {f.name for f in fields(getattr(self._config, section))}

    def get_sections(self) -> List[str]:
        return [s.value for s in ConfigSection]

    def get_section(self, section: str) -> Any:
        """
        Get a configuration section object.

        Raises:
            ConfigurationError: If the section is not found
        """
        if not self.has_section(section):
            raise ConfigurationError(
                f"No configuration section named {section!r}",
                setting=section,
                issue="Section not found"
            )
        return getattr(self._config, section)

    def get_config_file(self) -> Optional[Path]:
        return self._config_file


# Create a singleton instance of the configuration manager
_config_manager = ConfigManager()


def initialize_config() -> None:
    """Initialize the configuration system."""
    _config_manager.initialize()


def get_config_manager() -> ConfigManager:
    """Get the initialized configuration manager instance."""
    if not _config_manager._initialized:
        initialize_config()
    return _config_manager


def get_config(section: str, option: str, default: Any = None) -> Any:
    """Get a configuration value."""
    return get_config_manager().get(section, option, default)


def set_config(section: str, option: str, value: Any) -> None:
    """
    Set a configuration value.

    Raises:
        ConfigurationError: If the section or option is not found
    """
    get_config_manager().set(section, option, value)


def reset_config(section: Optional[str] = None, option: Optional[str] = None) -> None:
    """Reset configuration to default values."""
    get_config_manager().reset(section, option)


def save_config(path: Optional[ConfigPath] = None) -> Path:
    """Save the current configuration to the user configuration file."""
    return get_config_manager().save_user_config(path)


def get_core_config() -> CoreConfig:
    return get_config_manager().get_section("core")


def get_numerical_config() -> NumericalConfig:
    return get_config_manager().get_section("numerical")


def get_defaults_config() -> DefaultsConfig:
    return get_config_manager().get_section("defaults")


def get_logging_config() -> LoggingConfig:
    return get_config_manager().get_section("logging")
