from typing import Any, Dict, Optional
import logging
import os
import tomllib
from logging.handlers import TimedRotatingFileHandler
from pydantic import BaseModel, ConfigDict
from pairpipe.util import constants

logger = logging.getLogger(__name__)

_config = None


class PipeSettings(BaseModel):
    """Validated view of the configuration keys pairpipe itself reads.

    Unknown keys are kept (extra="allow") so extensions can read
    their own settings from the same file.
    """

    model_config = ConfigDict(extra="allow")

    lazy_import: bool = False
    shuffle_seed: Optional[int] = None
    logger_levels: Optional[str] = None
    logger_files: Optional[str] = None


def parse_key_value_str(field_list: str, require_value: bool = False) -> Dict[str, str]:
    """Parse a property assignment list into a dictionary.

    Args:
        field_list (str): A comma-separated string of key-value pairs in the format "key:value,key:value".
        require_value (bool, optional): If True, raises a ValueError when a key is missing a value.

    Returns:
        Dict[str, str]: A dictionary where keys are property names and values are assigned values.

    Raises:
        ValueError: If require_value is True and a key is missing a value.
    """
    result = {}
    for prop in field_list.split(","):
        key, *value = prop.split(":", 1)
        key = key.strip()
        value = value[0].strip() if len(value) > 0 else None

        if value is None:
            if require_value:
                raise ValueError(f"Value required for property '{key}'")
            value = key.rsplit(".", 1)[-1]

        result[key] = value

    return result


def reset_config():
    """Reset the configuration to None.

    Forces the next call to get_config() to reload configuration from disk
    and environment variables.
    """
    global _config
    _config = None


def get_config(reload=False, path=constants.DEFAULT_CONFIG_PATH, ignore_env=False):
    """Get the configuration from the config file and environment variables.

    Environment variables starting with 'PAIRPIPE_' override config file values.

    Args:
        reload (bool, optional): Force reload config from disk. Defaults to False.
        path (str, optional): Path to config file. Defaults to "~/.pairpipe.toml".
        ignore_env (bool, optional): Skip the environment overlay.

    Returns:
        dict: Configuration dictionary combining file and environment settings.

    Notes:
        - If config file doesn't exist, returns environment variables only
        - Configuration is cached after first load unless reload=True
    """
    global _config
    if _config is None or reload:
        logger.debug("Loading configuration")
        config_path = os.path.expanduser(path)
        if os.path.exists(config_path):
            logger.info(f"Reading config from {config_path}")
            with open(config_path, 'rb') as f:
                _config = tomllib.load(f)
                logger.debug(f"Loaded config: {_config}")
        else:
            logger.debug(f"Config file {config_path} not found, using empty config")
            _config = {}

        if not ignore_env:
            for env_var in os.environ:
                if env_var.startswith(constants.ENV_PREFIX):
                    config_key = env_var[len(constants.ENV_PREFIX):].lower()
                    _config[config_key] = os.environ[env_var]
                    logger.debug(f"Set {config_key} from environment variable {env_var}")

    return _config


def get_settings(**kwargs) -> PipeSettings:
    """Validate the current configuration into a PipeSettings instance.

    Keyword arguments are passed through to get_config().  Values arriving
    as strings from the environment ("true", "42") are coerced by pydantic.
    """
    return PipeSettings.model_validate(get_config(**kwargs))


def get_setting(key: str, **kwargs) -> Any:
    """Validate and return a single PipeSettings field.

    Only key is validated, so a bad value under some other key does not
    affect the result.  A missing key gives the field's default.

    Raises:
        pydantic.ValidationError: If the configured value for key is invalid
    """
    config = get_config(**kwargs)
    settings = PipeSettings.model_validate({key: config[key]} if key in config else {})
    return getattr(settings, key)


def configure_logger(logger_levels: Optional[str] = None, base_level="WARNING", logger_files: Optional[str] = None):
    """Configure logging levels for specified loggers.

    Args:
        logger_levels (str): Logger name and level pairs in the format
            "logger1:LEVEL1,logger2:LEVEL2". Use "root" as logger name for root logger.
        base_level (str, optional): Default logging level. Defaults to "WARNING".
        logger_files (str, optional): A string mapping loggers to file paths in "logger:path" format.

    Examples:
        >>> configure_logger("root:INFO,pairpipe.pipe.fork:DEBUG")

    Note:
        - Each logger gets a StreamHandler with formatted output
        - Format: '%(asctime)s - %(levelname)s:%(name)s:%(message)s'
        - File handlers rotate at midnight and keep a week of logs
    """
    if not logger_levels:
        logger_levels = get_config().get(constants.LOGGER_LEVELS, None)

    if not logger_files:
        logger_files = get_config().get(constants.LOGGER_FILES, None)

    logging.basicConfig(level=base_level.upper())

    formatter = logging.Formatter('%(asctime)s - %(levelname)s:%(name)s:%(message)s')
    levels = {}

    if logger_levels:
        for logger_name, level in parse_key_value_str(logger_levels).items():
            level = level.upper()
            levels[logger_name] = level
            target = logging.getLogger(logger_name if logger_name != "root" else None)
            target.setLevel(level)

            # Remove existing handlers to prevent duplicate logs
            target.handlers.clear()

            console_handler = logging.StreamHandler()
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            target.addHandler(console_handler)

    if logger_files:
        for logger_name, file_name in parse_key_value_str(logger_files, require_value=True).items():
            target = logging.getLogger(logger_name if logger_name != "root" else None)

            file_handler = TimedRotatingFileHandler(file_name, when='midnight', backupCount=7)
            file_handler.setLevel(levels.get(logger_name, base_level.upper()))
            file_handler.setFormatter(formatter)
            target.addHandler(file_handler)
