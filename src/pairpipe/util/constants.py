"""Config keys understood by pairpipe.

These constants name keys used with get_config() and get_settings().  Set
via ~/.pairpipe.toml or PAIRPIPE_* environment variables.
"""
# Extension registry: delay entry point loading until a name is requested
LAZY_IMPORT = "lazy_import"

# Default seed for Pipeline.shuffle when no seed argument is given
SHUFFLE_SEED = "shuffle_seed"

# Logging (used by configure_logger)
LOGGER_LEVELS = "logger_levels"
LOGGER_FILES = "logger_files"

ENV_PREFIX = "PAIRPIPE_"
DEFAULT_CONFIG_PATH = "~/.pairpipe.toml"
