"""
Configuration-related constants and resource limits.
"""

# Maximum config file size (1MB); supervisor configs are a handful of keys
MAX_CONFIG_SIZE_BYTES = 1024 * 1024

# Environment variables with this prefix override configuration keys
ENV_PREFIX = "PGOSUP_"

# Names the YAML configuration file when no path is given explicitly
CONFIG_ENV = "PGOSUP_CONFIG"
