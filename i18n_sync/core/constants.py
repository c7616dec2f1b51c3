"""
Shared constants for i18n sync.
"""

# crc32 value that marks "no usable checksum" (missing file or missing record)
INVALID_CRC32 = 0

# Folder (under the base path) that receives downloaded locales
LOCALIZED_DATA_FOLDER = "localized_data"

# Minimum time between two runs, in nanoseconds
GLOBAL_RUN_DELAY_NS = 2_000_000_000

# Run-state file name (lives in the system temp dir)
RUN_INFO_FILE = "i18n_gen_run_info.json"

DEFAULT_PROJECT = "Backend"
DEFAULT_LOCALE = "en-US"

# Separator in "<project>:<locale>" keys
LOCALE_KEY_DELIMITER = ":"

# Source scanning defaults
I18N_FUNC_NAME = "NewI18nString"
I18N_SOURCE_SUFFIX = "api/i18n.go"
