# nebchat/constants.py

APP_NAME = "nebchat"
__version__ = "0.3.0"
DEFAULT_LOG_FILENAME = "nebchat.log"
DEFAULT_LOG_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
DEFAULT_LOG_BACKUP_COUNT = 5

DEFAULT_VENDOR_NAME = "Nebius"
DEFAULT_BASE_URL = "https://api.studio.nebius.ai/v1"
# Publisher namespaces served by Nebius AI Studio
DEFAULT_MODEL_PREFIXES = (
    "meta-llama/",
    "mistralai/",
    "deepseek-ai/",
    "microsoft/",
    "allenai/",
)
