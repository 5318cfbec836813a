"""DesignFlow configuration.

This package contains:
- settings: Environment variables and configuration
- secrets: Firebase Secrets access for the OpenAI and image API keys
- errors: Error codes and the DesignFlowError hierarchy
"""

from config.settings import settings
from config.errors import DesignFlowError, ErrorCode
from config.secrets import get_secret, get_openai_api_key, get_image_api_key

__all__ = [
    "settings",
    "DesignFlowError",
    "ErrorCode",
    "get_secret",
    "get_openai_api_key",
    "get_image_api_key",
]
