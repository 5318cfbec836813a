"""Secret access for DesignFlow functions.

Production reads Firebase Secrets (Google Cloud Secret Manager). Emulator
runs read the same names from environment variables.

    from config.secrets import get_openai_api_key

    api_key = get_openai_api_key()
"""

import os
from functools import lru_cache
from typing import Optional

import structlog
from google.cloud import secretmanager

logger = structlog.get_logger(__name__)

DEFAULT_PROJECT_ID = "designflow-dev"

OPENAI_API_KEY = "OPENAI_API_KEY"
IMAGE_API_KEY = "IMAGE_API_KEY"


def is_emulator_mode() -> bool:
    """True when running under the Firebase emulator suite."""
    return (
        os.environ.get("FUNCTIONS_EMULATOR") == "true"
        or os.environ.get("FIRESTORE_EMULATOR_HOST") is not None
    )


def _project_id() -> str:
    return (
        os.environ.get("GCLOUD_PROJECT")
        or os.environ.get("GOOGLE_CLOUD_PROJECT")
        or DEFAULT_PROJECT_ID
    )


@lru_cache(maxsize=1)
def _client() -> secretmanager.SecretManagerServiceClient:
    return secretmanager.SecretManagerServiceClient()


def get_secret(secret_id: str) -> Optional[str]:
    """Latest version of a secret, or None if it cannot be read.

    A Secret Manager failure falls back to the environment variable of the
    same name so a misconfigured deploy degrades to a missing key rather
    than a crash at import time.
    """
    if is_emulator_mode():
        value = os.environ.get(secret_id)
        if not value:
            logger.warning("secret_missing_in_env", secret_id=secret_id)
        return value

    name = f"projects/{_project_id()}/secrets/{secret_id}/versions/latest"
    try:
        response = _client().access_secret_version(request={"name": name})
    except Exception as e:
        logger.warning("secret_manager_read_failed", secret_id=secret_id, error=str(e))
        return os.environ.get(secret_id)

    logger.debug("secret_loaded", secret_id=secret_id)
    return response.payload.data.decode("UTF-8")


@lru_cache(maxsize=1)
def get_openai_api_key() -> Optional[str]:
    """Key for the vision model."""
    return get_secret(OPENAI_API_KEY)


@lru_cache(maxsize=1)
def get_image_api_key() -> Optional[str]:
    """Key for image synthesis; the OpenAI key unless a dedicated one is set."""
    return get_secret(IMAGE_API_KEY) or get_openai_api_key()


def clear_secret_cache() -> None:
    """Forget cached secrets, e.g. after rotation."""
    get_openai_api_key.cache_clear()
    get_image_api_key.cache_clear()
