"""DesignFlow configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets are loaded via Firebase Secrets Manager (production) or environment variables (emulator).
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, feature flags, etc.)
# Secrets should come from Firebase Secrets Manager or environment variables
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Note: Secrets (OPENAI_API_KEY, etc.) should be accessed via config.secrets module,
    not directly from this class. The openai_api_key property delegates to the
    secrets module.
    """

    # Scene analysis (vision LLM)
    vision_model: str = field(default_factory=lambda: os.getenv("VISION_MODEL", "gpt-4o"))
    vision_temperature: float = field(default_factory=lambda: float(os.getenv("VISION_TEMPERATURE", "0.1")))
    vision_max_tokens: int = field(default_factory=lambda: int(os.getenv("VISION_MAX_TOKENS", "1024")))

    # Image synthesis
    image_model: str = field(default_factory=lambda: os.getenv("IMAGE_MODEL", "gpt-image-1"))
    image_api_base_url: str = field(default_factory=lambda: os.getenv("IMAGE_API_BASE_URL", "https://api.openai.com/v1"))
    image_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("IMAGE_TIMEOUT_SECONDS", "120")))
    image_size: str = field(default_factory=lambda: os.getenv("IMAGE_SIZE", "1536x1024"))

    # Photo handling
    max_image_dimension: int = field(default_factory=lambda: int(os.getenv("MAX_IMAGE_DIMENSION", "1568")))

    # Layout defaults (used when the catalog supplies no width constraint)
    nominal_module_width_mm: int = field(default_factory=lambda: int(os.getenv("NOMINAL_MODULE_WIDTH_MM", "600")))
    min_module_width_mm: int = field(default_factory=lambda: int(os.getenv("MIN_MODULE_WIDTH_MM", "300")))

    # Single photo capture maps to the basic confidence tier
    capture_confidence_tier: str = field(default_factory=lambda: os.getenv("CAPTURE_CONFIDENCE_TIER", "basic"))

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret values (use the properties instead)
    _openai_api_key: Optional[str] = field(default=None, repr=False)
    _image_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key from Firebase Secrets Manager or environment."""
        if self._openai_api_key is None:
            from config.secrets import get_openai_api_key
            self._openai_api_key = get_openai_api_key()
        return self._openai_api_key

    @property
    def image_api_key(self) -> Optional[str]:
        """Image synthesis key; falls back to the OpenAI key."""
        if self._image_api_key is None:
            from config.secrets import get_image_api_key
            self._image_api_key = get_image_api_key()
        return self._image_api_key

    def validate(self) -> None:
        """Validate required settings are present.

        Raises:
            ValueError: If required settings are missing.
        """
        if not self.openai_api_key and not self.use_firebase_emulators:
            raise ValueError("OPENAI_API_KEY is required in production")
        if self.min_module_width_mm > self.nominal_module_width_mm:
            raise ValueError("MIN_MODULE_WIDTH_MM cannot exceed NOMINAL_MODULE_WIDTH_MM")

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Singleton settings instance
settings = Settings()
