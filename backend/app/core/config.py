from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

UNLIMITED = -1

HARM_CATEGORIES = (
    "HARM_CATEGORY_HARASSMENT",
    "HARM_CATEGORY_HATE_SPEECH",
    "HARM_CATEGORY_SEXUALLY_EXPLICIT",
    "HARM_CATEGORY_DANGEROUS_CONTENT",
)


class RelayConfig(BaseModel):
    """
    Immutable configuration handed to the session core.
    Built from Settings at startup; tests construct their own.
    """
    model_config = ConfigDict(frozen=True)

    default_quota: int = 3
    redeem_codes: Dict[str, int] = {}
    supported_models: tuple = ("gemini-1.5-flash-latest",)
    default_model: str = "gemini-1.5-flash-latest"
    multimodal_model: str = "gemini-1.5-flash-latest"
    default_credential: Optional[str] = None
    max_output_tokens: int = 8192
    safety_threshold: str = "BLOCK_NONE"

    def safety_settings(self) -> List[Dict[str, str]]:
        return [
            {"category": category, "threshold": self.safety_threshold}
            for category in HARM_CATEGORIES
        ]

    def generation_config(self) -> Dict[str, int]:
        return {"maxOutputTokens": self.max_output_tokens}


class Settings(BaseSettings):
    PROJECT_NAME: str = "Gemini Relay"
    API_V1_STR: str = "/api"

    # Record store
    STORE_BACKEND: str = "arango"  # arango, memory
    ARANGO_HOST: str = "http://localhost:8529"
    ARANGO_USERNAME: str = "root"
    ARANGO_PASSWORD: str = "test"
    ARANGO_DB_NAME: str = "gemini_relay"
    ARANGO_COLLECTION: str = "ChatData"

    # Upstream
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    UPSTREAM_TIMEOUT_SECONDS: Optional[float] = None
    DEFAULT_MODEL: str = "gemini-1.5-flash-latest"
    MULTIMODAL_MODEL: str = "gemini-1.5-flash-latest"
    SUPPORTED_MODELS: List[str] = [
        "gemini-1.5-flash-latest",
        "gemini-1.5-pro-latest",
        "gemini-2.0-flash",
        "gemini-2.5-flash",
        "gemini-2.5-pro",
    ]
    MAX_OUTPUT_TOKENS: int = 8192
    SAFETY_THRESHOLD: str = "BLOCK_NONE"

    # Quota
    DEFAULT_TRIAL_QUOTA: int = 3
    REDEEM_CODES: Dict[str, int] = {
        "GEMINI-FOR-ALL": UNLIMITED,
        "BLUE-GEM-A8C5": 5, "BLUE-GEM-F2B9": 5, "BLUE-GEM-7D4E": 5, "BLUE-GEM-9C1A": 5, "BLUE-GEM-3E8F": 5,
        "CYAN-ROCK-B6D2": 5, "CYAN-ROCK-5A9E": 5, "CYAN-ROCK-E3C7": 5, "CYAN-ROCK-4F8B": 5, "CYAN-ROCK-1D6A": 5,
    }

    # Session cookie
    SESSION_COOKIE_NAME: str = "userID"
    SESSION_COOKIE_MAX_AGE: int = 31536000
    SESSION_COOKIE_SECURE: bool = True
    SERIALIZE_SESSION_REQUESTS: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: Optional[str] = None

    class Config:
        env_file = ".env"

    def relay_config(self) -> RelayConfig:
        return RelayConfig(
            default_quota=self.DEFAULT_TRIAL_QUOTA,
            redeem_codes={code.strip().upper(): value for code, value in self.REDEEM_CODES.items()},
            supported_models=tuple(self.SUPPORTED_MODELS),
            default_model=self.DEFAULT_MODEL,
            multimodal_model=self.MULTIMODAL_MODEL,
            default_credential=self.GEMINI_API_KEY or None,
            max_output_tokens=self.MAX_OUTPUT_TOKENS,
            safety_threshold=self.SAFETY_THRESHOLD,
        )

settings = Settings()
