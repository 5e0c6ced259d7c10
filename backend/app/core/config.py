from typing import Optional
from pydantic import validator
from pydantic_settings import BaseSettings


RESPONSE_STRATEGIES = ("template", "llm")


class Settings(BaseSettings):
    # Application
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Customer Service Chat Agent"
    VERSION: str = "0.1.0"

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"

    # Chat Engine
    CHAT_RESPONSE_STRATEGY: str = "template"  # template, llm
    SESSION_HISTORY_LIMIT: int = 10
    CONTEXT_WINDOW_TURNS: int = 3
    CONTEXT_BOOST_WEIGHT: float = 2.0
    BATCH_MAX_MESSAGES: int = 20
    ORDERS_FILE: Optional[str] = None

    # Session Management
    SESSION_IDLE_TIMEOUT: int = 3600  # seconds
    SESSION_CLEANUP_INTERVAL: int = 300  # seconds

    # Gemini Configuration
    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_TIMEOUT: float = 15.0
    GEMINI_TEMPERATURE: float = 0.7
    GEMINI_MAX_TOKENS: int = 1024

    # WebSocket Configuration
    WS_MAX_CONNECTIONS: int = 100

    @validator("CHAT_RESPONSE_STRATEGY", pre=True)
    def validate_response_strategy(cls, v: str) -> str:
        v = (v or "").lower()
        if v not in RESPONSE_STRATEGIES:
            raise ValueError(f"CHAT_RESPONSE_STRATEGY must be one of: {', '.join(RESPONSE_STRATEGIES)}")
        return v

    @validator(
        "SESSION_HISTORY_LIMIT",
        "CONTEXT_WINDOW_TURNS",
        "BATCH_MAX_MESSAGES",
        "SESSION_IDLE_TIMEOUT",
        "SESSION_CLEANUP_INTERVAL",
        "GEMINI_TIMEOUT",
        "GEMINI_MAX_TOKENS",
        "WS_MAX_CONNECTIONS"
    )
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("must be positive")
        return v

    @validator("CONTEXT_BOOST_WEIGHT")
    def validate_boost(cls, v: float) -> float:
        if v < 1.0:
            raise ValueError("CONTEXT_BOOST_WEIGHT must be at least 1.0")
        return v

    @property
    def llm_enabled(self) -> bool:
        return self.CHAT_RESPONSE_STRATEGY == "llm" and bool(self.GEMINI_API_KEY)

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
