from functools import lru_cache
from typing import List, Optional
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # APP
    APP_NAME: str = "Expo Hub Analytics API"
    ENV: str = "development"
    DEBUG: bool = True

    # Banco de Dados (Postgres do Supabase)
    DATABASE_URL: Optional[str] = None
    DB_STATEMENT_TIMEOUT_MS: Optional[int] = None

    # CORS (aceita string separada por vírgulas no .env)
    CORS_ORIGINS: Optional[str] = None

    # CACHE HTTP
    CACHE_MAX_AGE: int = 300
    CACHE_SWR: int = 600

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_TO_FILE: bool = False
    LOG_FILE_PATH: Optional[str] = None

    # IA / Gemini
    GOOGLE_API_KEY: Optional[str] = None
    GEMINI_MODEL_NAME: str = "gemini-2.0-flash"
    GEMINI_TEMPERATURE: float = 0.0
    GEMINI_TOP_P: float = 0.9
    GEMINI_MAX_OUTPUT_TOKENS: int = 2048

    @field_validator("DATABASE_URL", "GOOGLE_API_KEY")
    @classmethod
    def _drop_placeholders(cls, v: Optional[str]) -> Optional[str]:
        # valores de exemplo do .env.example contam como "não configurado"
        if v is None or not v.strip() or "your_" in v:
            return None
        return v.strip()

    @property
    def CORS_ORIGINS_LIST(self) -> List[str]:
        v = self.CORS_ORIGINS
        if not v:
            return []
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v

    @property
    def database_configured(self) -> bool:
        return self.DATABASE_URL is not None

    @property
    def ai_configured(self) -> bool:
        return self.GOOGLE_API_KEY is not None

    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # ignora chaves extras no .env
    )

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
