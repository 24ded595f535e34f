from pydantic_settings import BaseSettings
from typing import Optional

class Settings(BaseSettings):
    # Database settings
    ARANGO_URL: str = "http://localhost:8529"
    ARANGO_USERNAME: str = "root"
    ARANGO_PASSWORD: str = "openSesame"
    ARANGO_DATABASE: str = "adaptive_challenges"

    # CORS settings
    FRONTEND_URL: str = "http://localhost:5173"

    # Railway/Production settings
    PORT: int = 8000
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Cache settings (seconds)
    CACHE_ENABLED: bool = True
    RECOMMENDATION_CACHE_TTL: int = 300
    DIFFICULTY_CACHE_TTL: int = 1800

    # A persisted recommendation older than this is regenerated
    RECOMMENDATION_MAX_AGE_HOURS: int = 24

    # "best_effort": a failed difficulty write is logged and the computed value returned
    # "strict": a failed difficulty write raises AdaptiveProcessingError
    DIFFICULTY_PERSISTENCE_POLICY: str = "best_effort"

    # Seed for challenge parameter tie-breaks (None = OS entropy)
    RANDOM_SEED: Optional[int] = None

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENVIRONMENT.lower() in ["production", "prod"]

    @property
    def strict_difficulty_persistence(self) -> bool:
        """Whether a failed difficulty write should fail the adjustment."""
        return self.DIFFICULTY_PERSISTENCE_POLICY.lower() == "strict"

    @property
    def allowed_origins(self) -> list:
        """Get list of allowed CORS origins."""
        if self.is_production:
            return [self.FRONTEND_URL]
        return [
            self.FRONTEND_URL,
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
            "http://127.0.0.1:3000"
        ]

settings = Settings()
