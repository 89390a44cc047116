from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="KIDREWARDS_", env_file=".env", extra="ignore")
    DATABASE_URL: str = "sqlite:///./kidrewards.db"

    SECRET_KEY: str = "dev-only-secret-change-me-32chars-minimum!!"
    JWT_ALGORITHM: str = "HS256"
    # parent and kid sessions share the same lifetime (8h)
    ACCESS_TOKEN_MIN: int = 60 * 8
    BCRYPT_ROUNDS: int = 12

    CORS_ORIGINS: list[str] = ["http://localhost:5173", "http://localhost:5000"]
    SEED_DEMO_DATA: bool = True
    LOG_LEVEL: str = "INFO"


settings = Settings()
