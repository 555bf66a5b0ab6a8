from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Catalog Pricing & Variants API"
    APP_VERSION: str = "0.1"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # Database
    DATABASE_URL: str
    DATABASE_URL_SYNC: str
    DATABASE_SSL: bool = True

    # Security (tokens are issued by the auth service, only verified here)
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Pricing
    DEFAULT_UNIT_TYPE: str = "piece"

    # Variants
    MAX_VARIANT_COMBINATIONS: int = 500
    VARIANT_SKU_SUFFIX_LENGTH: int = 6
    VARIANT_SKU_MAX_SUFFIX_LENGTH: int = 32

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
