from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings and configuration"""

    # Naolib API Configuration
    naolib_api_base_url: str = "https://open.tan.fr/ewp"
    naolib_stop_code: str = ""  # Default stop when the request has none
    http_timeout_seconds: float = 10.0

    # Stop directory Configuration
    directory_refresh_seconds: int = 3600
    directory_retry_seconds: int = 60
    directory_strict_startup: bool = False
    popular_stop_codes: list[str] = [
        "COMM", "GSNO", "CRQU", "HVNA", "OGVA", "NETR", "VTOU",
        "SDON", "OTAG", "BOFA", "DCAN", "BJOI", "FMIT", "HALU",
    ]

    # Display Configuration
    arrivals_default_limit: int = 2
    arrivals_max_limit: int = 10
    stops_default_limit: int = 10
    stops_max_limit: int = 500
    terminus_max_length: int = 12

    # CORS Configuration
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    # Server Configuration
    app_name: str = "NaoLaMetric"
    app_version: str = "1.0.0"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"
    debug: bool = False

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False
    )


# Global settings instance
settings = Settings()
