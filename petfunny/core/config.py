from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "PetFunny Admin"
    API_PREFIX: str = "/api"

    # Server
    PORT: int = 8000
    ENVIRONMENT: str = "development"

    # Security
    ADMIN_TOKEN: str = ""

    # Supabase
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""

    # Scheduling
    TIMEZONE: str = "America/Sao_Paulo"
    PAST_GRACE_SECONDS: int = 60

    # Admin console
    API_BASE_URL: str = "http://localhost:8000"
    REQUEST_TIMEOUT_SECONDS: float = 10.0

    # Notifications
    DEFAULT_COUNTRY_CODE: str = "55"

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
