from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    DATABASE_URL: str
    SQL_ECHO: bool = False

    # Completion backend (Azure OpenAI chat completions)
    AZURE_OPENAI_ENDPOINT: str
    AZURE_OPENAI_API_KEY: str
    AZURE_OPENAI_DEPLOYMENT: str
    AZURE_OPENAI_API_VERSION: str = "2024-02-01"

    # Low temperature keeps the generated SQL stable between runs
    COMPLETION_TEMPERATURE: float = 0.2
    COMPLETION_TOP_P: float = 0.95
    COMPLETION_MAX_TOKENS: int = 500
    COMPLETION_TIMEOUT_SECONDS: float = 60.0

    QUERY_TIMEOUT_SECONDS: float = 30.0

    MAX_QUESTION_LENGTH: int = 1000
    MAX_REQUESTS_PER_CONNECTION: int = 100

    LOG_LEVEL: str = "INFO"

    # This tells Pydantic to read from the .env file; frozen so nobody mutates it after startup
    model_config = SettingsConfigDict(env_file=".env", extra="ignore", frozen=True)


# Create a single instance of the settings to use everywhere
settings = Settings()


def get_settings() -> Settings:
    """FastAPI dependency so tests can swap the settings snapshot."""
    return settings
