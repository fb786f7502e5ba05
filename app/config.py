from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Site Origin Detector"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # Page fetch
    USER_AGENT: str = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/122.0.0.0 Safari/537.36"
    FETCH_TIMEOUT_SECONDS: float = 15.0
    VERIFY_SSL: bool = False

    # Adjunct JS bundle (only feeds the AI heuristics)
    BUNDLE_TIMEOUT_SECONDS: float = 5.0
    BUNDLE_MAX_BYTES: int = 300_000

    # Batch endpoint
    MAX_BATCH_SIZE: int = 50
    BATCH_CONCURRENCY: int = 10

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"

settings = Settings()
