from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    APP_NAME: str = "grid-adapter"

    # Upper bound for QueryOptions.take; 0 disables the cap.
    GRID_MAX_TAKE: int = 0
    # Column/order indices at or above this value are ignored by the query-string decoder.
    GRID_MAX_COLUMNS: int = 1000

    @property
    def max_take(self) -> int:
        return max(int(self.GRID_MAX_TAKE), 0)

    @property
    def max_columns(self) -> int:
        return max(int(self.GRID_MAX_COLUMNS), 0)

settings = Settings()
