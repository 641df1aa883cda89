from urllib.parse import quote_plus
from pydantic import Field
from pydantic_settings import BaseSettings

class DatabaseSettings(BaseSettings):
    # -------------------------
    # PostgreSQL
    # -------------------------
    PGSQL_DB_HOST: str = Field(default="localhost")
    PGSQL_DB_PORT: int = Field(default=5432)
    PGSQL_DB_NAME: str = Field(default="leo_segments")
    PGSQL_DB_USER: str = Field(default="postgres")
    PGSQL_DB_PASSWORD: str = Field(default="")

    # -------------------------
    # Connection pool (shared by all requests)
    # -------------------------
    PGSQL_POOL_SIZE: int = Field(default=20)
    PGSQL_MAX_OVERFLOW: int = Field(default=10)

    class Config:
        # Pydantic automatically handles the priority:
        # 1. OS Environment Variables (Highest Priority - Docker overrides this)
        # 2. .env file values
        # 3. Default values (Lowest Priority)

        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore" # Ignores other extra fields

    @property
    def pg_dsn(self) -> str:
        """
        Constructs a safe PostgreSQL connection string (DSN).
        Handles special characters in the password and includes the port.
        """
        # Safely encode the password to handle characters like '@', '/', ':'
        encoded_password = quote_plus(self.PGSQL_DB_PASSWORD)

        return (
            f"postgresql://{self.PGSQL_DB_USER}:{encoded_password}@"
            f"{self.PGSQL_DB_HOST}:{self.PGSQL_DB_PORT}/"
            f"{self.PGSQL_DB_NAME}"
        )
