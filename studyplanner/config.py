from datetime import timedelta
from typing import Optional
import re
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DURATION_PATTERN = re.compile(r'^\s*(\d+)\s*([smhd]?)\s*$')
DURATION_UNITS = {
    's': 'seconds',
    'm': 'minutes',
    'h': 'hours',
    'd': 'days',
}


def parse_duration(value: str) -> timedelta:
    """Parse a duration string such as '15m', '2h' or '30s' into a timedelta.

    A bare number is a count of seconds ('900' == '15m').
    """
    match = DURATION_PATTERN.match(str(value).lower())
    if not match:
        raise ValueError(f"Invalid duration '{value}'. Use <number>[s|m|h|d], e.g. '15m' or '900'")
    amount, unit = match.groups()
    if int(amount) <= 0:
        raise ValueError("Duration must be greater than zero")
    return timedelta(**{DURATION_UNITS[unit or 's']: int(amount)})


class DatabaseSettings(BaseModel):
    """Database configuration settings"""
    url: str = Field(..., description="Database connection URL")

    @field_validator('url')
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("DATABASE_URL is required")
        if not v.startswith(('postgresql://', 'postgresql+psycopg2://', 'sqlite://', 'mysql://')):
            raise ValueError("DATABASE_URL must be a valid database URL")
        return v


class AuthSettings(BaseModel):
    """Immutable token configuration handed to the token services at construction."""
    model_config = ConfigDict(frozen=True)

    jwt_secret_key: str = Field(..., min_length=32, description="JWT signing secret key")
    algorithm: str = Field(default="HS256", description="JWT algorithm")
    access_token_ttl: timedelta = Field(default=timedelta(minutes=15), description="Access token lifetime")
    refresh_token_expire_days: int = Field(default=30, gt=0, description="Refresh token lifetime in days")
    password_hash_rounds: int = Field(default=12, ge=4, le=31, description="bcrypt cost factor")


class Settings(BaseSettings):
    """Main settings class loaded once at process start"""

    # Database settings
    database_url: str = Field(..., alias="DATABASE_URL")

    # Auth settings
    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    algorithm: str = Field(default="HS256", alias="ALGORITHM")
    access_token_ttl: str = Field(default="15m", alias="ACCESS_TOKEN_TTL")
    refresh_token_expire_days: int = Field(default=30, alias="REFRESH_TOKEN_EXPIRE_DAYS")
    password_hash_rounds: int = Field(default=12, alias="PASSWORD_HASH_ROUNDS")

    # App settings
    environment: str = Field(default="development", alias="ENVIRONMENT")
    frontend_url: str = Field(default="http://localhost:5173", alias="FRONTEND_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    sentry_dsn: Optional[str] = Field(default=None, alias="SENTRY_DSN")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v):
        return DatabaseSettings(url=v).url

    @field_validator('jwt_secret_key')
    @classmethod
    def validate_secret_key(cls, v):
        if len(v) < 32:
            raise ValueError("JWT_SECRET_KEY must be at least 32 characters long for security")
        return v

    @field_validator('access_token_ttl')
    @classmethod
    def validate_access_token_ttl(cls, v):
        parse_duration(v)
        return v

    @field_validator('refresh_token_expire_days')
    @classmethod
    def validate_refresh_days(cls, v):
        if v <= 0:
            raise ValueError("REFRESH_TOKEN_EXPIRE_DAYS must be a positive integer")
        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"LOG_LEVEL must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        valid_envs = ['development', 'test', 'staging', 'production']
        if v.lower() not in valid_envs:
            raise ValueError(f"ENVIRONMENT must be one of: {', '.join(valid_envs)}")
        return v.lower()

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings as a structured object"""
        return DatabaseSettings(url=self.database_url)

    @property
    def auth(self) -> AuthSettings:
        """Get auth settings as a structured, frozen object"""
        return AuthSettings(
            jwt_secret_key=self.jwt_secret_key,
            algorithm=self.algorithm,
            access_token_ttl=parse_duration(self.access_token_ttl),
            refresh_token_expire_days=self.refresh_token_expire_days,
            password_hash_rounds=self.password_hash_rounds,
        )

    @property
    def cors_origins(self) -> list[str]:
        """Get CORS origins based on environment"""
        base_origins = [
            "http://localhost:5173",
            "http://127.0.0.1:5173"
        ]

        if self.environment == "production":
            base_origins.append(self.frontend_url)

        return base_origins

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance (singleton pattern).

    A missing or short JWT_SECRET_KEY raises a pydantic ValidationError here,
    which stops the process during startup.
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings

