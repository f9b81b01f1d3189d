from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Supabase
    supabase_url: str = ""
    supabase_secret_key: str = ""

    # Session tokens issued by POST /auth/verify
    jwt_secret: str = ""
    jwt_issuer: str = "datebook-api"
    jwt_audience: str = "datebook-app"
    jwt_ttl_days: int = 14

    # Identity providers
    google_client_ids: str = ""  # comma separated
    google_client_id: str = ""  # single-id fallback
    apple_audience: str = ""
    apple_jwks_url: str = "https://appleid.apple.com/auth/keys"
    apple_issuer: str = "https://appleid.apple.com"

    # Server
    environment: str = "development"
    cors_origins: str = ""  # comma separated, empty allows any origin
    public_app_origin: str = ""

    # Storage
    media_bucket: str = "datebook-media"
    upload_url_ttl_seconds: int = 15 * 60
    read_url_ttl_seconds: int = 60 * 60

    # Expo push
    expo_push_url: str = "https://exp.host/--/api/v2/push/send"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def google_audiences(self) -> list[str]:
        raw = self.google_client_ids or self.google_client_id
        return [item.strip() for item in raw.split(",") if item.strip()]

    @property
    def cors_origin_list(self) -> list[str]:
        return [item.strip() for item in self.cors_origins.split(",") if item.strip()]


@lru_cache
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
