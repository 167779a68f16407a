from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    base_url: str = Field("", validation_alias="HTTP_BASE_URL")
    timeout_seconds: float = Field(30.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    # Empty means no proxy.
    proxy_url: str = Field("", validation_alias="HTTP_PROXY_URL")
    # When set, sent as a base User-Agent header on every request.
    user_agent: str = Field("", validation_alias="HTTP_USER_AGENT")
