from functools import lru_cache
from typing import Awaitable, Callable, Union

from fastapi import Request, Response
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings


Authorizer = Callable[[Request, Response], Union[bool, Awaitable[bool]]]


class Settings(BaseSettings):
    s3_endpoint: str = "https://s3.us-east-1.amazonaws.com"
    cdn_base_url: str = "placeholder-bucket.s3.amazonaws.com"
    s3_bucket_name: str = "placeholder-bucket"
    aws_access_key_id: str = "placeholder"
    aws_secret_access_key: str = "placeholder"
    aws_region: str = "us-east-1"
    environment: str = "development"
    log_level: str = "INFO"

    # Bearer token verification for the default authorizer
    jwt_secret_key: str = "your-secret-key-here"

    thumbnail_transformation: str = "w_125,h_125,c_fill,q_auto"
    media_list_limit: int = 500

    class Config:
        env_file = ".env"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


class MediaHandlerConfig(BaseModel):
    """
    Everything the media handler needs, fixed for the lifetime of the handler.

    `authorized` receives the inbound request and a scratch response; any
    headers it sets on the response are copied onto the final response.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    endpoint: str
    cdn_base_url: str
    bucket: str
    access_key: str
    access_secret: str
    region: str
    authorized: Authorizer
    thumbnail_transformation: str = "w_125,h_125,c_fill,q_auto"
    default_limit: int = 500

    @classmethod
    def from_settings(cls, settings: Settings, authorized: Authorizer) -> "MediaHandlerConfig":
        return cls(
            endpoint=settings.s3_endpoint,
            cdn_base_url=settings.cdn_base_url,
            bucket=settings.s3_bucket_name,
            access_key=settings.aws_access_key_id,
            access_secret=settings.aws_secret_access_key,
            region=settings.aws_region,
            authorized=authorized,
            thumbnail_transformation=settings.thumbnail_transformation,
            default_limit=settings.media_list_limit,
        )
