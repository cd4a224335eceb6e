import re
from os import getenv

from pydantic import BaseModel, ConfigDict, Field, JsonValue, field_validator

from .routing import parse_pattern

TOKEN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


class Rule(BaseModel):
    """One mock endpoint: method + path pattern -> canned response."""
    model_config = ConfigDict(frozen=True)

    method: str
    path: str
    status: int = Field(ge=200, le=599)     # 1xx is never a final response
    content_type: str
    payload: JsonValue

    @field_validator('method')
    @classmethod
    def check_method(cls, value: str) -> str:
        if not TOKEN.match(value):
            raise ValueError(f'invalid HTTP method: {value!r}')
        return value

    @field_validator('path')
    @classmethod
    def check_path(cls, value: str) -> str:
        parse_pattern(value)    # raises InvalidPatternError (a ValueError)
        return value


class Settings(BaseModel):
    """Persisted form of the settings file."""
    default_endpoint: str
    endpoints: list[Rule] = Field(default_factory=list)

    @field_validator('default_endpoint')
    @classmethod
    def check_endpoint(cls, value: str) -> str:
        if not value.startswith(('http://', 'https://')):
            raise ValueError('default_endpoint must be an http(s) URL')
        return value


class ServerConfig(BaseModel):
    settings_file: str = 'settings.json'
    static_dir: str = 'static'
    proxy_timeout: float | None = None     # no timeout unless asked for
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'ServerConfig':
        values = {
            'settings_file': getenv('MOCKSERVER_SETTINGS_FILE'),
            'static_dir': getenv('MOCKSERVER_STATIC_DIR'),
            'proxy_timeout': getenv('MOCKSERVER_PROXY_TIMEOUT') or None,
            'log_level': getenv('MOCKSERVER_LOG_LEVEL'),
        }
        return cls(**{k: v for k, v in values.items() if v is not None})


# process-wide config, read once at import
config = ServerConfig.from_env()
