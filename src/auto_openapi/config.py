"""Generator configuration.

Options are read from a YAML file (camelCase keys such as ``apiKey`` and
``alwaysRequireBearer`` are accepted) and can be overridden from the CLI.
The configuration is passed explicitly to the document assembler.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from auto_openapi.errors import ConfigError

logger = logging.getLogger(__name__)


class ContactConfig(BaseModel):
    name: str = ""
    url: str = ""
    email: str = ""


class LicenseConfig(BaseModel):
    name: str = ""
    url: str = ""


class ServerConfig(BaseModel):
    url: str
    description: str | None = None


class BearerConfig(BaseModel):
    enabled: bool = True


class OAuth2Config(BaseModel):
    enabled: bool = False
    flows: dict = {"password": {"tokenUrl": "/oauth/token", "scopes": {}}}
    scopes: list[str] = []


class ApiKeyConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = False
    location: str = Field(default="header", alias="in")
    name: str = "X-API-Key"


class SecurityConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bearer: BearerConfig = Field(default_factory=BearerConfig)
    oauth2: OAuth2Config = Field(default_factory=OAuth2Config)
    api_key: ApiKeyConfig = Field(default_factory=ApiKeyConfig, alias="apiKey")


class GeneratorConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str = "API Documentation"
    description: str = "API Documentation generated by auto-openapi"
    version: str = "1.0.0"
    contact: ContactConfig = Field(default_factory=ContactConfig)
    license: LicenseConfig = Field(default_factory=LicenseConfig)
    servers: list[ServerConfig] = Field(
        default_factory=lambda: [ServerConfig(url="/api", description="API Server")]
    )
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    always_require_bearer: bool = Field(default=False, alias="alwaysRequireBearer")


def load_config(path: Path) -> GeneratorConfig:
    """Load a YAML configuration file."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot read configuration {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration {path} must be a mapping")

    try:
        config = GeneratorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration {path}:\n{e}") from e
    logger.info("Loaded configuration from %s", path)
    return config


def apply_overrides(
    config: GeneratorConfig,
    *,
    title: str | None = None,
    description: str | None = None,
    version: str | None = None,
    base_url: str | None = None,
    bearer: bool | None = None,
    oauth2: bool | None = None,
    api_key: bool | None = None,
    always_bearer: bool | None = None,
) -> GeneratorConfig:
    """Return a copy of ``config`` with every non-None override applied."""
    config = config.model_copy(deep=True)
    if title is not None:
        config.title = title
    if description is not None:
        config.description = description
    if version is not None:
        config.version = version
    if base_url is not None:
        config.servers = [ServerConfig(url=base_url.rstrip("/"), description="API Server")]
    if bearer is not None:
        config.security.bearer.enabled = bearer
    if oauth2 is not None:
        config.security.oauth2.enabled = oauth2
    if api_key is not None:
        config.security.api_key.enabled = api_key
    if always_bearer is not None:
        config.always_require_bearer = always_bearer
    return config
