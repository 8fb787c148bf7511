"""Client configuration models and loaders for s3lite."""

import os
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from s3lite.errors import ConfigurationError

DEFAULT_HOSTNAME = "amazonaws.com"
DEFAULT_REGION = "us-west-1"
DEFAULT_PORT = 443
DEFAULT_STREAM_BUFFER_SIZE = 65536

ENV_PREFIX = "S3LITE_"


class Protocol(str, Enum):
    """URL scheme used to reach the endpoint."""

    HTTP = "http"
    HTTPS = "https"

    @property
    def default_port(self) -> int:
        return 80 if self is Protocol.HTTP else 443


class RequestStyle(str, Enum):
    """Where the bucket name appears in the request URL."""

    PATH = "path"
    VIRTUAL_HOSTED = "virtual-hosted"


class SignatureVersion(str, Enum):
    """AWS request signature version."""

    V2 = "v2"
    V4 = "v4"


class ClientConfig(BaseModel):
    """Connection, credential, and debug settings for an S3Client.

    Instances are frozen. Use :meth:`replace` to derive a changed copy; the
    new values are validated the same way as at construction.

    Raises:
        ConfigurationError: On construction with an empty hostname, a port
            outside 0-65535, a non-positive stream buffer size, or an
            unrecognized protocol, request style, or signature version.
    """

    model_config = ConfigDict(frozen=True)

    protocol: Protocol = Protocol.HTTPS
    hostname: str = DEFAULT_HOSTNAME
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    region: str = DEFAULT_REGION
    request_style: RequestStyle = RequestStyle.VIRTUAL_HOSTED
    signature_version: SignatureVersion = SignatureVersion.V4
    access_key: str = ""
    secret_key: str = ""
    stream_buffer_size: int = Field(default=DEFAULT_STREAM_BUFFER_SIZE, ge=1)
    timeout: float | None = Field(default=None, gt=0)
    signature_debug: bool = False

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as exc:
            raise ConfigurationError(str(exc)) from exc

    @field_validator("hostname")
    @classmethod
    def _hostname_not_empty(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("hostname must not be empty")
        return value

    @field_validator("region", "access_key", "secret_key", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def has_credentials(self) -> bool:
        """True when both the access key and the secret key are set."""
        return bool(self.access_key) and bool(self.secret_key)

    def replace(self, **changes: Any) -> "ClientConfig":
        """Return a validated copy with the given fields changed."""
        data = self.model_dump()
        data.update(changes)
        return type(self)(**data)

    def __repr__(self) -> str:
        secret = "***" if self.secret_key else ""
        return (
            f"ClientConfig(protocol={self.protocol.value!r}, hostname={self.hostname!r}, "
            f"port={self.port}, region={self.region!r}, "
            f"request_style={self.request_style.value!r}, "
            f"signature_version={self.signature_version.value!r}, "
            f"access_key={self.access_key!r}, secret_key={secret!r})"
        )

    __str__ = __repr__


def _parse_endpoint(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the endpoint section from YAML data into a dict for Pydantic."""
    if data is None:
        return {}
    keys = ("protocol", "hostname", "port", "region", "request_style")
    return {k: data[k] for k in keys if k in data}


def _parse_auth(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the auth section from YAML data."""
    if data is None:
        return {}
    keys = ("access_key", "secret_key", "signature_version")
    return {k: data[k] for k in keys if k in data}


def _parse_client(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the client section from YAML data.

    Handles nested structure: client.debug.signatures -> signature_debug
    """
    if data is None:
        return {}
    result = {k: data[k] for k in ("stream_buffer_size", "timeout") if k in data}
    debug_section = data.get("debug")
    if isinstance(debug_section, dict) and "signatures" in debug_section:
        result["signature_debug"] = debug_section["signatures"]
    return result


def load_config(path: Path) -> ClientConfig:
    """Load a ClientConfig from a YAML file.

    Example file::

        endpoint:
          protocol: http
          hostname: localhost
          port: 9000
          region: us-east-1
          request_style: path
        auth:
          access_key: minio
          secret_key: minio-secret
        client:
          timeout: 30
          debug:
            signatures: false

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A validated ClientConfig.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigurationError: If any value is invalid.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    if not isinstance(raw, dict):
        raise ConfigurationError(f"Top-level YAML in {path} must be a mapping")

    settings: dict[str, Any] = {}
    settings.update(_parse_endpoint(raw.get("endpoint")))
    settings.update(_parse_auth(raw.get("auth")))
    settings.update(_parse_client(raw.get("client")))
    return ClientConfig(**settings)


def config_from_env(environ: Mapping[str, str] | None = None) -> ClientConfig:
    """Build a ClientConfig from ``S3LITE_*`` environment variables.

    Recognized variables: ``S3LITE_PROTOCOL``, ``S3LITE_HOSTNAME``,
    ``S3LITE_PORT``, ``S3LITE_REGION``, ``S3LITE_REQUEST_STYLE``,
    ``S3LITE_SIGNATURE_VERSION``, ``S3LITE_ACCESS_KEY``,
    ``S3LITE_SECRET_KEY``. Unset variables keep their defaults.
    """
    env = os.environ if environ is None else environ
    fields = (
        "protocol",
        "hostname",
        "port",
        "region",
        "request_style",
        "signature_version",
        "access_key",
        "secret_key",
    )
    settings = {
        name: env[ENV_PREFIX + name.upper()]
        for name in fields
        if ENV_PREFIX + name.upper() in env
    }
    return ClientConfig(**settings)
