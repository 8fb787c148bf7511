"""s3lite: an asyncio client for S3-compatible object storage."""

from s3lite.client import S3Client
from s3lite.config import (
    ClientConfig,
    Protocol,
    RequestStyle,
    SignatureVersion,
    config_from_env,
    load_config,
)
from s3lite.errors import (
    ClientStatusError,
    ConfigurationError,
    ConnectivityError,
    DecodeError,
    InvalidArgumentError,
    ProviderError,
    S3ClientError,
    ServerStatusError,
)
from s3lite.models import (
    Bucket,
    CommonPrefixes,
    CreateBucketConfiguration,
    ErrorDocument,
    ListAllMyBucketsResult,
    ListBucketResult,
    ObjectMetadata,
    Owner,
)
from s3lite.signing import SignatureResult, Signer, SigV2Signer, SigV4Signer
from s3lite.transport import HttpxTransport, Transport
from s3lite.xml_utils import XmlCodec

__version__ = "0.1.0"

__all__ = [
    "Bucket",
    "ClientConfig",
    "ClientStatusError",
    "CommonPrefixes",
    "ConfigurationError",
    "ConnectivityError",
    "CreateBucketConfiguration",
    "DecodeError",
    "ErrorDocument",
    "HttpxTransport",
    "InvalidArgumentError",
    "ListAllMyBucketsResult",
    "ListBucketResult",
    "ObjectMetadata",
    "Owner",
    "Protocol",
    "ProviderError",
    "RequestStyle",
    "S3Client",
    "S3ClientError",
    "ServerStatusError",
    "SigV2Signer",
    "SigV4Signer",
    "SignatureResult",
    "SignatureVersion",
    "Signer",
    "Transport",
    "XmlCodec",
    "config_from_env",
    "load_config",
]
