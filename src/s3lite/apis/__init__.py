"""Operation groups exposed on S3Client as ``service``, ``bucket``, and ``object``."""

from s3lite.apis.bucket import BucketApis
from s3lite.apis.object import ObjectApis
from s3lite.apis.service import ServiceApis

__all__ = [
    "BucketApis",
    "ObjectApis",
    "ServiceApis",
]
