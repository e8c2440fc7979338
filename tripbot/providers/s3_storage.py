import logging
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from tripbot.providers.base import ObjectStorage, StorageError

logger = logging.getLogger(__name__)


class S3Storage(ObjectStorage):
    """
    Public-read PDF storage on S3.

    No ACL is set on upload; the bucket policy handles public access and
    `base_url` is the public prefix objects are served from.
    """

    def __init__(
        self,
        bucket: Optional[str],
        base_url: Optional[str],
        region: Optional[str] = None,
        timeout: int = 30,
        client=None,
    ):
        self.bucket = bucket
        self.base_url = (base_url or "").rstrip("/")
        self._client = client
        self._region = region
        self._timeout = timeout

    @property
    def client(self):
        if self._client is None:
            self._client = boto3.client(
                "s3",
                region_name=self._region,
                config=Config(
                    connect_timeout=self._timeout,
                    read_timeout=self._timeout,
                    retries={"max_attempts": 2, "mode": "standard"},
                ),
            )
        return self._client

    def upload(self, key: str, data: bytes, content_type: str = "application/pdf") -> str:
        if not self.bucket or not self.base_url:
            raise StorageError("AWS_S3_BUCKET or AWS_S3_BASE_URL not configured")
        try:
            self.client.put_object(Bucket=self.bucket, Key=key, Body=data, ContentType=content_type)
        except (BotoCoreError, ClientError) as e:
            raise StorageError(f"S3 upload failed for {key}: {e}") from e
        logger.info("Uploaded %d bytes to s3://%s/%s", len(data), self.bucket, key)
        return f"{self.base_url}/{key}"
