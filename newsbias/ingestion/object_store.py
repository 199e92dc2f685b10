"""Object store gateway for article bodies."""

import logging
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Optional

import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..errors import ObjectStoreError

logger = logging.getLogger(__name__)

TEXT_CONTENT_TYPE = "text/plain; charset=utf-8"


class ObjectStore(ABC):
    """Abstract base class for object stores."""

    @abstractmethod
    def put(self, key: str, body: str) -> None:
        """
        Write (or overwrite) an object.

        Args:
            key: Object key
            body: Text content, stored as UTF-8
        """
        pass

    @abstractmethod
    def presign(self, key: str, ttl: timedelta) -> str:
        """
        Mint a time-limited GET URL for an object.

        Args:
            key: Object key
            ttl: How long the URL stays valid

        Returns:
            The signed URL
        """
        pass


class S3ObjectStore(ObjectStore):
    """S3 implementation of the object store."""

    def __init__(
        self,
        bucket: str,
        region: str,
        client: Optional[Any] = None,
        connect_timeout: float = 15.0,
        read_timeout: float = 30.0,
    ) -> None:
        """
        Initialize S3 object store.

        Args:
            bucket: Bucket holding article bodies
            region: Bucket region
            client: Preconfigured boto3 S3 client (for testing)
            connect_timeout: Seconds allowed to open a connection
            read_timeout: Seconds allowed for a response
        """
        self.bucket = bucket
        self.region = region
        if client is None:
            try:
                client = boto3.client(
                    "s3",
                    region_name=region,
                    config=BotoConfig(
                        connect_timeout=connect_timeout,
                        read_timeout=read_timeout,
                        retries={"max_attempts": 0},
                    ),
                )
            except BotoCoreError as e:
                raise ObjectStoreError(f"failed to load AWS config: {e}") from e
        self.client = client

    def put(self, key: str, body: str) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=body.encode("utf-8"),
                ContentType=TEXT_CONTENT_TYPE,
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"failed to upload {key}: {e}", {"key": key}) from e

    def presign(self, key: str, ttl: timedelta) -> str:
        try:
            return self.client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=max(1, int(ttl.total_seconds())),
            )
        except (BotoCoreError, ClientError) as e:
            raise ObjectStoreError(f"failed to generate presigned URL for {key}: {e}", {"key": key}) from e
