"""S3-compatible object store client."""

import hashlib
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from common.constants import CHECKSUM_READ_CHUNK_BYTES
from common.logging_config import get_logger
from metadata_api.config import Settings
from metadata_api.domain import ObjectInfo
from metadata_api.exceptions import NotFoundError, ObjectStoreError

logger = get_logger(__name__)

_MISSING_OBJECT_CODES = ("404", "NoSuchKey", "NotFound")


def _is_missing(error: ClientError) -> bool:
    return error.response.get("Error", {}).get("Code") in _MISSING_OBJECT_CODES


class ObjectStore:
    """
    Thin adapter over a boto3 S3 client bound to one bucket.

    This is the only place where botocore error shapes are inspected:
    missing objects become None or NotFoundError, every other failure
    becomes ObjectStoreError.
    """

    def __init__(self, client, bucket_name: str):
        self.client = client
        self.bucket_name = bucket_name

    @classmethod
    def from_settings(cls, settings: Settings) -> "ObjectStore":
        """
        Build a client for AWS S3, LocalStack or MinIO.

        Args:
            settings: Application settings with bucket, region, credentials and endpoint

        Returns:
            ObjectStore instance
        """
        client = boto3.client(
            "s3",
            region_name=settings.region_name,
            endpoint_url=settings.endpoint_url,
            aws_access_key_id=settings.access_key_id,
            aws_secret_access_key=settings.secret_access_key,
            config=Config(signature_version="s3v4", s3={"addressing_style": "path"}),
        )
        return cls(client, settings.bucket_name)

    def ensure_bucket(self) -> None:
        """
        Create the bucket if it does not exist (local development).
        """
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
            return
        except ClientError as e:
            if not _is_missing(e):
                raise ObjectStoreError(f"Failed to check bucket {self.bucket_name}: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Failed to check bucket {self.bucket_name}: {e}") from e

        region = self.client.meta.region_name
        params = {"Bucket": self.bucket_name}
        if region and region != "us-east-1":
            params["CreateBucketConfiguration"] = {"LocationConstraint": region}

        try:
            self.client.create_bucket(**params)
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError(f"Failed to create bucket {self.bucket_name}: {e}") from e
        logger.info(f"Created bucket {self.bucket_name}")

    def ping(self) -> None:
        try:
            self.client.head_bucket(Bucket=self.bucket_name)
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError(f"Bucket {self.bucket_name} is unreachable: {e}") from e

    def put_object(self, key: str, data: bytes, content_type: str, metadata: Optional[Dict[str, str]] = None) -> None:
        try:
            self.client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
                Metadata=metadata or {},
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload object {key}: {e}", exc_info=True)
            raise ObjectStoreError(f"Failed to upload object {key}: {e}") from e

    def head_object(self, key: str) -> Optional[ObjectInfo]:
        """
        Probe an object without transferring its content.

        Returns:
            ObjectInfo, or None if the object does not exist
        """
        try:
            response = self.client.head_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _is_missing(e):
                return None
            raise ObjectStoreError(f"Failed to inspect object {key}: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Failed to inspect object {key}: {e}") from e

        return ObjectInfo(
            key=key,
            size=response.get("ContentLength", 0),
            etag=response.get("ETag"),
            last_modified=response.get("LastModified"),
            content_type=response.get("ContentType"),
            metadata=response.get("Metadata", {}),
        )

    def compute_md5(self, key: str) -> str:
        """
        Stream an object and compute its MD5 hex digest.

        Raises:
            NotFoundError: If the object does not exist
            ObjectStoreError: If the download fails
        """
        try:
            response = self.client.get_object(Bucket=self.bucket_name, Key=key)
            digest = hashlib.md5()
            body = response["Body"]
            try:
                for chunk in body.iter_chunks(chunk_size=CHECKSUM_READ_CHUNK_BYTES):
                    digest.update(chunk)
            finally:
                body.close()
        except ClientError as e:
            if _is_missing(e):
                raise NotFoundError(f"Object {key} not found in storage") from e
            raise ObjectStoreError(f"Failed to read object {key}: {e}") from e
        except BotoCoreError as e:
            raise ObjectStoreError(f"Failed to read object {key}: {e}") from e

        return digest.hexdigest()

    def delete_object(self, key: str) -> None:
        """
        Delete an object. Deleting an absent key is not an error in S3.
        """
        try:
            logger.info(f"Deleting object from storage: {key}")
            self.client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to delete object from storage: {key}: {e}", exc_info=True)
            raise ObjectStoreError(f"Failed to delete object {key}: {e}") from e

    def generate_upload_url(
        self,
        key: str,
        content_type: str,
        expires_in: int,
        metadata: Optional[Dict[str, str]] = None
    ) -> str:
        """
        Pre-sign a PUT for one key.

        The client must send the same Content-Type and x-amz-meta-* headers
        that were signed here.
        """
        params = {"Bucket": self.bucket_name, "Key": key, "ContentType": content_type}
        if metadata:
            params["Metadata"] = metadata

        try:
            return self.client.generate_presigned_url(
                ClientMethod="put_object",
                Params=params,
                ExpiresIn=expires_in,
                HttpMethod="PUT",
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError(f"Failed to generate upload URL for {key}: {e}") from e

    def generate_download_url(
        self,
        key: str,
        expires_in: int,
        content_disposition: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> str:
        params = {"Bucket": self.bucket_name, "Key": key}
        if content_disposition:
            params["ResponseContentDisposition"] = content_disposition
        if content_type:
            params["ResponseContentType"] = content_type

        try:
            return self.client.generate_presigned_url(
                ClientMethod="get_object",
                Params=params,
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise ObjectStoreError(f"Failed to generate download URL for {key}: {e}") from e

    def close(self) -> None:
        self.client.close()
        logger.info("Object store client closed")
