import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import quote
from media_handler.config import MediaHandlerConfig
import structlog

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "an error occurred"


class StorageError(Exception):
    """Raised by S3Service for every failed bucket operation."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.code = code

    @classmethod
    def from_exception(cls, error: Exception) -> "StorageError":
        if isinstance(error, ClientError):
            details = error.response.get("Error", {})
            return cls(details.get("Message") or str(error), details.get("Code"))
        return cls(str(error) or GENERIC_ERROR_MESSAGE)


def _field(value: Any, name: str) -> Any:
    if isinstance(value, dict):
        return value.get(name)
    return getattr(value, name, None)


def find_error_message(error: Any) -> str:
    """
    Reduce a failure of any shape to a display string.

    Accepts bare strings, objects or dicts with a `message`, and objects or
    dicts nesting it under `error.message`. Messages that are not strings
    are skipped.
    """
    if isinstance(error, str):
        return error
    message = _field(error, "message")
    if message and isinstance(message, str):
        return message
    nested = _field(error, "error")
    if nested is not None:
        message = _field(nested, "message")
        if message and isinstance(message, str):
            return message
    return GENERIC_ERROR_MESSAGE


def create_s3_client(config: MediaHandlerConfig):
    return boto3.client(
        's3',
        endpoint_url=config.endpoint,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.access_secret,
        region_name=config.region
    )


class S3Service:
    def __init__(self, client, bucket_name: str):
        self.s3_client = client
        self.bucket_name = bucket_name

    @classmethod
    def from_config(cls, config: MediaHandlerConfig) -> "S3Service":
        return cls(create_s3_client(config), config.bucket)

    def list_objects(
        self,
        prefix: str = "",
        max_keys: int = 500,
        marker: Optional[str] = None
    ) -> Tuple[List[Dict[str, Any]], Optional[str]]:
        """
        List one page of objects in the bucket.

        Args:
            prefix: Key prefix to filter on, empty for the whole bucket
            max_keys: Page size
            marker: Opaque cursor returned by a previous call

        Returns:
            Tuple of (object descriptors, next cursor or None)
        """
        params = {
            'Bucket': self.bucket_name,
            'Prefix': prefix,
            'MaxKeys': max_keys,
        }
        if marker:
            params['Marker'] = marker

        try:
            response = self.s3_client.list_objects(**params)
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to list objects",
                error=str(e),
                prefix=prefix,
                marker=marker
            )
            raise StorageError.from_exception(e) from e

        contents = response.get('Contents', [])
        next_marker = response.get('NextMarker')
        # ListObjects only returns NextMarker when a delimiter is sent
        if next_marker is None and response.get('IsTruncated') and contents:
            next_marker = contents[-1]['Key']

        logger.info(
            "Listed objects",
            prefix=prefix,
            count=len(contents),
            truncated=bool(response.get('IsTruncated'))
        )
        return contents, next_marker

    def upload_file(
        self,
        file_path: str,
        key: str,
        content_type: Optional[str] = None,
        progress_callback: Optional[Callable[[int], None]] = None
    ) -> Dict[str, Any]:
        """
        Upload a local file as a public-read object.

        boto3's managed transfer switches to multipart for large files.

        Returns:
            Upload result with Location, Bucket and Key
        """
        extra_args = {'ACL': 'public-read'}
        if content_type:
            extra_args['ContentType'] = content_type

        try:
            self.s3_client.upload_file(
                file_path,
                self.bucket_name,
                key,
                ExtraArgs=extra_args,
                Callback=progress_callback
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as e:
            logger.error(
                "Failed to upload file to S3",
                error=str(e),
                key=key
            )
            raise StorageError.from_exception(e) from e

        logger.info("Uploaded file to S3", key=key)
        return {
            'Location': self.object_location(key),
            'Bucket': self.bucket_name,
            'Key': key,
        }

    def delete_object(self, key: str) -> None:
        try:
            self.s3_client.delete_object(Bucket=self.bucket_name, Key=key)
        except (BotoCoreError, ClientError) as e:
            logger.error(
                "Failed to delete object from S3",
                error=str(e),
                key=key
            )
            raise StorageError.from_exception(e) from e

        logger.info("Deleted object from S3", key=key)

    def object_location(self, key: str) -> str:
        endpoint = self.s3_client.meta.endpoint_url.rstrip('/')
        return f"{endpoint}/{self.bucket_name}/{quote(key)}"
