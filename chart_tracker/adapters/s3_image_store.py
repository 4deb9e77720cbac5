"""S3 image store for chart logos."""

import hashlib
import logging

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from chart_tracker.config import ENV_AWS_REGION, ENV_IMAGES_BUCKET, get_env_var
from chart_tracker.errors import UnrecognizedImageFormatError

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "images"

# Image format -> (file extension, content type)
IMAGE_FORMATS = {
    "png": ("png", "image/png"),
    "jpeg": ("jpg", "image/jpeg"),
    "gif": ("gif", "image/gif"),
    "webp": ("webp", "image/webp"),
    "svg": ("svg", "image/svg+xml"),
}


def detect_image_format(data: bytes) -> str:
    """Detect the format of image data from its leading bytes.

    Raises:
        UnrecognizedImageFormatError: If the data is not a supported image
    """
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "png"
    if data.startswith(b"\xff\xd8\xff"):
        return "jpeg"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "webp"

    head = data[:1024].lstrip().lower()
    if head.startswith(b"<svg") or (head.startswith(b"<?xml") and b"<svg" in head):
        return "svg"

    raise UnrecognizedImageFormatError("image: unknown format")


class S3ImageStore:
    """Stores images in S3 under their content hash."""

    def __init__(self, bucket_name: str | None = None, region: str | None = None):
        """Initialize S3ImageStore.

        Args:
            bucket_name: S3 bucket name. If None, reads from environment.
            region: AWS region. If None, reads from environment.
        """
        self.bucket_name = bucket_name or get_env_var(ENV_IMAGES_BUCKET, required=True)
        self.region = region or get_env_var(ENV_AWS_REGION, default="us-east-1")

        self.s3_client = boto3.client("s3", region_name=self.region)

        logger.info(f"Initialized S3ImageStore for bucket: {self.bucket_name}")

    def save_image(self, data: bytes) -> str:
        """Store an image and return its id.

        The id is the SHA256 of the image, so saving the same image twice
        yields the same id and a single object.

        Raises:
            UnrecognizedImageFormatError: If the data is not a supported image
            ClientError: If the upload fails
        """
        image_format = detect_image_format(data)
        extension, content_type = IMAGE_FORMATS[image_format]
        image_id = hashlib.sha256(data).hexdigest()
        key = f"{IMAGE_PREFIX}/{image_id}.{extension}"

        if self._object_exists(key):
            logger.debug(f"Image {image_id} already stored")
            return image_id

        try:
            self.s3_client.put_object(
                Bucket=self.bucket_name,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
            logger.debug(f"Stored image s3://{self.bucket_name}/{key}")

        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to store image {image_id}: {e}")
            raise

        return image_id

    def _object_exists(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code in ("404", "NoSuchKey", "NotFound"):
                return False
            raise
