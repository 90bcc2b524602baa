import asyncio
import logging
import os
from dataclasses import dataclass, field
from typing import Dict

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from video_ingest.core.config import settings
from video_ingest.core.errors import StorageError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BlobRef:
    bucket: str
    name: str


@dataclass
class BlobMetadata:
    name: str
    content_type: str
    size: int
    user_metadata: Dict[str, str] = field(default_factory=dict)

    @property
    def original_filename(self) -> str:
        # Uploaders may attach x-amz-meta-original-filename
        return self.user_metadata.get("original-filename") or os.path.basename(self.name)


def create_s3_client():
    return boto3.client(
        "s3",
        aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
        aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
        region_name=settings.AWS_REGION,
        endpoint_url=settings.AWS_ENDPOINT_URL or None,
        config=Config(signature_version="s3v4"),
    )


class BlobStore:
    """
    Async facade over a boto3 S3 client.

    boto3 is blocking, so every call runs in a worker thread and the event loop
    stays free for other pipeline runs.
    """

    def __init__(self, s3_client=None):
        self.s3_client = s3_client or create_s3_client()

    def _head(self, ref: BlobRef) -> BlobMetadata:
        response = self.s3_client.head_object(Bucket=ref.bucket, Key=ref.name)
        return BlobMetadata(
            name=ref.name,
            content_type=response.get("ContentType") or "",
            size=int(response.get("ContentLength") or 0),
            user_metadata=response.get("Metadata") or {},
        )

    async def get_metadata(self, ref: BlobRef) -> BlobMetadata:
        try:
            return await asyncio.to_thread(self._head, ref)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not read metadata for s3://{ref.bucket}/{ref.name}: {e}") from e

    async def generate_signed_url(self, ref: BlobRef, expires_in: int) -> str:
        try:
            return await asyncio.to_thread(
                self.s3_client.generate_presigned_url,
                ClientMethod="get_object",
                Params={"Bucket": ref.bucket, "Key": ref.name},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Could not sign URL for s3://{ref.bucket}/{ref.name}: {e}") from e

    async def download(self, ref: BlobRef, destination: str) -> str:
        try:
            await asyncio.to_thread(
                self.s3_client.download_file,
                Bucket=ref.bucket,
                Key=ref.name,
                Filename=destination,
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Download of s3://{ref.bucket}/{ref.name} failed: {e}") from e
        logger.info(f"Downloaded s3://{ref.bucket}/{ref.name} to {destination}")
        return destination
