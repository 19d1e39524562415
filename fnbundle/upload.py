"""
S3 upload of function code
==========================
Puts a finished archive into a bucket and reports the object version, the
way the function's code location is later referenced when deploying.
"""
from __future__ import annotations

import logging
from typing import Any, BinaryIO, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .config import settings
from .errors import UploadError
from .models import ArchiveArtifact

logger = logging.getLogger(__name__)


class S3Uploader:
    """Upload sink backed by S3. The client is created on first use."""

    def __init__(self, client: Any = None, region: Optional[str] = None) -> None:
        self._s3_client = client
        self._region = region if region is not None else settings.aws_region

    @property
    def s3_client(self) -> Any:
        if self._s3_client is None:
            self._s3_client = boto3.client("s3", region_name=self._region or None)
            logger.debug("S3 client created")
        return self._s3_client

    def upload(self, fileobj: BinaryIO, bucket: str, key: str) -> str:
        """Returns the new VersionId, or "" when the bucket is not versioned."""
        if not bucket or not key:
            raise UploadError(f"bucket and key are required (got bucket={bucket!r} key={key!r})")
        logger.debug("PutObject to s3://%s/%s", bucket, key)
        try:
            res = self.s3_client.put_object(Bucket=bucket, Key=key, Body=fileobj)
        except (ClientError, BotoCoreError) as e:
            raise UploadError(f"failed to upload to s3://{bucket}/{key}: {e}") from e
        version_id = res.get("VersionId")
        if version_id:
            logger.info("uploaded s3://%s/%s version %s", bucket, key, version_id)
            return version_id
        logger.info("uploaded s3://%s/%s (not versioned)", bucket, key)
        return ""

    def upload_artifact(self, artifact: ArchiveArtifact, bucket: Optional[str] = None, key: Optional[str] = None) -> str:
        artifact.rewind()
        return self.upload(artifact.fileobj, bucket or settings.s3_bucket, key or settings.s3_key)
