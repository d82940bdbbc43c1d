# app/services/s3_service.py

import re
import uuid
from datetime import datetime
from typing import Optional

import boto3
from botocore.exceptions import ClientError

from app.core.config import settings
from app.core.logger import logger


def audio_content_type(filename: str) -> str:
    return "audio/mpeg" if (filename or "").lower().endswith(".mp3") else "audio/m4a"


class S3Service:
    """
    Service layer for storing interaction audio in S3.
    """

    def __init__(self):
        self.s3_client = boto3.client(
            's3',
            region_name=settings.AWS_REGION,
            aws_access_key_id=settings.AWS_ACCESS_KEY_ID or None,
            aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY or None
        )
        self.bucket = settings.AUDIO_S3_BUCKET_NAME.strip()

    @property
    def enabled(self) -> bool:
        return bool(self.bucket)

    def build_audio_key(self, case_id: str, filename: str) -> str:
        safe_name = re.sub(r"[^\w.\-]", "_", filename or "audio") or "audio"
        stamp = datetime.utcnow().strftime("%Y%m%d%H%M%S")
        prefix = settings.AUDIO_S3_PREFIX.strip("/")
        return f"{prefix}/{case_id}/{stamp}-{uuid.uuid4().hex[:8]}-{safe_name}"

    def object_url(self, s3_key: str) -> str:
        return f"https://{self.bucket}.s3.{settings.AWS_REGION}.amazonaws.com/{s3_key}"

    def upload_audio(self, data: bytes, case_id: str, filename: str) -> Optional[str]:
        """
        Store an uploaded recording. Returns its URL, or None when no bucket
        is configured.
        """
        if not self.enabled:
            return None

        s3_key = self.build_audio_key(case_id, filename)
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=s3_key,
                Body=data,
                ContentType=audio_content_type(filename)
            )
            logger.info("Audio stored: %s (%s bytes)", s3_key, len(data))
            return self.object_url(s3_key)

        except ClientError as e:
            logger.error("Failed to store audio %s: %s", s3_key, e)
            raise


# Singleton instance
s3_service = S3Service()
