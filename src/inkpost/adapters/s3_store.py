"""
S3-compatible image store (boto3).

Used for the public image bucket; keys are object keys in that bucket.
"""

from __future__ import annotations

import logging
from typing import Any

import boto3
from botocore.exceptions import ClientError

logger = logging.getLogger(__name__)


class ImageStoreError(RuntimeError):
    """The object store rejected an operation."""


class S3ImageStore:
    def __init__(
        self,
        bucket: str,
        *,
        endpoint_url: str | None = None,
        region_name: str = "auto",
        client: Any | None = None,
    ):
        self.bucket = bucket
        self._client = client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region_name,
        )

    def delete(self, key: str) -> None:
        try:
            self._client.delete_object(Bucket=self.bucket, Key=key)
        except ClientError as e:
            code = (e.response.get("Error") or {}).get("Code")
            # S3 reports success for missing keys; some compatible stores do not.
            if code in ("404", "NoSuchKey", "NotFound"):
                return
            raise ImageStoreError(f"Failed to delete {key}: {code}") from e
