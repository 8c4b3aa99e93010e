"""
Object storage for generated projects.

MockStorageService keeps everything in a dict and is the default. S3StorageService
has the same interface and is selected with STORAGE_BACKEND=s3.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from appgen.core.config import Settings, settings

logger = logging.getLogger(__name__)


@dataclass
class StorageFile:
    key: str
    content: str
    size: int
    uploaded_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class MockStorageService:
    """In-memory S3 stand-in. Entries never expire."""

    def __init__(self, bucket: str = "mock-s3-bucket") -> None:
        self.bucket = bucket
        self._files: Dict[str, StorageFile] = {}

    def upload_file(self, key: str, content: str) -> str:
        f = StorageFile(key=key, content=content, size=len(content))
        self._files[key] = f
        logger.info(f"Uploaded file: {key} ({f.size} bytes)")
        return key

    def download_file(self, key: str) -> Optional[str]:
        f = self._files.get(key)
        if f is None:
            return None
        logger.info(f"Downloaded file: {key}")
        return f.content

    def delete_file(self, key: str) -> bool:
        deleted = self._files.pop(key, None) is not None
        if deleted:
            logger.info(f"Deleted file: {key}")
        return deleted

    def list_files(self, prefix: str = "") -> List[str]:
        keys = [k for k in self._files if k.startswith(prefix)]
        logger.info(f"Listed {len(keys)} files with prefix: {prefix!r}")
        return keys

    def get_file_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.amazonaws.com/{key}"

    def get_stats(self) -> Dict[str, int]:
        return {
            "totalFiles": len(self._files),
            "totalSize": sum(f.size for f in self._files.values()),
        }

    def clear(self) -> None:
        self._files.clear()


class S3StorageService:
    """Same interface as MockStorageService, backed by a real bucket."""

    def __init__(self, bucket: str, region: str, client: Any = None) -> None:
        self.bucket = bucket
        self.region = region
        if client is None:
            import boto3
            from botocore.config import Config

            client = boto3.client(
                "s3",
                region_name=region,
                config=Config(signature_version="s3v4", region_name=region),
            )
        self.s3 = client

    def _is_missing(self, e: Exception) -> bool:
        response = getattr(e, "response", None) or {}
        code = response.get("Error", {}).get("Code")
        return code in ("NoSuchKey", "404", "NotFound")

    def upload_file(self, key: str, content: str) -> str:
        self.s3.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=content.encode("utf-8"),
            ContentType="application/json",
        )
        logger.info(f"Uploaded s3://{self.bucket}/{key}")
        return key

    def download_file(self, key: str) -> Optional[str]:
        try:
            resp = self.s3.get_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            if self._is_missing(e):
                return None
            raise
        return resp["Body"].read().decode("utf-8")

    def delete_file(self, key: str) -> bool:
        try:
            self.s3.head_object(Bucket=self.bucket, Key=key)
        except Exception as e:
            if self._is_missing(e):
                return False
            raise
        self.s3.delete_object(Bucket=self.bucket, Key=key)
        return True

    def list_files(self, prefix: str = "") -> List[str]:
        keys: List[str] = []
        kwargs: Dict[str, Any] = {"Bucket": self.bucket, "Prefix": prefix}
        while True:
            resp = self.s3.list_objects_v2(**kwargs)
            for obj in resp.get("Contents", []) or []:
                keys.append(obj["Key"])
            token = resp.get("NextContinuationToken")
            if not token:
                return keys
            kwargs["ContinuationToken"] = token

    def get_file_url(self, key: str) -> str:
        return f"https://{self.bucket}.s3.{self.region}.amazonaws.com/{key}"

    def get_stats(self) -> Dict[str, int]:
        total_files = 0
        total_size = 0
        kwargs: Dict[str, Any] = {"Bucket": self.bucket}
        while True:
            resp = self.s3.list_objects_v2(**kwargs)
            for obj in resp.get("Contents", []) or []:
                total_files += 1
                total_size += obj.get("Size", 0)
            token = resp.get("NextContinuationToken")
            if not token:
                return {"totalFiles": total_files, "totalSize": total_size}
            kwargs["ContinuationToken"] = token


def build_storage(cfg: Settings):
    if cfg.storage_backend == "s3":
        return S3StorageService(bucket=cfg.s3_bucket, region=cfg.aws_region)
    return MockStorageService()


storage = build_storage(settings)
