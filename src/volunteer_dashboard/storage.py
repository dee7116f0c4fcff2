from __future__ import annotations

import logging
import mimetypes
import uuid
from pathlib import Path
from typing import Optional, Union

try:
    import oss2  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    oss2 = None

from .configuration import MediaStorageConfig

logger = logging.getLogger(__name__)


class MediaStorageError(RuntimeError):
    pass


def build_object_name(filename: Optional[str], content_type: Optional[str]) -> str:
    """Random object name keeping the upload's extension, e.g. ``3f2a....png``."""

    suffix = Path(filename or "").suffix.lower()
    if not suffix and content_type:
        suffix = mimetypes.guess_extension(content_type) or ""
    return f"{uuid.uuid4().hex}{suffix or '.bin'}"


class LocalMediaStorage:
    """Writes images below ``local_directory``; the app serves them at ``public_path``."""

    def __init__(self, config: MediaStorageConfig):
        self.config = config
        self.base_dir = Path(config.local_directory).expanduser()
        self.base_dir.mkdir(parents=True, exist_ok=True)
        self.prefix = self.sanitize_prefix(config.prefix)
        self.public_path = "/" + config.public_path.strip("/")

    def upload_image(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
        name = build_object_name(filename, content_type)
        target_dir = self.base_dir / self.prefix if self.prefix else self.base_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        dest_path = target_dir / name
        try:
            dest_path.write_bytes(data)
        except OSError as exc:
            raise MediaStorageError(f"Failed to save image locally ({dest_path}): {exc}") from exc
        key = f"{self.prefix}/{name}" if self.prefix else name
        return f"{self.public_path}/{key}"

    @staticmethod
    def sanitize_prefix(value: str) -> str:
        segments = []
        for segment in value.strip("/").split("/"):
            cleaned = "".join(ch for ch in segment if ch.isalnum() or ch in {"-", "_"})
            if cleaned:
                segments.append(cleaned)
        return "/".join(segments)


class AliyunOSSStorage:
    def __init__(self, config: MediaStorageConfig):
        if oss2 is None:
            raise RuntimeError("oss2 package is required for Aliyun OSS media storage.")
        if not all([config.bucket, config.endpoint, config.access_key_id, config.access_key_secret]):
            raise ValueError("Aliyun OSS storage is missing required configuration.")

        auth = oss2.Auth(config.access_key_id, config.access_key_secret)
        self.bucket_name = config.bucket
        self.endpoint = config.endpoint
        self.prefix = config.prefix.strip("/")
        self.bucket = oss2.Bucket(auth, config.endpoint, config.bucket)

    def upload_image(self, data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
        name = build_object_name(filename, content_type)
        key = f"{self.prefix}/{name}" if self.prefix else name
        headers = {"Content-Type": content_type} if content_type else None
        try:
            self.bucket.put_object(key, data, headers=headers)
        except Exception as exc:  # pragma: no cover - network errors handled at runtime
            raise MediaStorageError(f"Failed to upload image to OSS: {exc}") from exc

        sanitized_endpoint = self.endpoint.replace("https://", "").replace("http://", "")
        return f"https://{self.bucket_name}.{sanitized_endpoint}/{key}"


MediaStorage = Union[LocalMediaStorage, AliyunOSSStorage]


def build_media_storage(config: MediaStorageConfig) -> Optional[MediaStorage]:
    if not config.enable or config.provider == "none":
        return None
    if config.provider == "local_fs":
        return LocalMediaStorage(config)
    if config.provider == "aliyun_oss":
        try:
            return AliyunOSSStorage(config)
        except (RuntimeError, ValueError) as exc:
            logger.warning("Media storage unavailable: %s", exc)
            return None
    return None
