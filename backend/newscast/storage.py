"""
Supabase Storage Operations

This module handles the binary object store for generated audio:
uploading MP3 blobs with their metadata and reading them back.
"""

import logging
from typing import Dict, Optional
from supabase import Client

from newscast.core.errors import StorageUnavailableError

logger = logging.getLogger(__name__)

AUDIO_CONTENT_TYPE = "audio/mpeg"


def audio_object_key(cache_key: str) -> str:
    """Object key for a podcast's audio, derived from its cache key."""
    return f"podcast_{cache_key}.mp3"


def upload_audio_to_storage(
    supabase: Client,
    audio_data: bytes,
    object_key: str,
    metadata: Optional[Dict[str, str]] = None,
    bucket: str = "podcasts",
    content_type: str = AUDIO_CONTENT_TYPE
) -> str:
    """
    Upload audio file (MP3) to Supabase storage.

    Args:
        supabase: Supabase client instance
        audio_data: MP3 audio data
        object_key: Path of the object within the bucket
        metadata: Custom metadata stored alongside the object
        bucket: Supabase storage bucket name

    Returns:
        Storage path of the uploaded object

    Raises:
        StorageUnavailableError if the upload fails
    """
    file_options = {
        "content-type": content_type,
        "upsert": "true"
    }
    if metadata:
        file_options["metadata"] = metadata

    try:
        supabase.storage.from_(bucket).upload(
            path=object_key,
            file=audio_data,
            file_options=file_options
        )
    except Exception as e:
        logger.error(f"Failed to upload audio to storage: {e}")
        raise StorageUnavailableError(f"Failed to store audio: {e}", operation="put") from e

    logger.info(f"Uploaded audio to storage: {bucket}/{object_key}")
    return object_key


def download_from_storage(
    supabase: Client,
    bucket: str,
    path: str
) -> Optional[bytes]:
    """
    Read an object from Supabase storage.

    Returns:
        Object bytes, or None if it does not exist or cannot be read
    """
    try:
        data = supabase.storage.from_(bucket).download(path)
    except Exception as e:
        logger.warning(f"Failed to download {bucket}/{path}: {e}")
        return None

    return data or None


class AudioStore:
    """
    Object store for podcast audio.

    A store built without a client is "unconfigured": writes raise
    StorageUnavailableError and reads return None.
    """

    def __init__(self, supabase: Optional[Client], bucket: str = "podcasts"):
        self.supabase = supabase
        self.bucket = bucket

    @property
    def configured(self) -> bool:
        return self.supabase is not None

    def put(
        self,
        key: str,
        data: bytes,
        content_type: str = AUDIO_CONTENT_TYPE,
        metadata: Optional[Dict[str, str]] = None
    ) -> str:
        if not self.configured:
            raise StorageUnavailableError("Audio storage not configured", operation="put")
        return upload_audio_to_storage(
            self.supabase,
            data,
            key,
            metadata=metadata,
            bucket=self.bucket,
            content_type=content_type
        )

    def get(self, key: str) -> Optional[bytes]:
        if not self.configured:
            return None
        return download_from_storage(self.supabase, self.bucket, key)
