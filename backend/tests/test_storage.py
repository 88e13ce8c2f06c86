"""
Tests for the Supabase Storage audio store.
"""

import pytest

from newscast.core.errors import StorageUnavailableError
from newscast.storage import AudioStore, audio_object_key, upload_audio_to_storage


def test_audio_object_key():
    assert audio_object_key("ags5vy") == "podcast_ags5vy.mp3"


def test_upload_sets_content_type_and_metadata(mock_supabase):
    path = upload_audio_to_storage(
        mock_supabase,
        b"mp3",
        "podcast_abc.mp3",
        metadata={"url": "https://news.example/a", "userId": "alice"},
        bucket="audio"
    )

    assert path == "podcast_abc.mp3"
    mock_supabase.storage.from_.assert_called_with("audio")
    kwargs = mock_supabase.storage.from_.return_value.upload.call_args.kwargs
    assert kwargs["path"] == "podcast_abc.mp3"
    assert kwargs["file"] == b"mp3"
    assert kwargs["file_options"] == {
        "content-type": "audio/mpeg",
        "upsert": "true",
        "metadata": {"url": "https://news.example/a", "userId": "alice"},
    }


def test_upload_failure(mock_supabase):
    mock_supabase.storage.from_.return_value.upload.side_effect = Exception("bucket not found")

    with pytest.raises(StorageUnavailableError) as exc_info:
        upload_audio_to_storage(mock_supabase, b"mp3", "podcast_abc.mp3")

    assert exc_info.value.operation == "put"


class TestAudioStore:

    def test_put_and_get(self, mock_supabase):
        store = AudioStore(mock_supabase, bucket="podcasts")

        assert store.put("podcast_abc.mp3", b"mp3") == "podcast_abc.mp3"
        assert store.get("podcast_abc.mp3").startswith(b"\xff\xfb")
        mock_supabase.storage.from_.return_value.download.assert_called_with("podcast_abc.mp3")

    def test_get_missing(self, mock_supabase):
        mock_supabase.storage.from_.return_value.download.side_effect = Exception("Object not found")

        assert AudioStore(mock_supabase).get("podcast_nope.mp3") is None

    def test_unconfigured(self):
        store = AudioStore(None)

        assert store.configured is False
        assert store.get("podcast_abc.mp3") is None
        with pytest.raises(StorageUnavailableError):
            store.put("podcast_abc.mp3", b"mp3")
