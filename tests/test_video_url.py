import pytest
from pydantic import ValidationError

from proofbench.core.enum import VideoProvider
from proofbench.libs.formats.video_url import (
    detect_video_provider,
    extract_video_id,
    get_embed_url,
    get_video_thumbnail,
    is_valid_video_url,
    resolve_video_reference,
)
from proofbench.schemas.admin.course import CreateVideo


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://youtu.be/abc123", True),
        ("https://vimeo.com/123456", True),
        ("https://example.com/x", False),
        ("https://vimeo.com/channels/staff", False),
        ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=10", True),
    ],
)
def test_is_valid_video_url(url, expected):
    assert is_valid_video_url(url) is expected


@pytest.mark.parametrize(
    "url",
    [
        "https://www.youtube.com/watch?v=dQw4w9WgXcQ",
        "https://youtu.be/dQw4w9WgXcQ",
        "https://www.youtube.com/embed/dQw4w9WgXcQ",
        "https://www.youtube.com/v/dQw4w9WgXcQ",
    ],
)
def test_youtube_url_shapes(url):
    assert detect_video_provider(url) is VideoProvider.YOUTUBE
    assert extract_video_id(url) == "dQw4w9WgXcQ"


def test_embed_urls():
    assert (
        get_embed_url("https://youtu.be/abc123")
        == "https://www.youtube.com/embed/abc123?enablejsapi=1"
    )
    assert (
        get_embed_url("https://vimeo.com/123456")
        == "https://player.vimeo.com/video/123456"
    )
    assert get_embed_url("https://example.com/x") is None


def test_thumbnail_only_for_youtube():
    assert (
        get_video_thumbnail("https://youtu.be/abc123")
        == "https://img.youtube.com/vi/abc123/maxresdefault.jpg"
    )
    assert get_video_thumbnail("https://vimeo.com/123456") is None
    assert get_video_thumbnail("https://example.com/x") is None


def test_resolve_video_reference():
    ref = resolve_video_reference("https://vimeo.com/987")
    assert ref.provider is VideoProvider.VIMEO
    assert ref.video_id == "987"
    assert ref.is_valid

    unknown = resolve_video_reference("https://example.com/x")
    assert unknown.provider is VideoProvider.UNKNOWN
    assert not unknown.is_valid


def test_create_video_rejects_unsupported_url():
    with pytest.raises(ValidationError):
        CreateVideo(title="Intro", video_url="https://example.com/x")

    video = CreateVideo(title="Intro", video_url="https://youtu.be/abc123")
    assert video.video_url == "https://youtu.be/abc123"
