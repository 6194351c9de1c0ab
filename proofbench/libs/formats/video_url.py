import re
from dataclasses import dataclass
from typing import Optional

from proofbench.core.enum import VideoProvider

_YOUTUBE_PATTERNS = (
    re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&\n?#]+)"),
    re.compile(r"youtube\.com/embed/([^&\n?#]+)"),
    re.compile(r"youtube\.com/v/([^&\n?#]+)"),
)
_VIMEO_PATTERN = re.compile(r"vimeo\.com/([0-9]+)")

YOUTUBE_EMBED_URL = "https://www.youtube.com/embed/{video_id}?enablejsapi=1"
YOUTUBE_THUMBNAIL_URL = "https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"
VIMEO_EMBED_URL = "https://player.vimeo.com/video/{video_id}"


@dataclass(frozen=True)
class VideoReference:
    provider: VideoProvider
    video_id: Optional[str]
    embed_url: Optional[str]
    thumbnail_url: Optional[str]

    @property
    def is_valid(self) -> bool:
        return self.video_id is not None


def detect_video_provider(url: str) -> VideoProvider:
    if "youtube.com" in url or "youtu.be" in url:
        return VideoProvider.YOUTUBE
    if "vimeo.com" in url:
        return VideoProvider.VIMEO
    return VideoProvider.UNKNOWN


def extract_youtube_id(url: str) -> Optional[str]:
    for pattern in _YOUTUBE_PATTERNS:
        match = pattern.search(url)
        if match:
            return match.group(1)
    return None


def extract_vimeo_id(url: str) -> Optional[str]:
    match = _VIMEO_PATTERN.search(url)
    return match.group(1) if match else None


def extract_video_id(url: str) -> Optional[str]:
    provider = detect_video_provider(url)
    if provider is VideoProvider.YOUTUBE:
        return extract_youtube_id(url)
    if provider is VideoProvider.VIMEO:
        return extract_vimeo_id(url)
    return None


def get_embed_url(url: str) -> Optional[str]:
    provider = detect_video_provider(url)
    video_id = extract_video_id(url)
    if video_id is None:
        return None

    if provider is VideoProvider.YOUTUBE:
        return YOUTUBE_EMBED_URL.format(video_id=video_id)
    return VIMEO_EMBED_URL.format(video_id=video_id)


def is_valid_video_url(url: str) -> bool:
    return extract_video_id(url) is not None


def get_video_thumbnail(url: str) -> Optional[str]:
    # Vimeo thumbnails need an API call, not supported
    if detect_video_provider(url) is not VideoProvider.YOUTUBE:
        return None

    video_id = extract_youtube_id(url)
    if video_id is None:
        return None
    return YOUTUBE_THUMBNAIL_URL.format(video_id=video_id)


def resolve_video_reference(url: str) -> VideoReference:
    return VideoReference(
        provider=detect_video_provider(url),
        video_id=extract_video_id(url),
        embed_url=get_embed_url(url),
        thumbnail_url=get_video_thumbnail(url),
    )
