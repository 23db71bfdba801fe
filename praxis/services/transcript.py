from __future__ import annotations

import html
import logging
import re
from dataclasses import dataclass
from typing import Any

import httpx
from youtube_transcript_api import YouTubeTranscriptApi

from praxis.core.youtube_settings import youtube_settings
from praxis.services.youtube import extract_youtube_video_id

logger = logging.getLogger(__name__)


class TranscriptNotFound(Exception):
    pass


@dataclass
class TranscriptItem:
    text: str
    start_ms: int
    duration_ms: int
    lang: str | None = None

    @property
    def end_ms(self) -> int:
        return self.start_ms + self.duration_ms

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"text": self.text, "startMs": self.start_ms, "durationMs": self.duration_ms}
        if self.lang is not None:
            d["lang"] = self.lang
        return d


_API_KEY_RES = (
    re.compile(r'"INNERTUBE_API_KEY":"([^"]+)"'),
    re.compile(r'INNERTUBE_API_KEY\\":\\"([^\\"]+)\\"'),
)
_XML_TEXT_RE = re.compile(r'<text start="([^"]*)" dur="([^"]*)">([^<]*)</text>')
_FMT_SUFFIX_RE = re.compile(r"&fmt=[^&]+$")


def resolve_video_id(video_id_or_url: str) -> str:
    s = (video_id_or_url or "").strip()
    vid = extract_youtube_video_id(s)
    if not vid:
        raise TranscriptNotFound("Invalid YouTube video ID or URL")
    return vid


def extract_innertube_api_key(watch_html: str) -> str | None:
    for rx in _API_KEY_RES:
        m = rx.search(watch_html or "")
        if m:
            return m.group(1)
    return None


def select_caption_track(tracks: list[dict[str, Any]], lang: str | None) -> dict[str, Any]:
    """
    Prefer the track whose languageCode equals `lang`; otherwise the first one.
    """
    if lang:
        for t in tracks:
            if t.get("languageCode") == lang:
                return t
    return tracks[0]


def parse_transcript_xml(xml: str, lang: str | None = None) -> list[TranscriptItem]:
    items: list[TranscriptItem] = []
    for m in _XML_TEXT_RE.finditer(xml or ""):
        start = float(m.group(1) or 0)
        dur = float(m.group(2) or 0)
        items.append(
            TranscriptItem(
                text=html.unescape(m.group(3) or ""),
                start_ms=int(round(start * 1000)),
                duration_ms=int(round(dur * 1000)),
                lang=lang,
            )
        )
    return items


def _fetch_with_innertube(client: httpx.Client, video_id: str, lang: str | None) -> list[TranscriptItem]:
    headers = {"User-Agent": youtube_settings.user_agent}
    if lang:
        headers["Accept-Language"] = lang

    watch = client.get(f"https://www.youtube.com/watch?v={video_id}", headers=headers)
    if watch.status_code != 200:
        raise TranscriptNotFound("Video unavailable")

    api_key = extract_innertube_api_key(watch.text)
    if not api_key:
        raise TranscriptNotFound("Transcript not available")

    player = client.post(
        f"https://www.youtube.com/youtubei/v1/player?key={api_key}",
        headers={"User-Agent": youtube_settings.user_agent},
        json={
            "context": {
                "client": {
                    "clientName": youtube_settings.innertube_client_name,
                    "clientVersion": youtube_settings.innertube_client_version,
                }
            },
            "videoId": video_id,
        },
    )
    if player.status_code != 200:
        raise TranscriptNotFound("Transcript not available")

    data = player.json() or {}
    tracklist = (data.get("captions") or {}).get("playerCaptionsTracklistRenderer") or data.get(
        "playerCaptionsTracklistRenderer"
    )
    tracks = (tracklist or {}).get("captionTracks") or []
    if not tracks:
        raise TranscriptNotFound("Transcript disabled")

    selected = select_caption_track(tracks, lang)
    url = selected.get("baseUrl") or selected.get("url")
    if not url:
        raise TranscriptNotFound("Transcript not available")
    url = _FMT_SUFFIX_RE.sub("", url)

    r = client.get(url, headers=headers)
    if r.status_code != 200:
        raise TranscriptNotFound("Transcript not available")

    items = parse_transcript_xml(r.text, lang=lang or selected.get("languageCode"))
    if not items:
        raise TranscriptNotFound("Transcript not available")
    return items


def _fetch_with_transcript_api(video_id: str, lang: str | None) -> list[TranscriptItem]:
    api = YouTubeTranscriptApi()
    fetched = api.fetch(video_id, languages=[lang] if lang else ["en"])
    used_lang = lang or getattr(fetched, "language_code", None)

    items = [
        TranscriptItem(
            text=snippet.text,
            start_ms=int(round(snippet.start * 1000)),
            duration_ms=int(round(snippet.duration * 1000)),
            lang=used_lang,
        )
        for snippet in fetched
    ]
    if not items:
        raise TranscriptNotFound("Transcript empty after fetch (transcript_api)")
    return items


def fetch_transcript(
    video_id_or_url: str,
    lang: str | None = None,
    *,
    client: httpx.Client | None = None,
) -> list[TranscriptItem]:
    video_id = resolve_video_id(video_id_or_url)

    own_client = client is None
    if own_client:
        client = httpx.Client(
            timeout=youtube_settings.http_timeout_sec,
            proxy=youtube_settings.proxy_url,
            follow_redirects=True,
        )
    try:
        return _fetch_with_innertube(client, video_id, lang)
    except (TranscriptNotFound, httpx.HTTPError, ValueError) as e:
        if not youtube_settings.enable_transcript_api_fallback:
            if isinstance(e, TranscriptNotFound):
                raise
            raise TranscriptNotFound(str(e)) from e
        logger.info("innertube transcript fetch failed for %s (%s); trying transcript_api", video_id, e)
    finally:
        if own_client:
            client.close()

    try:
        return _fetch_with_transcript_api(video_id, lang)
    except Exception as e:
        raise TranscriptNotFound(f"Transcript not available: {e}") from e
