import json
import re
import subprocess
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

from praxis.core.youtube_settings import youtube_settings

_YT_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{11}$")
_PATH_PREFIXES = ("shorts/", "embed/", "live/", "v/", "e/")
_UPLOADED_AGO_RE = re.compile(r"(\d+)\s+(year|month|week|day)s?\s+ago", re.IGNORECASE)
_MS_PER_UNIT = {
    "year": 365 * 24 * 60 * 60 * 1000,
    "month": 30 * 24 * 60 * 60 * 1000,
    "week": 7 * 24 * 60 * 60 * 1000,
    "day": 24 * 60 * 60 * 1000,
}


def extract_youtube_video_id(url: str) -> str | None:
    """
    Supports:
    - VIDEOID (bare 11-char id)
    - https://www.youtube.com/watch?v=VIDEOID
    - https://youtu.be/VIDEOID
    - https://www.youtube.com/{shorts,embed,live,v,e}/VIDEOID
    """
    s = (url or "").strip()
    if _YT_ID_RE.match(s):
        return s

    try:
        u = urlparse(s)
    except Exception:
        return None

    host = (u.netloc or "").lower()
    path = (u.path or "").strip("/")

    # youtu.be/VIDEOID
    if "youtu.be" in host:
        vid = path.split("/")[0] if path else ""
        return vid if _YT_ID_RE.match(vid) else None

    if "youtube.com" in host:
        # youtube.com/watch?v=VIDEOID (also vi=)
        if path == "watch":
            q = parse_qs(u.query or "")
            vid = (q.get("v") or q.get("vi") or [""])[0].strip()
            return vid if _YT_ID_RE.match(vid) else None

        for prefix in _PATH_PREFIXES:
            if path.startswith(prefix):
                parts = path.split("/")
                vid = parts[1] if len(parts) > 1 else ""
                return vid if _YT_ID_RE.match(vid) else None

    return None


def build_video_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"


def _run_ytdlp_json(args: list[str]) -> dict:
    cmd = [youtube_settings.ytdlp_bin, "--dump-single-json", "--no-warnings", *args]
    if youtube_settings.proxy_url:
        cmd.extend(["--proxy", youtube_settings.proxy_url])

    try:
        p = subprocess.run(
            cmd,
            check=True,
            capture_output=True,
            text=True,
            timeout=youtube_settings.ytdlp_timeout_sec,
        )
    except FileNotFoundError:
        raise RuntimeError("yt-dlp not found. Install it (pipx/brew/pip) and ensure it is on PATH.")
    except subprocess.TimeoutExpired:
        raise RuntimeError("yt-dlp timed out.")
    except subprocess.CalledProcessError as e:
        stderr = (e.stderr or "").strip()
        raise RuntimeError(f"yt-dlp failed: {stderr or 'unknown error'}")

    raw = (p.stdout or "").strip()
    if not raw:
        raise RuntimeError("yt-dlp returned empty output.")

    try:
        return json.loads(raw)
    except Exception:
        raise RuntimeError("Could not parse yt-dlp JSON output.")


def _thumbnail(entry: dict) -> str | None:
    if entry.get("thumbnail"):
        return entry["thumbnail"]
    thumbs = entry.get("thumbnails") or []
    if thumbs and isinstance(thumbs[-1], dict):
        return thumbs[-1].get("url")
    return None


def _format_duration(seconds: float | int | None) -> str | None:
    if not seconds:
        return None
    total = int(seconds)
    h, rem = divmod(total, 3600)
    m, s = divmod(rem, 60)
    return f"{h}:{m:02d}:{s:02d}" if h else f"{m}:{s:02d}"


def search_videos(query: str, *, limit: int = 25) -> list[dict]:
    """
    Flat yt-dlp search. Returns candidate dicts:
      {id, title, url, channel, duration_formatted, views, thumbnail_url, uploaded_at, is_short}
    """
    data = _run_ytdlp_json(["--flat-playlist", f"ytsearch{int(limit)}:{query}"])

    out: list[dict] = []
    for e in data.get("entries") or []:
        if not isinstance(e, dict):
            continue
        vid = (e.get("id") or "").strip()
        if not _YT_ID_RE.match(vid):
            continue
        url = e.get("url") or build_video_url(vid)
        out.append(
            {
                "id": vid,
                "title": e.get("title") or "",
                "url": url if url.startswith("http") else build_video_url(vid),
                "channel": e.get("channel") or e.get("uploader") or "",
                "duration_formatted": _format_duration(e.get("duration")),
                "views": e.get("view_count"),
                "thumbnail_url": _thumbnail(e),
                "uploaded_at": e.get("upload_date") or e.get("release_timestamp"),
                "is_short": "/shorts/" in (e.get("url") or ""),
            }
        )
    return out


def fetch_video_metadata(video_id: str) -> dict:
    data = _run_ytdlp_json(["--skip-download", build_video_url(video_id)])
    return {
        "youtube_id": video_id,
        "title": data.get("title") or "YouTube Video",
        "channel": data.get("channel") or data.get("uploader") or "",
        "description": data.get("description") or "",
        "duration_ms": int(data["duration"] * 1000) if data.get("duration") else None,
        "views": data.get("view_count"),
        "thumbnail_url": _thumbnail(data),
        "upload_date": data.get("upload_date"),
    }


def parse_uploaded_at_to_ms(uploaded_at: str | int | None, now_ms: int) -> int | None:
    """
    Accepts yt-dlp's YYYYMMDD upload_date, a unix timestamp, or
    relative strings such as '2 years ago'. Returns epoch ms or None.
    """
    if uploaded_at is None or uploaded_at == "":
        return None
    if isinstance(uploaded_at, (int, float)):
        return int(uploaded_at * 1000)

    s = str(uploaded_at).strip()
    if re.fullmatch(r"\d{8}", s):
        dt = datetime.strptime(s, "%Y%m%d").replace(tzinfo=timezone.utc)
        return int(dt.timestamp() * 1000)

    m = _UPLOADED_AGO_RE.search(s)
    if not m:
        return None
    return now_ms - int(m.group(1)) * _MS_PER_UNIT[m.group(2).lower()]
