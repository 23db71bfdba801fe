import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


@dataclass(frozen=True)
class YouTubeSettings:
    user_agent: str = os.getenv(
        "YOUTUBE_USER_AGENT",
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36",
    )

    # innertube player client used to list caption tracks
    innertube_client_name: str = os.getenv("YOUTUBE_INNERTUBE_CLIENT_NAME", "ANDROID")
    innertube_client_version: str = os.getenv("YOUTUBE_INNERTUBE_CLIENT_VERSION", "20.10.38")

    http_timeout_sec: float = float(os.getenv("YOUTUBE_HTTP_TIMEOUT_SEC", "20"))

    # Optional: proxy URL, e.g. http://127.0.0.1:7890
    proxy_url: str | None = os.getenv("YOUTUBE_PROXY_URL")

    # Whether to try youtube-transcript-api if the innertube flow fails
    enable_transcript_api_fallback: bool = os.getenv("YOUTUBE_ENABLE_TRANSCRIPT_API_FALLBACK", "1") == "1"

    # yt-dlp is used for search + metadata
    ytdlp_bin: str = os.getenv("YTDLP_BIN", "yt-dlp")
    ytdlp_timeout_sec: int = int(os.getenv("YTDLP_TIMEOUT_SEC", "60"))


youtube_settings = YouTubeSettings()
