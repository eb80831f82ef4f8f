"""
YouTube Data API client for searching learning videos and loading their details.
"""

import logging
import re
from typing import Optional, List, Dict, Any

from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from services.skill_level import classify_skill_level

logger = logging.getLogger(__name__)

PLATFORM_NAME = "YouTube"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"


class CatalogUnavailableError(Exception):
    """Raised when the upstream video catalog cannot serve a request."""


def parse_iso8601_duration(duration: Optional[str]) -> int:
    """Parse ISO 8601 duration (PT1H2M3S) to seconds."""
    match = re.match(r"PT(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?", duration or "")
    if not match:
        return 0

    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    seconds = int(match.group(3) or 0)

    return hours * 3600 + minutes * 60 + seconds


def _thumbnail(snippet: Dict[str, Any], *preferred: str) -> str:
    thumbnails = snippet.get("thumbnails", {}) or {}
    for size in preferred:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return ""


class YouTubeClient:
    """Client for the YouTube Data API v3 search and videos endpoints."""

    def __init__(self, api_key: Optional[str] = None, youtube: Any = None):
        """
        Initialize YouTube client.

        Args:
            api_key: API key for public data access
            youtube: Prebuilt discovery resource (used instead of api_key)
        """
        if youtube is not None:
            self.youtube = youtube
        elif api_key:
            self.youtube = build("youtube", "v3", developerKey=api_key, cache_discovery=False)
        else:
            raise ValueError("Either api_key or youtube resource must be provided")

    def search_videos(
        self,
        query: str,
        max_results: int = 10,
        page_token: Optional[str] = None,
        relevance_language: str = "en",
        video_duration: str = "medium",
        order: str = "relevance",
    ) -> Dict[str, Any]:
        """
        Search videos and enrich them with statistics.

        Returns:
            Dict with: resources (normalized records), next_page_token,
                       total_results
        """
        max_results = max(1, min(int(max_results), 50))
        params: Dict[str, Any] = {
            "part": "snippet",
            "q": query,
            "type": "video",
            "maxResults": max_results,
            "relevanceLanguage": relevance_language,
            "videoDuration": video_duration,
            "order": order,
        }
        if page_token:
            params["pageToken"] = page_token

        try:
            response = self.youtube.search().list(**params).execute()
        except HttpError as e:
            logger.warning("YouTube search failed for query '%s': %s", query, e)
            raise CatalogUnavailableError("Failed to fetch resources from YouTube") from e

        items = [
            item for item in response.get("items", [])
            if (item.get("id") or {}).get("videoId")
        ]
        video_ids = [item["id"]["videoId"] for item in items]
        details = self.get_video_details(video_ids) if video_ids else {}

        resources = []
        for item in items:
            video_id = item["id"]["videoId"]
            snippet = item.get("snippet", {}) or {}
            stats = details.get(video_id, {})
            title = snippet.get("title", "")
            description = snippet.get("description", "")
            resources.append({
                "id": video_id,
                "title": title,
                "description": description,
                "thumbnail": _thumbnail(snippet, "medium", "high", "default"),
                "link": WATCH_URL.format(video_id=video_id),
                "published_at": snippet.get("publishedAt", ""),
                "channel_title": snippet.get("channelTitle", ""),
                "duration": stats.get("duration", "PT0S"),
                "view_count": stats.get("view_count", 0),
                "like_count": stats.get("like_count", 0),
                "type": "Tutorial",
                "platform": PLATFORM_NAME,
                "skill_level": classify_skill_level(title=title, description=description),
            })

        return {
            "resources": resources,
            "next_page_token": response.get("nextPageToken"),
            "total_results": (response.get("pageInfo") or {}).get("totalResults", len(resources)),
        }

    def get_video(self, video_id: str) -> Optional[Dict[str, Any]]:
        """
        Get full metadata for a single video.

        Returns:
            Normalized resource dict with tags and channel info, or None
            when the video does not exist.
        """
        try:
            response = self.youtube.videos().list(
                part="snippet,contentDetails,statistics",
                id=video_id,
            ).execute()
        except HttpError as e:
            logger.warning("YouTube video lookup failed for %s: %s", video_id, e)
            raise CatalogUnavailableError("Failed to fetch video details from YouTube") from e

        if not response.get("items"):
            return None

        item = response["items"][0]
        snippet = item.get("snippet", {}) or {}
        stats = item.get("statistics", {}) or {}
        tags = snippet.get("tags") or []
        title = snippet.get("title", "")
        description = snippet.get("description", "")

        return {
            "id": item["id"],
            "title": title,
            "description": description,
            "thumbnail": _thumbnail(snippet, "high", "default"),
            "link": WATCH_URL.format(video_id=item["id"]),
            "platform": PLATFORM_NAME,
            "type": "Video",
            "channel_title": snippet.get("channelTitle", ""),
            "channel_id": snippet.get("channelId", ""),
            "published_at": snippet.get("publishedAt", ""),
            "duration": (item.get("contentDetails") or {}).get("duration", "PT0S"),
            "view_count": int(stats.get("viewCount", 0)),
            "like_count": int(stats.get("likeCount", 0)),
            "skill_level": classify_skill_level(tags=tags, title=title, description=description),
            "tags": tags,
        }

    def get_video_details(self, video_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        """
        Get detailed stats for videos, keyed by the video id the API returns.

        Args:
            video_ids: List of video IDs (max 50 per call)

        Returns:
            Dict mapping video_id to stats dict with: view_count, like_count,
                                                       duration
        """
        result = {}

        # Process in batches of 50
        for i in range(0, len(video_ids), 50):
            batch = video_ids[i:i+50]

            try:
                response = self.youtube.videos().list(
                    part="statistics,contentDetails",
                    id=",".join(batch)
                ).execute()
            except HttpError as e:
                raise CatalogUnavailableError("Failed to fetch video statistics from YouTube") from e

            for item in response.get("items", []):
                video_id = item["id"]
                stats = item.get("statistics", {})
                content = item.get("contentDetails", {})
                result[video_id] = {
                    "view_count": int(stats.get("viewCount", 0)),
                    "like_count": int(stats.get("likeCount", 0)),
                    "duration": content.get("duration", "PT0S"),
                }

        return result


def create_youtube_client_with_api_key(api_key: str) -> YouTubeClient:
    """Create a YouTube client using an API key."""
    return YouTubeClient(api_key=api_key)
