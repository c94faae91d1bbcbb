"""
Item Normalizer

Converts raw per-platform payloads into canonical ContentItems. A malformed
upstream item is logged and dropped; it never fails the batch.
"""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
from urllib.parse import quote, urlparse
from xml.etree import ElementTree

from .models import ContentItem, Platform

logger = logging.getLogger(__name__)


def clean_html(text: Optional[str]) -> str:
    """Remove HTML tags and collapse whitespace."""
    if not text:
        return ""
    clean = re.sub(r"<[^>]+>", " ", text)
    clean = re.sub(r"\s+", " ", clean).strip()
    return clean


def fallback_image(title: str) -> str:
    """Deterministic placeholder image; same title gives the same image."""
    seed = quote(re.sub(r"[^a-zA-Z0-9]", "", title[:50]))
    return f"https://picsum.photos/seed/{seed}/800/450"


def parse_traffic(traffic: str) -> int:
    """Parse Google Trends traffic strings such as '200K+' or '2M+'."""
    digits = re.sub(r"[^0-9]", "", traffic or "")
    if not digits:
        return 10000
    num = int(digits)
    if "M" in traffic:
        return num * 1_000_000
    if "K" in traffic:
        return num * 1_000
    return num


def parse_timestamp(value: Any) -> datetime:
    """Parse epoch seconds/millis, ISO 8601 or RFC 2822 into aware UTC."""
    if value is None or value == "":
        raise ValueError("timestamp is required")

    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if value > 1e12 else value
        try:
            dt = datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Epoch out of range: {value!r}") from e
    elif isinstance(value, str):
        dt = _parse_date_string(value.strip())
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _parse_date_string(date_str: str) -> datetime:
    try:
        return datetime.fromisoformat(date_str.replace("Z", "+00:00"))
    except ValueError:
        pass

    formats = [
        "%a, %d %b %Y %H:%M:%S %z",  # RFC 2822
        "%d %b %Y %H:%M:%S %z",
        "%Y-%m-%d %H:%M:%S",
    ]
    date_str = date_str.replace("GMT", "+0000").replace("UTC", "+0000")
    for fmt in formats:
        try:
            return datetime.strptime(date_str, fmt)
        except ValueError:
            continue
    raise ValueError(f"Unrecognized date: {date_str!r}")


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _child_text(elem: ElementTree.Element, name: str) -> Optional[str]:
    """Text of the first child whose local tag name matches."""
    for child in elem:
        if _local_name(child.tag) == name and child.text:
            return child.text.strip()
    return None


# Per-entry conversion failures that drop only the entry
ENTRY_ERRORS = (AttributeError, IndexError, KeyError, OverflowError, TypeError, ValueError)

Entries = Callable[[Any], Iterable[Any]]
Candidate = Callable[[Any, int], Dict[str, Any]]


class ItemNormalizer:
    """
    Normalizes platform payloads into ContentItems.

    Each adapter is a pair: a splitter that turns the payload into raw
    entries, and a converter that turns one entry into a flat candidate
    dict. Converters and ``build_item`` run per entry, so one malformed
    entry is dropped without touching its neighbours.
    """

    def __init__(self, ensure_images: bool = True, now: Optional[Callable[[], datetime]] = None):
        self._ensure_images = ensure_images
        self._now = now or (lambda: datetime.now(timezone.utc))
        reddit = (self._reddit_entries, self._reddit_candidate)
        self._adapters: Dict[Platform, Tuple[Entries, Candidate]] = {
            Platform.REDDIT: reddit,
            Platform.LOCAL: reddit,
            Platform.HACKERNEWS: (self._list_entries, self._hackernews_candidate),
            Platform.YOUTUBE: (self._youtube_entries, self._youtube_candidate),
            Platform.GOOGLE: (self._google_entries, self._google_candidate),
        }
        self._generic = (self._generic_entries, self._generic_candidate)

    def normalize(self, platform: Any, payload: Any) -> List[ContentItem]:
        """Normalize one platform payload. Never raises."""
        resolved = Platform.parse(platform)
        if resolved is None:
            logger.warning(f"Dropping payload for unknown platform {platform!r}")
            return []

        split, convert = self._adapters.get(resolved, self._generic)
        try:
            entries = list(split(payload))
        except Exception as e:
            logger.error(f"Malformed {resolved.value} payload: {e}")
            return []

        items: List[ContentItem] = []
        for index, entry in enumerate(entries):
            try:
                candidate = convert(entry, index + 1)
            except ENTRY_ERRORS as e:
                logger.warning(f"Dropping malformed {resolved.value} entry #{index + 1}: {e!r}")
                continue
            item = self.build_item(resolved, candidate, rank=index + 1)
            if item is not None:
                items.append(item)

        dropped = len(entries) - len(items)
        if dropped:
            logger.info(f"Normalized {len(items)} {resolved.value} items, dropped {dropped}")
        return items

    def build_item(
        self,
        platform: Platform,
        raw: Dict[str, Any],
        rank: int = 0,
    ) -> Optional[ContentItem]:
        """Validate one candidate; returns None (and logs) when unusable."""
        try:
            if not isinstance(raw, dict):
                raise TypeError(f"expected a mapping, got {type(raw).__name__}")

            native_id = str(raw.get("id") or "").strip()
            if not native_id:
                raise ValueError("missing id")

            item_platform = Platform.parse(raw.get("platform")) or platform

            title = clean_html(raw.get("title"))
            if not title:
                raise ValueError("missing title")

            timestamp = parse_timestamp(raw.get("timestamp"))

            engagement = raw.get("engagementCount") or 0
            engagement = max(0, int(engagement))

            image_url = raw.get("imageUrl") or None
            if image_url is None and self._ensure_images:
                image_url = fallback_image(title)

            prefix = f"{item_platform.value}:"
            item_id = native_id if native_id.startswith(prefix) else f"{prefix}{native_id}"

            category = raw.get("category")
            return ContentItem(
                id=item_id,
                platform=item_platform,
                title=title,
                url=raw.get("url") or "",
                timestamp=timestamp,
                engagement_count=engagement,
                engagement_label=raw.get("engagementLabel") or "",
                category=str(category) if category else None,
                image_url=image_url,
                subtitle=raw.get("subtitle") or None,
                description=raw.get("description") or None,
                rank=int(raw.get("rank") or rank),
            )
        except (ValueError, TypeError, OverflowError) as e:
            item_ref = raw.get("id") if isinstance(raw, dict) else None
            logger.warning(f"Dropping {platform.value} item {item_ref!r}: {e}")
            return None

    # -------------------------------------------------------------------------
    # Platform adapters
    # -------------------------------------------------------------------------

    @staticmethod
    def _list_entries(payload: Any) -> Iterable[Any]:
        if not isinstance(payload, list):
            raise TypeError(f"expected a list, got {type(payload).__name__}")
        return payload

    @staticmethod
    def _reddit_entries(payload: Any) -> Iterable[Any]:
        return payload["data"]["children"] if isinstance(payload, dict) else payload

    def _reddit_candidate(self, child: Any, rank: int) -> Dict[str, Any]:
        post = child.get("data", child)

        image_url = None
        images = (post.get("preview") or {}).get("images") or []
        if images and images[0].get("source", {}).get("url"):
            image_url = images[0]["source"]["url"].replace("&amp;", "&")
        elif str(post.get("thumbnail") or "").startswith("http"):
            image_url = post["thumbnail"]

        subreddit = post.get("subreddit")
        permalink = post.get("permalink")
        selftext = (post.get("selftext") or "")[:200]
        return {
            "id": post.get("id"),
            "title": post.get("title"),
            "subtitle": f"r/{subreddit} • {post.get('num_comments', 0)} comments" if subreddit else None,
            "description": selftext or None,
            "url": f"https://reddit.com{permalink}" if permalink else post.get("url"),
            "engagementCount": post.get("score"),
            "engagementLabel": "upvotes",
            "timestamp": post.get("created_utc"),
            "category": subreddit,
            "imageUrl": image_url,
        }

    def _hackernews_candidate(self, story: Any, rank: int) -> Dict[str, Any]:
        story_id = story.get("id")
        url = story.get("url")
        domain = ""
        if url:
            domain = urlparse(url).hostname or ""
            domain = domain.replace("www.", "")
        return {
            "id": story_id,
            "title": story.get("title"),
            "subtitle": f"{story.get('descendants') or 0} comments",
            "description": f"({domain})" if domain else None,
            "url": url or f"https://news.ycombinator.com/item?id={story_id}",
            "engagementCount": story.get("score"),
            "engagementLabel": "points",
            "timestamp": story.get("time"),
            "category": "tech",
        }

    @staticmethod
    def _youtube_entries(payload: Any) -> Iterable[Any]:
        return payload.get("items", [])

    def _youtube_candidate(self, video: Any, rank: int) -> Dict[str, Any]:
        snippet = video.get("snippet") or {}
        stats = video.get("statistics") or {}
        thumbnails = snippet.get("thumbnails") or {}
        image_url = None
        for size in ("maxres", "high", "default"):
            if thumbnails.get(size, {}).get("url"):
                image_url = thumbnails[size]["url"]
                break
        video_id = video.get("id")
        return {
            "id": video_id,
            "title": snippet.get("title"),
            "subtitle": snippet.get("channelTitle"),
            "description": (snippet.get("description") or "")[:200] or None,
            "url": f"https://youtube.com/watch?v={video_id}",
            "engagementCount": int(stats.get("viewCount") or 0),
            "engagementLabel": "views",
            "timestamp": snippet.get("publishedAt"),
            "category": snippet.get("categoryId"),
            "imageUrl": image_url,
        }

    @staticmethod
    def _google_entries(payload: Any) -> Iterable[Any]:
        root = ElementTree.fromstring(payload) if isinstance(payload, (str, bytes)) else payload
        channel = root.find("channel")
        return channel.findall("item") if channel is not None else root.findall("item")

    def _google_candidate(self, entry: ElementTree.Element, rank: int) -> Dict[str, Any]:
        title = _child_text(entry, "title")
        traffic = _child_text(entry, "approx_traffic") or "10K+"
        news_url = None
        for child in entry.iter():
            if _local_name(child.tag) == "news_item_url" and child.text:
                news_url = child.text.strip()
                break
        pub_date = _child_text(entry, "pubDate")
        return {
            "id": f"{rank}-{re.sub(r'[^a-z0-9]+', '-', (title or '').lower()).strip('-')}",
            "title": title,
            "subtitle": f"{traffic} searches",
            "url": news_url or f"https://trends.google.com/trends/explore?q={quote(title or '')}",
            "engagementCount": parse_traffic(traffic),
            "engagementLabel": "searches",
            "timestamp": pub_date or self._now(),
            "category": "Trending",
            "imageUrl": _child_text(entry, "picture"),
        }

    @staticmethod
    def _generic_entries(payload: Any) -> Iterable[Any]:
        """Already-flat items, e.g. from a partner feed."""
        return payload.get("items", []) if isinstance(payload, dict) else payload

    @staticmethod
    def _generic_candidate(raw: Any, rank: int) -> Dict[str, Any]:
        return raw


__all__ = [
    "ItemNormalizer",
    "clean_html",
    "fallback_image",
    "parse_timestamp",
    "parse_traffic",
]
