"""Tests for video discovery and the video providers."""

from datetime import datetime, timezone

import httpx
import pytest

from autonews.errors import VideoSourceError
from autonews.ingestion import (
    ChannelFeedProvider,
    VideoSourceClient,
    YouTubeDataAPIProvider,
    normalize_published_at,
)
from autonews.ingestion.providers import format_duration

from .fakes import ScriptedProvider, make_video

FIXED_NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def fixed_now():
    return FIXED_NOW


def ids(videos):
    return [v.video_id for v in videos]


class TestListNewVideos:
    """Tests for VideoSourceClient.list_new_videos."""

    async def test_paginates_until_enough_results(self):
        provider = ScriptedProvider(
            [[make_video("v1"), make_video("v2")], [make_video("v3"), make_video("v4")], [make_video("v5")]]
        )
        client = VideoSourceClient(provider)

        videos = await client.list_new_videos("UCx", 4, known_ids=set())

        assert ids(videos) == ["v1", "v2", "v3", "v4"]
        assert provider.calls == [None, "1"]

    async def test_skips_known_ids(self):
        provider = ScriptedProvider(
            [[make_video("v1"), make_video("v2")], [make_video("v3"), make_video("v4")], [make_video("v5")]]
        )
        client = VideoSourceClient(provider)

        videos = await client.list_new_videos("UCx", 5, known_ids={"v1", "v3"})

        assert ids(videos) == ["v2", "v4", "v5"]
        assert provider.calls == [None, "1", "2"]

    async def test_skips_duplicates_across_pages(self):
        provider = ScriptedProvider([[make_video("v1")], [make_video("v1"), make_video("v2")]])
        client = VideoSourceClient(provider)

        videos = await client.list_new_videos("UCx", 5, known_ids=[])

        assert ids(videos) == ["v1", "v2"]

    async def test_stops_at_page_cap(self):
        pages = [[make_video(f"v{page}")] for page in range(5)]
        provider = ScriptedProvider(pages)
        client = VideoSourceClient(provider, max_pages=2)

        videos = await client.list_new_videos("UCx", 5, known_ids={f"v{page}" for page in range(5)})

        assert videos == []
        assert len(provider.calls) == 2

    async def test_zero_results_makes_no_calls(self):
        provider = ScriptedProvider([[make_video("v1")]])
        client = VideoSourceClient(provider)

        assert await client.list_new_videos("UCx", 0, known_ids=set()) == []
        assert provider.calls == []

    async def test_unparseable_publish_time_uses_now(self):
        provider = ScriptedProvider([[make_video("v1", published="3 days ago")]])
        client = VideoSourceClient(provider, now=fixed_now)

        videos = await client.list_new_videos("UCx", 1, known_ids=set())

        assert videos[0].published_at == FIXED_NOW

    async def test_provider_errors_propagate(self):
        provider = ScriptedProvider(error=VideoSourceError("quota exceeded", status_code=403))
        client = VideoSourceClient(provider)

        with pytest.raises(VideoSourceError):
            await client.list_new_videos("UCx", 5, known_ids=set())


class TestNormalizePublishedAt:
    """Tests for publish time normalization."""

    def test_parses_iso_timestamp(self):
        parsed = normalize_published_at("2024-01-15T10:00:00Z", fixed_now)
        assert (parsed.year, parsed.month, parsed.day, parsed.hour) == (2024, 1, 15, 10)
        assert parsed.utcoffset().total_seconds() == 0

    @pytest.mark.parametrize("value", ["", None, "yesterday", "not a date"])
    def test_falls_back_to_now(self, value):
        assert normalize_published_at(value, fixed_now) == FIXED_NOW


class TestFormatDuration:
    """Tests for ISO 8601 duration formatting."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("PT4M5S", "4:05"),
            ("PT45S", "0:45"),
            ("PT1H2M3S", "1:02:03"),
            ("", ""),
            ("garbage", ""),
        ],
    )
    def test_format(self, value, expected):
        assert format_duration(value) == expected


def data_api_handler(request: httpx.Request) -> httpx.Response:
    """Fake YouTube Data API v3."""
    path = request.url.path
    params = request.url.params
    if path.endswith("/channels"):
        return httpx.Response(
            200,
            json={"items": [{"contentDetails": {"relatedPlaylists": {"uploads": "UUresolved"}}}]},
        )
    if path.endswith("/playlistItems"):
        assert params["key"] == "test-key"
        if params.get("pageToken") == "tok2":
            entries = [("v3", "Third")]
            next_token = None
        else:
            entries = [("v1", "First"), ("v2", "Second")]
            next_token = "tok2"
        body = {
            "items": [
                {
                    "snippet": {
                        "title": title,
                        "description": f"About {title}",
                        "publishedAt": "2024-01-15T09:00:00Z",
                        "thumbnails": {
                            "high": {"url": f"https://i.ytimg.com/vi/{vid}/hqdefault.jpg"},
                            "maxres": {"url": f"https://i.ytimg.com/vi/{vid}/maxresdefault.jpg"},
                        },
                    },
                    "contentDetails": {"videoId": vid, "videoPublishedAt": "2024-01-15T10:00:00Z"},
                }
                for vid, title in entries
            ]
        }
        if next_token:
            body["nextPageToken"] = next_token
        return httpx.Response(200, json=body)
    if path.endswith("/videos"):
        return httpx.Response(
            200,
            json={
                "items": [
                    {"id": vid, "contentDetails": {"duration": "PT4M5S"}, "statistics": {"viewCount": "1234"}}
                    for vid in params["id"].split(",")
                ]
            },
        )
    return httpx.Response(404)


class TestYouTubeDataAPIProvider:
    """Tests for the Data API provider."""

    async def test_fetches_pages_with_details(self):
        requests = []

        def handler(request):
            requests.append(request)
            return data_api_handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = YouTubeDataAPIProvider("test-key", client=client)

        page = await provider.fetch_page("UCabc")

        assert [v.video_id for v in page.items] == ["v1", "v2"]
        assert page.next_cursor == "tok2"
        first = page.items[0]
        assert first.title == "First"
        assert first.duration == "4:05"
        assert first.view_count == 1234
        assert first.thumbnail_url == "https://i.ytimg.com/vi/v1/maxresdefault.jpg"
        assert first.published_text == "2024-01-15T10:00:00Z"
        assert first.youtube_url == "https://www.youtube.com/watch?v=v1"
        assert requests[0].url.params["playlistId"] == "UUabc"

        second = await provider.fetch_page("UCabc", page.next_cursor)
        assert [v.video_id for v in second.items] == ["v3"]
        assert second.next_cursor is None
        await client.aclose()

    async def test_resolves_non_channel_ids(self):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return data_api_handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = YouTubeDataAPIProvider("test-key", client=client)

        await provider.fetch_page("@somehandle")
        await provider.fetch_page("@somehandle")

        assert sum(1 for p in seen if p.endswith("/channels")) == 1
        await client.aclose()

    async def test_api_error_raises(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(403, json={"error": "quota"}))
        )
        provider = YouTubeDataAPIProvider("test-key", client=client)

        with pytest.raises(VideoSourceError) as exc_info:
            await provider.fetch_page("UCabc")

        assert exc_info.value.status_code == 403
        await client.aclose()


CHANNEL_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<feed xmlns:yt="http://www.youtube.com/xml/schemas/2015" xmlns:media="http://search.yahoo.com/mrss/" xmlns="http://www.w3.org/2005/Atom">
 <title>Channel</title>
 <entry>
  <id>yt:video:feedvid1</id>
  <yt:videoId>feedvid1</yt:videoId>
  <yt:channelId>UCabc</yt:channelId>
  <title>Breaking story</title>
  <link rel="alternate" href="https://www.youtube.com/watch?v=feedvid1"/>
  <published>2024-01-15T10:00:00+00:00</published>
  <updated>2024-01-15T11:00:00+00:00</updated>
  <media:group>
   <media:title>Breaking story</media:title>
   <media:thumbnail url="https://i4.ytimg.com/vi/feedvid1/hqdefault.jpg" width="480" height="360"/>
   <media:description>Story details</media:description>
  </media:group>
 </entry>
</feed>
"""


class TestChannelFeedProvider:
    """Tests for the public channel feed provider."""

    async def test_parses_feed(self):
        def handler(request):
            assert request.url.params["channel_id"] == "UCabc"
            return httpx.Response(200, text=CHANNEL_FEED)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        provider = ChannelFeedProvider(client=client)

        page = await provider.fetch_page("UCabc")

        assert [v.video_id for v in page.items] == ["feedvid1"]
        assert page.items[0].title == "Breaking story"
        assert page.items[0].youtube_url == "https://www.youtube.com/watch?v=feedvid1"
        assert page.next_cursor is None
        await client.aclose()

    async def test_cursor_returns_empty_page(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
        provider = ChannelFeedProvider(client=client)

        page = await provider.fetch_page("UCabc", "next")

        assert page.items == []
        await client.aclose()

    async def test_http_error_raises(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(404)))
        provider = ChannelFeedProvider(client=client)

        with pytest.raises(VideoSourceError) as exc_info:
            await provider.fetch_page("UCabc")

        assert exc_info.value.status_code == 404
        await client.aclose()
