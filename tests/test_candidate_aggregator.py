"""Tests for the three-channel candidate aggregator (core/candidate_aggregator.py).

Coverage:
* Host filtering (exact host and subdomains only).
* Network channel de-duplication and fragment stripping.
* Union order and de-duplication across channels.
* Failing channels degrade to empty contributions.
* Bounded wait: early exit, late arrival, ceiling.
* Concurrent appends from several threads.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from fakes import FakeClock, FakePage, FakeResponse
from x_dl.core.candidate_aggregator import CandidateAggregator


HOST = "video.twimg.com"
MP4 = "https://video.twimg.com/ext_tw_video/1/pu/vid/720x1280/a.mp4"
M3U8 = "https://video.twimg.com/ext_tw_video/1/pu/pl/master.m3u8?variant_version=1"
M4S = "https://video.twimg.com/ext_tw_video/1/pu/vid/0/3000/720x1280/chunk.m4s"


class TestIsMediaUrl:
    @pytest.mark.parametrize(
        "url",
        [MP4, "https://VIDEO.twimg.com/x.mp4", "https://cdn1.video.twimg.com/x.mp4"],
    )
    def test_accepted(self, url: str) -> None:
        assert CandidateAggregator(HOST).is_media_url(url)

    @pytest.mark.parametrize(
        "url",
        [
            "https://pbs.twimg.com/media/x.jpg",
            "https://evilvideo.twimg.com/x.mp4",
            "https://x.com/video.twimg.com/x.mp4",
            "",
            None,
            42,
            "not a url",
        ],
    )
    def test_rejected(self, url: object) -> None:
        assert not CandidateAggregator(HOST).is_media_url(url)


class TestNetworkChannel:
    def test_attach_collects_responses(self) -> None:
        page = FakePage(network_urls=[MP4, "https://x.com/api/graphql", M3U8])
        aggregator = CandidateAggregator(HOST)

        aggregator.attach(page)
        page.goto("https://x.com/u/status/1", wait_until="domcontentloaded", timeout=1000)

        assert aggregator.network_snapshot() == [MP4, M3U8]

    def test_dedupes_after_fragment_strip(self) -> None:
        aggregator = CandidateAggregator(HOST)
        aggregator.on_response(FakeResponse(MP4))
        aggregator.on_response(FakeResponse(MP4 + "#t=3"))

        assert aggregator.network_snapshot() == [MP4]

    def test_broken_response_is_ignored(self) -> None:
        class Broken:
            @property
            def url(self) -> str:
                raise RuntimeError("target closed")

        aggregator = CandidateAggregator(HOST)
        aggregator.on_response(Broken())

        assert aggregator.network_snapshot() == []

    def test_snapshot_is_a_copy(self) -> None:
        aggregator = CandidateAggregator(HOST)
        aggregator.add(MP4)
        snapshot = aggregator.network_snapshot()
        snapshot.append("mutated")

        assert aggregator.network_snapshot() == [MP4]

    def test_concurrent_adds(self) -> None:
        aggregator = CandidateAggregator(HOST)
        urls = [f"https://video.twimg.com/v/{i}.mp4" for i in range(200)]

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(aggregator.add, urls + urls))

        assert sorted(aggregator.network_snapshot()) == sorted(urls)


class TestCollect:
    def test_union_order_and_dedupe(self) -> None:
        timeline_only = "https://video.twimg.com/t/only.m3u8"
        dom_only = "https://video.twimg.com/d/only.mp4"
        page = FakePage(
            network_urls=[MP4],
            timeline_urls=[MP4, timeline_only, "https://abs.twimg.com/x.js"],
            dom_urls=[dom_only + "#x", timeline_only, "blob:https://x.com/abc"],
        )
        aggregator = CandidateAggregator(HOST)
        aggregator.attach(page)
        page.goto("https://x.com/u/status/1", wait_until="domcontentloaded", timeout=1000)

        assert aggregator.collect(page) == [MP4, timeline_only, dom_only]

    def test_failing_evaluation_degrades(self) -> None:
        page = FakePage(network_urls=[MP4], evaluate_error=RuntimeError("execution context destroyed"))
        aggregator = CandidateAggregator(HOST)
        aggregator.attach(page)
        page.goto("https://x.com/u/status/1", wait_until="domcontentloaded", timeout=1000)

        assert aggregator.collect(page) == [MP4]

    def test_non_list_result_degrades(self) -> None:
        page = FakePage(timeline_urls="oops", dom_urls=None)
        aggregator = CandidateAggregator(HOST)

        assert aggregator.timeline_candidates(page) == []
        assert aggregator.dom_candidates(page) == []


class TestWaitForCandidates:
    def test_returns_immediately_when_present(self, clock: FakeClock) -> None:
        page = FakePage(network_urls=[MP4], clock=clock)
        aggregator = CandidateAggregator(HOST, clock=clock)
        aggregator.attach(page)
        page.goto("https://x.com/u/status/1", wait_until="domcontentloaded", timeout=1000)

        assert aggregator.wait_for_candidates(page, max_wait_ms=8000, poll_interval_ms=250)
        assert page.waits == []

    def test_late_arrival(self, clock: FakeClock) -> None:
        page = FakePage(late_urls=[M4S, M3U8], clock=clock)
        aggregator = CandidateAggregator(HOST, clock=clock)
        aggregator.attach(page)

        assert aggregator.wait_for_candidates(page, max_wait_ms=8000, poll_interval_ms=250)
        assert page.waits == [250, 250]

    def test_gives_up_at_ceiling(self, clock: FakeClock) -> None:
        page = FakePage(late_urls=[M4S], clock=clock)
        aggregator = CandidateAggregator(HOST, clock=clock)
        aggregator.attach(page)

        assert not aggregator.wait_for_candidates(page, max_wait_ms=8000, poll_interval_ms=250)
        assert len(page.waits) == 32
        assert clock() == pytest.approx(8.0)
