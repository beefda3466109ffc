import asyncio

import pytest

from scdownload.core.resolver import StreamResolver
from scdownload.exceptions import NoPlayableStream, TransientFetchError
from scdownload.models.item import AudioFormat, CandidateDescriptor, Item

CANDIDATE_1 = "https://api-v2.soundcloud.com/media/soundcloud:tracks:1/aaa/stream/hls"
CANDIDATE_2 = "https://api-v2.soundcloud.com/media/soundcloud:tracks:1/bbb/stream/hls"
CANDIDATE_3 = "https://api-v2.soundcloud.com/media/soundcloud:tracks:1/ccc/stream/hls"
MANIFEST_URL = "https://cdn.test/hls/playlist.m3u8"
MP3_MANIFEST = "#EXTM3U\nhttps://cdn.test/0.mp3\nhttps://cdn.test/1.mp3\n"


def _candidates(*urls: str) -> list[CandidateDescriptor]:
    return [CandidateDescriptor(url) for url in urls]


def test_first_candidate_rejected_second_accepted(fake_client) -> None:
    client = fake_client(
        descriptors={
            CANDIDATE_1: TransientFetchError("HTTP 401"),
            # Escaped slashes as served inside hydration JSON.
            CANDIDATE_2: {"url": "https:\\/\\/cdn.test\\/hls\\/playlist.m3u8"},
        },
        texts={MANIFEST_URL: MP3_MANIFEST},
    )
    item = Item(uri="owner/song")

    manifest = asyncio.run(
        StreamResolver(client).resolve(
            item, _candidates(CANDIDATE_1, CANDIDATE_2), "auth-token"
        )
    )

    assert len(manifest) == 2
    assert item.audio_format is AudioFormat.MP3
    assert client.calls_of("descriptor") == [CANDIDATE_1, CANDIDATE_2]
    assert client.calls_of("text") == [MANIFEST_URL]


def test_later_candidates_are_never_requested_after_success(fake_client) -> None:
    client = fake_client(
        descriptors={CANDIDATE_1: {"url": MANIFEST_URL}},
        texts={MANIFEST_URL: MP3_MANIFEST},
    )

    asyncio.run(
        StreamResolver(client).resolve(
            Item(uri="owner/song"),
            _candidates(CANDIDATE_1, CANDIDATE_2, CANDIDATE_3),
            "auth-token",
        )
    )

    assert client.calls_of("descriptor") == [CANDIDATE_1]


def test_candidates_without_url_or_segments_are_skipped(fake_client) -> None:
    other_manifest = "https://cdn.test/hls/other.m3u8"
    client = fake_client(
        descriptors={
            CANDIDATE_1: {"error": "forbidden"},
            CANDIDATE_2: {"url": other_manifest},
            CANDIDATE_3: {"url": MANIFEST_URL},
        },
        texts={
            other_manifest: "#EXTM3U\n#EXT-X-ENDLIST\n",
            MANIFEST_URL: '#EXTM3U\n#EXT-X-MAP:URI="init.mp4"\n0.m4s\n',
        },
    )
    item = Item(uri="owner/song")

    manifest = asyncio.run(
        StreamResolver(client).resolve(
            item, _candidates(CANDIDATE_1, CANDIDATE_2, CANDIDATE_3), "auth-token"
        )
    )

    assert manifest.init_segment is not None
    assert item.audio_format is AudioFormat.M4S
    assert client.calls_of("text") == [other_manifest, MANIFEST_URL]


def test_exhausted_candidates_raise_no_playable_stream(fake_client) -> None:
    client = fake_client(
        descriptors={CANDIDATE_1: {"url": MANIFEST_URL}},
        texts={MANIFEST_URL: TransientFetchError("timed out")},
    )
    item = Item(uri="owner/song")

    with pytest.raises(NoPlayableStream):
        asyncio.run(
            StreamResolver(client).resolve(
                item, _candidates(CANDIDATE_1, CANDIDATE_2), "auth-token"
            )
        )
    assert item.audio_format is AudioFormat.UNDEFINED


def test_resolve_item_reads_candidates_from_track_page(fake_client) -> None:
    page = (
        '<script>window.__sc_hydration = [{"data":{"media":{"transcodings":['
        f'{{"url":"{CANDIDATE_1}","preset":"mp3_1_0"}},'
        f'{{"url":"{CANDIDATE_2}","preset":"aac_160k"}}'
        ']},"track_authorization":"tok-123"}}];</script>'
    )
    client = fake_client(
        pages={"owner/song": page},
        descriptors={CANDIDATE_1: {"url": MANIFEST_URL}},
        texts={MANIFEST_URL: MP3_MANIFEST},
    )

    manifest = asyncio.run(StreamResolver(client).resolve_item(Item(uri="owner/song")))

    assert len(manifest) == 2
    assert client.calls_of("page") == ["owner/song"]


def test_resolve_item_without_track_authorization_fails(fake_client) -> None:
    page = f'{{"url":"{CANDIDATE_1}"}}'
    client = fake_client()

    with pytest.raises(NoPlayableStream):
        asyncio.run(StreamResolver(client).resolve_item(Item(uri="owner/song"), page))
    assert client.calls_of("descriptor") == []
