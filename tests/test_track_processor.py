import asyncio
from pathlib import Path

from scdownload.core.track_processor import TrackProcessor
from scdownload.models.config import DownloadConfig
from scdownload.models.item import AudioFormat, JobStatus
from scdownload.models.stats import DownloadStats

URI = "some-artist/some-song"
CANDIDATE = "https://api-v2.soundcloud.com/media/soundcloud:tracks:42/abc/stream/hls"
MANIFEST_URL = "https://cdn.test/hls/playlist.m3u8"
COVER_URL = "https://i1.sndcdn.com/artworks-xyz-t500x500.jpg"
TRACK_PAGE = (
    "<html><head>"
    f'<meta property="og:image" content="{COVER_URL}">'
    "</head><body><script>window.__sc_hydration = [{"
    '"data":{"title":"Rock \\u0026 Roll","user":{"username":"Some Artist"},'
    f'"media":{{"transcodings":[{{"url":"{CANDIDATE}"}}]}},'
    '"track_authorization":"tok-1"}}];</script></body></html>'
)


class _MockReconstructor:
    def __init__(self) -> None:
        self.calls: list[tuple[Path, int, AudioFormat, Path]] = []

    async def reconstruct(self, work_dir, segment_count, audio_format, output_path):
        self.calls.append((work_dir, segment_count, audio_format, output_path))
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(b"mp3")
        return "copy"


class _MockTagger:
    def __init__(self) -> None:
        self.calls: list[dict] = []

    def tag_file(self, file_path, title, artist, album, cover_path=None) -> bool:
        self.calls.append(
            {
                "file_path": file_path,
                "title": title,
                "artist": artist,
                "album": album,
                "cover_path": cover_path,
            }
        )
        return True


class _ForbiddenResolver:
    async def resolve_item(self, item, page_html=None):
        raise AssertionError("stream resolution must not run for cached items")


def _config(tmp_path: Path, **overrides) -> DownloadConfig:
    return DownloadConfig(
        temp_dir=tmp_path / "temp", download_dir=tmp_path / "out", **overrides
    )


def _network_client(fake_client):
    return fake_client(
        pages={URI: TRACK_PAGE},
        descriptors={CANDIDATE: {"url": MANIFEST_URL}},
        texts={
            MANIFEST_URL: "#EXTM3U\nhttps://cdn.test/0.mp3\nhttps://cdn.test/1.mp3\n"
        },
        blobs={
            COVER_URL: b"jpeg",
            "https://cdn.test/0.mp3": b"A",
            "https://cdn.test/1.mp3": b"B",
        },
    )


def test_fresh_item_runs_the_full_pipeline(tmp_path, fake_client) -> None:
    config = _config(tmp_path)
    client = _network_client(fake_client)
    stats = DownloadStats()
    reconstructor, tagger = _MockReconstructor(), _MockTagger()
    processor = TrackProcessor(
        config, client, stats, reconstructor=reconstructor, tagger=tagger
    )

    result = asyncio.run(processor.process(URI, config.download_dir))

    work_dir = config.temp_dir / "some-artist" / "some-song"
    output = config.download_dir / "Rock and Roll.mp3"
    assert result.status is JobStatus.DOWNLOADED
    assert result.from_cache is False
    assert (work_dir / "metadata.txt").read_text(encoding="utf-8") == (
        f"Some Artist|Rock & Roll|{COVER_URL}"
    )
    assert (work_dir / "0.mp3").read_bytes() == b"A"
    assert (work_dir / "1.mp3").read_bytes() == b"B"
    assert reconstructor.calls == [(work_dir, 2, AudioFormat.MP3, output)]
    assert tagger.calls == [
        {
            "file_path": output,
            "title": "Rock & Roll",
            "artist": "Some Artist",
            "album": URI,
            "cover_path": work_dir / "cover.jpg",
        }
    ]
    assert stats.tracks_downloaded == 1


def test_cached_segments_skip_all_resolution_calls(tmp_path, fake_client) -> None:
    config = _config(tmp_path)
    work_dir = config.temp_dir / "some-artist" / "some-song"
    work_dir.mkdir(parents=True)
    for index in range(3):
        (work_dir / f"{index}.m4s").write_bytes(b"seg")
    (work_dir / "metadata.txt").write_text("Cached Artist|Cached Song|None")
    client = fake_client()
    stats = DownloadStats()
    reconstructor = _MockReconstructor()
    processor = TrackProcessor(
        config, client, stats, reconstructor=reconstructor, tagger=_MockTagger()
    )
    processor.resolver = _ForbiddenResolver()

    result = asyncio.run(processor.process(URI, config.download_dir))

    assert result.status is JobStatus.DOWNLOADED
    assert result.from_cache is True
    assert client.calls == []
    assert reconstructor.calls == [
        (work_dir, 3, AudioFormat.M4S, config.download_dir / "Cached Song.mp3")
    ]
    assert stats.tracks_from_cache == 1


def test_second_run_is_idempotent(tmp_path, fake_client) -> None:
    config = _config(tmp_path)
    client = _network_client(fake_client)
    stats = DownloadStats()
    reconstructor = _MockReconstructor()
    processor = TrackProcessor(
        config, client, stats, reconstructor=reconstructor, tagger=_MockTagger()
    )

    first = asyncio.run(processor.process(URI, config.download_dir))
    calls_after_first = list(client.calls)
    second = asyncio.run(processor.process(URI, config.download_dir))

    assert first.status is JobStatus.DOWNLOADED
    assert second.status is JobStatus.SKIPPED_EXISTS
    assert client.calls == calls_after_first
    assert len(reconstructor.calls) == 1
    assert stats.tracks_skipped_exists == 1


def test_missing_record_reresolves_metadata_only(tmp_path, fake_client) -> None:
    config = _config(tmp_path)
    work_dir = config.temp_dir / "some-artist" / "some-song"
    work_dir.mkdir(parents=True)
    (work_dir / "0.mp3").write_bytes(b"seg")
    client = _network_client(fake_client)
    processor = TrackProcessor(
        config,
        client,
        DownloadStats(),
        reconstructor=_MockReconstructor(),
        tagger=_MockTagger(),
    )
    processor.resolver = _ForbiddenResolver()

    result = asyncio.run(processor.process(URI, config.download_dir))

    assert result.status is JobStatus.DOWNLOADED
    assert result.item.title == "Rock & Roll"
    assert client.calls_of("page") == [URI]
    assert client.calls_of("descriptor") == []


def test_single_track_output_goes_into_owner_directory(
    tmp_path, fake_client
) -> None:
    config = _config(tmp_path, cache_enabled=False)
    client = _network_client(fake_client)
    reconstructor = _MockReconstructor()
    processor = TrackProcessor(
        config,
        client,
        DownloadStats(),
        reconstructor=reconstructor,
        tagger=_MockTagger(),
    )

    asyncio.run(processor.process(URI, config.download_dir, per_owner_dir=True))

    assert reconstructor.calls[0][3] == (
        config.download_dir / "some-artist" / "Rock and Roll.mp3"
    )
