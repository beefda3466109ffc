from scdownload.models.config import CoverSize
from scdownload.models.item import CandidateDescriptor
from scdownload.web.extractors import (
    extract_client_id,
    extract_cover_url,
    extract_permalinks,
    extract_script_urls,
    extract_stream_candidates,
    extract_title,
    extract_track_authorization,
    extract_track_ids,
    extract_user_id,
    extract_username,
)

HLS_1 = "https://api-v2.soundcloud.com/media/soundcloud:tracks:7/one/stream/hls"
HLS_2 = "https://api-v2.soundcloud.com/media/soundcloud:tracks:7/two/stream/hls"


def test_username_and_title_are_unescaped() -> None:
    html = '{"title":"Love \\u003c3 \\u0026 more","user":{"username":"DJ \\u00e9"}}'

    assert extract_title(html) == "Love <3 & more"
    assert extract_username(html) == "DJ é"


def test_missing_fields_return_none() -> None:
    assert extract_title("<html></html>") is None
    assert extract_username("") is None
    assert extract_track_authorization("{}") is None
    assert extract_user_id("no users here") is None
    assert extract_cover_url("<html><head></head></html>") is None


def test_cover_url_can_request_original_size() -> None:
    html = (
        '<meta property="og:image" '
        'content="https://i1.sndcdn.com/artworks-abc-t500x500.jpg">'
    )

    assert extract_cover_url(html) == "https://i1.sndcdn.com/artworks-abc-t500x500.jpg"
    assert (
        extract_cover_url(html, CoverSize.ORIGINAL)
        == "https://i1.sndcdn.com/artworks-abc-original.jpg"
    )


def test_stream_candidates_keep_page_order_without_duplicates() -> None:
    html = (
        f'[{{"url":"{HLS_2}","preset":"aac"}},{{"url":"{HLS_1}","preset":"mp3"}},'
        f'{{"url":"{HLS_2}","preset":"aac"}},'
        '{"url":"https://api-v2.soundcloud.com/tracks/7/related"}]'
    )

    assert extract_stream_candidates(html) == [
        CandidateDescriptor(HLS_2),
        CandidateDescriptor(HLS_1),
    ]


def test_track_authorization() -> None:
    assert extract_track_authorization('"track_authorization":"eyJ0eXAi"') == "eyJ0eXAi"


def test_track_ids_and_user_id() -> None:
    html = (
        '{"id":11,"kind":"track"},{"id":12,"kind":"track"},{"id":11,"kind":"track"},'
        '{"id":99,"kind":"playlist"} "uri":"soundcloud://users:12345"'
    )

    assert extract_track_ids(html) == ["11", "12"]
    assert extract_user_id(html) == "12345"


def test_permalinks_from_api_payload() -> None:
    payload = {
        "collection": [
            {"track": {"permalink_url": "https://soundcloud.com/alice/first-song"}},
            {"playlist": {"permalink_url": "https://soundcloud.com/bob/sets/mix"}},
            {"track": {"permalink_url": "https://soundcloud.com/carol/café"}},
            {"user": {"permalink_url": "https://soundcloud.com/alice"}},
        ]
    }

    assert extract_permalinks(payload, strict=True) == ["alice/first-song"]
    assert extract_permalinks(
        '"permalink_url":"https://soundcloud.com/dave/song.v2"'
    ) == ["dave/song.v2"]


def test_client_id_discovery() -> None:
    page = (
        '<script src="https://a-v2.sndcdn.com/assets/0-abcd1234.js"></script>'
        '<script src="https://a-v2.sndcdn.com/assets/49-z9y8x7w6.js"></script>'
        '<script src="https://a-v2.sndcdn.com/assets/0-abcd1234.js"></script>'
    )

    assert extract_script_urls(page) == [
        "https://a-v2.sndcdn.com/assets/0-abcd1234.js",
        "https://a-v2.sndcdn.com/assets/49-z9y8x7w6.js",
    ]
    assert extract_client_id('({client_id:"AbC123xyz",env:"prod"})') == "AbC123xyz"
    assert extract_client_id("var x = 1;") is None
