from pathlib import Path

from scdownload.models.item import Item
from scdownload.utils.path import output_path_for, sanitize_title, work_dir_for


def test_ampersand_and_heart_are_spelled_out() -> None:
    assert sanitize_title("Salt & Pepper") == "Salt and Pepper"
    assert sanitize_title("I <3 You") == "I ily You"
    assert sanitize_title("Drum \\u0026 Bass \\u003c3") == "Drum and Bass ily"


def test_illegal_characters_are_removed() -> None:
    assert sanitize_title('What? "Why" <Now>: a/b\\c|d*') == "What Why Now abcd"


def test_empty_titles_fall_back_to_unknown() -> None:
    assert sanitize_title("") == "Unknown"
    assert sanitize_title(None) == "Unknown"
    assert sanitize_title('???"') == "Unknown"


def test_work_dir_is_owner_then_slug(tmp_path) -> None:
    item = Item(uri="some-artist/some-song")

    assert work_dir_for(tmp_path, item) == tmp_path / "some-artist" / "some-song"


def test_output_path_uses_sanitized_title() -> None:
    item = Item(uri="some-artist/some-song", title="Rock & Roll")
    base = Path("/music")

    assert output_path_for(base, item) == base / "Rock and Roll.mp3"
    assert output_path_for(base, item, per_owner_dir=True) == (
        base / "some-artist" / "Rock and Roll.mp3"
    )
