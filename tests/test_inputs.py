import pytest

from mediareader.inputs import collect_media, parse_url_text, read_url_file
from mediareader.models import FileRef, UrlRef


def test_parse_url_text_splits_on_whitespace():
    text = "https://a.test/1.jpg  https://a.test/2.mp4\n\n\thttps://a.test/3.png\n"
    assert parse_url_text(text) == [
        "https://a.test/1.jpg",
        "https://a.test/2.mp4",
        "https://a.test/3.png",
    ]
    assert parse_url_text("   ") == []


def test_read_url_file(tmp_path):
    source = tmp_path / "urls.txt"
    source.write_text("https://a.test/1.jpg\nhttps://a.test/2.jpg\n", encoding="utf-8")
    assert read_url_file(source) == ["https://a.test/1.jpg", "https://a.test/2.jpg"]


def test_collect_media_puts_files_before_urls(tmp_path):
    first = tmp_path / "b.png"
    second = tmp_path / "a.mp4"
    first.write_bytes(b"1")
    second.write_bytes(b"2")

    media = collect_media([first, second], ["https://a.test/x.jpg", "  ", ""])

    assert [type(ref) for ref in media] == [FileRef, FileRef, UrlRef]
    assert [ref.label for ref in media] == ["b.png", "a.mp4", "https://a.test/x.jpg"]
    assert media[1].mime_type == "video/mp4"


def test_collect_media_rejects_missing_files(tmp_path):
    with pytest.raises(FileNotFoundError):
        collect_media([tmp_path / "missing.png"])


def test_large_files_are_accepted_with_warning(tmp_path, monkeypatch, caplog):
    monkeypatch.setattr("mediareader.inputs.LARGE_FILE_WARNING_BYTES", 4)
    big = tmp_path / "big.jpg"
    big.write_bytes(b"0123456789")
    with caplog.at_level("WARNING", logger="mediareader.inputs"):
        media = collect_media([big])
    assert len(media) == 1
    assert "big.jpg" in caplog.text
