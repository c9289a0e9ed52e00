# ABOUTME: Unit tests for the on-disk cover store.
# ABOUTME: Validates save, lookup, replacement across formats and deletion.

from pathlib import Path

from booklore.covers import CoverStore


class TestCoverStore:
    """Tests for CoverStore."""

    def test_save_and_find(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)
        saved = store.save(7, b"img", "PNG")
        assert saved == tmp_path / "covers" / "7" / "cover.png"
        assert store.path_for(7) == saved
        assert saved.read_bytes() == b"img"

    def test_missing_cover(self, tmp_path: Path) -> None:
        assert CoverStore(tmp_path).path_for(1) is None

    def test_save_replaces_other_format(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)
        store.save(1, b"old", "jpg")
        store.save(1, b"new", ".png")
        assert sorted(p.name for p in (tmp_path / "covers" / "1").iterdir()) == ["cover.png"]

    def test_blank_suffix_defaults_to_jpg(self, tmp_path: Path) -> None:
        assert CoverStore(tmp_path).save(1, b"x", "").name == "cover.jpg"

    def test_delete(self, tmp_path: Path) -> None:
        store = CoverStore(tmp_path)
        store.save(1, b"x")
        store.delete(1)
        store.delete(1)
        assert store.path_for(1) is None
