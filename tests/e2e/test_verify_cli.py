# ABOUTME: End-to-end tests for `booklore verify` and `booklore covers`.
# ABOUTME: Tampers with files of a scanned library and checks the reported problems.

from collections.abc import Callable
from pathlib import Path

from click.testing import CliRunner

from booklore.cli import cli

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class TestCliVerify:
    """E2e tests for `booklore verify`."""

    def test_healthy_library(self, scanned_db: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["verify", "--check-hash", "--db", str(scanned_db)])
        assert result.exit_code == 0
        assert "All 2 book(s) verified." in result.output

    def test_missing_file(self, scanned_db: Path, library_root: Path) -> None:
        (library_root / "Dune.epub").unlink()
        runner = CliRunner()

        result = runner.invoke(cli, ["verify", "--db", str(scanned_db)])

        assert result.exit_code == 1
        assert "Missing file" in result.output
        assert "1 issue(s) found, 1 book(s) verified." in result.output

    def test_hash_mismatch_needs_flag(self, scanned_db: Path, library_root: Path) -> None:
        (library_root / "Rose.epub").write_bytes(b"changed on disk")
        runner = CliRunner()

        assert runner.invoke(cli, ["verify", "--db", str(scanned_db)]).exit_code == 0
        result = runner.invoke(cli, ["verify", "--check-hash", "--db", str(scanned_db)])
        assert result.exit_code == 1
        assert "Hash mismatch" in result.output

    def test_scoped_to_library(self, scanned_db: Path, library_root: Path) -> None:
        (library_root / "Dune.epub").unlink()
        runner = CliRunner()
        result = runner.invoke(cli, ["verify", "--library", "3", "--db", str(scanned_db)])
        assert result.exit_code == 0
        assert "All 0 book(s) verified." in result.output


class TestCliCovers:
    """E2e tests for `booklore covers`."""

    def test_regenerates_covers(
        self,
        db_path: Path,
        library_root: Path,
        tmp_path: Path,
        make_epub: Callable[..., Path],
    ) -> None:
        make_epub(library_root / "Dune.epub", title="Dune", cover=PNG_BYTES)
        make_epub(library_root / "Plain.epub", title="Plain")
        data_dir = tmp_path / "data"
        runner = CliRunner()
        runner.invoke(cli, ["library", "add", "Books", str(library_root), "--db", str(db_path)])
        runner.invoke(cli, ["scan", "--db", str(db_path), "--data-dir", str(data_dir)])
        for cover in (data_dir / "covers").rglob("cover.*"):
            cover.unlink()

        result = runner.invoke(cli, ["covers", "--db", str(db_path), "--data-dir", str(data_dir)])

        assert result.exit_code == 0
        assert "1 regenerated" in result.output
        assert (data_dir / "covers" / "1" / "cover.png").is_file()
