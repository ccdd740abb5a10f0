"""Unit tests for CLI command handling."""

from __future__ import annotations

from pathlib import Path

from cli.main import main
from tests.fb2_samples import build_zip, fb2_document


def _archive(tmp_path: Path) -> Path:
    return build_zip(
        tmp_path / "books.zip",
        {
            "a.fb2": fb2_document(title="Foo"),
            "b.fb2": fb2_document(title=" "),
            "c.txt": b"readme",
        },
    )


def test_cli_import_reports_counts(tmp_path: Path, capsys) -> None:
    """CLI import should print failed entries and the outcome tally."""
    args = ["--data-root", str(tmp_path / "data"), "import", str(_archive(tmp_path))]

    exit_code = main(args)
    output = capsys.readouterr().out

    assert exit_code == 0
    assert "stored=1 skipped=1 failed=1" in output
    assert "failed\tb.fb2\textract" in output


def test_cli_list_prints_stored_books(tmp_path: Path, capsys) -> None:
    """CLI list should print id, entry name, and title per book."""
    data_root = str(tmp_path / "data")
    main(["--data-root", data_root, "import", str(_archive(tmp_path)), "--workers", "1"])
    capsys.readouterr()

    exit_code = main(["--data-root", data_root, "list"])
    output = capsys.readouterr().out.strip()

    assert exit_code == 0 and output == "1\ta.fb2\tFoo"


def test_cli_export_writes_hugo_pages(tmp_path: Path, capsys) -> None:
    """CLI export should write one page per stored book."""
    data_root = str(tmp_path / "data")
    site_dir = tmp_path / "site"
    main(["--data-root", data_root, "import", str(_archive(tmp_path))])

    exit_code = main(["--data-root", data_root, "export", "--out", str(site_dir)])

    assert exit_code == 0
    assert (site_dir / "content" / "books" / "foo_1" / "index.md").exists()
    assert "pages=1" in capsys.readouterr().out


def test_cli_import_fails_for_missing_archive(tmp_path: Path, capsys) -> None:
    """A missing archive is fatal and should yield a non-zero exit code."""
    args = ["--data-root", str(tmp_path / "data"), "import", str(tmp_path / "missing.zip")]

    exit_code = main(args)

    assert exit_code == 1
    assert "error:" in capsys.readouterr().err


def test_cli_import_rejects_invalid_worker_count(tmp_path: Path, capsys) -> None:
    """A zero worker override should be reported as a configuration error."""
    args = [
        "--data-root",
        str(tmp_path / "data"),
        "import",
        str(_archive(tmp_path)),
        "--workers",
        "0",
    ]

    exit_code = main(args)

    assert exit_code == 1
    assert "worker count" in capsys.readouterr().err
