"""Tests for loading documents from disk."""

from services.ingestion import ingest_directory, ingest_paths, read_document


def test_read_document(tmp_path):
    path = tmp_path / "notes.md"
    path.write_text("# Notes", encoding="utf-8")
    assert read_document(path) == ("notes.md", "# Notes")
    assert read_document(tmp_path / "missing.md") is None


def test_ingest_paths_skips_unsupported(workspace, tmp_path):
    (tmp_path / "a.md").write_text("A", encoding="utf-8")
    (tmp_path / "b.pdf").write_bytes(b"%PDF")
    (tmp_path / "c.txt").write_text("C", encoding="utf-8")

    paths = (tmp_path / name for name in ("a.md", "b.pdf", "c.txt"))
    names = ingest_paths(workspace, paths)
    assert names == ["a.md", "c.txt"]
    assert workspace.state.files.get("c.txt").content == "C"


def test_reingest_keeps_progress(workspace, tmp_path):
    path = tmp_path / "a.md"
    path.write_text("v1", encoding="utf-8")
    ingest_paths(workspace, [path])
    workspace.update_read_progress("a.md", 70)

    path.write_text("v2", encoding="utf-8")
    ingest_paths(workspace, [path])
    record = workspace.state.files.get("a.md")
    assert (record.content, record.read_progress) == ("v2", 70)


def test_ingest_directory_sorted_and_filtered(workspace, tmp_path):
    for name in ("b.md", "a.markdown", "skip.json"):
        (tmp_path / name).write_text(name, encoding="utf-8")
    (tmp_path / "sub").mkdir()

    assert ingest_directory(workspace, tmp_path) == ["a.markdown", "b.md"]
    assert ingest_directory(workspace, tmp_path / "nope") == []
    assert ingest_directory(workspace, tmp_path, extensions=(".json",)) == ["skip.json"]
