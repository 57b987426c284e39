"""Tests for the blockdoc CLI."""

import json
import subprocess
import tempfile
from pathlib import Path


def run(storage: Path, *args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        ["blockdoc", "--storage", str(storage), *args],
        capture_output=True,
        text=True,
        cwd=storage,
    )


def test_new_ls_show():
    """Create a document, list it and print it."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Path(tmpdir)

        result = run(storage, "new", "--title", "Groceries")
        assert result.returncode == 0
        assert result.stdout.strip() == "1"

        result = run(storage, "ls")
        assert result.returncode == 0
        assert result.stdout.strip() == "1\tGroceries"

        result = run(storage, "show", "1")
        assert result.returncode == 0
        assert result.stdout.startswith("Groceries\n")

        result = run(storage, "--json", "show", "1")
        data = json.loads(result.stdout)
        assert data["title"] == "Groceries"
        assert len(data["content"]) == 1
        assert data["wordCount"] == 0


def test_apply_script_and_export():
    """Intents from a YAML script are applied and saved."""
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Path(tmpdir)
        run(storage, "new", "--title", "Notes")
        block_id = json.loads(run(storage, "--json", "show", "1").stdout)["content"][0]["id"]

        script = storage / "edits.yaml"
        script.write_text(f"""
- op: update_block_content
  block_id: "{block_id}"
  changes:
    content: "<p>hello world</p>"
- op: convert_format
  block_id: "{block_id}"
  target_type: heading2
- op: delete_block
  block_id: "{block_id}"
""")
        result = run(storage, "apply", "1", str(script))
        assert result.returncode == 0, result.stderr
        assert "Applied 3 intents (2 changed)" in result.stdout

        result = run(storage, "show", "1", "--words")
        assert result.stdout.strip() == "2"

        result = run(storage, "export", "1", "--format", "markdown")
        assert result.returncode == 0
        assert result.stdout == "# Notes\n\n## hello world\n"

        out = storage / "notes.html"
        result = run(storage, "-q", "export", "1", "--format", "html", "-o", str(out))
        assert result.returncode == 0
        assert "<h2" in out.read_text()


def test_apply_rejects_unknown_op():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Path(tmpdir)
        run(storage, "new")
        script = storage / "bad.json"
        script.write_text('[{"op": "explode"}]')
        result = run(storage, "apply", "1", str(script))
        assert result.returncode == 1
        assert "Unknown intent op" in result.stderr


def test_missing_document():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Path(tmpdir)
        result = run(storage, "show", "5")
        assert result.returncode == 1
        assert "Document 5 not found" in result.stderr

        result = run(storage, "rm", "5")
        assert result.returncode == 1


def test_rm():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Path(tmpdir)
        run(storage, "new")
        result = run(storage, "rm", "1")
        assert result.returncode == 0
        assert "Deleted 1" in result.stdout
        assert run(storage, "ls").stdout.strip() == ""


def test_yaml_backend():
    with tempfile.TemporaryDirectory() as tmpdir:
        storage = Path(tmpdir)
        result = run(storage, "--backend", "yaml", "new", "--title", "Filed")
        assert result.returncode == 0
        assert (storage / "1.yaml").exists()
