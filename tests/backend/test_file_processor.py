"""Tests for file intake."""

import pytest
from services.file_processor import FileProcessor, UploadedFile


@pytest.fixture
def processor():
    """Small ceilings so limits are easy to hit."""
    return FileProcessor(max_file_size=100, max_total_size=250)


class TestValidation:
    """Test suite for per-file checks."""

    def test_accepts_supported_file(self, processor):
        is_valid, error = processor.validate_file("main.py", 10)
        assert is_valid is True
        assert error == ""

    def test_rejects_oversized_file(self, processor):
        is_valid, error = processor.validate_file("main.py", 101)
        assert is_valid is False
        assert "main.py" in error

    def test_rejects_unsupported_extension(self, processor):
        is_valid, error = processor.validate_file("photo.png", 10)
        assert is_valid is False
        assert "not supported" in error

    def test_extension_check_is_case_insensitive(self, processor):
        assert processor.validate_file("README.MD", 10)[0] is True


class TestLanguage:
    """Test suite for language tagging."""

    @pytest.mark.parametrize("filename,language", [
        ("app.py", "python"),
        ("index.tsx", "tsx"),
        ("fix.patch", "diff"),
        ("config.yml", "yaml"),
        ("header.hpp", "cpp"),
    ])
    def test_known_extensions(self, filename, language):
        assert FileProcessor.language_for(filename) == language

    def test_unknown_extension_defaults_to_text(self):
        assert FileProcessor.language_for("Makefile") == "text"


class TestProcessBatch:
    """Test suite for batch intake."""

    def test_valid_files_in_order(self, processor):
        result = processor.process_batch([
            ("a.py", b"print(1)"),
            ("b.js", b"console.log(1)"),
        ])

        assert [f.name for f in result.files] == ["a.py", "b.js"]
        assert result.files[0] == UploadedFile(name="a.py", content="print(1)", language="python")
        assert result.errors == []
        assert result.limit_reached is False
        assert result.total_size == len(b"print(1)") + len(b"console.log(1)")

    def test_invalid_files_are_reported_and_skipped(self, processor):
        result = processor.process_batch([
            ("big.py", b"x" * 101),
            ("image.gif", b"GIF89a"),
            ("ok.py", b"pass"),
        ])

        assert [f.name for f in result.files] == ["ok.py"]
        assert [e["filename"] for e in result.errors] == ["big.py", "image.gif"]

    def test_aggregate_limit_stops_the_batch(self, processor):
        result = processor.process_batch([
            ("one.py", b"a" * 100),
            ("two.py", b"b" * 100),
            ("three.py", b"c" * 100),
            ("four.py", b"d" * 10),
        ])

        assert [f.name for f in result.files] == ["one.py", "two.py"]
        assert result.limit_reached is True
        assert result.errors[-1]["filename"] == "three.py"
        assert "Total upload size" in result.errors[-1]["error"]

    def test_existing_size_counts_against_limit(self, processor):
        result = processor.process_batch([("a.py", b"a" * 60)], existing_size=200)

        assert result.files == []
        assert result.limit_reached is True

    def test_total_never_exceeds_ceiling(self, processor):
        batch = [(f"f{i}.py", b"x" * (i * 7 % 100)) for i in range(30)]
        result = processor.process_batch(batch)

        assert result.total_size <= processor.max_total_size
        assert sum(f.size for f in result.files) <= processor.max_total_size

    def test_latin1_fallback(self, processor):
        result = processor.process_batch([("legacy.txt", "café".encode("latin-1"))])
        assert result.files[0].content == "café"

    def test_latin1_content_counted_as_stored(self):
        """A latin-1 file grows when re-encoded; the ceiling applies to the stored size."""
        processor = FileProcessor(max_total_size=4)
        result = processor.process_batch([("a.py", "café".encode("latin-1"))])

        assert result.files == []
        assert result.limit_reached is True

    def test_latin1_content_at_ceiling(self):
        processor = FileProcessor(max_total_size=5)
        result = processor.process_batch([("a.py", "café".encode("latin-1"))])

        assert [f.size for f in result.files] == [5]
        assert result.total_size == 5

    def test_total_size_display(self, processor):
        result = processor.process_batch([("a.py", b"a" * 100)])
        assert result.to_dict()["total_size_display"] == "100.0 B"


class TestRemoveFile:
    """Test suite for removing files by name."""

    def test_remove_by_name(self):
        files = [
            UploadedFile("a.py", "1", "python"),
            UploadedFile("b.py", "2", "python"),
        ]
        remaining = FileProcessor.remove_file(files, "a.py")
        assert [f.name for f in remaining] == ["b.py"]

    def test_remove_missing_name_is_noop(self):
        files = [UploadedFile("a.py", "1", "python")]
        assert FileProcessor.remove_file(files, "zzz.py") == files
