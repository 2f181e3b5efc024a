"""File intake for code uploads: validation, decoding and language tagging."""

from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Dict, Any, List, Optional, Tuple

from config import (
    MAX_FILE_SIZE, MAX_TOTAL_UPLOAD_SIZE, SUPPORTED_FILE_TYPES,
    LANGUAGE_MAP, DEFAULT_LANGUAGE,
)


def format_size(size: float) -> str:
    """Format file size for display."""
    for unit in ["B", "KB", "MB", "GB"]:
        if size < 1024:
            return f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} TB"


@dataclass(frozen=True)
class UploadedFile:
    """A validated source file ready to be sent for review."""
    name: str
    content: str
    language: str

    @property
    def size(self) -> int:
        return len(self.content.encode("utf-8"))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IntakeResult:
    """Outcome of processing one batch of uploads."""
    files: List[UploadedFile] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)
    limit_reached: bool = False
    total_size: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "errors": self.errors,
            "limit_reached": self.limit_reached,
            "total_size": self.total_size,
            "total_size_display": format_size(self.total_size),
        }


class FileProcessor:
    """Validate uploaded files and turn them into UploadedFile records."""

    def __init__(
        self,
        max_file_size: int = MAX_FILE_SIZE,
        max_total_size: int = MAX_TOTAL_UPLOAD_SIZE,
        supported_types: Optional[List[str]] = None,
    ):
        self.max_file_size = max_file_size
        self.max_total_size = max_total_size
        self.supported_types = set(supported_types or SUPPORTED_FILE_TYPES)

    @staticmethod
    def get_extension(filename: str) -> str:
        return Path(filename).suffix.lower()

    @staticmethod
    def language_for(filename: str) -> str:
        """Display language used for syntax highlighting."""
        return LANGUAGE_MAP.get(FileProcessor.get_extension(filename), DEFAULT_LANGUAGE)

    def validate_file(self, filename: str, size: int) -> Tuple[bool, str]:
        """
        Check one file against the per-file ceiling and the extension allow-list.

        Returns: (is_valid, error_message)
        """
        if size > self.max_file_size:
            return False, f"File {filename} exceeds {self.max_file_size // (1024*1024)}MB."
        if self.get_extension(filename) not in self.supported_types:
            return False, f"File type for {filename} is not supported."
        return True, ""

    @staticmethod
    def decode(content: bytes) -> str:
        try:
            return content.decode("utf-8")
        except UnicodeDecodeError:
            return content.decode("latin-1")

    def process_batch(
        self,
        files: List[Tuple[str, bytes]],
        existing_size: int = 0,
    ) -> IntakeResult:
        """
        Process a batch of (filename, raw bytes) pairs in order.

        Invalid files are reported and skipped. Once adding a file would push the
        running total over the aggregate ceiling, the rest of the batch is dropped.
        Sizes count against the ceiling as UTF-8 bytes of the decoded content,
        the same measure UploadedFile.size and the page use.
        """
        result = IntakeResult(total_size=existing_size)

        for filename, content in files:
            size = len(content)
            is_valid, error = self.validate_file(filename, size)
            if not is_valid:
                result.errors.append({"filename": filename, "error": error})
                continue

            uploaded = UploadedFile(
                name=filename,
                content=self.decode(content),
                language=self.language_for(filename),
            )
            if result.total_size + uploaded.size > self.max_total_size:
                result.errors.append({
                    "filename": filename,
                    "error": f"Total upload size exceeds {self.max_total_size // (1024*1024)}MB.",
                })
                result.limit_reached = True
                break

            result.files.append(uploaded)
            result.total_size += uploaded.size

        return result

    @staticmethod
    def remove_file(files: List[UploadedFile], name: str) -> List[UploadedFile]:
        """Return the list without any file called ``name``."""
        return [f for f in files if f.name != name]

