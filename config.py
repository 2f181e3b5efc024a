"""Configuration constants and model definitions for Code Review Chat."""

import os
from dataclasses import dataclass


@dataclass
class ModelConfig:
    """Configuration for a review model."""
    id: str
    name: str
    max_tokens: int
    description: str


# Available Claude models
MODELS = {
    "claude-sonnet-4-5-20250929": ModelConfig(
        id="claude-sonnet-4-5-20250929",
        name="Claude Sonnet 4.5",
        max_tokens=64000,
        description="Balanced depth and speed, good default for reviews"
    ),
    "claude-opus-4-5-20251101": ModelConfig(
        id="claude-opus-4-5-20251101",
        name="Claude Opus 4.5",
        max_tokens=64000,
        description="Most thorough reviews for large or subtle changes"
    ),
    "claude-3-5-haiku-20241022": ModelConfig(
        id="claude-3-5-haiku-20241022",
        name="Claude 3.5 Haiku",
        max_tokens=8192,
        description="Fastest model, quick passes over small files"
    ),
}

# Default model
DEFAULT_MODEL = "claude-sonnet-4-5-20250929"

# Review sampling parameters (fixed per request)
REVIEW_TEMPERATURE = 0.7
REVIEW_TOP_K = 1
REVIEW_TOP_P = 1.0
REVIEW_MAX_TOKENS = 8192

# Wall-clock ceiling for a single review request
REVIEW_TIMEOUT_SECONDS = 30.0

# File upload limits
MAX_FILE_SIZE = 50 * 1024 * 1024  # 50MB
MAX_TOTAL_UPLOAD_SIZE = 50 * 1024 * 1024  # 50MB

SUPPORTED_FILE_TYPES = [
    ".js", ".jsx", ".ts", ".tsx", ".py", ".java", ".cs", ".go", ".rb", ".php",
    ".html", ".css", ".scss", ".less", ".json", ".xml", ".yaml", ".yml", ".md",
    ".diff", ".patch", ".txt", ".sh", ".swift", ".kt", ".c", ".cpp", ".h", ".hpp",
]

LANGUAGE_MAP = {
    ".js": "javascript", ".jsx": "jsx", ".ts": "typescript", ".tsx": "tsx",
    ".py": "python", ".java": "java", ".cs": "csharp", ".go": "go", ".rb": "ruby",
    ".php": "php", ".html": "html", ".css": "css", ".scss": "scss", ".less": "less",
    ".json": "json", ".xml": "xml", ".yaml": "yaml", ".yml": "yaml", ".md": "markdown",
    ".diff": "diff", ".patch": "diff", ".txt": "text", ".sh": "bash", ".swift": "swift",
    ".kt": "kotlin", ".c": "c", ".cpp": "cpp", ".h": "c", ".hpp": "cpp",
}

DEFAULT_LANGUAGE = "text"

# GitHub REST API
GITHUB_API_URL = "https://api.github.com"
GITHUB_TIMEOUT_SECONDS = 15.0
GITHUB_FILES_PER_PAGE = 100
PR_CACHE_SIZE = 32

# Storage paths
DATA_DIR = os.getenv("REVIEW_DATA_DIR", "data")
CREDENTIALS_PATH = os.path.join(DATA_DIR, "credentials.json")
