"""
Configuration management for the learning-material backend.
Loads configuration from environment variables and .env file.
"""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict
from dotenv import load_dotenv

# Load environment variables from .env file
# Look for .env file in the backend directory or project root
BACKEND_DIR = Path(__file__).parent.parent
PROJECT_ROOT = BACKEND_DIR.parent
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file if it exists
if ENV_FILE.exists():
    load_dotenv(ENV_FILE)
else:
    # Also try loading from backend directory
    backend_env = BACKEND_DIR / ".env"
    if backend_env.exists():
        load_dotenv(backend_env)

PROMPTS_DIR = BACKEND_DIR / "prompts"

# Completion API configuration
DEEPSEEK_API_URL = os.getenv("DEEPSEEK_API_URL", "https://api.deepseek.com/chat/completions")
DEEPSEEK_API_KEY = os.getenv("DEEPSEEK_API_KEY", None)
DEEPSEEK_MODEL = os.getenv("DEEPSEEK_MODEL", "deepseek-chat")
USER_AGENT = "LanguageLearningAssistant/2.0.0"

# LLM settings (can be overridden via env vars)
LLM_TEMPERATURE = float(os.getenv("LLM_TEMPERATURE", "0.3"))
LLM_MAX_TOKENS = int(os.getenv("LLM_MAX_TOKENS", "2000"))
LLM_RETRIES = int(os.getenv("LLM_RETRIES", "3"))
LLM_MAX_CONNECTIONS = int(os.getenv("LLM_MAX_CONNECTIONS", "5"))

# Timeouts (milliseconds)
LLM_TIMEOUT_MS = int(os.getenv("LLM_TIMEOUT_MS", "120000"))
DYNAMIC_TIMEOUT_ENABLED = os.getenv("DYNAMIC_TIMEOUT_ENABLED", "true").lower() == "true"
DYNAMIC_TIMEOUT_BASE_MS = int(os.getenv("DYNAMIC_TIMEOUT_BASE_MS", "300000"))  # 5 minutes
DYNAMIC_TIMEOUT_PER_CHAR_MS = float(os.getenv("DYNAMIC_TIMEOUT_PER_CHAR_MS", "0.1"))
DYNAMIC_TIMEOUT_MIN_MS = int(os.getenv("DYNAMIC_TIMEOUT_MIN_MS", "120000"))  # 2 minutes
DYNAMIC_TIMEOUT_MAX_MS = int(os.getenv("DYNAMIC_TIMEOUT_MAX_MS", "600000"))  # 10 minutes

# Retry backoff (milliseconds)
SMART_RETRY_ENABLED = os.getenv("SMART_RETRY_ENABLED", "true").lower() == "true"
RETRY_BASE_DELAY_MS = int(os.getenv("RETRY_BASE_DELAY_MS", "1000"))
RETRY_MAX_BACKOFF_MS = int(os.getenv("RETRY_MAX_BACKOFF_MS", "30000"))
RETRY_JITTER_RATIO = float(os.getenv("RETRY_JITTER_RATIO", "0.1"))

# Sentence splitting
MAX_SPLIT_DEPTH = int(os.getenv("MAX_SPLIT_DEPTH", "5"))
MIN_SENTENCE_LENGTH = int(os.getenv("MIN_SENTENCE_LENGTH", "5"))
PRE_SPLIT_THRESHOLD = int(os.getenv("PRE_SPLIT_THRESHOLD", "8000"))
PRE_SPLIT_PART_SIZE = int(os.getenv("PRE_SPLIT_PART_SIZE", "4000"))
PRE_SPLIT_PART_MIN_SIZE = int(os.getenv("PRE_SPLIT_PART_MIN_SIZE", "1000"))
PART_DELAY_MS = int(os.getenv("PART_DELAY_MS", "1000"))

# Large file processing
LARGE_FILE_SPLIT_THRESHOLD = int(os.getenv("LARGE_FILE_SPLIT_THRESHOLD", "15000"))
LARGE_FILE_EXPLAIN_THRESHOLD = int(os.getenv("LARGE_FILE_EXPLAIN_THRESHOLD", "6000"))
LARGE_FILE_VOCABULARY_THRESHOLD = int(os.getenv("LARGE_FILE_VOCABULARY_THRESHOLD", "10000"))
HIGH_VOLUME_THRESHOLD = int(os.getenv("HIGH_VOLUME_THRESHOLD", "50000"))
HIGH_VOLUME_SHRINK_RATIO = 0.8
HIGH_VOLUME_OVERLAP_RATIO = 1.2

# Batch processing
EXPLANATION_BATCH_SIZE = int(os.getenv("EXPLANATION_BATCH_SIZE", "5"))
PARAGRAPH_BATCH_THRESHOLD = int(os.getenv("PARAGRAPH_BATCH_THRESHOLD", "40"))
PARAGRAPH_BATCH_SIZE = int(os.getenv("PARAGRAPH_BATCH_SIZE", "30"))
PROMPT_SIZE_LIMIT = int(os.getenv("PROMPT_SIZE_LIMIT", "12000"))
PROMPT_SHRINK_RATIO = 0.7
BATCH_DELAY_MS = int(os.getenv("BATCH_DELAY_MS", "500"))
MAX_VOCABULARY_ENTRIES = 8

# API configuration
API_V1_PREFIX = "/api/v1"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
# CORS origins can be comma-separated list in env var
CORS_ORIGINS_STR = os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173")
CORS_ORIGINS = [origin.strip() for origin in CORS_ORIGINS_STR.split(",") if origin.strip()]

# English levels
ENGLISH_LEVELS = {
    "CET-4": "basic vocabulary and grammar",
    "CET-6": "intermediate expressions and complex structures",
    "IELTS": "academic vocabulary and formal expressions",
    "TOEFL": "advanced academic English and precise terminology",
}
DEFAULT_LEVEL_FOCUS = "general English skills"


@dataclass
class CompletionConfig:
    """Remote completion endpoint settings."""
    api_url: str = DEEPSEEK_API_URL
    api_key: str = DEEPSEEK_API_KEY or ""
    model: str = DEEPSEEK_MODEL
    max_tokens: int = LLM_MAX_TOKENS
    temperature: float = LLM_TEMPERATURE
    max_connections: int = LLM_MAX_CONNECTIONS


@dataclass
class TimeoutConfig:
    """Per-call timeout computation (all values in milliseconds)."""
    fixed_timeout_ms: int = LLM_TIMEOUT_MS
    dynamic_enabled: bool = DYNAMIC_TIMEOUT_ENABLED
    base_timeout_ms: int = DYNAMIC_TIMEOUT_BASE_MS
    per_character_ms: float = DYNAMIC_TIMEOUT_PER_CHAR_MS
    min_timeout_ms: int = DYNAMIC_TIMEOUT_MIN_MS
    max_timeout_ms: int = DYNAMIC_TIMEOUT_MAX_MS


@dataclass
class RetryConfig:
    """Retry budget and backoff schedule."""
    max_attempts: int = LLM_RETRIES
    smart_retry: bool = SMART_RETRY_ENABLED
    base_delay_ms: int = RETRY_BASE_DELAY_MS
    max_backoff_ms: int = RETRY_MAX_BACKOFF_MS
    jitter_ratio: float = RETRY_JITTER_RATIO


@dataclass
class ChunkStrategy:
    """Chunk sizing for one large-file operation."""
    max_chunk_size: int
    min_chunk_size: int
    overlap_size: int
    chunk_delay_ms: int


def _default_chunk_strategies() -> Dict[str, ChunkStrategy]:
    # Tuned empirically: small chunks keep sentences intact, the smallest
    # chunks give explanations the best odds, large overlapping chunks keep
    # vocabulary terms from falling between chunks.
    return {
        "split": ChunkStrategy(max_chunk_size=3000, min_chunk_size=500, overlap_size=100, chunk_delay_ms=1000),
        "explain": ChunkStrategy(max_chunk_size=2000, min_chunk_size=300, overlap_size=50, chunk_delay_ms=1500),
        "vocabulary": ChunkStrategy(max_chunk_size=8000, min_chunk_size=1000, overlap_size=500, chunk_delay_ms=800),
    }


def _default_large_file_thresholds() -> Dict[str, int]:
    return {
        "split": LARGE_FILE_SPLIT_THRESHOLD,
        "explain": LARGE_FILE_EXPLAIN_THRESHOLD,
        "vocabulary": LARGE_FILE_VOCABULARY_THRESHOLD,
    }


@dataclass
class ProcessingConfig:
    """Thresholds, batch sizes and pacing delays for the orchestration layer."""
    max_split_depth: int = MAX_SPLIT_DEPTH
    min_sentence_length: int = MIN_SENTENCE_LENGTH
    pre_split_threshold: int = PRE_SPLIT_THRESHOLD
    pre_split_part_size: int = PRE_SPLIT_PART_SIZE
    pre_split_part_min_size: int = PRE_SPLIT_PART_MIN_SIZE
    part_delay_ms: int = PART_DELAY_MS
    large_file_thresholds: Dict[str, int] = field(default_factory=_default_large_file_thresholds)
    chunk_strategies: Dict[str, ChunkStrategy] = field(default_factory=_default_chunk_strategies)
    high_volume_threshold: int = HIGH_VOLUME_THRESHOLD
    explanation_batch_size: int = EXPLANATION_BATCH_SIZE
    paragraph_batch_threshold: int = PARAGRAPH_BATCH_THRESHOLD
    paragraph_batch_size: int = PARAGRAPH_BATCH_SIZE
    prompt_size_limit: int = PROMPT_SIZE_LIMIT
    batch_delay_ms: int = BATCH_DELAY_MS
    max_vocabulary_entries: int = MAX_VOCABULARY_ENTRIES


@dataclass
class OrchestratorConfig:
    """Everything the orchestration layer needs, threaded through constructors."""
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)


def load_config() -> OrchestratorConfig:
    """Build the configuration from environment-derived defaults."""
    return OrchestratorConfig()
