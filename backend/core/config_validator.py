"""
Configuration validation for the learning-material backend.
Validates credentials, prompt overrides, endpoint reachability and settings on startup.
"""
import requests
from typing import List, Dict, Any, Optional

from core.config import OrchestratorConfig, load_config
from core.prompt_manager import REQUIRED_PROMPTS


class ConfigurationError(Exception):
    """Raised when configuration is invalid."""

    def __init__(self, errors: List[str], warnings: Optional[List[str]] = None):
        super().__init__("; ".join(errors))
        self.errors = errors
        self.warnings = warnings or []


class ConfigValidator:
    """Validates system configuration before pipeline execution."""

    def __init__(self, config: Optional[OrchestratorConfig] = None, check_connectivity: bool = True):
        self.config = config or load_config()
        self.check_connectivity = check_connectivity
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def validate_all(self) -> Dict[str, Any]:
        """
        Run all validation checks.

        Returns:
            {
                "valid": bool,
                "errors": List[str],
                "warnings": List[str]
            }
        """
        self.errors = []
        self.warnings = []

        # Run all checks
        self._validate_api_key()
        self._validate_prompt_files()
        if self.check_connectivity and self.config.completion.api_key:
            self._validate_api_connection()
        self._validate_timeouts()
        self._validate_retry_values()
        self._validate_processing_values()

        return {
            "valid": len(self.errors) == 0,
            "errors": self.errors,
            "warnings": self.warnings
        }

    def require_valid(self) -> Dict[str, Any]:
        """Run all checks; raise ConfigurationError if any of them failed."""
        result = self.validate_all()
        if not result["valid"]:
            raise ConfigurationError(result["errors"], result["warnings"])
        return result

    def _validate_api_key(self):
        """Check that the completion API key is configured."""
        if not self.config.completion.api_key:
            self.errors.append(
                "DEEPSEEK_API_KEY is not set. "
                "Add it to the .env file in the project root or backend directory."
            )

    def _validate_prompt_files(self):
        """Prompt files are optional overrides; built-in templates cover missing ones."""
        from core.config import PROMPTS_DIR

        if not PROMPTS_DIR.exists():
            return

        for prompt_name in REQUIRED_PROMPTS:
            path = PROMPTS_DIR / f"{prompt_name}.txt"
            if path.exists() and path.stat().st_size == 0:
                self.warnings.append(
                    f"Prompt file is empty: {path.name}. The built-in template will be used."
                )

    def _validate_api_connection(self):
        """Check that the completion endpoint is reachable."""
        api_url = self.config.completion.api_url

        try:
            response = requests.get(
                api_url,
                headers={"Authorization": f"Bearer {self.config.completion.api_key}"},
                timeout=5,
            )
        except requests.exceptions.ConnectionError:
            self.errors.append(
                f"Cannot connect to the completion API at {api_url}. "
                "Check the network connection and DEEPSEEK_API_URL."
            )
            return
        except requests.exceptions.Timeout:
            self.warnings.append(
                f"Completion API connection timeout at {api_url}. "
                "Requests may be slow."
            )
            return

        # The endpoint only accepts POST; any answer proves it is reachable
        if response.status_code == 401:
            self.errors.append("The completion API rejected DEEPSEEK_API_KEY (HTTP 401).")
        elif response.status_code >= 500:
            self.warnings.append(
                f"Completion API answered HTTP {response.status_code}; the service may be degraded."
            )

    def _validate_timeouts(self):
        """Validate timeout bounds."""
        timeout = self.config.timeout

        if timeout.min_timeout_ms > timeout.max_timeout_ms:
            self.errors.append(
                f"DYNAMIC_TIMEOUT_MIN_MS ({timeout.min_timeout_ms}) must be <= "
                f"DYNAMIC_TIMEOUT_MAX_MS ({timeout.max_timeout_ms})"
            )
        if timeout.fixed_timeout_ms <= 0:
            self.errors.append(f"LLM_TIMEOUT_MS ({timeout.fixed_timeout_ms}) must be positive")

    def _validate_retry_values(self):
        retry = self.config.retry

        if retry.max_attempts < 1:
            self.errors.append(f"LLM_RETRIES ({retry.max_attempts}) must be at least 1")
        if retry.base_delay_ms > retry.max_backoff_ms:
            self.warnings.append(
                f"RETRY_BASE_DELAY_MS ({retry.base_delay_ms}) exceeds "
                f"RETRY_MAX_BACKOFF_MS ({retry.max_backoff_ms})"
            )

    def _validate_processing_values(self):
        """Validate configuration value ranges and types."""
        processing = self.config.processing
        temperature = self.config.completion.temperature

        # Pre-split must kick in before the large-file path
        split_threshold = processing.large_file_thresholds.get("split", 0)
        if processing.pre_split_threshold >= split_threshold:
            self.errors.append(
                f"PRE_SPLIT_THRESHOLD ({processing.pre_split_threshold}) must be < "
                f"LARGE_FILE_SPLIT_THRESHOLD ({split_threshold})"
            )

        if processing.pre_split_part_min_size >= processing.pre_split_part_size:
            self.errors.append(
                f"PRE_SPLIT_PART_MIN_SIZE ({processing.pre_split_part_min_size}) must be < "
                f"PRE_SPLIT_PART_SIZE ({processing.pre_split_part_size})"
            )

        for operation, strategy in processing.chunk_strategies.items():
            if strategy.min_chunk_size >= strategy.max_chunk_size:
                self.errors.append(
                    f"{operation} chunk strategy: min size ({strategy.min_chunk_size}) must be < "
                    f"max size ({strategy.max_chunk_size})"
                )
            if strategy.overlap_size >= strategy.min_chunk_size:
                self.warnings.append(
                    f"{operation} chunk strategy: overlap ({strategy.overlap_size}) is not smaller "
                    f"than min size ({strategy.min_chunk_size})"
                )

        if processing.explanation_batch_size < 1 or processing.paragraph_batch_size < 1:
            self.errors.append("Batch sizes must be at least 1")

        # Temperature validation
        if not (0.0 <= temperature <= 2.0):
            self.warnings.append(
                f"LLM_TEMPERATURE ({temperature}) outside normal range [0.0, 2.0]"
            )


# Global validator instance
config_validator = ConfigValidator()
