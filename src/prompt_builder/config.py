"""
Environment-driven configuration for the prompt builder client.
"""

import os
from typing import Optional

DEFAULT_API_URL = "http://localhost:3000/api"


class PromptBuilderConfig:
    """Settings for the HTTP gateway and logging"""

    def __init__(
        self,
        api_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
        retry_max_delay: Optional[float] = None,
        log_level: Optional[str] = None,
    ):
        self.api_url = (api_url or os.getenv("PROMPT_BUILDER_API_URL", DEFAULT_API_URL)).rstrip("/")
        self.timeout = timeout if timeout is not None else float(os.getenv("PROMPT_BUILDER_TIMEOUT", "5.0"))
        self.max_retries = (
            max_retries if max_retries is not None else int(os.getenv("PROMPT_BUILDER_MAX_RETRIES", "2"))
        )
        self.retry_base_delay = (
            retry_base_delay
            if retry_base_delay is not None
            else float(os.getenv("PROMPT_BUILDER_RETRY_BASE_DELAY", "0.1"))
        )
        self.retry_max_delay = (
            retry_max_delay
            if retry_max_delay is not None
            else float(os.getenv("PROMPT_BUILDER_RETRY_MAX_DELAY", "2.0"))
        )
        self.log_level = log_level or os.getenv("PROMPT_BUILDER_LOG_LEVEL", "INFO")

        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
