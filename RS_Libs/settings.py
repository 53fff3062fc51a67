"""
Runtime settings for Retouch Studio.

Settings are read from environment variables once at startup and passed
explicitly to the components that need them.
"""

import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from RS_Libs.constants import (
    COOLDOWN_SECONDS,
    DEFAULT_MODEL,
    ENV_API_KEY,
    ENV_GEMINI_API_KEY,
    ENV_LOG_LEVEL,
    ENV_MODEL,
    ENV_OUTPUT_DIR,
    MAX_RETRIES,
)


@dataclass
class RetouchSettings:
    """Configuration for a Retouch Studio session.

    Attributes:
        api_key: Gemini API key (None when not configured)
        model: Image model used for inpainting
        output_dir: Default directory for saved results
        log_level: Logging level name for the application
        max_retries: Attempts made per inpainting request
        cooldown_seconds: Pause enforced after the service stays busy
    """
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    output_dir: str = "."
    log_level: str = "INFO"
    max_retries: int = MAX_RETRIES
    cooldown_seconds: int = COOLDOWN_SECONDS

    def __post_init__(self):
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must be >= 0, got {self.cooldown_seconds}")

    @property
    def has_api_key(self) -> bool:
        # the literal "undefined" counts as unset
        return bool(self.api_key) and self.api_key != "undefined"

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir).expanduser()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary (the API key is never exported)."""
        data = asdict(self)
        data["api_key"] = None
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetouchSettings":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        return cls(**filtered)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "RetouchSettings":
        """
        Build settings from environment variables.

        Args:
            environ: Mapping to read from (defaults to os.environ)

        Returns:
            RetouchSettings populated from the environment
        """
        env = os.environ if environ is None else environ
        return cls(
            api_key=env.get(ENV_API_KEY) or env.get(ENV_GEMINI_API_KEY),
            model=env.get(ENV_MODEL, DEFAULT_MODEL),
            output_dir=env.get(ENV_OUTPUT_DIR, "."),
            log_level=env.get(ENV_LOG_LEVEL, "INFO").upper(),
        )
