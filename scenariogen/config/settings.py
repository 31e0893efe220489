"""
Runtime configuration loaded from environment variables and .env files.
"""
import os
from typing import Optional, Dict
from pydantic import BaseModel
from dotenv import load_dotenv

from scenariogen.utils.errors import ConfigError


PROVIDERS = ("groq", "anthropic")
LANGUAGES = ("python", "javascript")

DEFAULT_MODELS: Dict[str, str] = {
    "groq": "llama-3.3-70b-versatile",
    "anthropic": "claude-3-5-sonnet-20240620",
}

LANGUAGE_EXTENSIONS: Dict[str, str] = {
    "python": ".py",
    "javascript": ".js",
}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}")


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}")


class Settings(BaseModel):
    """All knobs for a pipeline run."""
    llm_provider: str = "groq"
    groq_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    llm_model: Optional[str] = None
    temperature: float = 0.5
    max_tokens: int = 1000
    code_max_tokens: int = 2000

    headless: bool = False
    navigation_timeout_ms: int = 30000
    wait_until: str = "domcontentloaded"
    max_html_chars: int = 60000

    language: str = "python"
    output_path: Optional[str] = None
    artifacts_dir: str = "logs"
    log_level: str = "INFO"

    api_host: str = "localhost"
    api_port: int = 5000

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None, **overrides) -> "Settings":
        """
        Build settings from the process environment.

        A .env file is loaded first (explicit path if given, otherwise the
        usual lookup from the working directory). Keyword overrides that are
        not None win over the environment.
        """
        load_dotenv(dotenv_path=dotenv_path)

        values = {
            "llm_provider": os.getenv("LLM_PROVIDER", "groq").strip().lower(),
            "groq_api_key": os.getenv("GROQ_API_KEY"),
            # CLAUDAI_API_KEY is the older variable name
            "anthropic_api_key": os.getenv("ANTHROPIC_API_KEY") or os.getenv("CLAUDAI_API_KEY"),
            "llm_model": os.getenv("LLM_MODEL") or None,
            "temperature": _env_float("LLM_TEMPERATURE", 0.5),
            "max_tokens": _env_int("LLM_MAX_TOKENS", 1000),
            "code_max_tokens": _env_int("LLM_CODE_MAX_TOKENS", 2000),
            "headless": _env_bool("HEADLESS", False),
            "navigation_timeout_ms": _env_int("NAVIGATION_TIMEOUT_MS", 30000),
            "wait_until": os.getenv("WAIT_UNTIL", "domcontentloaded"),
            "max_html_chars": _env_int("MAX_HTML_CHARS", 60000),
            "language": os.getenv("TARGET_LANGUAGE", "python").strip().lower(),
            "output_path": os.getenv("OUTPUT_PATH") or None,
            "artifacts_dir": os.getenv("ARTIFACTS_DIR", "logs"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "api_host": os.getenv("API_HOST", "localhost"),
            "api_port": _env_int("API_PORT", 5000),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})

        settings = cls(**values)
        settings.validate_choices()
        return settings

    def validate_choices(self):
        if self.llm_provider not in PROVIDERS:
            raise ConfigError(f"Unknown LLM_PROVIDER {self.llm_provider!r}, expected one of {PROVIDERS}")
        if self.language not in LANGUAGES:
            raise ConfigError(f"Unknown TARGET_LANGUAGE {self.language!r}, expected one of {LANGUAGES}")

    @property
    def model(self) -> str:
        return self.llm_model or DEFAULT_MODELS[self.llm_provider]

    def api_key(self) -> str:
        """Key for the selected provider."""
        if self.llm_provider == "anthropic":
            key, var = self.anthropic_api_key, "ANTHROPIC_API_KEY"
        else:
            key, var = self.groq_api_key, "GROQ_API_KEY"

        if not key:
            raise ConfigError(f"{var} not set. Add it to your .env file or export it in the environment.")
        return key
