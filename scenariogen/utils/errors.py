"""
Exception types for the generation pipeline.
"""


class ScenarioGenError(Exception):
    """Base error for all pipeline failures."""


class ConfigError(ScenarioGenError):
    """Missing or invalid configuration (API keys, provider, language)."""


class ScrapeError(ScenarioGenError):
    """Browser launch, navigation or HTML capture failed."""


class LLMError(ScenarioGenError):
    """LLM request failed or returned nothing usable."""

    def __init__(self, message: str, rate_limited: bool = False):
        super().__init__(message)
        self.rate_limited = rate_limited


class GenerationError(ScenarioGenError):
    """Generated code could not be produced or written."""
