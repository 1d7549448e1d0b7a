"""
Pydantic models for ape-commands configuration.

Every tunable of the resolution pipeline lives here with its default, so a
host can override thresholds from YAML or ``APE_*`` environment variables
without touching code.
"""

from typing import List, Optional, Dict
from pathlib import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from enum import Enum


class LogLevel(str, Enum):
    """Supported log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Provider(str, Enum):
    """LLM back-ends the CLI knows how to build."""
    NONE = "none"
    OLLAMA = "ollama"


class LoggingConfig(BaseModel):
    """Logging settings."""

    level: LogLevel = Field(default=LogLevel.INFO, description="Root log level")
    verbose: bool = Field(default=False, description="Force DEBUG logging")
    use_colors: bool = Field(default=True, description="Color console output when supported")
    log_file: Optional[str] = Field(default=None, description="JSON log file; console only when unset")
    max_log_size_mb: int = Field(default=10, ge=1, le=1000, description="Rotate log file after this size")
    backup_count: int = Field(default=5, ge=1, le=100, description="Number of rotated log files to keep")
    module_levels: Dict[str, str] = Field(
        default_factory=lambda: {"langchain_core": "WARNING", "httpx": "WARNING"},
        description="Per-logger level overrides"
    )

    @field_validator('level', mode='before')
    @classmethod
    def normalize_level(cls, v):
        """Accept lower-case level names."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator('log_file')
    @classmethod
    def expand_log_file(cls, v):
        """Expand user home directory in the log path."""
        if v:
            return str(Path(v).expanduser())
        return v


class ParserConfig(BaseModel):
    """Grammar parser and suggestion settings."""

    max_suggestions: int = Field(default=5, ge=1, le=50, description="Maximum 'did you mean' entries")
    suggestion_threshold: float = Field(
        default=0.5, gt=0.0, le=1.0,
        description="Normalized edit distance a suggestion must stay below"
    )
    coerce_option_values: bool = Field(default=True, description="Convert --key=value values to bool/number/JSON")
    validate_commands: bool = Field(default=True, description="Reject commands missing from the registry")


class DomainThresholds(BaseModel):
    """Per-domain override of the heuristic constants."""

    accept_threshold: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    heuristic_discount: Optional[float] = Field(default=None, ge=0.0, le=1.0)


class NaturalLanguageConfig(BaseModel):
    """Two-tier natural-language converter settings."""

    accept_threshold: float = Field(
        default=0.8, ge=0.0, le=1.0,
        description="Heuristic confidence above which the LLM is skipped"
    )
    heuristic_discount: float = Field(
        default=0.8, ge=0.0, le=1.0,
        description="Multiplier applied to heuristic scores"
    )
    enable_llm: bool = Field(default=True, description="Use the LLM tier when a client is attached")
    llm_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0, description="Bound on the LLM round-trip")
    fallback_confidence: float = Field(
        default=0.3, ge=0.3, le=0.5,
        description="Confidence reported for the domain default command"
    )
    error_confidence: float = Field(
        default=0.5, ge=0.3, le=0.5,
        description="Confidence reported when conversion itself failed"
    )
    domain_overrides: Dict[str, DomainThresholds] = Field(
        default_factory=dict,
        description="Thresholds keyed by agent id"
    )

    def thresholds_for(self, agent_id: str) -> tuple:
        """Return ``(accept_threshold, heuristic_discount)`` for a domain."""
        override = self.domain_overrides.get(agent_id)
        accept = self.accept_threshold
        discount = self.heuristic_discount
        if override is not None:
            if override.accept_threshold is not None:
                accept = override.accept_threshold
            if override.heuristic_discount is not None:
                discount = override.heuristic_discount
        return accept, discount


class ExecutorConfig(BaseModel):
    """Dispatcher settings."""

    history_limit: int = Field(default=50, ge=1, le=10000, description="Execution records kept in memory")
    low_confidence_threshold: float = Field(
        default=0.3, ge=0.0, le=1.0,
        description="Conversions below this are flagged to the caller"
    )
    register_core_commands: bool = Field(default=True, description="Register /help, /history and /debug")
    default_agent: Optional[str] = Field(
        default=None,
        description="Agent that receives plain text as natural language; plain text is rejected when unset"
    )

    @field_validator('default_agent')
    @classmethod
    def strip_agent_prefix(cls, v):
        """Allow ``@git`` as well as ``git``."""
        if v:
            return v.lstrip('@').strip().lower() or None
        return v


class PluginsConfig(BaseModel):
    """External plugin discovery."""

    plugin_directories: List[str] = Field(default_factory=list, description="Directories scanned for plugin modules")
    external_plugins: List[str] = Field(default_factory=list, description="'package.module:ClassName' entries")
    disabled: List[str] = Field(default_factory=list, description="Plugin ids registered but disabled")

    @field_validator('plugin_directories')
    @classmethod
    def expand_paths(cls, v):
        """Expand user home directory in paths."""
        return [str(Path(path).expanduser()) for path in v]

    @field_validator('external_plugins')
    @classmethod
    def validate_entries(cls, v):
        """Entries must look like ``module:ClassName``."""
        for entry in v:
            module, _, attr = entry.partition(':')
            if not module or not attr:
                raise ValueError(f"Plugin entry must be 'module:ClassName', got '{entry}'")
        return v


class LLMConfig(BaseModel):
    """Language model used by the natural-language converter."""

    provider: Provider = Field(default=Provider.NONE, description="LLM back-end")
    model: str = Field(default="qwen3:8b", description="Model name")
    base_url: str = Field(default="http://localhost:11434", description="Model server URL")
    temperature: float = Field(default=0.1, ge=0.0, le=2.0, description="Sampling temperature")


class ApeCommandsConfig(BaseModel):
    """Root configuration model."""

    model_config = ConfigDict(extra="allow", validate_assignment=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    parser: ParserConfig = Field(default_factory=ParserConfig)
    nlp: NaturalLanguageConfig = Field(default_factory=NaturalLanguageConfig)
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    plugins: PluginsConfig = Field(default_factory=PluginsConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @model_validator(mode='after')
    def validate_thresholds(self):
        """The low-confidence flag must sit at or below the fallback confidence."""
        if self.executor.low_confidence_threshold > self.nlp.error_confidence:
            raise ValueError(
                "executor.low_confidence_threshold must not exceed nlp.error_confidence"
            )
        return self
