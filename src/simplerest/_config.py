"""
Global configuration for simplerest.

This module provides a simple configuration system following Convention over Configuration (CoC).
Users can optionally call SIMPLEREST.configure() at application startup to customize defaults.
If not called, sensible defaults are used.

Hierarchy of precedence (highest to lowest):
1. Arguments passed to client methods (e.g. `timeout=`)
2. Values set via SIMPLEREST.configure()
3. Environment variables (SIMPLEREST_*) - when allow_env_override=True
4. Hardcoded defaults (in dataclass fields)

Example:
    >>> from simplerest import SIMPLEREST
    >>>
    >>> # Pre-loaded with defaults + env vars
    >>> timeout = SIMPLEREST.config.http.request_timeout
    >>>
    >>> # Custom configuration
    >>> SIMPLEREST.configure(
    ...     http={"request_timeout": 10},
    ...     rate_limit={"enabled": True, "delay": 1.5},
    ... )
"""

from __future__ import annotations

import os
from collections.abc import Callable
from dataclasses import dataclass, field, fields, replace
from typing import Any, Self

_SECTIONS = ("http", "rate_limit")
_MAX_VALUE_WIDTH = 50


# =============================================================================
# Exceptions
# =============================================================================


class ConfigEnvVarError(ValueError):
    """Raised when an environment variable has an invalid value."""

    def __init__(self, env_var: str, value: str, expected_type: str):
        self.env_var = env_var
        self.value = value
        self.expected_type = expected_type
        super().__init__(f"Invalid value for {env_var}: '{value}' (expected {expected_type})")


class ConfigValidationError(ValueError):
    """Raised when a configuration value fails validation."""

    def __init__(
        self,
        field: str,
        value: Any,
        message: str,
        section: str | None = None,
    ):
        self.field = field
        self.value = value
        self.section = section
        prefix = f"[{section}] " if section else ""
        super().__init__(f"{prefix}Invalid value for '{field}': {value!r}. {message}")


# =============================================================================
# Environment Variables
# =============================================================================


def _parse_bool(raw: str) -> bool:
    return raw.strip().lower() in ("true", "1", "yes")


class EnvVars:
    """
    Reads SIMPLEREST_* environment variables as typed values.

    Field annotations are strings here (`from __future__ import annotations`),
    so converters are looked up by type name.

    Example:
        >>> EnvVars.get("SIMPLEREST_RATE_LIMIT_DELAY", type_hint=float)
        0.5
    """

    _CONVERTERS: dict[str, Callable[[str], Any]] = {
        "str": str,
        "float": float,
        "bool": _parse_bool,
    }

    @staticmethod
    def get(var_name: str, type_hint: Any = str) -> Any:
        """
        Return the converted value, or None if the variable is unset or empty.

        Raises:
            ConfigEnvVarError: If the value cannot be converted.
        """
        raw_value = os.environ.get(var_name)
        if not raw_value:
            return None

        type_name = getattr(type_hint, "__name__", str(type_hint))
        convert = EnvVars._CONVERTERS.get(type_name, str)
        try:
            return convert(raw_value)
        except ValueError as e:
            raise ConfigEnvVarError(var_name, raw_value, type_name) from e


# =============================================================================
# Base Class
# =============================================================================


@dataclass(frozen=True)
class OverridableConfig:
    """
    Base class for the configurable sections.

    Each field may name its environment variable in `metadata["env"]`.
    """

    def with_overrides(self, overrides: dict[str, Any]) -> Self:
        """
        Return a copy with the given fields replaced. None values are skipped.

        Raises:
            ValueError: If overrides contains unknown field names.
        """
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ValueError(f"Unknown config fields: {sorted(unknown)}. Valid fields are: {sorted(known)}")

        changes = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **changes) if changes else self

    def env_values(self) -> dict[str, tuple[Any, str]]:
        """Map each field whose env var is set to `(value, env var name)`."""
        found: dict[str, tuple[Any, str]] = {}
        for f in fields(self):
            env_var = f.metadata.get("env")
            if not env_var:
                continue
            value = EnvVars.get(env_var, type_hint=f.type)
            if value is not None:
                found[f.name] = (value, env_var)
        return found


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass(frozen=True)
class SdkConfig:
    """
    Library metadata (read-only, not configurable).

    Attributes:
        version: The installed simplerest version.
    """

    version: str

    @classmethod
    def detect(cls) -> SdkConfig:
        from simplerest import __version__

        return cls(version=__version__)


@dataclass(frozen=True)
class HttpConfig(OverridableConfig):
    """
    Configuration for the direct HTTP client (HttpRequest).

    Attributes:
        request_timeout: Default HTTP timeout in seconds, used when a verb is
            called without an explicit `timeout`.
            Env var: SIMPLEREST_HTTP_REQUEST_TIMEOUT

        user_agent: Value of the User-Agent header sent with every request.
            Caller-supplied headers take precedence.
            Env var: SIMPLEREST_HTTP_USER_AGENT

    Example:
        >>> from simplerest import SIMPLEREST
        >>> SIMPLEREST.config.http.request_timeout
        30.0
    """

    request_timeout: float = field(default=30.0, metadata={"env": "SIMPLEREST_HTTP_REQUEST_TIMEOUT"})
    user_agent: str = field(default="simplerest", metadata={"env": "SIMPLEREST_HTTP_USER_AGENT"})

    def validate(self) -> Self:
        """Validate HTTP configuration fields."""
        if self.request_timeout <= 0:
            raise ConfigValidationError(
                "request_timeout", self.request_timeout,
                "Must be greater than 0.", section="http"
            )
        if not self.user_agent:
            raise ConfigValidationError(
                "user_agent", self.user_agent,
                "Must not be empty.", section="http"
            )
        return self


@dataclass(frozen=True)
class RateLimitConfig(OverridableConfig):
    """
    Configuration for rate-limited requests.

    When enabled, ConfigAwareHttpClient (and the module-level helpers such as
    `simplerest.get`) wrap the direct client in a RateLimitedHttpClient.

    Attributes:
        enabled: Whether to serialize and throttle requests.
            Env var: SIMPLEREST_RATE_LIMIT_ENABLED

        delay: Seconds to wait after acquiring the gate, before each request.
            Env var: SIMPLEREST_RATE_LIMIT_DELAY

    Example:
        >>> from simplerest import SIMPLEREST
        >>> SIMPLEREST.configure(rate_limit={"enabled": True, "delay": 2.0})
    """

    enabled: bool = field(default=False, metadata={"env": "SIMPLEREST_RATE_LIMIT_ENABLED"})
    delay: float = field(default=2.0, metadata={"env": "SIMPLEREST_RATE_LIMIT_DELAY"})

    def validate(self) -> Self:
        """Validate rate limit configuration fields."""
        if self.delay < 0:
            raise ConfigValidationError(
                "delay", self.delay,
                "Must be greater than or equal to 0.", section="rate_limit"
            )
        return self


@dataclass(frozen=True)
class ConfigEntry:
    """
    A configuration field with its resolved value and source.

    `source` is "default", "env:<VAR>", "configure", or "-" for read-only
    metadata.
    """

    name: str
    value: Any
    source: str

    @property
    def formatted_value(self) -> str:
        """Value as display text, cut to _MAX_VALUE_WIDTH characters."""
        text = str(self.value)
        if len(text) > _MAX_VALUE_WIDTH:
            return text[: _MAX_VALUE_WIDTH - 3] + "..."
        return text


@dataclass(frozen=True)
class ConfigTracker:
    """Where each field got its value, as {"section": {"field": source}}."""

    sources: dict[str, dict[str, str]] = field(default_factory=dict)

    def with_sources(self, updates: dict[str, dict[str, str]]) -> ConfigTracker:
        merged = {section: dict(entries) for section, entries in self.sources.items()}
        for section, entries in updates.items():
            merged.setdefault(section, {}).update(entries)
        return ConfigTracker(sources=merged)

    def source_of(self, section: str, name: str) -> str:
        return self.sources.get(section, {}).get(name, "default")


@dataclass(frozen=True)
class SimpleRestConfig:
    """
    Global configuration for simplerest.

    Aggregates all configuration sections. Access via `SIMPLEREST.config`.

    Attributes:
        sdk: Library metadata (version). Read-only.
        http: Direct HTTP client configuration.
        rate_limit: Rate-limited request configuration.

    Example:
        >>> from simplerest import SIMPLEREST
        >>> SIMPLEREST.config.rate_limit.enabled
        False
    """

    sdk: SdkConfig = field(default_factory=SdkConfig.detect)
    http: HttpConfig = field(default_factory=HttpConfig)
    rate_limit: RateLimitConfig = field(default_factory=RateLimitConfig)
    _tracker: ConfigTracker = field(default_factory=ConfigTracker, repr=False)

    def with_env_vars(self) -> SimpleRestConfig:
        """Return a new config with SIMPLEREST_* environment variables applied on top."""
        sections: dict[str, Any] = {}
        sources: dict[str, dict[str, str]] = {}
        for name in _SECTIONS:
            found = getattr(self, name).env_values()
            sections[name] = getattr(self, name).with_overrides({k: v for k, (v, _) in found.items()})
            sources[name] = {k: f"env:{env_var}" for k, (_, env_var) in found.items()}
        return replace(self, **sections, _tracker=self._tracker.with_sources(sources))

    def with_section_overrides(
        self,
        *,
        http: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
    ) -> SimpleRestConfig:
        """Return a new config with the given fields of each section replaced."""
        overrides = {"http": http or {}, "rate_limit": rate_limit or {}}
        sections = {name: getattr(self, name).with_overrides(values) for name, values in overrides.items()}
        sources = {
            name: {k: "configure" for k, v in values.items() if v is not None}
            for name, values in overrides.items()
        }
        return replace(self, **sections, _tracker=self._tracker.with_sources(sources))

    def explain_data(self) -> dict[str, list[ConfigEntry]]:
        """Return every field of every section as ConfigEntry objects, keyed by section."""
        result = {"sdk": [ConfigEntry(f.name, getattr(self.sdk, f.name), "-") for f in fields(self.sdk)]}
        for name in _SECTIONS:
            section = getattr(self, name)
            result[name] = [
                ConfigEntry(f.name, getattr(section, f.name), self._tracker.source_of(name, f.name))
                for f in fields(section)
            ]
        return result


# =============================================================================
# Global Configuration Singleton
# =============================================================================


class _SimpleRest:
    """
    Singleton for library configuration.

    Use `SIMPLEREST.configure()` to customize settings and `SIMPLEREST.config`
    to access current configuration.

    Example:
        >>> from simplerest import SIMPLEREST
        >>> SIMPLEREST.configure(rate_limit={"enabled": True})
        >>> print(SIMPLEREST.config.rate_limit.delay)
    """

    def __init__(self) -> None:
        self._config: SimpleRestConfig = SimpleRestConfig().with_env_vars()
        self._listeners: list[Callable[[SimpleRestConfig], None]] = []

    def configure(
        self,
        *,
        http: dict[str, Any] | None = None,
        rate_limit: dict[str, Any] | None = None,
        allow_env_override: bool = True,
    ) -> SimpleRestConfig:
        """
        Configure library settings.

        Call at application startup to customize defaults.

        Args:
            http: HTTP config overrides (request_timeout, user_agent).
            rate_limit: Rate limiting overrides (enabled, delay).
            allow_env_override: If True (default), env vars are used as fallback
                for fields NOT provided. If False, ignores env vars entirely.

        Returns:
            The configured SimpleRestConfig instance.

        Raises:
            ValueError: If any dict contains unknown field names.
            ConfigValidationError: If any config value fails validation.

        Example:
            >>> SIMPLEREST.configure(
            ...     http={"request_timeout": 10},
            ...     rate_limit={"enabled": True, "delay": 0.5},
            ... )
        """
        base = SimpleRestConfig()
        if allow_env_override:
            base = base.with_env_vars()

        self._config = base.with_section_overrides(http=http, rate_limit=rate_limit)
        return self._changed()

    @property
    def config(self) -> SimpleRestConfig:
        """Access current configuration (read-only)."""
        return self._config

    def reset(self) -> SimpleRestConfig:
        """
        Reset configuration to defaults + env vars.

        Useful for testing to ensure clean state between tests.

        Raises:
            ConfigValidationError: If any config value is invalid.
        """
        self._config = SimpleRestConfig().with_env_vars()
        return self._changed()

    def validate(self) -> SimpleRestConfig:
        """
        Validate current configuration.

        Raises:
            ConfigValidationError: If any config value is invalid.
        """
        self._config.http.validate()
        self._config.rate_limit.validate()
        return self._config

    def on_change(self, listener: Callable[[SimpleRestConfig], None]) -> None:
        """Register a callback invoked after every configure() or reset()."""
        self._listeners.append(listener)

    def _changed(self) -> SimpleRestConfig:
        config = self.validate()
        for listener in self._listeners:
            listener(config)
        return config

    def explain(
        self,
        output: Callable[[str], None] = print,
    ) -> None:
        """
        Print current configuration with the source of each value.

        Args:
            output: Callable receiving each line. Defaults to print; pass
                `logger.info` to send it to a log instead.

        Example:
            >>> SIMPLEREST.explain()
            simplerest configuration
            [sdk]
              version          0.1.0
            [http]
              request_timeout  30.0                 default
            ...
        """
        data = self._config.explain_data()
        name_width = max(len(e.name) for entries in data.values() for e in entries) + 2

        output("simplerest configuration")
        for section_name, entries in data.items():
            output(f"[{section_name}]")
            for entry in entries:
                if entry.source == "-":
                    output(f"  {entry.name:<{name_width}}{entry.formatted_value}")
                    continue
                marker = "✎" if entry.source != "default" else " "
                output(f"  {entry.name:<{name_width}}{entry.formatted_value:<20} {marker} {entry.source}")

    def __repr__(self) -> str:
        return f"SimpleRest(config={self._config!r})"


# Global singleton instance - always reflects current configuration
SIMPLEREST: _SimpleRest = _SimpleRest()
SIMPLEREST.validate()  # Validate defaults + env vars on module load
