"""Tests for global configuration module."""

import os
import unittest
from unittest.mock import patch

from simplerest._config import (
    SIMPLEREST,
    ConfigEntry,
    ConfigEnvVarError,
    ConfigValidationError,
    EnvVars,
    HttpConfig,
    RateLimitConfig,
    SimpleRestConfig,
)


class TestDefaults(unittest.TestCase):
    """Tests for default configuration values."""

    def setUp(self):
        SIMPLEREST.reset()

    def tearDown(self):
        SIMPLEREST.reset()

    def test_http_defaults(self):
        """Should use 30s timeout and the library User-Agent by default."""
        self.assertEqual(HttpConfig().request_timeout, 30.0)
        self.assertEqual(HttpConfig().user_agent, "simplerest")

    def test_rate_limit_defaults(self):
        """Should have rate limiting disabled with a 2s delay by default."""
        self.assertFalse(RateLimitConfig().enabled)
        self.assertEqual(RateLimitConfig().delay, 2.0)

    def test_sdk_version_is_detected(self):
        """Should expose the installed package version."""
        from simplerest import __version__

        self.assertEqual(SIMPLEREST.config.sdk.version, __version__)


class TestSimpleRestConfigure(unittest.TestCase):
    """Tests for SIMPLEREST.configure() method."""

    def setUp(self):
        SIMPLEREST.reset()

    def tearDown(self):
        SIMPLEREST.reset()

    def test_configure_http_values(self):
        """Should override only the given HTTP fields."""
        SIMPLEREST.configure(http={"request_timeout": 5.0})
        self.assertEqual(SIMPLEREST.config.http.request_timeout, 5.0)
        # Other values should remain default
        self.assertEqual(SIMPLEREST.config.http.user_agent, "simplerest")

    def test_configure_rate_limit_values(self):
        """Should override rate limit fields."""
        SIMPLEREST.configure(rate_limit={"enabled": True, "delay": 0.5})
        self.assertTrue(SIMPLEREST.config.rate_limit.enabled)
        self.assertEqual(SIMPLEREST.config.rate_limit.delay, 0.5)

    def test_configure_false_is_not_ignored(self):
        """False should count as a value, not as missing."""
        SIMPLEREST.configure(rate_limit={"enabled": True})
        SIMPLEREST.configure(rate_limit={"enabled": False})
        self.assertFalse(SIMPLEREST.config.rate_limit.enabled)

    def test_configure_returns_instance(self):
        """Should return the new active config."""
        result = SIMPLEREST.configure(rate_limit={"delay": 1.0})
        self.assertIsInstance(result, SimpleRestConfig)
        self.assertIs(result, SIMPLEREST.config)

    def test_configure_starts_from_defaults(self):
        """Each configure() call should start from defaults, not stack on the previous one."""
        SIMPLEREST.configure(http={"request_timeout": 5.0})
        SIMPLEREST.configure(rate_limit={"delay": 1.0})
        self.assertEqual(SIMPLEREST.config.http.request_timeout, 30.0)

    def test_unknown_field_raises(self):
        """Should reject unknown field names."""
        with self.assertRaises(ValueError) as ctx:
            SIMPLEREST.configure(rate_limit={"max_requests": 10})
        self.assertIn("max_requests", str(ctx.exception))

    def test_invalid_timeout_raises(self):
        """Should reject a non-positive timeout."""
        with self.assertRaises(ConfigValidationError) as ctx:
            SIMPLEREST.configure(http={"request_timeout": 0})
        self.assertEqual(ctx.exception.field, "request_timeout")
        self.assertEqual(ctx.exception.section, "http")

    def test_empty_user_agent_raises(self):
        """Should reject an empty User-Agent."""
        with self.assertRaises(ConfigValidationError):
            SIMPLEREST.configure(http={"user_agent": ""})

    def test_negative_delay_raises(self):
        """Should reject a negative delay."""
        with self.assertRaises(ConfigValidationError) as ctx:
            SIMPLEREST.configure(rate_limit={"delay": -1})
        self.assertIn("[rate_limit]", str(ctx.exception))

    def test_zero_delay_is_valid(self):
        """Should accept a zero delay."""
        SIMPLEREST.configure(rate_limit={"delay": 0})
        self.assertEqual(SIMPLEREST.config.rate_limit.delay, 0)

    def test_on_change_listener_is_called(self):
        """Should notify listeners with the new config."""
        seen = []
        SIMPLEREST.on_change(seen.append)
        try:
            SIMPLEREST.configure(rate_limit={"delay": 3.0})
        finally:
            SIMPLEREST._listeners.remove(seen.append)
        self.assertEqual(len(seen), 1)
        self.assertEqual(seen[0].rate_limit.delay, 3.0)


class TestEnvVars(unittest.TestCase):
    """Tests for environment variable override."""

    def setUp(self):
        SIMPLEREST.reset()

    def tearDown(self):
        SIMPLEREST.reset()

    @patch.dict(os.environ, {"SIMPLEREST_HTTP_REQUEST_TIMEOUT": "45"})
    def test_env_var_request_timeout(self):
        """Should read the timeout from the environment."""
        SIMPLEREST.reset()
        self.assertEqual(SIMPLEREST.config.http.request_timeout, 45.0)

    @patch.dict(os.environ, {"SIMPLEREST_HTTP_USER_AGENT": "env-agent"})
    def test_env_var_user_agent(self):
        """Should read the User-Agent from the environment."""
        SIMPLEREST.reset()
        self.assertEqual(SIMPLEREST.config.http.user_agent, "env-agent")

    @patch.dict(os.environ, {"SIMPLEREST_RATE_LIMIT_ENABLED": "true", "SIMPLEREST_RATE_LIMIT_DELAY": "0.75"})
    def test_env_var_rate_limit(self):
        """Should read rate limit settings from the environment."""
        SIMPLEREST.reset()
        self.assertTrue(SIMPLEREST.config.rate_limit.enabled)
        self.assertEqual(SIMPLEREST.config.rate_limit.delay, 0.75)

    @patch.dict(os.environ, {"SIMPLEREST_RATE_LIMIT_DELAY": "0.75"})
    def test_configure_wins_over_env(self):
        """Values passed to configure() should take precedence over env vars."""
        SIMPLEREST.configure(rate_limit={"delay": 3.0})
        self.assertEqual(SIMPLEREST.config.rate_limit.delay, 3.0)

    @patch.dict(os.environ, {"SIMPLEREST_RATE_LIMIT_DELAY": "0.75"})
    def test_env_used_as_fallback_in_configure(self):
        """Should use env vars for fields configure() did not set."""
        SIMPLEREST.configure(rate_limit={"enabled": True})
        self.assertEqual(SIMPLEREST.config.rate_limit.delay, 0.75)

    @patch.dict(os.environ, {"SIMPLEREST_RATE_LIMIT_DELAY": "0.75"})
    def test_allow_env_override_false_ignores_env(self):
        """Should ignore env vars when allow_env_override is False."""
        SIMPLEREST.configure(rate_limit={"enabled": True}, allow_env_override=False)
        self.assertEqual(SIMPLEREST.config.rate_limit.delay, 2.0)

    @patch.dict(os.environ, {"SIMPLEREST_HTTP_REQUEST_TIMEOUT": "soon"})
    def test_invalid_env_var_raises(self):
        """Should name the env var holding an unparseable value."""
        with self.assertRaises(ConfigEnvVarError) as ctx:
            SIMPLEREST.reset()
        self.assertEqual(ctx.exception.env_var, "SIMPLEREST_HTTP_REQUEST_TIMEOUT")
        self.assertEqual(ctx.exception.expected_type, "float")

    @patch.dict(os.environ, {"SIMPLEREST_TEST_NUMBER": "1.5"})
    def test_string_type_hint_conversion(self):
        """Should convert using a type named as a string, as dataclass annotations are."""
        self.assertEqual(EnvVars.get("SIMPLEREST_TEST_NUMBER", type_hint="float"), 1.5)

    @patch.dict(os.environ, {"SIMPLEREST_TEST_FLAG": "yes"})
    def test_bool_conversion(self):
        """Should parse "yes" as True."""
        self.assertTrue(EnvVars.get("SIMPLEREST_TEST_FLAG", type_hint=bool))

    @patch.dict(os.environ, {"SIMPLEREST_TEST_EMPTY": ""})
    def test_empty_env_var_is_none(self):
        """An empty env var should count as unset."""
        self.assertIsNone(EnvVars.get("SIMPLEREST_TEST_EMPTY"))


class TestExplain(unittest.TestCase):
    """Tests for source tracking and SIMPLEREST.explain()."""

    def setUp(self):
        SIMPLEREST.reset()

    def tearDown(self):
        SIMPLEREST.reset()

    def _sources(self, section: str) -> dict[str, str]:
        return {e.name: e.source for e in SIMPLEREST.config.explain_data()[section]}

    def test_default_source(self):
        """Should report "default" for untouched fields."""
        SIMPLEREST.configure(allow_env_override=False)
        self.assertEqual(self._sources("rate_limit"), {"enabled": "default", "delay": "default"})

    def test_configure_source(self):
        """Should report "configure" only for the fields that were set."""
        SIMPLEREST.configure(rate_limit={"delay": 1.0}, allow_env_override=False)
        self.assertEqual(self._sources("rate_limit")["delay"], "configure")
        self.assertEqual(self._sources("rate_limit")["enabled"], "default")

    @patch.dict(os.environ, {"SIMPLEREST_HTTP_REQUEST_TIMEOUT": "45"})
    def test_env_source(self):
        """Should report the env var a value came from."""
        SIMPLEREST.reset()
        self.assertEqual(
            self._sources("http")["request_timeout"],
            "env:SIMPLEREST_HTTP_REQUEST_TIMEOUT",
        )

    def test_sdk_section_is_read_only(self):
        """The sdk section should have no source."""
        entries = SIMPLEREST.config.explain_data()["sdk"]
        self.assertEqual([e.source for e in entries], ["-"])

    def test_explain_outputs_every_section(self):
        """Should print every section and mark configured values."""
        lines: list[str] = []
        SIMPLEREST.configure(rate_limit={"enabled": True}, allow_env_override=False)

        SIMPLEREST.explain(output=lines.append)

        self.assertEqual(lines[0], "simplerest configuration")
        self.assertIn("[http]", lines)
        self.assertIn("[rate_limit]", lines)
        enabled_line = next(line for line in lines if line.strip().startswith("enabled"))
        self.assertIn("✎ configure", enabled_line)

    def test_formatted_value_truncates_long_strings(self):
        """Should cut long values to 50 characters."""
        entry = ConfigEntry("user_agent", "x" * 80, "configure")
        self.assertEqual(len(entry.formatted_value), 50)
        self.assertTrue(entry.formatted_value.endswith("..."))

    def test_formatted_value_none(self):
        """Should format None as "None"."""
        self.assertEqual(ConfigEntry("x", None, "default").formatted_value, "None")
