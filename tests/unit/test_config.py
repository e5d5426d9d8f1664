"""Unit tests for configuration module."""

from typed_hooks import HookRegistry
from typed_hooks.config import Settings


class TestSettings:
    """Tests for Settings defaults and environment overrides."""

    def test_default_values(self, clean_env):
        settings = Settings(_env_file=None)

        assert settings.VALIDATE_SIGNATURES is True
        assert settings.LOG_DISPATCH is False

    def test_env_overrides(self, clean_env):
        clean_env.setenv("TYPED_HOOKS_VALIDATE_SIGNATURES", "false")
        clean_env.setenv("TYPED_HOOKS_LOG_DISPATCH", "1")

        settings = Settings(_env_file=None)

        assert settings.VALIDATE_SIGNATURES is False
        assert settings.LOG_DISPATCH is True

    def test_unprefixed_env_ignored(self, clean_env):
        clean_env.setenv("LOG_DISPATCH", "true")
        assert Settings(_env_file=None).LOG_DISPATCH is False


class TestRegistryDefaults:
    """HookRegistry falls back to module settings."""

    def test_registry_uses_settings(self, monkeypatch):
        monkeypatch.setattr("typed_hooks.registry.settings", Settings(VALIDATE_SIGNATURES=False, LOG_DISPATCH=True))

        registry = HookRegistry()

        assert registry._validate_signatures is False
        assert registry._log_dispatch is True

    def test_explicit_arguments_win(self, monkeypatch):
        monkeypatch.setattr("typed_hooks.registry.settings", Settings(VALIDATE_SIGNATURES=False))

        registry = HookRegistry(validate_signatures=True, log_dispatch=False)

        assert registry._validate_signatures is True
        assert registry._log_dispatch is False
