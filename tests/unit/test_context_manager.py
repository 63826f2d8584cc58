"""Unit tests for the configuration context and YAML loading."""

import asyncio
from pathlib import Path

import pytest

from src.catalog.runtime.config.config_data import ConfigData, DatabaseConfig, ImagesConfig
from src.catalog.runtime.config.config_template import (
    load_templated_yaml,
    substitute_env_vars,
)
from src.catalog.runtime.context import AppContext, get_config, get_context, with_context


class TestContextManager:
    """Test the context manager functionality."""

    def test_default_context_available(self):
        """Should have a default context available."""
        context = get_context()
        config = get_config()

        assert isinstance(context, AppContext)
        assert isinstance(config, ConfigData)
        assert context.config is config

    def test_with_context_override_single_level(self):
        """Should override config for the duration of the context manager."""
        original_config = get_config()
        original_directory = original_config.images.directory

        test_config = ConfigData()
        test_config.images.directory = "/srv/images"

        with with_context(test_config):
            override_config = get_config()
            assert override_config.images.directory == "/srv/images"
            assert override_config is not original_config

        after_config = get_config()
        assert after_config.images.directory == original_directory
        assert after_config is original_config

    def test_unset_fields_are_inherited(self):
        original_config = get_config()

        with with_context(ConfigData(images=ImagesConfig(filename_prefix="thumb_"))):
            config = get_config()
            assert config.images.filename_prefix == "thumb_"
            assert config.images.url_path == original_config.images.url_path
            assert config.database.url == original_config.database.url

    def test_with_context_nested_overrides(self):
        """Should handle nested context overrides correctly."""
        level1_config = ConfigData()
        level1_config.app.environment = "production"

        with with_context(level1_config):
            level2_config = ConfigData()
            level2_config.database = DatabaseConfig(url="sqlite:///level2.db")

            with with_context(level2_config):
                assert get_config().app.environment == "production"
                assert get_config().database.url == "sqlite:///level2.db"

            assert get_config().database.url != "sqlite:///level2.db"
            assert get_config().app.environment == "production"

    def test_with_context_no_override(self):
        """Should work without any override (current context)."""
        original_config = get_config()

        with with_context():
            assert get_config() is original_config

    def test_rejects_other_types(self):
        with pytest.raises(ValueError):
            with with_context({"images": {}}):
                pass

    def test_exception_handling_in_context(self):
        """Should properly restore context even when exceptions occur."""
        original_config = get_config()

        test_config = ConfigData()
        test_config.logging.level = "DEBUG"

        with pytest.raises(RuntimeError):
            with with_context(test_config):
                assert get_config().logging.level == "DEBUG"
                raise RuntimeError("boom")

        assert get_config() is original_config


class TestAsyncContextManager:
    """Test context manager behavior in async contexts."""

    @pytest.mark.asyncio
    async def test_async_context_isolation(self):
        """Concurrent tasks each see their own overrides."""

        async def read_prefix(prefix: str) -> str:
            with with_context(ConfigData(images=ImagesConfig(filename_prefix=prefix))):
                await asyncio.sleep(0)
                return get_config().images.filename_prefix

        results = await asyncio.gather(read_prefix("a_"), read_prefix("b_"))

        assert results == ["a_", "b_"]


class TestSubstituteEnvVars:
    def test_default_used_when_unset(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)

        assert substitute_env_vars("x: ${CATALOG_TEST_VAR:-fallback}") == "x: fallback"

    def test_environment_value_wins(self, monkeypatch):
        monkeypatch.setenv("CATALOG_TEST_VAR", "from-env")

        assert substitute_env_vars("${CATALOG_TEST_VAR:-fallback}") == "from-env"

    def test_required_variable_missing(self, monkeypatch):
        monkeypatch.delenv("CATALOG_TEST_VAR", raising=False)

        with pytest.raises(ValueError, match="CATALOG_TEST_VAR"):
            substitute_env_vars("${CATALOG_TEST_VAR}")

        with pytest.raises(ValueError, match="set it"):
            substitute_env_vars("${CATALOG_TEST_VAR:?set it}")


class TestLoadTemplatedYaml:
    def test_loads_config_section(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("CATALOG_TEST_IMAGES", "/data/previews")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "config:\n"
            "  app:\n"
            "    environment: test\n"
            "    port: 9000\n"
            "  images:\n"
            "    directory: ${CATALOG_TEST_IMAGES:-images/product}\n"
        )

        config = load_templated_yaml(config_file, env_mode="test")

        assert config.app.port == 9000
        assert config.images.directory == "/data/previews"
        assert config.images.filename_prefix == "preview_"
        assert config.database.url == "sqlite:///./catalog.db"

    def test_environment_prefixed_overrides(self, tmp_path: Path, monkeypatch):
        # restored on teardown
        monkeypatch.setenv("CATALOG_TEST_PORT", "8000")
        monkeypatch.setenv("PRODUCTION_CATALOG_TEST_PORT", "8443")
        config_file = tmp_path / "config.yaml"
        config_file.write_text(
            "config:\n  app:\n    environment: production\n    port: ${CATALOG_TEST_PORT:-8000}\n"
        )

        config = load_templated_yaml(config_file, env_mode="production")

        assert config.app.port == 8443

    @pytest.mark.parametrize(
        "content",
        ["", "config: [unclosed", "config:\n  app:\n    port: not-a-number\n"],
    )
    def test_invalid_files(self, tmp_path: Path, content):
        config_file = tmp_path / "config.yaml"
        config_file.write_text(content)

        with pytest.raises(ValueError):
            load_templated_yaml(config_file)

    def test_shipped_config_is_valid(self, monkeypatch):
        for name in ("APP_ENVIRONMENT", "DATABASE_URL", "IMAGE_DIRECTORY", "LOG_FORMAT"):
            monkeypatch.delenv(name, raising=False)

        config = load_templated_yaml(Path(__file__).parents[2] / "config.yaml")

        assert config.images.url_path == "/product-images"
        assert config.images.directory == "images/product"
