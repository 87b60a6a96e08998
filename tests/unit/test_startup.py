"""Unit tests for settings validation, pipeline wiring and log helpers."""

import json
import logging

import pytest

from core.lifespan import build_pipeline
from core.logging_config import StructuredFormatter
from core.logging_utils import redact_url, sanitize_key_hint
from core.settings import AppSettings, AuthSettings, DocumentSettings, LLMSettings, Settings
from core.validation import validate_all_settings
from pipeline.models.dto import DocumentInputMode, ResourceKind


def _settings(**document) -> Settings:
    return Settings(
        auth=AuthSettings(INTERNAL_API_KEY="k" * 16),
        llm=LLMSettings(OPENAI_API_KEY="sk-test"),
        document=DocumentSettings(**document),
        app=AppSettings(),
    )


class TestValidateAllSettings:
    """Tests for validate_all_settings."""

    def test_defaults_are_valid(self):
        validate_all_settings(_settings())

    @pytest.mark.parametrize(
        "overrides",
        [
            {"RASTER_BACKEND": "ghostscript"},
            {"DOCUMENT_INPUT_MODE": "upload"},
            {"DEFAULT_RESOURCE_KIND": "video"},
            {"RASTER_MAX_PAGES": 0},
            {"RASTER_TARGET_DPI": -1},
            {"FETCH_MAX_REDIRECTS": -1},
        ],
    )
    def test_invalid_values_raise(self, overrides):
        with pytest.raises(RuntimeError, match="Invalid configuration"):
            validate_all_settings(_settings(**overrides))

    def test_bad_llm_base_url_raises(self):
        settings = _settings()
        settings = Settings(
            auth=settings.auth,
            llm=LLMSettings(LLM_BASE_URL="api.openai.com"),
            document=settings.document,
            app=settings.app,
        )

        with pytest.raises(RuntimeError, match="LLM_BASE_URL"):
            validate_all_settings(settings)

    def test_missing_secrets_only_warn(self, caplog):
        settings = Settings(
            auth=AuthSettings(INTERNAL_API_KEY=None),
            llm=LLMSettings(OPENAI_API_KEY=None),
            document=DocumentSettings(),
            app=AppSettings(),
        )

        with caplog.at_level(logging.WARNING):
            validate_all_settings(settings)

        assert "INTERNAL_API_KEY is not set" in caplog.text
        assert "OPENAI_API_KEY is not set" in caplog.text


class TestBuildPipeline:
    """Tests for wiring settings into the pipeline."""

    def test_settings_flow_into_pipeline(self):
        pipeline = build_pipeline(
            _settings(
                RASTER_BACKEND="pdftoppm",
                DOCUMENT_INPUT_MODE="direct",
                DEFAULT_RESOURCE_KIND="image",
                RASTER_MAX_PAGES=5,
                MAX_SOURCE_SIZE_MB=2,
            )
        )

        assert pipeline.rasterizer.backend.name == "pdftoppm"
        assert pipeline.config.document_mode is DocumentInputMode.DIRECT
        assert pipeline.config.default_kind is ResourceKind.IMAGE
        assert pipeline.config.raster.max_pages == 5
        assert pipeline.config.raster.max_source_bytes == 2 * 1024 * 1024
        assert pipeline.client.endpoint == "https://api.openai.com/v1/responses"


class TestLogHelpers:
    """Tests for log redaction and formatting."""

    @pytest.mark.parametrize(
        "url, expected",
        [
            (None, "***"),
            ("", "***"),
            (
                "https://user:pw@bucket.s3.amazonaws.com/plans/a.pdf?X-Amz-Signature=abc",
                "https://bucket.s3.amazonaws.com/plans/a.pdf?***",
            ),
            ("http://localhost:9000/a.png#frag", "http://localhost:9000/a.png"),
        ],
    )
    def test_redact_url(self, url, expected):
        assert redact_url(url) == expected

    def test_sanitize_key_hint(self):
        assert sanitize_key_hint("abcdef123456") == "***56"
        assert sanitize_key_hint("abc") == "***"
        assert sanitize_key_hint(None) == "***"

    def test_structured_formatter_includes_known_extras(self):
        record = logging.LogRecord(
            "pipeline", logging.INFO, __file__, 10, "Rasterized %d pages", (2,), None
        )
        record.trace_id = "t-1"
        record.page_count = 2
        record.unrelated = "dropped"

        data = json.loads(StructuredFormatter().format(record))

        assert data["message"] == "Rasterized 2 pages"
        assert data["trace_id"] == "t-1"
        assert data["page_count"] == 2
        assert "unrelated" not in data
