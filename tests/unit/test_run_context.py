"""
Unit tests for run context building.

Run: pytest tests/unit/test_run_context.py -v
"""

import pytest

from models.connector import ImportFilters, ImportMapping
from models.import_batch import ImportJob
from services.attribute_cache import AttributeMetadataCache
from services.run_context import build_run_context, check_credential, resolve_credential_id
from exceptions import ConfigurationError


class TestCheckCredential:
    """Tests for check_credential()"""

    def test_missing_credential(self):
        """Should fail the run when the credential does not exist."""
        with pytest.raises(ConfigurationError) as exc_info:
            check_credential(None, "9")

        assert exc_info.value.details == {"credentials": "9"}

    def test_disabled_credential(self, credential):
        """Should fail the run for a disabled credential."""
        disabled = credential.model_copy(update={"active": False})

        with pytest.raises(ConfigurationError):
            check_credential(disabled, "1")

    def test_active_credential(self, credential):
        assert check_credential(credential, "1") is credential


class TestResolveCredentialId:
    """Tests for resolve_credential_id()"""

    def test_job_credential_wins(self, monkeypatch):
        monkeypatch.setattr("services.run_context.settings.import_credentials_id", "7")
        job = ImportJob(id="job-1", filters=ImportFilters(credentials="3"))

        assert resolve_credential_id(job) == "3"

    def test_falls_back_to_default(self, monkeypatch):
        """Should use the configured credential when the job names none."""
        monkeypatch.setattr("services.run_context.settings.import_credentials_id", "7")

        assert resolve_credential_id(ImportJob(id="job-1")) == "7"


class TestBuildRunContext:
    """Tests for build_run_context()"""

    def test_freezes_job_scope(self, import_job, credential, import_mapping):
        """Should copy scope codes, family and metafield keys."""
        context = build_run_context(import_job, credential, import_mapping, AttributeMetadataCache())

        assert (context.locale, context.channel, context.currency) == ("en_US", "default", "USD")
        assert context.family_id == "4"
        assert context.import_run_id == "job-1"
        assert context.metafield_keys == ("material",)

    def test_defaults_fill_missing_filters(self, credential, import_mapping, monkeypatch):
        """Should fall back to the configured scope codes."""
        monkeypatch.setattr("services.run_context.settings.import_locale", "fr_FR")
        job = ImportJob(id="job-2", filters=ImportFilters(credentials="1"))

        context = build_run_context(job, credential, import_mapping, AttributeMetadataCache())

        assert context.locale == "fr_FR"

    def test_incomplete_scope(self, credential, import_mapping, monkeypatch):
        """Should fail when no currency is available."""
        monkeypatch.setattr("services.run_context.settings.import_currency", "")
        job = ImportJob(id="job-2", filters=ImportFilters(credentials="1", locale="en_US", channel="web"))

        with pytest.raises(ConfigurationError) as exc_info:
            build_run_context(job, credential, import_mapping, AttributeMetadataCache())

        assert exc_info.value.details == {"missing": ["currency"]}

    def test_no_family_mapping(self, import_job, credential):
        """Should fail when the mapping names no family."""
        mapping = ImportMapping.from_connector_settings({"title": "name"})

        with pytest.raises(ConfigurationError) as exc_info:
            build_run_context(import_job, credential, mapping, AttributeMetadataCache())

        assert exc_info.value.details == {"setting": "family_variant"}

    def test_context_is_immutable(self, run_context):
        with pytest.raises(AttributeError):
            run_context.locale = "de_DE"
