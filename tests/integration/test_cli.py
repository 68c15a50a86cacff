"""Tests for the tracelens CLI via CliRunner."""

import json
from unittest.mock import AsyncMock, patch

import pytest
import yaml
from typer.testing import CliRunner

from tracelens import __version__
from tracelens.audit.audits import AuditResult
from tracelens.cli.main import app

runner = CliRunner()

EXTENSION_ORIGIN = "chrome-extension://abcdefghijklmnop"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("TRACELENS_ENVIRONMENT", "TRACELENS_LOG_LEVEL",
                 "TRACELENS_KNOWN_ENTITIES", "TRACELENS_EXTENSION_STORE_URL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def log_file(tmp_path, request_events, extension_context_event):
    events = []
    for url in ("https://example.com/",
                "https://static.example.com/app.js",
                "https://www.google-analytics.com/analytics.js",
                "https://cdn.other.net/lib.js",
                f"{EXTENSION_ORIGIN}/content.js"):
        events.extend(request_events(url))
    events.append(extension_context_event(EXTENSION_ORIGIN, "My Ext"))

    path = tmp_path / "devtools-log.json"
    path.write_text(json.dumps(events))
    return path


class TestVersion:

    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert f"tracelens v{__version__}" in result.output


class TestClassifyCommand:
    """Tests for the 'classify' command."""

    def test_text_output(self, log_file):
        result = runner.invoke(app, ["classify", str(log_file), "-u", "https://example.com/"])

        assert result.exit_code == 0
        assert "[1P] example.com (unrecognized) - 2 URL(s)" in result.output
        assert "[3P] Google Analytics (analytics) - 1 URL(s)" in result.output
        assert "[3P] My Ext (Chrome Extension) - 1 URL(s)" in result.output
        assert "First party: example.com" in result.output

    def test_json_output(self, log_file):
        result = runner.invoke(app, ["classify", str(log_file), "-u", "https://example.com/", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["first_party"] == "example.com"
        assert data["entity_by_url"]["https://cdn.other.net/lib.js"] == "other.net"
        assert data["entity_by_url"][f"{EXTENSION_ORIGIN}/content.js"] == EXTENSION_ORIGIN

    def test_main_document_url(self, log_file):
        result = runner.invoke(app, [
            "classify", str(log_file),
            "-u", "https://www.landing.net/",
            "--main-document-url", "https://example.com/",
            "--json",
        ])

        assert result.exit_code == 0
        assert json.loads(result.output)["first_party"] == "example.com"

    def test_missing_log(self, tmp_path):
        result = runner.invoke(app, ["classify", str(tmp_path / "missing.json"), "-u", "https://example.com/"])

        assert result.exit_code == 1
        assert "Could not read devtools log" in result.output

    def test_log_not_an_array(self, tmp_path):
        path = tmp_path / "log.json"
        path.write_text(json.dumps({"method": "Network.requestWillBeSent"}))

        result = runner.invoke(app, ["classify", str(path), "-u", "https://example.com/"])

        assert result.exit_code == 1

    def test_invalid_config(self, log_file, tmp_path):
        config_path = tmp_path / "tracelens.yaml"
        config_path.write_text(yaml.dump({"environment": "qa"}))

        result = runner.invoke(app, ["classify", str(log_file), "-u", "https://example.com/",
                                     "-c", str(config_path)])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_bad_known_entities_dataset(self, log_file, tmp_path, monkeypatch):
        monkeypatch.setenv("TRACELENS_KNOWN_ENTITIES", str(tmp_path / "missing.yaml"))

        result = runner.invoke(app, ["classify", str(log_file), "-u", "https://example.com/"])

        assert result.exit_code == 1
        assert "Known entity dataset error" in result.output

    def test_custom_known_entities(self, log_file, tmp_path):
        dataset = tmp_path / "entities.yaml"
        dataset.write_text(yaml.dump({"entities": [{"name": "Other CDN", "domains": ["*.other.net"]}]}))
        config_path = tmp_path / "tracelens.yaml"
        config_path.write_text(yaml.dump({"known_entities_path": str(dataset)}))

        result = runner.invoke(app, ["classify", str(log_file), "-u", "https://example.com/",
                                     "-c", str(config_path), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["entity_by_url"]["https://cdn.other.net/lib.js"] == "Other CDN"
        # Bundled dataset replaced entirely
        assert data["entity_by_url"]["https://www.google-analytics.com/analytics.js"] == "google-analytics.com"


class TestAuditCommand:
    """Tests for the 'audit' command."""

    def test_text_output(self, log_file):
        result = runner.invoke(app, ["audit", str(log_file), "-u", "https://example.com/"])

        assert result.exit_code == 0
        assert "third-party-summary: Third-party entities - 3 third-party entities" in result.output
        assert "first-party-resources: First-party resources - 2 requests from example.com" in result.output
        assert "ERROR link-text" in result.output

    def test_json_output(self, log_file, tmp_path):
        config_path = tmp_path / "tracelens.yaml"
        config_path.write_text(yaml.dump({"audits": {"link-text": {"enabled": False}}}))

        result = runner.invoke(app, ["audit", str(log_file), "-u", "https://example.com/",
                                     "-c", str(config_path), "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert set(data) == {"third-party-summary", "first-party-resources"}
        assert data["third-party-summary"]["details"]["is_entity_grouped"] is True

    def test_result_lines(self, log_file):
        results = {
            "third-party-summary": AuditResult.from_exception(
                "third-party-summary", "Third-party entities", RuntimeError("boom")
            ),
            "first-party-resources": AuditResult(
                audit_id="first-party-resources", title="First-party resources",
                score=1.0, not_applicable=True,
            ),
        }

        with patch("tracelens.cli.main.AuditRunner") as runner_cls:
            runner_cls.return_value.run = AsyncMock(return_value=results)
            result = runner.invoke(app, ["audit", str(log_file), "-u", "https://example.com/"])

        assert result.exit_code == 0
        runner_cls.assert_called_once()
        assert "ERROR third-party-summary: RuntimeError: boom" in result.output
        assert "N/A   first-party-resources: First-party resources" in result.output
