"""Tests for cli.py -- Click CLI interface."""

import asyncio
import json
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner
from loguru import logger

from audiobook_matcher.cli import _run, main
from audiobook_matcher.config import MatcherConfig
from audiobook_matcher.errors import InvalidInputError
from audiobook_matcher.models import SelectionResult

from tests.conftest import make_record


@pytest.fixture(autouse=True)
def _no_env_file(monkeypatch):
    """Prevent CLI from loading the project .env file."""
    monkeypatch.setattr("audiobook_matcher.cli._find_config_file", lambda: None)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    yield
    logger.remove()


class TestHelpOutput:
    def test_help_flag(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])
        assert result.exit_code == 0
        assert "Find the audiobook edition" in result.output
        assert "--isbn" in result.output
        assert "--select" in result.output
        assert "--asin" in result.output

    def test_requires_title_and_author(self):
        result = CliRunner().invoke(main, ["Only A Title"])
        assert result.exit_code != 0


class TestMain:
    @patch("audiobook_matcher.cli._run", new_callable=AsyncMock)
    def test_prints_json(self, mock_run):
        mock_run.return_value = {"has_match": True, "external_id": "X1"}
        result = CliRunner().invoke(main, ["Fishing", "A. Author", "--isbn", "123"])
        assert result.exit_code == 0, result.output + str(result.exception or "")
        assert json.loads(result.output)["external_id"] == "X1"
        config, title, author, isbn, select, asin = mock_run.call_args.args
        assert isinstance(config, MatcherConfig)
        assert (title, author, isbn, select, asin) == ("Fishing", "A. Author", "123", False, None)

    @patch("audiobook_matcher.cli._run", new_callable=AsyncMock)
    def test_verbose_sets_debug(self, mock_run):
        mock_run.return_value = {}
        CliRunner().invoke(main, ["Fishing", "A. Author", "-v"])
        assert mock_run.call_args.args[0].log_level == "DEBUG"

    @patch("audiobook_matcher.cli._run", new_callable=AsyncMock)
    def test_config_file_option(self, mock_run, tmp_path):
        env = tmp_path / "matcher.env"
        env.write_text("AUDNEXUS_REGION=uk\n")
        mock_run.return_value = {}
        result = CliRunner().invoke(main, ["Fishing", "A. Author", "-c", str(env)])
        assert result.exit_code == 0, result.output
        assert mock_run.call_args.args[0].audnexus_region == "uk"

    @patch("audiobook_matcher.cli._run", new_callable=AsyncMock)
    def test_invalid_input_is_usage_error(self, mock_run):
        mock_run.side_effect = InvalidInputError("Author is required for audiobook search")
        result = CliRunner().invoke(main, ["Fishing", ""])
        assert result.exit_code == 2
        assert "Author is required" in result.output


def _fake_connect(matcher):
    @asynccontextmanager
    async def connect(config):
        yield matcher

    return connect


class TestRun:
    def _matcher(self):
        matcher = AsyncMock()
        matcher.find_best_match.return_value = make_record("X1")
        matcher.find_candidates_for_selection.return_value = SelectionResult(
            candidates=[make_record("X1")], message="Found 1"
        )
        matcher.lookup_asin.return_value = None
        return matcher

    def test_best_match(self, config):
        matcher = self._matcher()
        with patch("audiobook_matcher.cli.AudiobookMatcher.connect", _fake_connect(matcher)):
            result = asyncio.run(_run(config, "Fishing", "A. Author", "123", False, None))
        assert result["external_id"] == "X1"
        matcher.find_best_match.assert_awaited_once_with("Fishing", "A. Author", "123")

    def test_selection(self, config):
        matcher = self._matcher()
        with patch("audiobook_matcher.cli.AudiobookMatcher.connect", _fake_connect(matcher)):
            result = asyncio.run(_run(config, "Fishing", "A. Author", None, True, None))
        assert result["message"] == "Found 1"
        assert result["candidates"][0]["external_id"] == "X1"

    def test_asin_not_found(self, config):
        matcher = self._matcher()
        with patch("audiobook_matcher.cli.AudiobookMatcher.connect", _fake_connect(matcher)):
            result = asyncio.run(_run(config, "", "", None, False, "B0NOPE"))
        assert result == {"has_match": False, "external_id": "B0NOPE"}
        matcher.find_best_match.assert_not_called()
