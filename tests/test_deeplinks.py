"""Tests for slack:// deep links."""

from __future__ import annotations

from unittest.mock import patch

from slack_unread.utils.deeplinks import channel_url, open_in_slack, open_url


class TestUrls:
    def test_channel_url(self) -> None:
        assert channel_url("T01", "C42") == "slack://channel?team=T01&id=C42"

    def test_open_url(self) -> None:
        assert open_url("T01") == "slack://open?team=T01"


class TestOpenInSlack:
    def test_opens_conversation(self) -> None:
        with patch("webbrowser.open", return_value=True) as mock_open:
            assert open_in_slack("T01", "C42") is True

        mock_open.assert_called_once_with("slack://channel?team=T01&id=C42")

    def test_opens_workspace_without_channel(self) -> None:
        with patch("webbrowser.open", return_value=True) as mock_open:
            open_in_slack("T01")

        mock_open.assert_called_once_with("slack://open?team=T01")

    def test_reports_unhandled_scheme(self) -> None:
        with patch("webbrowser.open", return_value=False):
            assert open_in_slack("T01") is False
