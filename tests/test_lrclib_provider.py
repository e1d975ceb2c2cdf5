"""Test file for LRCLIB Provider"""
from unittest.mock import MagicMock

import pytest
import requests

from errors import LyricsNotFoundError, LyricsParseError, ProviderConnectionError
from providers.lrclib import LRCLIBProvider


def make_response(status_code=200, payload=None, json_error=None):
    response = MagicMock()
    response.status_code = status_code
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def provider():
    provider = LRCLIBProvider(base_url="https://lrclib.test/api/", timeout=3)
    provider.session.get = MagicMock()
    yield provider
    provider.close()


def test_build_params_full():
    params = LRCLIBProvider.build_params(" Guiding Lights ", "Skyharbor", "Guiding Lights", 367.6)
    assert params == {
        "track_name": "Guiding Lights",
        "artist_name": "Skyharbor",
        "album_name": "Guiding Lights",
        "duration": 368,
    }


def test_build_params_skips_unknown_album_and_duration():
    assert LRCLIBProvider.build_params("Song", "Artist", "", 0) == {
        "track_name": "Song",
        "artist_name": "Artist",
    }


def test_headers():
    provider = LRCLIBProvider()
    assert "synclyrics-bar" in provider.session.headers["User-Agent"]
    assert provider.session.headers["Lrclib-Client"] == provider.session.headers["User-Agent"]
    provider.close()


def test_fetch_returns_synced_lyrics(provider):
    provider.session.get.return_value = make_response(
        payload={"syncedLyrics": "[00:01.00]hi", "plainLyrics": "hi"}
    )

    assert provider.fetch_by_query("Song", "Artist", duration=200) == "[00:01.00]hi"
    provider.session.get.assert_called_once_with(
        "https://lrclib.test/api/get",
        params={"track_name": "Song", "artist_name": "Artist", "duration": 200},
        timeout=3,
    )


def test_fetch_without_synced_lyrics_returns_empty(provider):
    provider.session.get.return_value = make_response(
        payload={"syncedLyrics": None, "plainLyrics": "hi", "instrumental": False}
    )
    assert provider.fetch_by_query("Song", "Artist") == ""


def test_404_is_not_found(provider):
    provider.session.get.return_value = make_response(status_code=404)
    with pytest.raises(LyricsNotFoundError):
        provider.fetch_by_query("Song", "Artist")


def test_server_error_is_connection_error(provider):
    provider.session.get.return_value = make_response(status_code=503)
    with pytest.raises(ProviderConnectionError):
        provider.fetch_by_query("Song", "Artist")


def test_network_failure_is_connection_error(provider):
    provider.session.get.side_effect = requests.ConnectionError("unreachable")
    with pytest.raises(ProviderConnectionError):
        provider.fetch_by_query("Song", "Artist")


def test_invalid_json_is_parse_error(provider):
    provider.session.get.return_value = make_response(json_error=ValueError("not json"))
    with pytest.raises(LyricsParseError):
        provider.fetch_by_query("Song", "Artist")


def test_unexpected_body_is_parse_error(provider):
    provider.session.get.return_value = make_response(payload=["not", "a", "dict"])
    with pytest.raises(LyricsParseError):
        provider.fetch_by_query("Song", "Artist")
