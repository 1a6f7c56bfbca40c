"""Tests for the HTTP catalog client."""

import asyncio
from unittest import mock

import pytest
import requests

from tubemusic.domain.catalog import HttpCatalogService, StreamSource
from tubemusic.domain.playlist import Track
from tubemusic.exceptions import CatalogUnavailable


def make_response(payload=None, status=200, json_error=False):
    response = mock.Mock()
    response.status_code = status
    if status >= 400:
        response.raise_for_status.side_effect = requests.exceptions.HTTPError(
            f"{status} error", response=response
        )
    if json_error:
        response.json.side_effect = requests.exceptions.JSONDecodeError("bad", "doc", 0)
    else:
        response.json.return_value = payload
    return response


@pytest.fixture
def session():
    return mock.Mock(spec=requests.Session)


@pytest.fixture
def service(session):
    return HttpCatalogService("http://catalog.test/", timeout=3.0, session=session)


class TestSearch:
    def test_parses_tracks(self, service, session):
        session.get.return_value = make_response(
            [
                {"id": "v1", "title": "One", "uploader": "Up", "duration": 61},
                {"id": "v2", "title": "Two", "uploader": "Up", "duration": 90065},
            ]
        )

        tracks = asyncio.run(service.search("lofi beats", 10))

        assert tracks == [
            Track("v1", "One", "Up", 61),
            Track("v2", "Two", "Up", 90065),
        ]
        session.get.assert_called_once_with(
            "http://catalog.test/api/search",
            params={"query": "lofi beats", "limit": 10},
            timeout=3.0,
        )

    def test_null_body_is_empty(self, service, session):
        session.get.return_value = make_response(None)
        assert asyncio.run(service.search("x", 5)) == []

    @pytest.mark.parametrize(
        "payload",
        [
            {"items": []},
            [{"title": "no id"}],
            [{"id": "v1", "title": "One", "uploader": "Up", "duration": float("inf")}],
        ],
    )
    def test_malformed_body(self, service, session, payload):
        session.get.return_value = make_response(payload)
        with pytest.raises(CatalogUnavailable):
            asyncio.run(service.search("x", 5))

    def test_network_error(self, service, session):
        session.get.side_effect = requests.exceptions.ConnectionError("refused")
        with pytest.raises(CatalogUnavailable, match="unreachable"):
            asyncio.run(service.search("x", 5))


class TestResolveStreamUrl:
    def test_returns_source(self, service, session):
        session.get.return_value = make_response({"url": "https://cdn.test/v1.webm"})

        source = asyncio.run(service.resolve_stream_url("v1"))

        assert source == StreamSource(url="https://cdn.test/v1.webm")
        session.get.assert_called_once_with(
            "http://catalog.test/api/play", params={"id": "v1"}, timeout=3.0
        )

    def test_unknown_id(self, service, session):
        session.get.return_value = make_response(status=404)
        with pytest.raises(CatalogUnavailable, match="404"):
            asyncio.run(service.resolve_stream_url("nope"))

    def test_missing_url(self, service, session):
        session.get.return_value = make_response({})
        with pytest.raises(CatalogUnavailable):
            asyncio.run(service.resolve_stream_url("v1"))

    def test_invalid_json(self, service, session):
        session.get.return_value = make_response(json_error=True)
        with pytest.raises(CatalogUnavailable):
            asyncio.run(service.resolve_stream_url("v1"))

    def test_timeout(self, service, session):
        session.get.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(CatalogUnavailable):
            asyncio.run(service.resolve_stream_url("v1"))
