"""Tests for the HTTP routes and the feed error handler."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from mytv.dependencies import get_epg_repository, get_iptv_repository
from mytv.errors import EpgError, IptvError, TransportError
from mytv.main import app
from mytv.schemas import Epg, EpgProgramme, Iptv, IptvGroup


EPG_LIST = [
    Epg(channel="CCTV-1", programmes=[EpgProgramme(start_at=1, end_at=2, title="朝闻天下")]),
]

GROUPS = [
    IptvGroup(name="央视", iptv_list=[Iptv(name="CCTV-1", channel_name="CCTV-1", url_list=["http://a"])]),
]


@pytest.fixture
def epg_repository():
    repository = MagicMock()
    repository.get_epg_list = AsyncMock(return_value=EPG_LIST)
    return repository


@pytest.fixture
def iptv_repository():
    repository = MagicMock()
    repository.get_iptv_group_list = AsyncMock(return_value=GROUPS)
    return repository


@pytest.fixture
def client(epg_repository, iptv_repository):
    app.dependency_overrides[get_epg_repository] = lambda: epg_repository
    app.dependency_overrides[get_iptv_repository] = lambda: iptv_repository
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_root_lists_endpoints(client):
    response = client.get("/")

    assert response.status_code == 200
    assert set(response.json()["endpoints"]) == {"epg", "iptv", "refresh", "health"}


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_get_epg(client, epg_repository):
    response = client.get("/epg")

    assert response.status_code == 200
    body = response.json()
    assert body["channels"] == 1
    assert body["programmes"] == 1
    assert body["epg"][0]["programmes"][0]["title"] == "朝闻天下"
    epg_repository.get_epg_list.assert_awaited_once()


def test_get_iptv_with_simplify_override(client, iptv_repository):
    response = client.get("/iptv", params={"simplify": "true"})

    assert response.status_code == 200
    body = response.json()
    assert body["simplified"] is True
    assert body["groups"] == 1
    assert body["iptv"][0]["iptv_list"][0]["url_list"] == ["http://a"]
    assert iptv_repository.get_iptv_group_list.await_args.args[2] is True


def test_epg_failure_maps_to_502(client, epg_repository):
    error = EpgError("Failed to get programme guide", resource="epg.json")
    error.__cause__ = TransportError("HTTP 503", status_code=503)
    epg_repository.get_epg_list.side_effect = error

    response = client.get("/epg")

    assert response.status_code == 502
    body = response.json()
    assert body["status"] == "error"
    assert body["error"]["code"] == "EPG_FAILED"
    assert body["error"]["context"] == {"resource": "epg.json", "cause": "TransportError"}


def test_iptv_failure_maps_to_502(client, iptv_repository):
    iptv_repository.get_iptv_group_list.side_effect = IptvError("Failed to get playlist", resource="iptv.txt")

    response = client.get("/iptv")

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "IPTV_FAILED"


def test_invalid_query_is_rejected(client):
    response = client.get("/iptv", params={"simplify": "maybe"})

    assert response.status_code == 422


def test_manual_refresh_reports_both_feeds(client, epg_repository, iptv_repository):
    response = client.post("/refresh")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["epg"] == {"status": "success", "channels": 1, "programmes": 1}
    assert body["iptv"] == {"status": "success", "groups": 1, "channels": 1}
