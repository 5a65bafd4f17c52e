"""Endpoint bindings of the requests-based API client."""

from __future__ import annotations

import json
from unittest import mock

import pytest
import requests

from roadamico_client import RoadAmicoAPI


def _response(status=200, payload=None):
    resp = requests.Response()
    resp.status_code = status
    resp._content = b"" if payload is None else json.dumps(payload).encode()
    resp.headers["Content-Type"] = "application/json"
    return resp


@pytest.fixture
def session():
    sess = mock.Mock(spec=requests.Session)
    sess.request.return_value = _response(payload={"id": 1})
    return sess


@pytest.fixture
def api(session):
    return RoadAmicoAPI(base_url="http://example.test/", token="tok", session=session)


def _sent(session):
    kwargs = session.request.call_args.kwargs
    return kwargs["method"], kwargs["url"]


class TestBindings:
    @pytest.mark.parametrize(
        "call,method,path",
        [
            (lambda a: a.get_list(3), "GET", "/api/lists/3"),
            (lambda a: a.create_list({"name": "x"}), "POST", "/api/lists"),
            (lambda a: a.update_list(3, {"name": "x"}), "PUT", "/api/lists/3"),
            (lambda a: a.get_event(4), "GET", "/api/events/4"),
            (lambda a: a.create_event({"place": 1}), "POST", "/api/events"),
            (lambda a: a.update_event(4, {"name": "x"}), "PUT", "/api/events/4"),
            (lambda a: a.cancel_event(4), "POST", "/api/events/4/cancel"),
            (lambda a: a.join_event(4), "POST", "/api/events/4/join"),
            (lambda a: a.unjoin_event(4), "POST", "/api/events/4/unjoin"),
            (lambda a: a.post_message(4, "hi"), "POST", "/api/events/4/messages"),
        ],
    )
    def test_single_resource_calls(self, api, session, call, method, path):
        data, error = call(api)
        assert error is None
        assert data == {"id": 1}
        assert _sent(session) == (method, f"http://example.test{path}")

    def test_collection_calls(self, api, session):
        session.request.return_value = _response(payload=[{"id": 1}])
        assert api.list_place_events(9) == ([{"id": 1}], None)
        assert _sent(session) == ("GET", "http://example.test/api/places/9/events")
        assert api.list_events()[0] == [{"id": 1}]
        assert api.list_lists()[0] == [{"id": 1}]

    def test_bearer_token_and_body(self, api, session):
        api.post_message(4, "hi")
        kwargs = session.request.call_args.kwargs
        assert kwargs["headers"] == {"Authorization": "Bearer tok"}
        assert kwargs["json"] == {"text": "hi"}

    def test_delete_without_body(self, api, session):
        session.request.return_value = _response(status=204)
        assert api.delete_list(3) == (True, None)
        assert _sent(session) == ("DELETE", "http://example.test/api/lists/3")


class TestErrors:
    def test_http_error_carries_detail(self, api, session):
        session.request.return_value = _response(
            status=403, payload={"detail": "You have already joined this event."}
        )
        data, error = api.join_event(4)
        assert data is None
        assert error == {"status_code": 403, "message": "You have already joined this event."}

    def test_collection_error_returns_empty_list(self, api, session):
        session.request.return_value = _response(status=500, payload={"detail": "Internal server error"})
        events, error = api.list_events()
        assert events == []
        assert error["status_code"] == 500

    def test_connection_error(self, api, session):
        session.request.side_effect = requests.ConnectionError("refused")
        data, error = api.get_event(1)
        assert data is None
        assert error == {"status_code": None, "message": "refused"}

    def test_unknown_binding(self, api):
        with pytest.raises(KeyError):
            api.call("events.destroy", id=1)
