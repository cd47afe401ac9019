import json
import re

from lpastore.gateway import LPA_PATH, Gateway, Route, random_uid

UID_PATTERN = re.compile(r"M-[A-Z0-9]{4}-[A-Z0-9]{4}-[A-Z0-9]{4}")
LAMBDA_URL = "http://lambda-{name}:8080/2015-03-31/functions/function/invocations"


class FakeTransport:
    def __init__(self, status=200, reply=None):
        self.calls = []
        self.status = status
        self.reply = reply if reply is not None else {"statusCode": 201, "body": "{}"}

    def __call__(self, method, url, body, headers):
        self.calls.append((method, url, body, dict(headers)))
        return self.status, json.dumps(self.reply).encode()


def test_route_create_get_update():
    gateway = Gateway(FakeTransport())
    assert gateway.route("PUT", "/lpas/M-1234-5678-90AB", b"x") == Route(
        "create", "M-1234-5678-90AB", b"x"
    )
    assert gateway.route("GET", "/lpas/M-1234-5678-90AB", b"") == Route(
        "get", "M-1234-5678-90AB", b""
    )
    assert gateway.route("POST", "/lpas/M-1234-5678-90AB/updates", b"y") == Route(
        "update", "M-1234-5678-90AB", b"y"
    )


def test_route_unmatched():
    gateway = Gateway(FakeTransport())
    assert gateway.route("DELETE", "/lpas/M-1234-5678-90AB", b"") is None
    assert gateway.route("GET", "/lpas/m-1234-5678-90ab", b"") is None
    assert gateway.route("GET", "/lpas", b"") is None


def test_route_getlist_replaces_mapped_uids():
    gateway = Gateway(FakeTransport())
    gateway.uid_map["M-AAAA-BBBB-CCCC"] = "M-ZZZZ-YYYY-XXXX"
    route = gateway.route("POST", "/lpas", b'{"uids":["M-AAAA-BBBB-CCCC"]}')
    assert route == Route("getlist", "", b'{"uids":["M-ZZZZ-YYYY-XXXX"]}')


def test_dispatch_forwards_to_lambda():
    transport = FakeTransport(reply={"statusCode": 201, "body": '{"uid":"x"}'})
    gateway = Gateway(transport)
    headers = {"Authorization": ["Bearer token"]}
    resp = gateway.dispatch("PUT", "/lpas/M-1234-5678-90AB", headers, b'{"a":1}')

    assert resp.status_code == 201
    assert resp.body == '{"uid":"x"}'
    assert resp.headers["Content-Type"] == "application/json"

    method, url, body, _ = transport.calls[0]
    assert method == "POST"
    assert url == LAMBDA_URL.format(name="create")
    payload = json.loads(body)
    assert payload["pathParameters"] == {"uid": "M-1234-5678-90AB"}
    assert payload["httpMethod"] == "PUT"
    assert payload["path"] == "/lpas/M-1234-5678-90AB"
    assert payload["body"] == '{"a":1}'
    assert payload["multiValueHeaders"] == headers


def test_dispatch_getlist_has_no_path_parameters():
    transport = FakeTransport()
    Gateway(transport).dispatch("POST", "/lpas", {}, b"{}")
    payload = json.loads(transport.calls[0][2])
    assert "pathParameters" not in payload
    assert transport.calls[0][1] == LAMBDA_URL.format(name="getlist")


def test_dispatch_unmatched_is_not_found_and_escaped():
    transport = FakeTransport()
    resp = Gateway(transport).dispatch("GET", "/a<b>", {}, b"")
    assert resp.status_code == 404
    assert resp.body == "couldn't match URL: /a&lt;b&gt;\n"
    assert transport.calls == []


def test_pact_state_exists_creates_lpa_and_maps_uid():
    transport = FakeTransport(status=201)
    gateway = Gateway(transport)
    headers = {"Authorization": ["Bearer token"]}
    state = json.dumps({"state": "An LPA with UID M-AAAA-BBBB-CCCC exists"}).encode()

    resp = gateway.dispatch("POST", "/_pact_state", headers, state)

    assert resp.status_code == 200
    new_uid = gateway.uid_map["M-AAAA-BBBB-CCCC"]
    assert UID_PATTERN.fullmatch(new_uid)
    method, url, body, sent_headers = transport.calls[0]
    assert method == "PUT"
    assert url == "http://localhost:8080/lpas/M-AAAA-BBBB-CCCC"
    assert sent_headers == headers
    assert json.loads(body)["lpaType"] == "personal-welfare"

    gateway.dispatch("GET", "/lpas/M-AAAA-BBBB-CCCC", {}, b"")
    payload = json.loads(transport.calls[1][2])
    assert payload["pathParameters"] == {"uid": new_uid}


def test_pact_state_does_not_exist_only_maps():
    transport = FakeTransport()
    gateway = Gateway(transport)
    gateway.handle_pact_state(
        json.dumps({"state": "An LPA with UID M-AAAA-BBBB-CCCC does not exist"}), {}
    )
    assert UID_PATTERN.fullmatch(gateway.uid_map["M-AAAA-BBBB-CCCC"])
    assert transport.calls == []


def test_pact_state_failure_status_gives_server_error():
    gateway = Gateway(FakeTransport(status=400))
    state = json.dumps({"state": "An LPA with UID M-AAAA-BBBB-CCCC exists"}).encode()
    resp = gateway.dispatch("POST", "/_pact_state", {}, state)
    assert resp.status_code == 500
    assert resp.body == "request failed with status code 400\n"


def test_pact_state_bad_json_gives_server_error():
    resp = Gateway(FakeTransport()).dispatch("POST", "/_pact_state", {}, b"not json")
    assert resp.status_code == 500


def test_pact_state_unknown_state_changes_nothing():
    transport = FakeTransport()
    gateway = Gateway(transport)
    gateway.handle_pact_state(b'{"state":"something else"}', {})
    assert gateway.uid_map == {}
    assert transport.calls == []


def test_random_uid_matches_lpa_path():
    first, second = random_uid(), random_uid()
    assert UID_PATTERN.fullmatch(first)
    assert LPA_PATH.fullmatch(f"/lpas/{first}")
    assert first != second