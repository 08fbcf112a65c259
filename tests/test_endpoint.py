import pytest

from api_client.endpoint import (
    INVALID_RESPONSE_MESSAGE_ID,
    EndpointResponse,
    ErrorResult,
    SuccessResult,
    VersionedEndpoint,
)
from api_client.endpoints import get_endpoint, list_endpoints
from api_client.endpoints.system import PING
from api_client.endpoints.user import LOGIN, REGISTER
from api_client.errors import UnknownEndpointError
from api_client.request import HttpMethod, Request, RequestOutcome, Response
from api_client.schemas import EmptyPayload, LoginData, LoginPayload, RegisterData, RegisterPayload

BASE_URL = "http://testserver/"


def answered(endpoint, status, body):
    request = endpoint.build_request({}, base_url=BASE_URL)
    return RequestOutcome(request=request, response=Response(status=status, body=body))


def test_registry_lookup():
    assert get_endpoint("user.login") is LOGIN
    assert {endpoint.name for endpoint in list_endpoints()} == {"system.ping", "user.login", "user.register"}
    with pytest.raises(UnknownEndpointError):
        get_endpoint("user.logout")


def test_build_request_puts_payload_in_body_for_post():
    request = LOGIN.build_request(
        LoginPayload(username="ann", password="pw"),
        base_url=BASE_URL,
        headers={"x-trace-id": "t"},
    )
    assert request.url == "http://testserver/v1/user/login"
    assert request.method is HttpMethod.POST
    assert request.body == {"username": "ann", "password": "pw"}
    assert dict(request.query) == {}
    assert request.headers["x-trace-id"] == "t"


def test_build_request_validates_mapping_payloads():
    request = LOGIN.build_request({"username": "ann"}, base_url=BASE_URL)
    assert request.body == {"username": "ann", "password": ""}


def test_build_request_puts_scalars_in_query_for_get():
    endpoint = VersionedEndpoint(
        name="user.show",
        method=HttpMethod.GET,
        path="/user/{user_id}",
        payload_model=LoginPayload,
        data_model=LoginData,
        version="v2",
    )
    request = endpoint.build_request(
        LoginPayload(username="ann"),
        base_url=BASE_URL,
        path_params={"user_id": "a b/c"},
        query={"page": 2},
    )
    assert request.url == "http://testserver/v2/user/a%20b%2Fc"
    assert request.body is None
    assert dict(request.query) == {"page": 2, "username": "ann", "password": ""}


def test_missing_path_param_is_a_programming_error():
    endpoint = VersionedEndpoint(
        name="user.show",
        method=HttpMethod.GET,
        path="/user/{user_id}",
        payload_model=EmptyPayload,
        data_model=LoginData,
    )
    with pytest.raises(KeyError):
        endpoint.build_request(EmptyPayload(), base_url=BASE_URL)


def test_success_status_with_envelope_is_success():
    body = {
        "success": True,
        "fieldMessages": [],
        "generalMessages": [
            {"id": "welcome", "severity": "info", "translation": {"id": "login.welcome"}}
        ],
        "data": {"username": "ann", "token": "abc"},
    }
    result = LOGIN.parse_outcome(answered(LOGIN, 200, body))

    assert isinstance(result, SuccessResult)
    assert result.type == "success"
    assert result.status == 200
    assert result.data == LoginData(username="ann", token="abc")
    assert [m.id for m in result.general_messages] == ["welcome"]


def test_register_uses_its_own_success_status():
    body = {"success": True, "fieldMessages": [], "generalMessages": [], "data": {"userId": "u1", "username": "ann"}}
    assert isinstance(REGISTER.parse_outcome(answered(REGISTER, 201, body)), SuccessResult)
    assert REGISTER.parse_outcome(answered(REGISTER, 201, body)).data == RegisterData(user_id="u1", username="ann")
    # 200 is not the register success status, and the body is not an error envelope.
    result = REGISTER.parse_outcome(answered(REGISTER, 200, body))
    assert isinstance(result, ErrorResult)
    assert [m.id for m in result.general_messages] == [INVALID_RESPONSE_MESSAGE_ID]


def test_error_envelope_becomes_error_result():
    body = {
        "success": False,
        "fieldMessages": [
            {
                "path": ["addresses", 0, "city"],
                "message": {
                    "id": "city",
                    "severity": "error",
                    "translation": {"id": "validation.required", "placeholders": {"min": 1}},
                },
            }
        ],
        "generalMessages": [],
    }
    result = REGISTER.parse_outcome(answered(REGISTER, 400, body))

    assert isinstance(result, ErrorResult)
    assert result.type == "error"
    assert result.status == 400
    assert result.field_messages[0].path == ["addresses", 0, "city"]
    assert result.field_messages[0].message.translation.placeholders == {"min": 1}


def test_success_status_with_failure_body_is_error():
    body = {"success": False, "fieldMessages": [], "generalMessages": []}
    assert isinstance(LOGIN.parse_outcome(answered(LOGIN, 200, body)), ErrorResult)


@pytest.mark.parametrize(
    "body",
    [None, "<html>Bad Gateway</html>", {"unexpected": True}, {"success": True, "data": {"nope": 1}}],
)
def test_unparseable_bodies_become_invalid_response(body):
    result = LOGIN.parse_outcome(answered(LOGIN, 502, body))

    assert isinstance(result, ErrorResult)
    assert result.field_messages == []
    message = result.general_messages[0]
    assert message.id == INVALID_RESPONSE_MESSAGE_ID
    assert message.translation.placeholders == {"status": 502}


@pytest.mark.parametrize(
    "body",
    [{}, {"data": {"username": "ann", "token": "abc"}}, {"fieldMessages": [], "generalMessages": []}],
)
def test_bodies_without_success_flag_are_invalid_at_success_status(body):
    result = LOGIN.parse_outcome(answered(LOGIN, 200, body))

    assert isinstance(result, ErrorResult)
    assert [message.id for message in result.general_messages] == [INVALID_RESPONSE_MESSAGE_ID]


def test_unanswered_outcomes_are_not_classified():
    request = Request(url="http://testserver/v1/system/ping")
    assert PING.parse_outcome(RequestOutcome(request=request, cancelled=True)) is None
    assert PING.parse_outcome(RequestOutcome(request=request)) is None
    late = RequestOutcome(request=request, response=Response(status=200, body={}), cancelled=True)
    assert PING.parse_outcome(late) is None


def test_endpoint_response_accessors():
    request = Request(url="http://testserver/v1/system/ping")
    failed = EndpointResponse(outcome=RequestOutcome(request=request))
    assert failed.connection_failed
    assert not failed.ok
    assert failed.field_messages == []
    assert failed.request is request


def test_nested_payload_fields_are_rejected_for_query_methods():
    endpoint = VersionedEndpoint(
        name="user.search",
        method=HttpMethod.GET,
        path="/user/search",
        payload_model=RegisterPayload,
        data_model=RegisterData,
    )
    with pytest.raises(ValueError, match="addresses"):
        endpoint.build_request(RegisterPayload(username="ann"), base_url=BASE_URL)
