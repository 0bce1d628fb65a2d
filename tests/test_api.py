import httpx
import pytest

from codex_usage import api
from codex_usage.auth import Credentials

BASE_URL = "https://chatgpt.com/backend-api"


def test_build_usage_url() -> None:
    assert api.build_usage_url(BASE_URL) == "https://chatgpt.com/backend-api/wham/usage"
    assert (
        api.build_usage_url("https://chatgpt.com/backend-api/")
        == "https://chatgpt.com/backend-api/wham/usage"
    )
    assert (
        api.build_usage_url("http://localhost:8080/")
        == "http://localhost:8080/api/codex/usage"
    )


def test_fetch_usage_sends_headers_and_parses() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "plan_type": "pro",
                "rate_limit": {
                    "primary_window": {
                        "used_percent": 12,
                        "reset_at": 1767232800,
                        "limit_window_seconds": 18000,
                    }
                },
            },
        )

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        response = api.fetch_usage(
            Credentials(access_token="secret", account_id="acct-1"),
            BASE_URL,
            client=client,
        )

    request = seen[0]
    assert str(request.url) == "https://chatgpt.com/backend-api/wham/usage"
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.headers["ChatGPT-Account-Id"] == "acct-1"
    assert request.headers["User-Agent"] == "codex-usage"
    assert request.headers["Accept"] == "application/json"
    assert response.plan is not None and str(response.plan) == "pro"
    assert response.rate_limit is not None
    assert response.rate_limit.primary_window is not None
    assert response.rate_limit.primary_window.used_percent == 12


def test_account_header_omitted_without_account_id() -> None:
    headers = api.build_headers(Credentials(access_token="key"))

    assert "ChatGPT-Account-Id" not in headers


@pytest.mark.parametrize("status", [401, 403])
def test_unauthorized_status(status: int) -> None:
    with pytest.raises(api.UnauthorizedError, match="re-authenticate"):
        _fetch(httpx.Response(status, text="nope"))


def test_other_error_status() -> None:
    with pytest.raises(api.UsageApiError, match="API error 500: boom"):
        _fetch(httpx.Response(500, text="boom"))


def test_invalid_json_body() -> None:
    with pytest.raises(api.MalformedResponseError):
        _fetch(httpx.Response(200, text="<html>"))


def test_unexpected_json_shape() -> None:
    with pytest.raises(api.MalformedResponseError, match="missing reset_at"):
        _fetch(httpx.Response(200, json={"rate_limit": {"primary_window": {}}}))


def test_error_kinds_share_base() -> None:
    assert issubclass(api.UnauthorizedError, api.UsageApiError)
    assert issubclass(api.MalformedResponseError, api.UsageApiError)


def test_transport_errors_propagate() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("offline", request=request)

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        with pytest.raises(httpx.HTTPError):
            api.fetch_usage(Credentials(access_token="t"), BASE_URL, client=client)


def _fetch(reply: httpx.Response):
    def handler(request: httpx.Request) -> httpx.Response:
        return reply

    with httpx.Client(transport=httpx.MockTransport(handler)) as client:
        return api.fetch_usage(Credentials(access_token="t"), BASE_URL, client=client)
