from __future__ import annotations

import logging

import httpx

from codex_usage.auth import Credentials
from codex_usage.config import DEFAULT_TIMEOUT_SECONDS
from codex_usage.models import MalformedPayloadError, UsageResponse, parse_usage_response

logger = logging.getLogger(__name__)

USER_AGENT = "codex-usage"


class UsageApiError(RuntimeError):
    pass


class UnauthorizedError(UsageApiError):
    pass


class MalformedResponseError(UsageApiError):
    pass


def build_usage_url(base_url: str) -> str:
    path = "/wham/usage" if "/backend-api" in base_url else "/api/codex/usage"
    return f"{base_url.rstrip('/')}{path}"


def build_headers(credentials: Credentials) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {credentials.access_token}",
        "User-Agent": USER_AGENT,
        "Accept": "application/json",
    }
    if credentials.account_id:
        headers["ChatGPT-Account-Id"] = credentials.account_id
    return headers


def fetch_usage(
    credentials: Credentials,
    base_url: str,
    client: httpx.Client | None = None,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> UsageResponse:
    url = build_usage_url(base_url)
    headers = build_headers(credentials)
    logger.debug("Fetching usage from %s", url)
    if client is None:
        with httpx.Client(headers=headers, timeout=timeout) as session:
            response = session.get(url)
            return parse_response(response)

    response = client.get(url, headers=headers, timeout=timeout)
    return parse_response(response)


def parse_response(response: httpx.Response) -> UsageResponse:
    status = response.status_code
    logger.debug("Usage endpoint answered %s", status)
    if status in (401, 403):
        raise UnauthorizedError(
            "Unauthorized: Token expired or invalid. Run `codex` to re-authenticate."
        )
    if not 200 <= status < 300:
        raise UsageApiError(f"API error {status}: {response.text}")

    try:
        payload = response.json()
    except ValueError as exc:
        raise MalformedResponseError(
            f"Failed to parse response: {response.text}"
        ) from exc
    try:
        return parse_usage_response(payload)
    except MalformedPayloadError as exc:
        raise MalformedResponseError(f"Failed to parse response: {exc}") from exc
