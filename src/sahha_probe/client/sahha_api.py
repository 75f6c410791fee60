"""
Sahha API Client - OAuth token and profile registration calls

This module handles:
1. Administrative token issuance (client-credentials grant)
2. Profile registration with the admin token
3. Direct profile registration with application credentials (basic auth)
4. Score retrieval with a profile-scoped token

OAuth endpoints live on the production host; profile data is read from
the sandbox host.
"""
from __future__ import annotations

import base64
import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

import requests

from sahha_probe.common.config import get_config

log = logging.getLogger(__name__)

TOKEN_ENDPOINT = "/api/v1/oauth/token"
REGISTER_ENDPOINT = "/api/v1/oauth/profile/register"
REGISTER_APP_ENDPOINT = "/api/v1/oauth/profile/register/appId"
SCORE_ENDPOINT = "/api/v1/profile/score/{profile_id}"

ADMIN_EXTERNAL_ID_PREFIX = "smart-reminder-test-"
DIRECT_EXTERNAL_ID_PREFIX = "smart-reminder-direct-"


class SahhaAPIError(RuntimeError):
    """A Sahha call failed, either on the wire or with a non-2xx status."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


@dataclass
class AdminToken:
    """Account-level bearer token from the client-credentials grant."""
    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None


@dataclass
class ProfileToken:
    """Bearer token scoped to one registered profile."""
    profile_token: str
    external_id: str
    refresh_token: Optional[str] = None


_last_external_ms = 0


def generate_external_id(prefix: str = ADMIN_EXTERNAL_ID_PREFIX) -> str:
    """
    Build a one-off external id: prefix + current epoch milliseconds.

    Two calls within the same millisecond still get distinct suffixes.
    """
    global _last_external_ms
    now_ms = int(time.time() * 1000)
    if now_ms <= _last_external_ms:
        now_ms = _last_external_ms + 1
    _last_external_ms = now_ms
    return f"{prefix}{now_ms}"


def basic_auth_header(username: Optional[str], password: Optional[str]) -> str:
    """Encode an id/secret pair as an HTTP Basic Authorization value."""
    raw = f"{username}:{password}".encode("utf-8")
    return f"Basic {base64.b64encode(raw).decode('ascii')}"


def _response_body(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class SahhaClient:
    """
    Client for the Sahha OAuth and profile APIs.

    API Documentation: https://developer.sahha.ai
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        production_url: Optional[str] = None,
        sandbox_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        config = get_config()
        self.production_url = (production_url or config.get_api_base_url("production")).rstrip("/")
        self.sandbox_url = (sandbox_url or config.get_api_base_url("sandbox")).rstrip("/")
        self.timeout = timeout if timeout is not None else config.get_request_timeout()
        self.client_id, self.client_secret = config.get_credentials("client")
        self.application_id, self.application_secret = config.get_credentials("application")

        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "SahhaClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _request(
        self,
        method: str,
        url: str,
        headers: Optional[dict] = None,
        json_body: Optional[dict] = None,
        params: Optional[dict] = None,
    ) -> Any:
        """Send one request. No retries; any failure becomes SahhaAPIError."""
        log.debug(f"{method} {url}")
        try:
            resp = self.session.request(
                method,
                url,
                headers=headers,
                json=json_body,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SahhaAPIError(f"{method} {url} failed: {e}") from e

        if not resp.ok:
            body = _response_body(resp)
            raise SahhaAPIError(
                f"{method} {url} returned HTTP {resp.status_code}",
                status_code=resp.status_code,
                body=body,
            )

        return _response_body(resp)

    def get_admin_token(self) -> AdminToken:
        """Client-credentials grant against the production token endpoint."""
        data = self._request(
            "POST",
            f"{self.production_url}{TOKEN_ENDPOINT}",
            json_body={
                "grant_type": "client_credentials",
                "client_id": self.client_id,
                "client_secret": self.client_secret,
            },
        )
        if not isinstance(data, dict) or not data.get("access_token"):
            raise SahhaAPIError("Token response has no access_token", body=data)

        return AdminToken(
            access_token=data["access_token"],
            token_type=data.get("token_type"),
            expires_in=data.get("expires_in"),
        )

    def register_profile(self, admin_token: AdminToken, external_id: str) -> ProfileToken:
        """Register a profile using the admin bearer token."""
        data = self._request(
            "POST",
            f"{self.production_url}{REGISTER_ENDPOINT}",
            headers={"Authorization": f"Bearer {admin_token.access_token}"},
            json_body={"externalId": external_id},
        )
        return self._profile_token(data, external_id)

    def register_profile_direct(self, external_id: str) -> ProfileToken:
        """Register a profile with application id/secret as basic auth, no admin token."""
        data = self._request(
            "POST",
            f"{self.production_url}{REGISTER_APP_ENDPOINT}",
            headers={"Authorization": basic_auth_header(self.application_id, self.application_secret)},
            json_body={"externalId": external_id},
        )
        return self._profile_token(data, external_id)

    def get_profile_scores(
        self,
        profile_token: ProfileToken,
        profile_id: str,
        start_date: str,
        end_date: str,
    ) -> Any:
        """
        Fetch health scores for a profile over a date range.

        Dates should be in 'YYYY-MM-DD' format. Returns the decoded JSON as-is.
        """
        return self._request(
            "GET",
            f"{self.sandbox_url}{SCORE_ENDPOINT.format(profile_id=profile_id)}",
            headers={"Authorization": f"Bearer {profile_token.profile_token}"},
            params={"startDateTime": start_date, "endDateTime": end_date},
        )

    @staticmethod
    def _profile_token(data: Any, external_id: str) -> ProfileToken:
        if not isinstance(data, dict) or not data.get("profileToken"):
            raise SahhaAPIError("Registration response has no profileToken", body=data)
        return ProfileToken(
            profile_token=data["profileToken"],
            external_id=external_id,
            refresh_token=data.get("refreshToken"),
        )
