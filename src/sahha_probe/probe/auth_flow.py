#!/usr/bin/env python3
"""
Sahha authentication probe.

Walks the Sahha auth flow step by step and reports each outcome:

1. Administrative token (client-credentials grant)
2. Profile registration with the admin token
3. Sample score access with the profile token

If step 1 fails, a direct registration with application credentials
(basic auth) is tried instead. Failures in steps 2 and 3 end the run
without a fallback.

Usage:
    python -m sahha_probe.probe.auth_flow
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Optional

import requests

from sahha_probe.client.sahha_api import (
    ADMIN_EXTERNAL_ID_PREFIX,
    DIRECT_EXTERNAL_ID_PREFIX,
    SahhaAPIError,
    SahhaClient,
    generate_external_id,
)
from sahha_probe.common.config import get_config

log = logging.getLogger(__name__)

OK = "ok"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass
class ProbeResult:
    """Outcome of each stage of one probe run."""
    admin_token: str = SKIPPED
    profile_registration: str = SKIPPED
    sample_data: str = SKIPPED
    fallback_registration: str = SKIPPED
    external_id: Optional[str] = None
    scores: object = None


def _report_failure(label: str, error: SahhaAPIError) -> None:
    if error.status_code is None:
        print(f"❌ {label} failed: {error}")
    else:
        print(f"❌ {label} failed: {error.status_code} {error.body}")
    log.debug(f"{label} error: {error}")


def _short(token: str) -> str:
    return f"{token[:10]}..."


def fetch_sample_scores(client: SahhaClient, profile_token, result: ProbeResult) -> None:
    print("\n📊 Step 3: Testing Sample Data Access")
    config = get_config()
    start_date, end_date = config.get_sample_date_range()
    try:
        scores = client.get_profile_scores(
            profile_token,
            config.get_sample_profile_id(),
            start_date,
            end_date,
        )
    except SahhaAPIError as e:
        result.sample_data = FAILED
        _report_failure("Sample data access", e)
        return

    result.sample_data = OK
    result.scores = scores
    print("✅ Sample data accessed successfully!")
    print("Sample health scores:", json.dumps(scores, indent=2))


def register_with_admin_token(client: SahhaClient, admin_token, result: ProbeResult) -> None:
    print("\n🔐 Step 2: Testing Profile Registration with Admin Token")
    external_id = generate_external_id(ADMIN_EXTERNAL_ID_PREFIX)
    result.external_id = external_id
    try:
        profile_token = client.register_profile(admin_token, external_id)
    except SahhaAPIError as e:
        result.profile_registration = FAILED
        _report_failure("Profile registration", e)
        return

    result.profile_registration = OK
    print("✅ Profile registered successfully!")
    print(f"Profile Token obtained for: {external_id}")
    log.info(f"Profile token {_short(profile_token.profile_token)}")

    fetch_sample_scores(client, profile_token, result)


def register_direct(client: SahhaClient, result: ProbeResult) -> None:
    print("\n🔄 Fallback: Direct Profile Registration with App Credentials")
    external_id = generate_external_id(DIRECT_EXTERNAL_ID_PREFIX)
    result.external_id = external_id
    try:
        client.register_profile_direct(external_id)
    except SahhaAPIError as e:
        result.fallback_registration = FAILED
        _report_failure("Direct registration also", e)
        return

    result.fallback_registration = OK
    print("✅ Direct profile registration successful!")
    print("Profile token obtained via direct method")


def run_auth_probe(session: Optional[requests.Session] = None) -> ProbeResult:
    """
    Run the full probe. Never raises on a vendor failure.

    Args:
        session: Optional session to send requests through (a fresh
            requests.Session otherwise)
    """
    result = ProbeResult()

    for problem in get_config().validate():
        log.warning(problem)

    print("🧪 Testing Sahha Authentication Step by Step...\n")

    with SahhaClient(session=session) as client:
        print("🔐 Step 1: Testing Administrative Token (Client Credentials)")
        try:
            admin_token = client.get_admin_token()
        except SahhaAPIError as e:
            result.admin_token = FAILED
            _report_failure("Administrative token", e)
            register_direct(client, result)
            return result

        result.admin_token = OK
        print("✅ Administrative token obtained!")
        print(f"Token type: {admin_token.token_type}")
        print(f"Expires in: {admin_token.expires_in} seconds")

        register_with_admin_token(client, admin_token, result)

    return result


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    result = run_auth_probe()
    log.info(
        f"Probe finished: admin_token={result.admin_token}, "
        f"profile_registration={result.profile_registration}, "
        f"sample_data={result.sample_data}, "
        f"fallback_registration={result.fallback_registration}"
    )


if __name__ == "__main__":
    main()
