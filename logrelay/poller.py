"""Fetches every application's syslog drain URLs from the cloud controller."""

from __future__ import annotations

import base64
import http
import http.client
import json
import ssl
import urllib.error
import urllib.request
from typing import Any


class PollError(Exception):
    """Polling failed; ``drain_urls`` holds what was gathered before the failure."""

    def __init__(self, message: str, drain_urls: dict[str, list[str]]):
        super().__init__(message)
        self.drain_urls = drain_urls


def build_url(base_url: str, batch_size: int, next_id: int) -> str:
    url = f"{base_url}/v2/syslog_drain_urls?batch_size={batch_size}"
    if next_id != 0:
        url = f"{url}&next_id={next_id}"
    return url


def _status_text(code: int) -> str:
    try:
        return http.HTTPStatus(code).phrase
    except ValueError:
        return ""


def _decode(body: bytes) -> dict[str, Any]:
    try:
        parsed = json.loads(body)
    except ValueError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def poll(
    hostname: str, username: str, password: str, batch_size: int, skip_cert_verify: bool
) -> dict[str, list[str]]:
    """Page through the drain URL endpoint and merge every page's results."""
    drain_urls: dict[str, list[str]] = {}

    context = ssl.create_default_context()
    if skip_cert_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    headers = {"Authorization": f"Basic {credentials}"}

    next_id = 0
    while True:
        request = urllib.request.Request(build_url(hostname, batch_size, next_id), headers=headers)
        try:
            with urllib.request.urlopen(request, context=context) as response:
                status = response.status
                body = response.read()
        except urllib.error.HTTPError as err:
            err.close()
            raise PollError(f"Remote server error: {_status_text(err.code)}", drain_urls) from None
        except (urllib.error.URLError, http.client.HTTPException, OSError) as err:
            raise PollError(str(err), drain_urls) from err

        if status != http.HTTPStatus.OK:
            raise PollError(f"Remote server error: {_status_text(status)}", drain_urls)

        page = _decode(body)
        for app_id, urls in (page.get("results") or {}).items():
            drain_urls[app_id] = list(urls or [])

        page_next = page.get("next_id")
        if page_next is None:
            break
        next_id = int(page_next)

    return drain_urls