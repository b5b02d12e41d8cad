"""Publishes syslog drain URLs for applications into the store."""

from __future__ import annotations

import hashlib
import logging
from typing import Mapping, Sequence

from .store import InMemoryStore, StoreNode

logger = logging.getLogger(__name__)

AppId = str
DrainURL = str


def app_key(app_id: AppId) -> str:
    return f"/loggregator/services/{app_id}"


def drain_key(app_id: AppId, drain_url: DrainURL) -> str:
    digest = hashlib.sha1(drain_url.encode("utf-8")).hexdigest()
    return f"{app_key(app_id)}/{digest}"


class SyslogDrainStore:
    """Writes each application's drain URLs with a time to live of ``ttl`` seconds."""

    def __init__(self, store_adapter: InMemoryStore, ttl: float):
        self.store_adapter = store_adapter
        self.ttl = ttl

    def update_drains(self, app_drain_urls: Mapping[AppId, Sequence[DrainURL]]) -> None:
        """Store every non-blank drain URL; the first store error is raised."""
        for app_id, urls in app_drain_urls.items():
            self._update_app_drains(app_id, urls)

    def _update_app_drains(self, app_id: AppId, urls: Sequence[DrainURL]) -> None:
        nodes = []
        for url in urls:
            if not url.strip():
                logger.info(
                    "UpdateDrains: attempted to add whitespace-only drain url '%s' for app %s. Skipping.",
                    url,
                    app_id,
                )
                continue
            logger.debug("UpdateDrains: adding drain %s to app %s", url, app_id)
            nodes.append(StoreNode(key=drain_key(app_id, url), value=url.encode("utf-8"), ttl=int(self.ttl)))

        if nodes:
            self.store_adapter.set_multi(nodes)