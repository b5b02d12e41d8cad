"""Leader election through a shared key in the store."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .store import InMemoryStore, KeyExistsError, StoreNode

logger = logging.getLogger(__name__)

LEADER_KEY = "syslog_drain_binder/leader"


class Elector:
    """Competes for the cluster leader key under ``instance_name``.

    The constructor keeps trying to connect to the store, waiting
    ``update_interval`` seconds between attempts.
    """

    def __init__(
        self,
        instance_name: str,
        adapter: InMemoryStore,
        update_interval: float,
        sleep: Callable[[float], object] = time.sleep,
    ):
        self.instance_name = instance_name
        self.adapter = adapter
        self.update_interval = update_interval
        self._sleep = sleep
        self._leader = False

        while True:
            try:
                adapter.connect()
            except Exception as err:
                logger.error("Elector: Unable to connect to store: '%s'", err)
                self._sleep(update_interval)
            else:
                break

    def run_for_election(self) -> None:
        """Try to take the leader key, retrying while another instance holds it."""
        while True:
            try:
                self.adapter.create(self._node())
            except KeyExistsError:
                self._leader = False
                logger.info("Elector: '%s' lost election for cluster leader.", self.instance_name)
                self._sleep(self.update_interval)
            except Exception as err:
                self._leader = False
                logger.error("Elector: unexpected error from Etcd: %s", err)
                raise
            else:
                self._leader = True
                logger.info("Elector: '%s' won election for cluster leader.", self.instance_name)
                return

    def stay_as_leader(self) -> None:
        """Refresh the leader key; raise if this instance no longer holds it."""
        logger.debug("Elector: '%s' attempting to remain cluster leader…", self.instance_name)
        node = self._node()
        try:
            self.adapter.compare_and_swap(node, node)
        except Exception:
            self._leader = False
            raise
        self._leader = True

    def vacate(self) -> None:
        """Give up leadership, deleting the key if this instance holds it."""
        logger.debug("Elector: '%s' attempting to vacate leadership…", self.instance_name)
        self._leader = False
        self.adapter.compare_and_delete(self._node())

    def is_leader(self) -> bool:
        return self._leader

    def _node(self) -> StoreNode:
        return StoreNode(
            key=LEADER_KEY,
            value=self.instance_name.encode("utf-8"),
            ttl=int(self.update_interval),
        )