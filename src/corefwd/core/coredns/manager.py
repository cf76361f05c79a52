"""Apply forward rule changes to a cluster's Corefile."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from corefwd.core.base import BaseClusterHandle
from corefwd.core.coredns.config import CorefileRuleParser, CorefileRuleWriter
from corefwd.core.errors import DuplicateRuleError, RuleNotFoundError
from corefwd.core.models import CoreDNSInfo, ForwardRule

logger = logging.getLogger(__name__)


class CoreDNSRuleManager:
    """
    Read, transform and write back a cluster's Corefile.

    Each mutation reads the latest Corefile, edits a single block in memory
    and stores the result. There is no compare-and-swap on the remote side,
    so two concurrent edits against the same cluster can overwrite each
    other. With ``serialize_writes`` enabled, edits issued through this
    manager are queued per cluster; writers outside this process can still
    race.
    """

    def __init__(
        self,
        request_timeout: float | None = 10.0,
        serialize_writes: bool = False,
        parser: CorefileRuleParser | None = None,
        writer: CorefileRuleWriter | None = None,
    ):
        self.request_timeout = request_timeout
        self.serialize_writes = serialize_writes
        self.parser = parser or CorefileRuleParser()
        self.writer = writer or CorefileRuleWriter()
        self._locks: dict[str, asyncio.Lock] = {}

    def _timeout(self, timeout: float | None) -> float | None:
        return self.request_timeout if timeout is None else timeout

    @asynccontextmanager
    async def _write_guard(self, handle: BaseClusterHandle) -> AsyncIterator[None]:
        if not self.serialize_writes:
            yield
            return
        lock = self._locks.setdefault(handle.cluster_id, asyncio.Lock())
        async with lock:
            yield

    # ========================================================================
    # Read
    # ========================================================================

    async def get_info(
        self,
        handle: BaseClusterHandle,
        timeout: float | None = None,
    ) -> CoreDNSInfo:
        """Snapshot of the Corefile, its forward rules and the resolver address."""
        timeout = self._timeout(timeout)
        corefile = await handle.fetch_corefile(timeout=timeout)
        service_ip = await handle.resolver_address(timeout=timeout)

        return CoreDNSInfo(
            cluster_id=handle.cluster_id,
            corefile=corefile,
            service_ip=service_ip,
            forward_rules=self.parser.parse(corefile),
        )

    # ========================================================================
    # Write
    # ========================================================================

    async def add_rule(
        self,
        handle: BaseClusterHandle,
        rule: ForwardRule,
        timeout: float | None = None,
    ) -> str:
        """Append a rule block; returns the Corefile that was stored."""
        timeout = self._timeout(timeout)

        async with self._write_guard(handle):
            corefile = await handle.fetch_corefile(timeout=timeout)

            for existing in self.parser.parse(corefile):
                if existing.same_rule(rule):
                    raise DuplicateRuleError(
                        f"Forward rule for {rule.full_name} already exists"
                    )

            new_corefile = self.writer.append(corefile, rule)
            await handle.store_corefile(new_corefile, timeout=timeout)

        logger.info(
            f"Added forward rule {rule.full_name} -> {rule.target_ip} on cluster {handle.cluster_id}"
        )
        return new_corefile

    async def delete_rule(
        self,
        handle: BaseClusterHandle,
        full_name: str,
        is_full_fqdn: bool = False,
        missing_ok: bool = True,
        timeout: float | None = None,
    ) -> str:
        """
        Remove the block for ``full_name``; returns the Corefile that was stored.

        By default a rule that is not present still results in a write of the
        unchanged text. Pass ``missing_ok=False`` to get ``RuleNotFoundError``
        instead, in which case nothing is written.
        """
        timeout = self._timeout(timeout)

        async with self._write_guard(handle):
            corefile = await handle.fetch_corefile(timeout=timeout)
            new_corefile, removed = self.writer.delete(corefile, full_name, is_full_fqdn)

            if not removed:
                if not missing_ok:
                    raise RuleNotFoundError(f"Forward rule for {full_name} not found")
                logger.warning(
                    f"No forward rule block for {full_name} on cluster {handle.cluster_id}"
                )

            await handle.store_corefile(new_corefile, timeout=timeout)

        if removed:
            logger.info(f"Deleted forward rule {full_name} on cluster {handle.cluster_id}")
        return new_corefile

    async def update_corefile(
        self,
        handle: BaseClusterHandle,
        corefile: str,
        timeout: float | None = None,
    ) -> None:
        """Overwrite the whole Corefile. The text is stored as given."""
        timeout = self._timeout(timeout)

        async with self._write_guard(handle):
            await handle.store_corefile(corefile, timeout=timeout)

        logger.info(f"Replaced Corefile on cluster {handle.cluster_id}")
