# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Lazy inspect enrichment.

Inspect is slow, so it runs at most once per container per snapshot. The
result (or the in-flight task) is cached on the snapshot itself, which makes
a new discovery forget every old result.
"""

import asyncio
import logging
from typing import Optional

from podmenu.actions import CommandTemplates
from podmenu.errors import ParseError
from podmenu.model import Enrichment, Snapshot
from podmenu.parser import OutputParser
from podmenu.runner import CommandRunner

logger = logging.getLogger(__name__)


class InspectEnricher:
    """Fetches inspect-only fields such as the IP address."""

    def __init__(
        self,
        runner: CommandRunner,
        templates: CommandTemplates,
        parser: OutputParser,
        timeout: Optional[float] = None,
    ):
        self.runner = runner
        self.templates = templates
        self.parser = parser
        self.timeout = timeout

    async def _inspect(self, name: str) -> Enrichment:
        result = await self.runner.run(self.templates.inspect(name), timeout=self.timeout)
        if not result.ok:
            logger.warning(
                f"Inspect of {name} failed (exit {result.returncode}): {result.stderr or result.stdout}"
            )
            return Enrichment()
        try:
            return self.parser.parse_inspect(result.stdout)
        except ParseError as e:
            logger.warning(f"Could not parse inspect output for {name}: {e}")
            return Enrichment()

    async def enrich(self, snapshot: Snapshot, name: str) -> Enrichment:
        """Return enrichment for a container, inspecting it at most once per snapshot."""
        if name not in snapshot:
            logger.debug(f"{name} is not in snapshot #{snapshot.sequence}; inspecting uncached")
            return await self._inspect(name)

        cached = snapshot.enrichments.get(name)
        if isinstance(cached, Enrichment):
            return cached
        if cached is None:
            cached = asyncio.ensure_future(self._inspect(name))
            snapshot.enrichments[name] = cached

        try:
            enrichment = await cached
        except BaseException:
            # Nothing usable was learned; allow a later retry
            if snapshot.enrichments.get(name) is cached:
                del snapshot.enrichments[name]
            raise
        snapshot.enrichments[name] = enrichment
        return enrichment
