# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Container records and the snapshot model.

A Snapshot is the result of one discovery call. The model swaps the whole
snapshot in a single assignment, so readers holding the old one keep a
consistent view and never see a half-updated list.
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from podmenu.status import Action, SemanticState, is_action_legal, legal_actions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortMapping:
    """One published port."""

    container_port: int
    host_port: Optional[int] = None
    host_ip: Optional[str] = None
    protocol: str = "tcp"
    range: int = 1

    def __str__(self) -> str:
        container = str(self.container_port)
        host = str(self.host_port) if self.host_port is not None else ""
        if self.range > 1:
            container = f"{self.container_port}-{self.container_port + self.range - 1}"
            if self.host_port is not None:
                host = f"{self.host_port}-{self.host_port + self.range - 1}"
        if not host:
            return f"{container}/{self.protocol}"
        prefix = f"{self.host_ip}:" if self.host_ip else ""
        return f"{prefix}{host}->{container}/{self.protocol}"


Ports = Union[str, Tuple[PortMapping, ...]]


def format_ports(ports: Optional[Ports]) -> str:
    if ports is None:
        return ""
    if isinstance(ports, str):
        return ports
    return ", ".join(str(p) for p in ports)


@dataclass(frozen=True)
class Enrichment:
    """Fields learned from a low-level inspect."""

    ip_address: Optional[str] = None
    networks: Optional[Tuple[str, ...]] = None

    @property
    def empty(self) -> bool:
        return self.ip_address is None and self.networks is None


@dataclass(frozen=True)
class Container:
    """One container as reported by the tool."""

    name: str
    status: str
    state: SemanticState
    id: Optional[str] = None
    image: Optional[str] = None
    command: Optional[str] = None
    created: Optional[str] = None
    started_at: Optional[datetime] = None
    ports: Optional[Ports] = None
    ip_address: Optional[str] = None
    networks: Optional[Tuple[str, ...]] = None

    def can(self, action: Action) -> bool:
        return is_action_legal(action, self.state)

    @property
    def actions(self) -> Tuple[Action, ...]:
        return legal_actions(self.state)

    @property
    def ports_text(self) -> str:
        return format_ports(self.ports)

    def with_enrichment(self, enrichment: Enrichment) -> "Container":
        """Return a copy with enrichment fields added. Known fields are never cleared."""
        updates: Dict[str, Any] = {}
        if enrichment.ip_address is not None:
            updates["ip_address"] = enrichment.ip_address
        if enrichment.networks is not None:
            updates["networks"] = enrichment.networks
        if not updates:
            return self
        return replace(self, **updates)


@dataclass(frozen=True)
class Snapshot:
    """Immutable set of containers from one discovery call.

    The enrichment cache lives here so replacing the snapshot drops every
    stale inspect result at once.
    """

    sequence: int = 0
    containers: Tuple[Container, ...] = ()
    enrichments: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self):
        object.__setattr__(self, "_by_name", {c.name: c for c in self.containers})

    def __iter__(self) -> Iterator[Container]:
        return iter(self.containers)

    def __len__(self) -> int:
        return len(self.containers)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> Optional[Container]:
        return self._by_name.get(name)

    def names(self) -> List[str]:
        return [c.name for c in self.containers]


class ContainerModel:
    """Owns the current snapshot and guards it against stale discoveries."""

    def __init__(self):
        self._snapshot = Snapshot()
        self._issued = 0
        self._published = False

    @property
    def current(self) -> Snapshot:
        return self._snapshot

    @property
    def has_snapshot(self) -> bool:
        return self._published

    def next_sequence(self) -> int:
        """Reserve a sequence number for a discovery request."""
        self._issued += 1
        return self._issued

    def publish(self, sequence: int, containers: Iterable[Container]) -> bool:
        """Replace the snapshot unless a newer one is already in place.

        Returns:
            True if the snapshot was replaced, False if the result was stale
        """
        if sequence <= self._snapshot.sequence:
            logger.debug(
                f"Discarding stale discovery #{sequence} (current #{self._snapshot.sequence})"
            )
            return False
        self._snapshot = Snapshot(sequence=sequence, containers=tuple(containers))
        self._published = True
        logger.debug(f"Published snapshot #{sequence} with {len(self._snapshot)} containers")
        return True
