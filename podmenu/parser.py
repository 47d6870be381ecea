# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Parsing of container tool output into Container records.

Supported list formats:
- JSON array (``podman ps -a --format json``)
- line-delimited JSON objects (``docker ps -a --format json`` or ``{{json .}}``)
- the default column table (``ps -a``), sliced at the header offsets

A record that cannot be turned into a Container is dropped with a warning;
the rest of the listing is kept.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from podmenu.errors import ParseError
from podmenu.model import Container, Enrichment, PortMapping, Ports
from podmenu.status import normalize_status
from podmenu.version import Capabilities

logger = logging.getLogger(__name__)

# Fractional seconds; fromisoformat before 3.11 takes exactly 3 or 6 digits
ISO_FRACTION = re.compile(r"\.(\d+)")

# Header cells are separated by two or more spaces; "CONTAINER ID" has one inside
HEADER_CELL = re.compile(r"\S+(?: \S+)*")

TABLE_COLUMNS = {
    "CONTAINER ID": "ID",
    "IMAGE": "Image",
    "COMMAND": "Command",
    "CREATED": "Created",
    "STATUS": "Status",
    "PORTS": "Ports",
    "NAMES": "Names",
}


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _first_present(record: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if not _blank(value):
            return value
    return None


def _parse_name(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = value[0] if value else None
    if not isinstance(value, str):
        return None
    # "web-1,web-alias" -> "web-1"
    name = value.split(",")[0].strip()
    return name or None


def _parse_command(value: Any) -> Optional[str]:
    if isinstance(value, list):
        value = " ".join(str(part) for part in value)
    if not isinstance(value, str):
        return None
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] == '"':
        value = value[1:-1]
    return value or None


def _epoch_to_datetime(value: float) -> Optional[datetime]:
    if value <= 0:
        return None
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an epoch number or ISO-8601 string; anything else is absent."""
    if isinstance(value, bool) or _blank(value):
        return None
    if isinstance(value, (int, float)):
        return _epoch_to_datetime(float(value))
    if isinstance(value, str):
        text = value.strip()
        if re.fullmatch(r"-?\d+(\.\d+)?", text):
            return _epoch_to_datetime(float(text))
        text = ISO_FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unrecognized timestamp: {text!r}")
            return None
        if parsed.year <= 1:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def _parse_created(value: Any) -> Optional[str]:
    if isinstance(value, bool) or _blank(value):
        return None
    if isinstance(value, (int, float)):
        parsed = _epoch_to_datetime(float(value))
        return parsed.strftime("%Y-%m-%d %H:%M:%S %Z") if parsed else None
    return str(value).strip()


def _port_number(value: Any) -> Optional[int]:
    if isinstance(value, bool) or _blank(value):
        return None
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


def _parse_port_mapping(entry: Dict[str, Any]) -> Optional[PortMapping]:
    container_port = _port_number(_first_present(entry, "container_port", "containerPort"))
    if container_port is None:
        return None
    host_ip = _first_present(entry, "host_ip", "hostIP")
    protocol = _first_present(entry, "protocol") or "tcp"
    try:
        port_range = int(entry.get("range") or 1)
    except (TypeError, ValueError):
        port_range = 1
    return PortMapping(
        container_port=container_port,
        host_port=_port_number(_first_present(entry, "host_port", "hostPort")),
        host_ip=str(host_ip) if host_ip else None,
        protocol=str(protocol),
        range=max(port_range, 1),
    )


def parse_ports(value: Any) -> Optional[Ports]:
    """Parse ports as structured mappings or free text; empty means absent."""
    if _blank(value):
        return None
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        mappings = []
        for entry in value:
            if not isinstance(entry, dict):
                logger.debug(f"Skipping unexpected port entry: {entry!r}")
                continue
            mapping = _parse_port_mapping(entry)
            if mapping is None:
                logger.debug(f"Skipping port entry without container port: {entry!r}")
                continue
            mappings.append(mapping)
        return tuple(mappings) or None
    return None


class OutputParser:
    """Turns raw tool output into Containers using the detected capabilities."""

    def __init__(self, capabilities: Capabilities):
        self.capabilities = capabilities

    # ========== Listing ==========

    def parse_container_list(self, raw: str) -> List[Container]:
        """Parse the output of the list command.

        Raises:
            ParseError: If the output as a whole has an unexpected shape
        """
        text = (raw or "").strip()
        if not text:
            return []

        if self.capabilities.json_list:
            records = self._json_records(text)
        else:
            records = self._table_records(text)

        containers: List[Container] = []
        seen = set()
        for index, record in records:
            try:
                container = self.build_container(record)
            except ParseError as e:
                logger.warning(f"Dropping container record {index}: {e}")
                continue
            if container.name in seen:
                logger.warning(f"Dropping duplicate container record for {container.name}")
                continue
            seen.add(container.name)
            containers.append(container)
        return containers

    def _json_records(self, text: str) -> List[Tuple[int, Any]]:
        if text.startswith("["):
            try:
                data = json.loads(text)
            except json.JSONDecodeError as e:
                raise ParseError(f"Invalid JSON container list: {e}")
            if not isinstance(data, list):
                raise ParseError("Container list JSON is not an array")
            return list(enumerate(data))

        records: List[Tuple[int, Any]] = []
        for index, line in enumerate(text.splitlines()):
            line = line.strip()
            if not line:
                continue
            try:
                records.append((index, json.loads(line)))
            except json.JSONDecodeError as e:
                logger.warning(f"Dropping container record {index}: invalid JSON: {e}")
        if not records:
            raise ParseError("No JSON records in container list output")
        return records

    def _table_records(self, text: str) -> List[Tuple[int, Any]]:
        lines = text.splitlines()
        header = lines[0]
        columns = [(m.start(), m.group(0).upper()) for m in HEADER_CELL.finditer(header)]
        headings = {name for _, name in columns}
        if "NAMES" not in headings or "STATUS" not in headings:
            raise ParseError(f"Unrecognized table header: {header.strip()!r}")

        records: List[Tuple[int, Any]] = []
        for index, line in enumerate(lines[1:]):
            if not line.strip():
                continue
            record: Dict[str, Any] = {}
            for i, (start, name) in enumerate(columns):
                end = columns[i + 1][0] if i + 1 < len(columns) else None
                key = TABLE_COLUMNS.get(name)
                if key is None:
                    continue
                cell = line[start:end].strip()
                record[key] = cell or None
            records.append((index, record))
        return records

    def build_container(self, record: Any) -> Container:
        """Build one Container from a decoded record.

        Raises:
            ParseError: If the record has no usable name or status
        """
        if not isinstance(record, dict):
            raise ParseError(f"expected an object, got {type(record).__name__}")

        name = _parse_name(_first_present(record, "Names", "Name"))
        if name is None:
            raise ParseError("missing container name")

        if self.capabilities.legacy_status:
            status_keys = ("Status", "State")
            created_keys = ("Created", "CreatedAt")
        else:
            status_keys = ("State", "Status")
            created_keys = ("CreatedAt", "Created")

        status = _first_present(record, *status_keys)
        if not isinstance(status, str):
            raise ParseError(f"unparsable status for {name}: {status!r}")
        status = status.strip()

        container_id = _first_present(record, "Id", "ID")
        image = _first_present(record, "Image")

        return Container(
            name=name,
            status=status,
            state=normalize_status(status),
            id=str(container_id) if container_id is not None else None,
            image=str(image) if image is not None else None,
            command=_parse_command(record.get("Command")),
            created=_parse_created(_first_present(record, *created_keys)),
            started_at=parse_timestamp(record.get("StartedAt")),
            ports=parse_ports(record.get("Ports")),
        )

    # ========== Inspect ==========

    def parse_inspect(self, raw: str) -> Enrichment:
        """Extract enrichment fields from inspect output.

        Raises:
            ParseError: If the output is not a JSON object or array of objects
        """
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise ParseError(f"Invalid inspect JSON: {e}")

        if isinstance(data, list):
            if not data:
                return Enrichment()
            data = data[0]
        if not isinstance(data, dict):
            raise ParseError("Inspect output is not an object")

        settings = data.get("NetworkSettings")
        if not isinstance(settings, dict):
            return Enrichment()

        networks = settings.get("Networks")
        if not isinstance(networks, dict):
            networks = {}

        ip_address = settings.get("IPAddress") or None
        if ip_address is None:
            for network in networks.values():
                if isinstance(network, dict) and network.get("IPAddress"):
                    ip_address = network["IPAddress"]
                    break

        return Enrichment(
            ip_address=str(ip_address) if ip_address else None,
            networks=tuple(sorted(networks)) or None,
        )
