# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Tests for container list and inspect parsing."""

import json
import logging
from datetime import datetime, timedelta, timezone

import pytest

from podmenu.errors import ParseError
from podmenu.model import PortMapping
from podmenu.parser import OutputParser, parse_ports, parse_timestamp
from podmenu.status import SemanticState
from podmenu.version import Capabilities, VersionInfo
from tests.conftest import (
    DOCKER_PS_LINES,
    INSPECT_JSON,
    PODMAN1_PS_JSON,
    PODMAN4_PS_JSON,
    PS_TABLE,
    make_ps_table,
)

MODERN = Capabilities.for_version((4, 3, 1))
LEGACY = Capabilities.for_version((1, 9, 3))
CONSERVATIVE = VersionInfo.conservative().capabilities


class TestModernJson:
    """Test podman >= 2.0.3 JSON arrays"""

    def test_fields(self):
        containers = OutputParser(MODERN).parse_container_list(PODMAN4_PS_JSON)
        assert [c.name for c in containers] == ["web-1", "db-1", "fresh"]

        web = containers[0]
        assert web.status == "running"
        assert web.state is SemanticState.RUNNING
        assert web.id == "a1b2c3d4e5f6"
        assert web.image == "docker.io/library/nginx:latest"
        assert web.command == "nginx -g daemon off;"
        assert web.created == "3 hours ago"
        assert web.started_at == datetime.fromtimestamp(1700000100, tz=timezone.utc)
        assert web.ports == (PortMapping(container_port=80, host_port=8080, host_ip=None),)
        assert web.ip_address is None

    def test_missing_optionals_are_absent(self):
        containers = OutputParser(MODERN).parse_container_list(PODMAN4_PS_JSON)
        fresh = containers[2]
        assert fresh.state is SemanticState.CREATED
        assert fresh.started_at is None
        assert fresh.ports is None
        assert fresh.command is None

    def test_state_preferred_over_status(self):
        raw = json.dumps([{"Names": ["x"], "State": "paused", "Status": "Up 1 minute"}])
        [container] = OutputParser(MODERN).parse_container_list(raw)
        assert container.state is SemanticState.PAUSED

    def test_status_used_when_state_missing(self):
        raw = json.dumps([{"Names": ["x"], "Status": "Exited (1) 5 seconds ago"}])
        [container] = OutputParser(MODERN).parse_container_list(raw)
        assert container.state is SemanticState.STOPPED

    def test_empty_array(self):
        assert OutputParser(MODERN).parse_container_list("[]") == []

    def test_empty_output(self):
        assert OutputParser(MODERN).parse_container_list("") == []
        assert OutputParser(MODERN).parse_container_list("  \n") == []


class TestLegacyJson:
    """Test podman 1.x JSON (plain Names, status in Status)"""

    def test_fields(self):
        web, db = OutputParser(LEGACY).parse_container_list(PODMAN1_PS_JSON)
        assert web.name == "web-1"
        assert web.status == "Up 3 hours ago"
        assert web.state is SemanticState.RUNNING
        assert web.created == "3 hours ago"
        assert web.ports == "0.0.0.0:8080->80/tcp"
        assert db.state is SemanticState.STOPPED
        assert db.ports is None
        assert db.started_at is None


class TestLineDelimitedJson:
    """Test docker-style one JSON object per line"""

    def test_fields(self):
        web, db = OutputParser(MODERN).parse_container_list(DOCKER_PS_LINES)
        assert web.name == "web-1"
        assert web.state is SemanticState.RUNNING
        assert web.command == "nginx -g 'daemon off;'"
        assert web.created == "2024-01-01 10:00:00 +0000 UTC"
        assert db.state is SemanticState.STOPPED

    def test_bad_line_dropped(self, caplog):
        raw = DOCKER_PS_LINES + "\n{not json"
        with caplog.at_level(logging.WARNING, logger="podmenu"):
            containers = OutputParser(MODERN).parse_container_list(raw)
        assert [c.name for c in containers] == ["web-1", "db-1"]
        assert "invalid JSON" in caplog.text

    def test_all_lines_bad_is_call_error(self):
        with pytest.raises(ParseError):
            OutputParser(MODERN).parse_container_list("CONTAINER ID   IMAGE\nabc   nginx")

    def test_comma_separated_names(self):
        raw = json.dumps({"Names": "web-1,proxy/web", "State": "running"})
        [container] = OutputParser(MODERN).parse_container_list(raw)
        assert container.name == "web-1"


class TestMalformedRecords:
    """Test that one bad record never discards the rest"""

    def test_missing_name_dropped(self, caplog):
        raw = json.dumps([{"State": "running"}, {"Names": ["ok"], "State": "running"}])
        with caplog.at_level(logging.WARNING, logger="podmenu"):
            containers = OutputParser(MODERN).parse_container_list(raw)
        assert [c.name for c in containers] == ["ok"]
        assert "missing container name" in caplog.text

    def test_unparsable_status_dropped(self):
        raw = json.dumps(
            [
                {"Names": ["bad"], "State": 3},
                {"Names": ["none"]},
                {"Names": ["ok"], "State": "exited"},
            ]
        )
        containers = OutputParser(MODERN).parse_container_list(raw)
        assert [c.name for c in containers] == ["ok"]

    def test_non_object_dropped(self):
        raw = json.dumps(["junk", 7, {"Names": ["ok"], "State": "running"}])
        assert [c.name for c in OutputParser(MODERN).parse_container_list(raw)] == ["ok"]

    def test_new_status_word_is_unknown_not_dropped(self):
        raw = json.dumps([{"Names": ["odd"], "State": "hibernating"}])
        [container] = OutputParser(MODERN).parse_container_list(raw)
        assert container.state is SemanticState.UNKNOWN
        assert container.status == "hibernating"

    def test_duplicate_names_keep_first(self):
        raw = json.dumps(
            [{"Names": ["dup"], "State": "running"}, {"Names": ["dup"], "State": "exited"}]
        )
        [container] = OutputParser(MODERN).parse_container_list(raw)
        assert container.state is SemanticState.RUNNING

    def test_broken_array_is_call_error(self):
        with pytest.raises(ParseError):
            OutputParser(MODERN).parse_container_list('[{"Names": ["x"]')

    def test_object_instead_of_array_is_line_record(self):
        raw = json.dumps({"Names": ["solo"], "State": "running"})
        [container] = OutputParser(MODERN).parse_container_list(raw)
        assert container.name == "solo"


class TestTable:
    """Test column-aligned table output"""

    def test_fields(self):
        web, db = OutputParser(CONSERVATIVE).parse_container_list(PS_TABLE)
        assert web.name == "web-1"
        assert web.id == "a1b2c3d4e5f6"
        assert web.image == "docker.io/library/nginx:latest"
        assert web.command == "nginx -g daemon o..."
        assert web.created == "3 hours ago"
        assert web.status == "Up 3 hours"
        assert web.state is SemanticState.RUNNING
        assert web.ports == "0.0.0.0:8080->80/tcp"
        assert db.status == "Exited (0) 2 days ago"
        assert db.state is SemanticState.STOPPED
        assert db.ports is None
        assert db.started_at is None

    def test_header_only(self):
        assert OutputParser(CONSERVATIVE).parse_container_list(make_ps_table([])) == []

    def test_blank_lines_ignored(self):
        containers = OutputParser(CONSERVATIVE).parse_container_list(PS_TABLE + "\n\n")
        assert len(containers) == 2

    def test_unknown_header_is_call_error(self):
        with pytest.raises(ParseError):
            OutputParser(CONSERVATIVE).parse_container_list("ID  WHATEVER\n1   2")

    def test_row_without_name_dropped(self):
        table = make_ps_table(
            [
                ("abc", "img", "cmd", "now", "Up 1 second", "", ""),
                ("def", "img", "cmd", "now", "Created", "", "ok"),
            ]
        )
        containers = OutputParser(CONSERVATIVE).parse_container_list(table)
        assert [c.name for c in containers] == ["ok"]
        assert containers[0].state is SemanticState.CREATED


class TestPortsAndTimestamps:
    def test_camel_case_ports(self):
        ports = parse_ports([{"hostPort": 5432, "containerPort": 5432, "protocol": "tcp", "hostIP": "127.0.0.1"}])
        assert ports == (PortMapping(container_port=5432, host_port=5432, host_ip="127.0.0.1"),)
        assert str(ports[0]) == "127.0.0.1:5432->5432/tcp"

    def test_port_range(self):
        [mapping] = parse_ports([{"container_port": 8000, "host_port": 9000, "range": 3, "protocol": "udp"}])
        assert str(mapping) == "9000-9002->8000-8002/udp"

    def test_exposed_only(self):
        [mapping] = parse_ports([{"container_port": 80}])
        assert str(mapping) == "80/tcp"

    @pytest.mark.parametrize("value", [None, "", "  ", [], [{"host_port": 1}]])
    def test_absent(self, value):
        assert parse_ports(value) is None

    def test_free_text(self):
        assert parse_ports(" 0.0.0.0:80->80/tcp ") == "0.0.0.0:80->80/tcp"

    @pytest.mark.parametrize("value", [None, 0, -62135596800, "", "0001-01-01T00:00:00Z", "yesterday", True])
    def test_timestamp_absent(self, value):
        assert parse_timestamp(value) is None

    def test_timestamp_iso(self):
        assert parse_timestamp("2024-01-01T10:00:00Z") == datetime(2024, 1, 1, 10, tzinfo=timezone.utc)

    def test_timestamp_epoch_string(self):
        assert parse_timestamp("1700000100") == datetime.fromtimestamp(1700000100, tz=timezone.utc)

    def test_timestamp_nanoseconds(self):
        parsed = parse_timestamp("2024-01-01T10:00:00.123456789Z")
        assert parsed == datetime(2024, 1, 1, 10, 0, 0, 123456, tzinfo=timezone.utc)

    def test_timestamp_short_fraction_with_offset(self):
        parsed = parse_timestamp("2024-01-01T10:00:00.5+02:00")
        assert parsed.microsecond == 500000
        assert parsed.utcoffset() == timedelta(hours=2)


class TestInspect:
    """Test enrichment fields from inspect output"""

    def test_network_fallback(self):
        enrichment = OutputParser(MODERN).parse_inspect(INSPECT_JSON)
        assert enrichment.ip_address == "10.88.0.5"
        assert enrichment.networks == ("podman",)

    def test_top_level_ip(self):
        raw = json.dumps([{"NetworkSettings": {"IPAddress": "172.17.0.2", "Networks": {}}}])
        enrichment = OutputParser(LEGACY).parse_inspect(raw)
        assert enrichment.ip_address == "172.17.0.2"
        assert enrichment.networks is None

    def test_stopped_container_has_no_ip(self):
        raw = json.dumps([{"NetworkSettings": {"IPAddress": "", "Networks": {"bridge": {"IPAddress": ""}}}}])
        enrichment = OutputParser(MODERN).parse_inspect(raw)
        assert enrichment.ip_address is None

    def test_no_network_settings(self):
        assert OutputParser(MODERN).parse_inspect(json.dumps([{"Id": "x"}])).empty

    def test_empty_array(self):
        assert OutputParser(MODERN).parse_inspect("[]").empty

    def test_invalid(self):
        with pytest.raises(ParseError):
            OutputParser(MODERN).parse_inspect("Error: no such container")
