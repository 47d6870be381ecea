# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Container tool version detection and capability flags.

The version is detected once per process and cached. Only an explicit
``reset_version()`` triggers detection again.
"""

import asyncio
import json
import logging
import os
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Tuple

from podmenu.errors import ToolNotFound, VersionUndetected

logger = logging.getLogger(__name__)

VersionTuple = Tuple[int, int, int]

# MAJOR.MINOR[.PATCH] with optional pre-release/build suffix (-rc1, +dev, ~1)
VERSION_PATTERN = re.compile(r"(?<![\d.])(\d+)\.(\d+)(?:\.(\d+))?(?:[-+~][0-9A-Za-z.\-+~]*)?")

# Before this release, ps JSON used "Status" for the state and a plain "Names" string
LEGACY_STATUS_BEFORE: VersionTuple = (2, 0, 3)
JSON_LIST_SINCE: VersionTuple = (1, 0, 0)
INSPECT_FORMAT_JSON_SINCE: VersionTuple = (2, 0, 0)

# Version numbers above only describe podman; docker is gated separately
PODMAN = "podman"
DOCKER = "docker"
TOOL_FAMILIES = (PODMAN, DOCKER)

# Older docker treats "--format json" as a Go template and prints "json"
DOCKER_FORMAT_JSON_SINCE: VersionTuple = (23, 0, 0)
DOCKER_JSON_TEMPLATE = "{{json .}}"


@dataclass(frozen=True)
class BenignEmptyRule:
    """stderr substring meaning "no containers" for a range of tool versions.

    Bounds are inclusive minimum, exclusive maximum; None means unbounded.
    """

    pattern: str
    min_version: Optional[VersionTuple] = None
    max_version: Optional[VersionTuple] = None

    def applies_to(self, version: VersionTuple) -> bool:
        if self.min_version is not None and version < self.min_version:
            return False
        if self.max_version is not None and version >= self.max_version:
            return False
        return True


BENIGN_EMPTY_RULES: Tuple[BenignEmptyRule, ...] = (
    BenignEmptyRule("no containers"),
)


@dataclass(frozen=True)
class Capabilities:
    """Feature flags derived from the detected tool family and version."""

    legacy_status: bool = True
    json_list: bool = False
    inspect_format_json: bool = False
    benign_empty_patterns: Tuple[str, ...] = ()
    family: str = PODMAN
    list_format: str = "json"

    @classmethod
    def for_version(cls, version: VersionTuple, family: str = PODMAN) -> "Capabilities":
        patterns = tuple(rule.pattern for rule in BENIGN_EMPTY_RULES if rule.applies_to(version))
        if family == DOCKER:
            # docker inspect always prints JSON; ps has had a JSON template since 1.8
            return cls(
                legacy_status=False,
                json_list=True,
                inspect_format_json=False,
                benign_empty_patterns=patterns,
                family=DOCKER,
                list_format="json" if version >= DOCKER_FORMAT_JSON_SINCE else DOCKER_JSON_TEMPLATE,
            )
        return cls(
            legacy_status=version < LEGACY_STATUS_BEFORE,
            json_list=version >= JSON_LIST_SINCE,
            inspect_format_json=version >= INSPECT_FORMAT_JSON_SINCE,
            benign_empty_patterns=patterns,
        )

    def is_benign_empty(self, stderr: str, extra_patterns: Iterable[str] = ()) -> bool:
        """Check whether a failing list command's stderr means "zero containers"."""
        text = (stderr or "").lower()
        if not text:
            return False
        for pattern in (*self.benign_empty_patterns, *extra_patterns):
            if pattern and pattern.lower() in text:
                return True
        return False


@dataclass(frozen=True)
class VersionInfo:
    """Detected tool version and its capability profile."""

    major: int = 0
    minor: int = 0
    patch: int = 0
    raw: str = ""
    detected: bool = False
    capabilities: Capabilities = field(default_factory=lambda: Capabilities.for_version((0, 0, 0)))

    @classmethod
    def from_tuple(cls, version: VersionTuple, raw: str = "", family: str = PODMAN) -> "VersionInfo":
        return cls(
            major=version[0],
            minor=version[1],
            patch=version[2],
            raw=raw,
            detected=True,
            capabilities=Capabilities.for_version(version, family),
        )

    @classmethod
    def conservative(cls, raw: str = "", family: str = PODMAN) -> "VersionInfo":
        """Oldest-compatible profile used when detection fails."""
        return cls(raw=raw, capabilities=Capabilities.for_version((0, 0, 0), family))

    @property
    def family(self) -> str:
        return self.capabilities.family

    @property
    def version(self) -> VersionTuple:
        return (self.major, self.minor, self.patch)

    def newer_or_equal_to(self, other: VersionTuple) -> bool:
        return self.version >= other

    def __str__(self) -> str:
        if not self.detected:
            return "unknown"
        return f"{self.major}.{self.minor}.{self.patch}"


def parse_version(text: str) -> VersionTuple:
    """Extract the first semantic version from free text.

    Raises:
        VersionUndetected: If no version number is present
    """
    match = VERSION_PATTERN.search(text or "")
    if not match:
        raise VersionUndetected(f"No version found in: {text[:80]!r}" if text else "Empty version output")
    major, minor, patch = match.group(1), match.group(2), match.group(3)
    return (int(major), int(minor), int(patch or 0))


def detect_family(text: str, tool: str = PODMAN) -> str:
    """Name the tool family from version output, else from the binary name.

    The podman-docker shim answers as podman, so podman is checked first.
    """
    lowered = (text or "").lower()
    for family in TOOL_FAMILIES:
        if family in lowered:
            return family
    return DOCKER if DOCKER in os.path.basename(tool or "") else PODMAN


def _version_from_json(text: str) -> Optional[str]:
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None
    client = data.get("Client")
    if isinstance(client, dict) and client.get("Version"):
        return str(client["Version"])
    if data.get("Version"):
        return str(data["Version"])
    return None


class VersionDetector:
    """Queries the tool for its version."""

    def __init__(self, runner, timeout: Optional[float] = None):
        self.runner = runner
        self.timeout = timeout

    async def _detect(self) -> VersionInfo:
        result = await self.runner.run(["version", "--format", "json"], timeout=self.timeout)
        if result.ok:
            raw = _version_from_json(result.stdout)
            if raw:
                family = detect_family(result.stdout, self.runner.tool)
                return VersionInfo.from_tuple(parse_version(raw), raw=raw, family=family)

        result = await self.runner.run(["--version"], timeout=self.timeout)
        if not result.ok:
            raise VersionUndetected(
                f"Version query exited {result.returncode}: {result.stderr or result.stdout}"
            )
        family = detect_family(result.stdout, self.runner.tool)
        return VersionInfo.from_tuple(parse_version(result.stdout), raw=result.stdout, family=family)

    async def discover(self) -> VersionInfo:
        """Detect the version, degrading to the conservative profile on failure."""
        fallback_family = detect_family("", self.runner.tool)
        try:
            info = await self._detect()
        except VersionUndetected as e:
            logger.warning(f"Could not detect {self.runner.tool} version, using conservative profile: {e}")
            return VersionInfo.conservative(family=fallback_family)
        except ToolNotFound as e:
            logger.warning(f"Version detection skipped: {e}")
            return VersionInfo.conservative(family=fallback_family)
        logger.info(f"Detected {info.family} {info} ({info.capabilities})")
        return info


# Process-wide detected version, and the detection currently running
_version_info: Optional[VersionInfo] = None
_pending: Optional["asyncio.Future[VersionInfo]"] = None


async def discover_version(runner, timeout: Optional[float] = None) -> VersionInfo:
    """Detect the tool version once and cache it for the process lifetime.

    Concurrent callers share one detection, so the tool is queried once.
    """
    global _version_info, _pending
    if _version_info is not None:
        return _version_info

    pending = _pending
    if pending is None or pending.get_loop() is not asyncio.get_running_loop():
        pending = asyncio.ensure_future(VersionDetector(runner, timeout=timeout).discover())
        _pending = pending
    try:
        # shielded so one cancelled caller does not cancel the shared detection
        info = await asyncio.shield(pending)
    finally:
        if pending.done() and _pending is pending:
            _pending = None
    if _version_info is None:
        _version_info = info
    return _version_info


def get_version_info() -> Optional[VersionInfo]:
    """Return the cached version, or None before discovery."""
    return _version_info


def reset_version() -> None:
    """Forget the cached version so the next discover_version() detects again."""
    global _version_info, _pending
    _version_info = None
    _pending = None
