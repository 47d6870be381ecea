# Copyright (c) 2025 Marc Schütze <scharc@gmail.com>
# SPDX-License-Identifier: MIT
# See LICENSE file in the project root for full license information.

"""Semantic container states and lifecycle action legality.

Raw status strings differ between tool versions ("Up 3 hours", "running",
"Exited (0) 2 days ago", "configured", ...). Everything that needs to know
what a container is doing goes through normalize_status() and the tables
below.
"""

from enum import Enum
from typing import Dict, FrozenSet, NamedTuple, Optional, Tuple


class Indicator(NamedTuple):
    """Icon name and style class a menu uses for a state."""

    icon: str
    style_class: str


class SemanticState(Enum):
    """Normalized container state."""

    CREATED = "created"
    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    UNKNOWN = "unknown"

    @property
    def indicator(self) -> Indicator:
        return STATE_INDICATORS[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Action(Enum):
    """Lifecycle actions that change container state."""

    START = "start"
    STOP = "stop"
    RESTART = "restart"
    REMOVE = "remove"
    PAUSE = "pause"
    UNPAUSE = "unpause"


# First word of the raw status, lower-cased
STATUS_TOKENS: Dict[str, SemanticState] = {
    "created": SemanticState.CREATED,
    "configured": SemanticState.CREATED,
    "up": SemanticState.RUNNING,
    "running": SemanticState.RUNNING,
    "paused": SemanticState.PAUSED,
    "exited": SemanticState.STOPPED,
    "stopped": SemanticState.STOPPED,
}

STATE_INDICATORS: Dict[SemanticState, Indicator] = {
    SemanticState.CREATED: Indicator("media-playback-stop-symbolic", "status-stopped"),
    SemanticState.RUNNING: Indicator("media-playback-start-symbolic", "status-running"),
    SemanticState.PAUSED: Indicator("media-playback-pause-symbolic", "status-paused"),
    SemanticState.STOPPED: Indicator("media-playback-stop-symbolic", "status-stopped"),
    SemanticState.UNKNOWN: Indicator("action-unavailable-symbolic", "status-undefined"),
}

_ANY_STATE: FrozenSet[SemanticState] = frozenset(SemanticState)

LEGAL_FROM: Dict[Action, FrozenSet[SemanticState]] = {
    Action.START: frozenset({SemanticState.CREATED, SemanticState.STOPPED}),
    Action.STOP: frozenset({SemanticState.RUNNING, SemanticState.PAUSED}),
    Action.RESTART: _ANY_STATE,
    Action.REMOVE: frozenset({SemanticState.CREATED, SemanticState.STOPPED}),
    Action.PAUSE: frozenset({SemanticState.RUNNING}),
    Action.UNPAUSE: frozenset({SemanticState.PAUSED}),
}

# State expected after the action and a rediscovery; None means the container is gone
EXPECTED_AFTER: Dict[Action, Optional[SemanticState]] = {
    Action.START: SemanticState.RUNNING,
    Action.STOP: SemanticState.STOPPED,
    Action.RESTART: SemanticState.RUNNING,
    Action.REMOVE: None,
    Action.PAUSE: SemanticState.PAUSED,
    Action.UNPAUSE: SemanticState.RUNNING,
}


def normalize_status(raw: Optional[str]) -> SemanticState:
    """Map a raw status string to a SemanticState. Never raises."""
    if not raw or not isinstance(raw, str):
        return SemanticState.UNKNOWN
    words = raw.split()
    if not words:
        return SemanticState.UNKNOWN
    return STATUS_TOKENS.get(words[0].lower(), SemanticState.UNKNOWN)


def is_action_legal(action: Action, state: SemanticState) -> bool:
    return state in LEGAL_FROM[action]


def legal_actions(state: SemanticState) -> Tuple[Action, ...]:
    """Actions a menu should enable for a container in this state."""
    return tuple(action for action in Action if state in LEGAL_FROM[action])
