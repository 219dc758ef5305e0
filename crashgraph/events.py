"""RoundEventHandler - drive a CrashGraph from round lifecycle messages.

Messages are mappings with an ``event`` key (or JSON text of one), as
produced by whatever transport the host uses:

    {"event": "game_starting", "countdown": 5}
    {"event": "game_started"}
    {"event": "multiplier", "multiplier": 1.87}
    {"event": "tick", "currentMultiplier": 1.91}
    {"event": "game_crashed", "crashPoint": 2.04}
"""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping

from crashgraph.engine import CrashGraph

logger = logging.getLogger(__name__)

RESET_EVENTS = frozenset({"game_starting", "waiting", "reset"})
START_EVENTS = frozenset({"game_started", "flying", "start"})
CRASH_EVENTS = frozenset({"game_crashed", "crashed", "crash"})
VALUE_EVENTS = frozenset({"multiplier"})
TICK_EVENTS = frozenset({"tick"})


def _first(message: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in message:
            return message[key]
    return None


class RoundEventHandler:
    """Translate round messages into CrashGraph calls.

    After a crash the graph is stopped ``stop_delay_ms`` later, once the
    collapse and explosion have had time to play. Server ticks are compared
    against the displayed value and drift beyond ``desync_tolerance`` is
    logged.
    """

    def __init__(
        self,
        graph: CrashGraph,
        stop_delay_ms: float = 2000.0,
        desync_tolerance: float = 0.1,
    ) -> None:
        self._graph = graph
        self._stop_delay_ms = stop_delay_ms
        self._desync_tolerance = desync_tolerance
        self._stop_handle: int | None = None
        self._state = "waiting"
        self._handlers: dict[frozenset[str], Callable[[Mapping[str, Any]], None]] = {
            RESET_EVENTS: self._on_reset,
            START_EVENTS: self._on_start,
            CRASH_EVENTS: self._on_crash,
            VALUE_EVENTS: self._on_value,
            TICK_EVENTS: self._on_tick,
        }

    @property
    def state(self) -> str:
        return self._state

    def dispatch(self, raw: str | bytes) -> bool:
        """Decode a JSON message and handle it. Malformed input is logged and dropped."""
        try:
            message = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.error("Dropping malformed round message: %s", e)
            return False
        if not isinstance(message, dict):
            logger.error("Dropping round message that is not an object: %r", message)
            return False
        return self.handle(message)

    def handle(self, message: Mapping[str, Any]) -> bool:
        """Handle one decoded message. Returns False for unknown events."""
        event = message.get("event", message.get("state"))
        for names, handler in self._handlers.items():
            if event in names:
                handler(message)
                return True
        logger.debug("Ignoring unknown round event %r", event)
        return False

    def _cancel_stop(self) -> None:
        self._graph.scheduler.cancel(self._stop_handle)
        self._stop_handle = None

    def _on_reset(self, message: Mapping[str, Any]) -> None:
        self._cancel_stop()
        self._state = "waiting"
        self._graph.reset()
        countdown = message.get("countdown")
        if countdown is not None:
            logger.info("Next round in %s s", countdown)

    def _on_start(self, message: Mapping[str, Any]) -> None:
        self._cancel_stop()
        self._state = "flying"
        if self._graph.is_crashed:
            self._graph.reset()
        self._graph.start()

    def _on_crash(self, message: Mapping[str, Any]) -> None:
        self._state = "crashed"
        self._graph.crash(_first(message, "crashPoint", "crash_point", "multiplier"))
        self._cancel_stop()
        self._stop_handle = self._graph.scheduler.call_later(self._stop_delay_ms, self._delayed_stop)

    def _delayed_stop(self) -> None:
        self._stop_handle = None
        self._graph.stop()

    def _on_value(self, message: Mapping[str, Any]) -> None:
        self._graph.set_external_multiplier(
            message.get("multiplier"), immediate=bool(message.get("immediate", False)),
        )

    def _on_tick(self, message: Mapping[str, Any]) -> None:
        server = _first(message, "currentMultiplier", "current_multiplier", "multiplier")
        if not isinstance(server, (int, float)) or isinstance(server, bool):
            return
        drift = abs(self._graph.current_multiplier - server)
        if drift > self._desync_tolerance:
            logger.warning("Multiplier out of sync with server by %.3f", drift)
        if self._graph.config.external:
            self._graph.set_external_multiplier(server)
