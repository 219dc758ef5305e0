"""Tests for RoundEventHandler message handling."""

import json
import logging

import pytest

from crashgraph.events import RoundEventHandler
from crashgraph.types import Phase


@pytest.fixture
def graph(make_graph):
    return make_graph()


@pytest.fixture
def handler(graph):
    return RoundEventHandler(graph)


def test_start_and_crash(graph, handler):
    assert handler.handle({"event": "game_started"})
    assert graph.phase is Phase.RUNNING
    assert handler.state == "flying"
    handler.handle({"event": "game_crashed", "crashPoint": 2.5})
    assert graph.crash_multiplier == 2.5
    assert handler.state == "crashed"


@pytest.mark.parametrize("key", ["crashPoint", "crash_point", "multiplier"])
def test_crash_value_keys(graph, handler, key):
    handler.handle({"event": "game_started"})
    handler.handle({"event": "crash", key: 4.2})
    assert graph.crash_multiplier == 4.2


def test_crash_stops_after_delay(graph, handler, run_frames):
    """The frame loop is stopped two seconds after the crash."""
    handler.handle({"event": "game_started"})
    run_frames(5)
    handler.handle({"event": "game_crashed", "crashPoint": 1.5})
    run_frames(100)
    assert graph.frame_pending
    run_frames(40)
    assert not graph.frame_pending
    assert graph.is_crashed


def test_reset_cancels_pending_stop(graph, handler, run_frames):
    handler.handle({"event": "game_started"})
    handler.handle({"event": "game_crashed", "crashPoint": 1.5})
    handler.handle({"event": "game_starting", "countdown": 5})
    assert graph.phase is Phase.IDLE
    assert handler.state == "waiting"
    handler.handle({"event": "game_started"})
    run_frames(150)
    assert graph.is_running


def test_start_while_crashed_resets_first(graph, handler):
    handler.handle({"event": "game_started"})
    handler.handle({"event": "game_crashed", "crashPoint": 3.0})
    handler.handle({"event": "game_started"})
    assert graph.phase is Phase.RUNNING
    assert graph.crash_multiplier is None


def test_state_key_is_accepted(graph, handler):
    handler.handle({"state": "flying"})
    assert graph.is_running


def test_unknown_event(handler):
    assert handler.handle({"event": "chat_message"}) is False
    assert handler.handle({}) is False


def test_dispatch_json(graph, handler):
    assert handler.dispatch(json.dumps({"event": "game_started"}))
    assert graph.is_running


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", "{", None])
def test_dispatch_malformed_is_logged_and_dropped(graph, handler, raw, caplog):
    with caplog.at_level(logging.ERROR, logger="crashgraph.events"):
        assert handler.dispatch(raw) is False
    assert graph.phase is Phase.IDLE
    assert any(r.levelno == logging.ERROR for r in caplog.records)


def test_tick_desync_warning(handler, caplog):
    handler.handle({"event": "game_started"})
    with caplog.at_level(logging.WARNING, logger="crashgraph.events"):
        handler.handle({"event": "tick", "currentMultiplier": 1.05})
        assert not caplog.records
        handler.handle({"event": "tick", "currentMultiplier": 2.0})
    assert "out of sync" in caplog.records[0].getMessage()


def test_tick_ignores_non_numeric(handler, caplog):
    with caplog.at_level(logging.WARNING, logger="crashgraph.events"):
        handler.handle({"event": "tick", "currentMultiplier": "lots"})
        handler.handle({"event": "tick", "currentMultiplier": True})
    assert not caplog.records


def test_external_values(make_graph):
    graph = make_graph(external=True)
    handler = RoundEventHandler(graph)
    handler.handle({"event": "game_started"})
    handler.handle({"event": "multiplier", "multiplier": 3.0, "immediate": True})
    assert graph.current_multiplier == 3.0
    handler.handle({"event": "tick", "currentMultiplier": 3.5})
    assert graph.target_multiplier == 3.5
