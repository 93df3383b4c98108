"""Shared test fixtures for journeymap tests."""

import pytest

from journeymap.config import JourneySettings
from journeymap.graph import NodeGraph, PlacementMode
from journeymap.journey import Journey


class ManualScheduler:
    """Deterministic stand-in for the GLib frame scheduler."""

    def __init__(self):
        self.now = 0.0
        self._sources = {}
        self._next_id = 1

    def now_ms(self) -> float:
        return self.now

    def every(self, interval_ms, callback):
        source_id = self._next_id
        self._next_id += 1
        self._sources[source_id] = [interval_ms, callback, self.now + interval_ms]
        return source_id

    def cancel(self, source_id):
        self._sources.pop(source_id, None)

    @property
    def active(self) -> int:
        return len(self._sources)

    def advance(self, ms: float):
        """Move the clock forward, firing every source that comes due."""
        target = self.now + ms
        while True:
            due = [(entry[2], sid) for sid, entry in self._sources.items() if entry[2] <= target]
            if not due:
                break
            when, source_id = min(due)
            self.now = when
            entry = self._sources[source_id]
            entry[2] = when + entry[0]
            if not entry[1]():
                self._sources.pop(source_id, None)
        self.now = target


class ConfirmRecorder:
    """Confirmation handler that answers with a preset choice."""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.messages = []
        # Declined or deferred confirmations, answerable later
        self.pending = []

    def __call__(self, message, on_confirmed):
        self.messages.append(message)
        if self.accept:
            on_confirmed()
        else:
            self.pending.append(on_confirmed)


@pytest.fixture()
def settings():
    return JourneySettings()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def confirm():
    return ConfirmRecorder(accept=True)


@pytest.fixture()
def graph(settings):
    return NodeGraph(settings)


@pytest.fixture()
def forked_graph(settings):
    """Chain 1 -> 2 -> 3 with node 4 branching off node 2."""
    g = NodeGraph(settings)
    g.add_node((100, 50), PlacementMode.FIRST)
    g.add_node((100, 150), PlacementMode.SEQUENTIAL)
    g.add_node((100, 250), PlacementMode.SEQUENTIAL)
    g.add_node((300, 250), PlacementMode.BRANCH, explicit_parent_id=2)
    return g


@pytest.fixture()
def journey(scheduler, confirm, settings):
    return Journey(scheduler, confirm, settings)


@pytest.fixture()
def forked_journey(journey, scheduler):
    """Journey holding the forked chain, with every transition settled."""
    journey.place_node(100, 50, "Start")
    journey.place_node(100, 150, "Camp")
    journey.place_node(100, 250, "Summit")
    journey.start_branch(2)
    journey.place_node(300, 250, "Lake")
    scheduler.advance(2000)
    return journey
