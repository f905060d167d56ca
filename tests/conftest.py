import copy
import random

import pytest

from lava_tower import create_app
from lava_tower.socketio_handlers import GameWorld, RoundSimulation


class RecordingSocketIO:
    """Stands in for flask_socketio.SocketIO and remembers every emit."""

    def __init__(self):
        self.events = []
        self.tasks = []
        self.sleeps = []
        self.on_sleep = None

    def emit(self, event, *args, **kwargs):
        payload = copy.deepcopy(args[0]) if args else None
        self.events.append((event, payload, kwargs))

    def payloads(self, event):
        return [payload for name, payload, _ in self.events if name == event]

    def names(self):
        return [name for name, _, _ in self.events]

    def clear(self):
        self.events.clear()

    def start_background_task(self, target, *args, **kwargs):
        self.tasks.append((target, args, kwargs))

    def sleep(self, seconds):
        self.sleeps.append(seconds)
        if self.on_sleep is not None:
            self.on_sleep()


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def emitter():
    return RecordingSocketIO()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def world(emitter, clock):
    return GameWorld(emitter, rng=random.Random(1234), clock=clock)


@pytest.fixture
def simulation(world):
    return RoundSimulation(world)


def movement(**overrides):
    report = {
        'x': 150.0,
        'y': 60.0,
        'vx': 0.0,
        'vy': 0.0,
        'isJumping': False,
        'isStunned': False,
        'stunEndTime': 0,
        'score': 0,
        'isDead': False,
    }
    report.update(overrides)
    return report


@pytest.fixture
def app_and_socketio():
    app, socketio = create_app(rng=random.Random(99), start_loop=False)
    app.config['TESTING'] = True
    return app, socketio


@pytest.fixture
def make_move():
    return movement
