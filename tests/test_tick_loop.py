from lava_tower.socketio_handlers import ensure_loop_started, stop_loop
from lava_tower.socketio_handlers.lava_events import _tick_loop


def test_loop_started_once(world, simulation, emitter):
    ensure_loop_started(world, simulation)
    ensure_loop_started(world, simulation)

    assert world.loop_started is True
    assert len(emitter.tasks) == 1
    target, args, _ = emitter.tasks[0]
    assert target is _tick_loop
    assert args == (world, simulation)


def test_tick_loop_exits_after_stop(world, simulation, emitter):
    world.loop_started = True
    emitter.on_sleep = lambda: len(emitter.sleeps) == 3 and stop_loop(world)

    _tick_loop(world, simulation)

    assert world.loop_started is False
    assert emitter.sleeps == [world.TICK_INTERVAL] * 3
    assert len(emitter.payloads('gameUpdate')) == 3


def test_failed_tick_does_not_stop_loop(world, simulation, emitter, monkeypatch):
    calls = []

    def broken_step():
        calls.append(1)
        raise RuntimeError('boom')

    monkeypatch.setattr(simulation, 'step', broken_step)
    world.loop_started = True
    emitter.on_sleep = lambda: len(emitter.sleeps) == 2 and stop_loop(world)

    _tick_loop(world, simulation)

    assert len(calls) == 2
    assert world.loop_started is False
