from lava_tower.socketio_handlers.stun_timers import StunTimers


def test_expired_in_deadline_order():
    timers = StunTimers()
    timers.schedule('b', 20)
    timers.schedule('a', 10)
    timers.schedule('c', 30)

    assert list(timers.pop_expired(25)) == ['a', 'b']
    assert 'c' in timers
    assert list(timers.pop_expired(25)) == []
    assert list(timers.pop_expired(30)) == ['c']
    assert len(timers) == 0


def test_reschedule_replaces_previous_deadline():
    timers = StunTimers()
    timers.schedule('a', 10)
    timers.schedule('a', 50)

    assert list(timers.pop_expired(20)) == []
    assert list(timers.pop_expired(60)) == ['a']
    assert list(timers.pop_expired(100)) == []


def test_cancel():
    timers = StunTimers()
    timers.schedule('a', 10)

    assert timers.cancel('a') is True
    assert timers.cancel('a') is False
    assert list(timers.pop_expired(100)) == []


def test_stun_sets_flag_and_deadline(world, emitter):
    world.connect('a')
    emitter.clear()

    player = world.apply_stun('a')

    assert player['isStunned'] is True
    assert player['stunEndTime'] == 1000000 + world.SPIKE_STUN_DURATION
    assert emitter.payloads('playerUpdate') == [player]
    assert 'a' in world.stun_timers


def test_stun_unknown_or_dead_ignored(world, emitter):
    world.connect('a')
    world.players['a']['isDead'] = True
    emitter.clear()

    assert world.apply_stun('a') is None
    assert world.apply_stun('ghost') is None
    assert emitter.events == []


def test_stun_wears_off_once(world, simulation, emitter, clock):
    world.connect('a')
    world.apply_stun('a')
    emitter.clear()

    clock.advance(1.0)
    simulation.step()
    assert emitter.payloads('playerUpdate') == []

    clock.advance(1.5)
    simulation.step()
    simulation.step()

    [update] = emitter.payloads('playerUpdate')
    assert update['id'] == 'a'
    assert update['isStunned'] is False


def test_stun_expiry_runs_during_countdown(world, simulation, emitter, clock):
    world.connect('a')
    world.apply_stun('a')
    world.begin_countdown(None)
    emitter.clear()

    clock.advance(3.0)
    simulation.step()

    assert world.status == 'countdown'
    assert world.players['a']['isStunned'] is False


def test_disconnect_cancels_stun(world, simulation, emitter, clock):
    world.connect('a')
    world.connect('b')
    world.apply_stun('a')
    world.disconnect('a')
    emitter.clear()

    clock.advance(5.0)
    simulation.step()

    assert emitter.payloads('playerUpdate') == []
    assert 'a' not in world.stun_timers


def test_round_reset_clears_stuns(world, simulation, emitter, clock):
    world.connect('a')
    world.apply_stun('a')
    world.begin_countdown(None)
    world.countdown = world.TICK_INTERVAL
    simulation.step()

    assert world.players['a']['isStunned'] is False
    assert world.players['a']['stunEndTime'] == 0
    assert len(world.stun_timers) == 0
