import logging

from flask import request
from flask_socketio import join_room

from .lava_manager import GameWorld, parse_movement
from .lava_simulation import RoundSimulation


logger = logging.getLogger(__name__)



def ensure_loop_started(world: GameWorld, simulation: RoundSimulation) -> None:
    if world.loop_started:
        return

    world.loop_started = True
    world.socketio.start_background_task(_tick_loop, world, simulation)



def stop_loop(world: GameWorld) -> None:
    world.loop_started = False



def _tick_loop(world: GameWorld, simulation: RoundSimulation) -> None:
    logger.info("Tick loop started (%.0f ms)", world.TICK_INTERVAL * 1000)

    while world.loop_started:
        with world.lock:
            try:
                simulation.step()
            except Exception:
                logger.exception("Tick failed, continuing")
        world.socketio.sleep(world.TICK_INTERVAL)



def _spectate_target(data):
    if isinstance(data, dict):
        return data.get('targetId')
    return data



def init_lava_socket(socketio, world: GameWorld) -> RoundSimulation:
    simulation = RoundSimulation(world)

    @socketio.on('connect')
    def handle_connect(auth=None):
        sid = request.sid
        join_room(world.ROOM_NAME)
        with world.lock:
            world.connect(sid)

    @socketio.on('disconnect')
    def handle_disconnect(reason=None):
        with world.lock:
            world.disconnect(request.sid)

    @socketio.on('playerMove')
    def handle_player_move(data):
        sid = request.sid
        report = parse_movement(data)
        if report is None:
            logger.warning("Dropping malformed playerMove from %s", sid)
            return

        with world.lock:
            world.apply_movement(sid, report)

    @socketio.on('playerStunned')
    def handle_player_stunned(_data=None):
        with world.lock:
            world.apply_stun(request.sid)

    @socketio.on('spectate')
    def handle_spectate(data=None):
        with world.lock:
            world.spectate(request.sid, _spectate_target(data))

    @socketio.on('requestState')
    def handle_request_state(_data=None):
        with world.lock:
            world.send_snapshot(request.sid)

    return simulation
