from .lava_events import ensure_loop_started, init_lava_socket, stop_loop
from .lava_manager import GameWorld
from .lava_simulation import RoundSimulation

__all__ = ['GameWorld', 'RoundSimulation', 'ensure_loop_started', 'init_lava_socket', 'stop_loop']
