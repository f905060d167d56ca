import logging
from typing import List

from .lava_manager import GameWorld


logger = logging.getLogger(__name__)


class RoundSimulation:
    def __init__(self, world: GameWorld):
        self.w = world

    def step(self) -> None:
        """Run one tick: the handler for the current status, then timers, then the heartbeat."""
        if self.w.status == 'playing':
            self.tick_playing()
        else:
            self.tick_countdown(self.w.TICK_INTERVAL)

        self.w.expire_stuns()
        self.w.broadcast('gameUpdate', self.w.serialize_update())

    def tick_playing(self) -> None:
        # an empty room is idle; the next joiner must not spawn under the lava
        if not self.w.players:
            return
        self.w.lava_height += self.w.LAVA_SPEED
        self.mark_lava_deaths()
        self.w.evaluate_round_end()

    def tick_countdown(self, dt: float) -> None:
        # rounded so a 5s countdown ends on exactly the 50th tick
        self.w.countdown = round(self.w.countdown - dt, 6)
        if self.w.countdown <= 0:
            self.w.start_next_round()

    def mark_lava_deaths(self) -> List[str]:
        threshold = self.w.lava_height + self.w.LAVA_KILL_TOLERANCE
        died = []
        for sid, player in self.w.players.items():
            if player['isDead']:
                continue
            if player['y'] <= threshold:
                player['isDead'] = True
                died.append(sid)
                logger.debug("Player %s fell into the lava at %.1f", sid, self.w.lava_height)
                self.w.broadcast('playerDied', sid)
        return died
