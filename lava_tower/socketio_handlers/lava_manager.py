import logging
import math
import random
import threading
import time
from typing import Callable, Dict, List, Optional

from ..model.platforms import Platform, generate_platforms
from .stun_timers import StunTimers


logger = logging.getLogger(__name__)



def _finite(value) -> Optional[float]:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number



def parse_movement(payload) -> Optional[Dict]:
    """Coerce a raw ``playerMove`` payload, or return None if it is unusable."""
    if not isinstance(payload, dict):
        return None

    report = {}
    for key in ('x', 'y', 'vx', 'vy'):
        number = _finite(payload.get(key))
        if number is None:
            return None
        report[key] = number

    report['score'] = _finite(payload.get('score', 0)) or 0.0
    report['isJumping'] = bool(payload.get('isJumping', False))
    report['isStunned'] = bool(payload.get('isStunned', False))
    report['stunEndTime'] = _finite(payload.get('stunEndTime', 0)) or 0
    return report



def reconcile_score(stored: int, vx: float, vy: float, reported: float) -> int:
    """Award speed points and never let the stored score go down.

    The client keeps its own score too; whichever is higher wins.
    """
    magnitude = math.hypot(vx, vy)
    if not math.isfinite(magnitude):
        magnitude = 0.0
    award = int(math.floor(0.5 * magnitude))
    return max(stored + award, int(math.floor(reported)))


class GameWorld:
    ROOM_NAME = 'lava'

    TICK_INTERVAL = 0.1

    GAME_WIDTH = 300
    TOWER_HEIGHT = 10000
    WALL_MARGIN = 15

    PLATFORM_GAP = 40
    PLATFORM_WIDTH_MIN = 30
    PLATFORM_WIDTH_MAX = 180
    PLATFORM_LONG_MIN = 100
    PLATFORM_VERY_LONG_CHANCE = 0.05
    PLATFORM_SKIP_CHANCE = 0.15
    SPECIAL_PLATFORM_CHANCE = 0.15
    SPIKE_PLATFORM_CHANCE = 0.1
    SKIP_START_INDEX = 5
    SPIKE_START_INDEX = 10
    NORMAL_POINTS = 10
    NUMBERED_POINTS = 1

    SPIKE_STUN_DURATION = 2000  # ms

    LAVA_INITIAL_HEIGHT = -150
    LAVA_SPEED = 0.4  # per tick
    LAVA_KILL_TOLERANCE = 1.0

    ROUND_COUNTDOWN = 5
    WINNER_HEIGHT = 200000

    SPAWN_X = GAME_WIDTH / 2
    SPAWN_Y = PLATFORM_GAP + 20
    PLAYER_COLOR = 'red'

    def __init__(self, socketio, rng: Optional[random.Random] = None, clock: Optional[Callable[[], float]] = None):
        self.socketio = socketio
        self.lock = threading.RLock()
        self.rng = rng or random.Random()
        self.clock = clock or time.time

        self.players: Dict[str, Dict] = {}
        self.platforms: List[Platform] = []
        self.stun_timers = StunTimers()

        self.lava_height = float(self.LAVA_INITIAL_HEIGHT)
        self.status = 'playing'
        self.countdown = 0.0
        self.round_number = 1
        self.winner: Optional[str] = None

        self.loop_started = False
        self.initialize_round(broadcast=False)

    # ----------------------------- Helpers -----------------------------

    def now_ms(self) -> int:
        return int(self.clock() * 1000)

    def broadcast(self, event: str, payload, skip_sid: Optional[str] = None) -> None:
        self.socketio.emit(event, payload, room=self.ROOM_NAME, skip_sid=skip_sid)

    def _build_player(self, sid: str) -> Dict:
        return {
            'id': sid,
            'x': self.SPAWN_X,
            'y': self.SPAWN_Y,
            'vx': 0.0,
            'vy': 0.0,
            'score': 0,
            'isJumping': False,
            'isDead': False,
            'isStunned': False,
            'stunEndTime': 0,
            'color': self.PLAYER_COLOR,
        }

    def _reset_player(self, player: Dict) -> None:
        player['x'] = self.SPAWN_X
        player['y'] = self.SPAWN_Y
        player['vx'] = 0.0
        player['vy'] = 0.0
        player['score'] = 0
        player['isJumping'] = False
        player['isDead'] = False
        player['isStunned'] = False
        player['stunEndTime'] = 0

    def _generate_platforms(self) -> List[Platform]:
        return generate_platforms(
            self.TOWER_HEIGHT,
            self.PLATFORM_GAP,
            (self.PLATFORM_WIDTH_MIN, self.PLATFORM_WIDTH_MAX),
            self.PLATFORM_SKIP_CHANCE,
            self.SPECIAL_PLATFORM_CHANCE,
            self.SPIKE_PLATFORM_CHANCE,
            game_width=self.GAME_WIDTH,
            long_min=self.PLATFORM_LONG_MIN,
            long_chance=self.PLATFORM_VERY_LONG_CHANCE,
            wall_margin=self.WALL_MARGIN,
            skip_after=self.SKIP_START_INDEX,
            spike_after=self.SPIKE_START_INDEX,
            normal_points=self.NORMAL_POINTS,
            numbered_points=self.NUMBERED_POINTS,
            rng=self.rng,
        )

    # ----------------------------- Serialization -----------------------------

    def serialize_game_state(self) -> Dict:
        return {
            'status': self.status,
            'countdown': self.countdown,
            'roundNumber': self.round_number,
            'winner': self.winner,
        }

    def serialize_platforms(self) -> List[Dict]:
        return [platform.to_dict() for platform in self.platforms]

    def serialize_update(self) -> Dict:
        return {
            'lavaHeight': self.lava_height,
            'gameState': self.serialize_game_state(),
        }

    def serialize_snapshot(self, sid: str) -> Dict:
        return {
            'id': sid,
            'players': {pid: dict(player) for pid, player in self.players.items()},
            'platforms': self.serialize_platforms(),
            'gameWidth': self.GAME_WIDTH,
            'gameHeight': self.TOWER_HEIGHT,
            'lavaHeight': self.lava_height,
            'gameState': self.serialize_game_state(),
            'constants': {
                'platformGap': self.PLATFORM_GAP,
                'spikeStunDuration': self.SPIKE_STUN_DURATION,
                'lavaSpeed': self.LAVA_SPEED,
            },
        }

    # ----------------------------- Round lifecycle -----------------------------

    def initialize_round(self, broadcast: bool = True) -> None:
        self.platforms = self._generate_platforms()
        self.lava_height = float(self.LAVA_INITIAL_HEIGHT)
        self.status = 'playing'
        self.countdown = 0.0
        self.winner = None

        # connections survive a reset, only their round state is wiped
        self.stun_timers.clear()
        for player in self.players.values():
            self._reset_player(player)

        if broadcast:
            self.broadcast('gameReset', {
                'platforms': self.serialize_platforms(),
                'lavaHeight': self.lava_height,
                'gameState': self.serialize_game_state(),
            })

    def start_next_round(self) -> None:
        self.round_number += 1
        self.initialize_round()
        logger.info("Round %d started with %d player(s)", self.round_number, len(self.players))

    def begin_countdown(self, winner: Optional[str]) -> bool:
        """Leave ``playing`` for ``countdown``; a no-op unless currently playing.

        The status check is the only guard against announcing the same round
        end twice, from the tick and from a movement report.
        """
        if self.status != 'playing':
            return False

        self.status = 'countdown'
        self.countdown = float(self.ROUND_COUNTDOWN)
        self.winner = winner
        next_round = self.round_number + 1

        if winner is not None:
            logger.info("Round %d won by %s", self.round_number, winner)
            self.broadcast('roundWinner', {'winner': winner, 'nextRound': next_round})
        else:
            logger.info("Round %d over, no survivors", self.round_number)
            self.broadcast('roundOver', {'nextRound': next_round})
        return True

    def find_winner(self) -> Optional[str]:
        best = None
        for sid, player in self.players.items():
            if player['isDead'] or player['y'] < self.WINNER_HEIGHT:
                continue
            if best is None or player['y'] > self.players[best]['y']:
                best = sid
        return best

    def all_dead(self) -> bool:
        return bool(self.players) and all(player['isDead'] for player in self.players.values())

    def evaluate_round_end(self) -> bool:
        if self.status != 'playing':
            return False

        winner = self.find_winner()
        if winner is not None:
            return self.begin_countdown(winner)
        if self.all_dead():
            return self.begin_countdown(None)
        return False

    def reset_idle(self) -> None:
        self.lava_height = float(self.LAVA_INITIAL_HEIGHT)
        self.status = 'playing'
        self.countdown = 0.0
        self.winner = None
        self.stun_timers.clear()

    # ----------------------------- Player registry -----------------------------

    def connect(self, sid: str) -> Dict:
        player = self._build_player(sid)
        self.players[sid] = player

        self.socketio.emit('gameInit', self.serialize_snapshot(sid), to=sid)
        self.broadcast('newPlayer', dict(player), skip_sid=sid)

        logger.info("Player %s connected (%d online)", sid, len(self.players))
        return player

    def apply_movement(self, sid: str, report: Dict) -> Optional[Dict]:
        player = self.players.get(sid)
        if player is None or player['isDead']:
            return None

        score = reconcile_score(player['score'], report['vx'], report['vy'], report.get('score', 0))

        # client-authoritative: position, velocity and flags are taken as-is
        player['x'] = report['x']
        player['y'] = report['y']
        player['vx'] = report['vx']
        player['vy'] = report['vy']
        player['isJumping'] = report.get('isJumping', player['isJumping'])
        player['isStunned'] = report.get('isStunned', player['isStunned'])
        player['stunEndTime'] = report.get('stunEndTime', player['stunEndTime'])
        player['score'] = score

        if self.status == 'playing' and player['y'] >= self.WINNER_HEIGHT:
            self.begin_countdown(sid)

        self.broadcast('playerUpdate', dict(player))
        return player

    def apply_stun(self, sid: str) -> Optional[Dict]:
        player = self.players.get(sid)
        if player is None or player['isDead']:
            return None

        player['isStunned'] = True
        player['stunEndTime'] = self.now_ms() + self.SPIKE_STUN_DURATION
        self.stun_timers.schedule(sid, player['stunEndTime'])

        logger.debug("Player %s stunned until %d", sid, player['stunEndTime'])
        self.broadcast('playerUpdate', dict(player))
        return player

    def expire_stuns(self) -> List[str]:
        expired = []
        for sid in list(self.stun_timers.pop_expired(self.now_ms())):
            player = self.players.get(sid)
            if player is None:
                continue
            player['isStunned'] = False
            expired.append(sid)
            self.broadcast('playerUpdate', dict(player))
        return expired

    def spectate(self, sid: str, target_id) -> bool:
        if sid not in self.players:
            return False
        target = self.players.get(target_id) if isinstance(target_id, str) else None
        if target is None or target['isDead']:
            return False

        logger.debug("Player %s spectating %s", sid, target_id)
        self.socketio.emit('spectatePlayer', target_id, to=sid)
        return True

    def send_snapshot(self, sid: str) -> bool:
        if sid not in self.players:
            return False
        self.socketio.emit('gameInit', self.serialize_snapshot(sid), to=sid)
        return True

    def disconnect(self, sid: str) -> Optional[Dict]:
        player = self.players.pop(sid, None)
        if player is None:
            return None

        self.stun_timers.cancel(sid)
        self.broadcast('playerLeft', sid)

        if not self.players:
            self.reset_idle()

        logger.info("Player %s disconnected (%d online)", sid, len(self.players))
        return player
