import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Platform:
    x: float
    y: float
    width: float
    points: int
    type: str = 'normal'
    has_spikes: bool = False
    spike_width: float = 0
    spike_offset: float = 0
    number: Optional[int] = None

    def to_dict(self) -> Dict:
        return {
            'x': self.x,
            'y': self.y,
            'width': self.width,
            'points': self.points,
            'type': self.type,
            'hasSpikes': self.has_spikes,
            'spikeWidth': self.spike_width,
            'spikeOffset': self.spike_offset,
            'number': self.number,
        }


def _pick_width(rng: random.Random, width_range: Tuple[int, int], long_min: int, long_chance: float) -> int:
    width_min, width_max = width_range
    if rng.random() < long_chance:
        return int(rng.random() * (width_max - long_min)) + long_min
    return int(width_min + rng.random() * (width_max - width_min))


def generate_platforms(
    tower_height: int,
    gap: int,
    width_range: Tuple[int, int],
    skip_chance: float,
    special_chance: float,
    spike_chance: float,
    *,
    game_width: int,
    long_min: int = 100,
    long_chance: float = 0.05,
    wall_margin: int = 15,
    skip_after: int = 5,
    spike_after: int = 10,
    normal_points: int = 10,
    numbered_points: int = 1,
    rng: Optional[random.Random] = None,
) -> List[Platform]:
    """Build one round's tower, ordered by ascending height.

    The floor always comes first and spans the whole width.  Every other
    platform is kept ``wall_margin`` away from both walls, and its height
    jitter stays below ``gap / 5`` so consecutive slots remain reachable.
    Pass a seeded ``rng`` to get the same tower back.
    """
    rng = rng or random.Random()
    slots = int(tower_height // gap)
    max_width = game_width - 2 * wall_margin - 1

    platforms = [Platform(x=0, y=0, width=game_width, points=0)]

    for i in range(1, slots):
        # forced longer jumps, never in the first few slots
        if i > skip_after and rng.random() < skip_chance:
            continue

        width = min(_pick_width(rng, width_range, long_min, long_chance), max_width)
        available = game_width - width - wall_margin * 2
        x = int(rng.random() * available) + wall_margin
        y = i * gap + int(rng.random() * (gap / 5))

        kind = 'normal'
        points = normal_points
        if rng.random() < special_chance:
            kind = 'numbered'
            points = numbered_points

        has_spikes = False
        spike_width = 0
        spike_offset = 0
        if kind != 'numbered' and i > spike_after and rng.random() < spike_chance:
            has_spikes = True
            kind = 'spikes'
            # 20% of the width near the floor, up to 80% at the top
            height_factor = min(0.8, i / slots * 0.8 + 0.2)
            spike_width = int(width * height_factor)
            spike_offset = int(rng.random() * (width - spike_width))

        platforms.append(Platform(
            x=x,
            y=y,
            width=width,
            points=points,
            type=kind,
            has_spikes=has_spikes,
            spike_width=spike_width,
            spike_offset=spike_offset,
            number=numbered_points if kind == 'numbered' else None,
        ))

    return platforms
