"""
Model package for the lava tower game.

Holds the per-round data shapes that are broadcast to clients.  Nothing in
here is persisted; a round's platforms live only as long as the round.
"""

from .platforms import Platform, generate_platforms

__all__ = ['Platform', 'generate_platforms']
