"""
Maze Race - Two-player wall maze race engine

A deterministic, rules-driven engine for a 9x9 pawn race where players
block each other with walls. It provides:
- Immutable game state and a pure reducer
- Legal move generation (steps, jumps, diagonal jumps)
- Wall validation with the no-trap rule
- A heuristic bot with three difficulties
- Serverless online play over a publish/subscribe channel
"""

__version__ = "0.1.0"
