"""
Dungeon module.

Provides the game-specific layer built on top of the engine:
- Components (data-only, Pydantic models)
- Battle (turn-based combat between the champion and dungeon monsters)
"""
