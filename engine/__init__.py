"""
Dungeon Engine

Game-agnostic core for the dungeon battle engine: pydantic components,
a typed event bus and a JSON game database.

Quick Start:
    from engine.core import EventBus
    from engine.resources.database import Database

    events = EventBus()
    db = Database("data")
    db.load_all()
"""

__version__ = "0.1.0"
__author__ = "Developer"

# Re-export core components for convenience
from engine.core import (
    Component,
    clamp,
    EventBus,
    Event,
)

__all__ = [
    # Components
    "Component",
    "clamp",
    # Events
    "EventBus",
    "Event",
]
