"""
Core engine module.

Exports:
- Component, clamp: Pydantic component base and the clamping helper
- EventBus, Event: Event system
"""

from engine.core.component import Component, clamp
from engine.core.events import EventBus, Event

__all__ = [
    # Components
    "Component",
    "clamp",
    # Events
    "EventBus",
    "Event",
]
