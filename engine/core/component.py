"""
Component base class for data components.

Components are pydantic models. Numeric components used by the battle engine
clamp their values instead of rejecting them, so the few methods they carry
only keep their own fields in range.

Usage:
    class Health(Component):
        current: int = 100
        max_hp: int = 100
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


def clamp(value: int, low: int, high: int) -> int:
    """Clamp an integer into [low, high]."""
    return max(low, min(value, high))


class Component(BaseModel):
    """
    Base class for all components.

    Pydantic gives us:
    - Validation and coercion on construction and assignment
    - JSON serialization
    - Defaults
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        validate_assignment=True,
        extra='forbid',
    )
