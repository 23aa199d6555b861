"""
Character components - health and mana pools.
"""

from __future__ import annotations

from engine.core.component import Component, clamp


class Health(Component):
    """
    Health points tracking.

    Values are clamped into [0, max_hp]; out-of-range input is never an error.

    Attributes:
        current: Current HP
        max_hp: Maximum HP
    """
    current: int = 100
    max_hp: int = 100

    def model_post_init(self, __context) -> None:
        """Clamp constructor input into range."""
        if self.max_hp < 0:
            self.max_hp = 0
        self.current = clamp(self.current, 0, self.max_hp)

    @property
    def is_dead(self) -> bool:
        return self.current <= 0

    @property
    def missing(self) -> int:
        """HP needed to reach full health."""
        return self.max_hp - self.current

    def take_damage(self, amount: int) -> int:
        """
        Take damage, flooring health at zero.

        Returns:
            Actual HP lost
        """
        actual = min(max(0, amount), self.current)
        self.current -= actual
        return actual

    def heal(self, amount: int) -> int:
        """
        Restore health, capped at max_hp. A dead pool cannot be healed.

        Returns:
            Actual HP restored
        """
        if self.is_dead:
            return 0
        old = self.current
        self.current = clamp(self.current + max(0, amount), 0, self.max_hp)
        return self.current - old

    def set(self, value: int) -> None:
        """Force the current value (clamped)."""
        self.current = clamp(value, 0, self.max_hp)


class Mana(Component):
    """
    Mana/MP points tracking.

    Attributes:
        current: Current MP
        max_mp: Maximum MP
    """
    current: int = 0
    max_mp: int = 0

    def model_post_init(self, __context) -> None:
        """Clamp constructor input into range."""
        if self.max_mp < 0:
            self.max_mp = 0
        self.current = clamp(self.current, 0, self.max_mp)

    def can_afford(self, cost: int) -> bool:
        return self.current >= cost

    def spend(self, amount: int) -> bool:
        """
        Spend mana.

        Returns:
            True if successful, False if insufficient mana
        """
        if not self.can_afford(amount):
            return False
        self.current = clamp(self.current - max(0, amount), 0, self.max_mp)
        return True

    def set(self, value: int) -> None:
        """Force the current value (clamped)."""
        self.current = clamp(value, 0, self.max_mp)
