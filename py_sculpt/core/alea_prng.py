"""
Alea PRNG used for stroke randomization.

Based on Johannes Baagøe's Alea algorithm. Each sculpt session owns its
own instance so that a seeded session replays the same spacing, rotation
and offset draws.
"""

import math
from typing import Tuple


def _uint32(n):
    """Convert to unsigned 32-bit integer."""
    return int(n) & 0xFFFFFFFF


class AleaPRNG:
    """Seedable Alea generator returning floats in [0, 1)."""

    def __init__(self, seed):
        """Initialize with seed string or number."""
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            args = list(seed)
        else:
            args = [seed]

        mash_n = 0xEFC8249D

        def mash(data):
            nonlocal mash_n
            data = str(data)
            for char in data:
                mash_n = mash_n + ord(char)
                h = 0.02519603282416938 * mash_n
                mash_n = _uint32(h)
                h -= mash_n
                h *= mash_n
                mash_n = _uint32(h)
                h -= mash_n
                mash_n += h * 0x100000000  # 2^32
            return _uint32(mash_n) * 2.3283064365386963e-10  # 2^-32

        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for arg in args:
            self.s0 -= mash(arg)
            if self.s0 < 0:
                self.s0 += 1
            self.s1 -= mash(arg)
            if self.s1 < 0:
                self.s1 += 1
            self.s2 -= mash(arg)
            if self.s2 < 0:
                self.s2 += 1

    def random(self) -> float:
        """Generate next random number in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * 2.3283064365386963e-10  # 2^-32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Random float between low and high."""
        return low + (high - low) * self.random()

    def inside_unit_circle(self) -> Tuple[float, float]:
        """
        Uniformly distributed point inside the unit disk.

        Uses the square-root radius so that points do not bunch up
        around the centre.
        """
        radius = math.sqrt(self.random())
        theta = self.random() * 2 * math.pi
        return radius * math.cos(theta), radius * math.sin(theta)
