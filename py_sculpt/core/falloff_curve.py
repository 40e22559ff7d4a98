"""
Keyframed falloff curves.

A falloff curve maps normalized distance from the brush edge (0 at the
edge, 1 at the centre) to a brush weight. Curves are defined by
keyframes with in/out tangents and evaluated with cubic Hermite
interpolation, so a pair of keys with zero tangents gives a smoothstep
and a pair with unit tangents gives a straight line.
"""

from typing import Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Keyframe(BaseModel):
    """A single curve key."""

    time: float = Field(description="Key position along the curve")
    value: float = Field(description="Curve value at the key")
    in_tangent: float = Field(default=0.0, description="Slope entering the key")
    out_tangent: float = Field(default=0.0, description="Slope leaving the key")

    model_config = ConfigDict(frozen=True)


def _default_keys() -> Tuple[Keyframe, ...]:
    return (
        Keyframe(time=0.0, value=0.0, in_tangent=0.0, out_tangent=0.0),
        Keyframe(time=1.0, value=1.0, in_tangent=0.0, out_tangent=1.0),
    )


class FalloffCurve(BaseModel):
    """Keyframed curve over [0, 1] used for brush falloff and ramps."""

    keys: Tuple[Keyframe, ...] = Field(default_factory=_default_keys, min_length=1)

    model_config = ConfigDict(frozen=True)

    @field_validator("keys")
    @classmethod
    def clamp_keys(cls, keys: Tuple[Keyframe, ...]) -> Tuple[Keyframe, ...]:
        """Clamp key times and values into [0, 1] and order keys by time."""
        clamped = [
            Keyframe(
                time=min(max(key.time, 0.0), 1.0),
                value=min(max(key.value, 0.0), 1.0),
                in_tangent=key.in_tangent,
                out_tangent=key.out_tangent,
            )
            for key in keys
        ]
        return tuple(sorted(clamped, key=lambda key: key.time))

    @classmethod
    def linear(cls) -> "FalloffCurve":
        """Identity curve, f(t) = t."""
        return cls(
            keys=[
                Keyframe(time=0.0, value=0.0, in_tangent=1.0, out_tangent=1.0),
                Keyframe(time=1.0, value=1.0, in_tangent=1.0, out_tangent=1.0),
            ]
        )

    @classmethod
    def constant(cls, value: float = 1.0) -> "FalloffCurve":
        """Flat curve returning the same value everywhere."""
        return cls(keys=[Keyframe(time=0.0, value=value), Keyframe(time=1.0, value=value)])

    def evaluate(self, t: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """
        Evaluate the curve.

        Args:
            t: Scalar or array of curve positions. Positions outside the
               key range take the value of the nearest end key.

        Returns:
            Curve values with the same shape as ``t``.
        """
        scalar = np.ndim(t) == 0
        t = np.asarray(t, dtype=np.float64)

        times = np.array([key.time for key in self.keys])
        values = np.array([key.value for key in self.keys])

        if len(self.keys) == 1:
            result = np.full_like(t, values[0])
            return float(result) if scalar else result

        out_tangents = np.array([key.out_tangent for key in self.keys])
        in_tangents = np.array([key.in_tangent for key in self.keys])

        t = np.clip(t, times[0], times[-1])
        segment = np.clip(np.searchsorted(times, t, side="right") - 1, 0, len(times) - 2)

        t0 = times[segment]
        t1 = times[segment + 1]
        dt = t1 - t0
        safe_dt = np.where(dt > 0, dt, 1.0)
        s = np.where(dt > 0, (t - t0) / safe_dt, 0.0)

        s2 = s * s
        s3 = s2 * s
        h00 = 2 * s3 - 3 * s2 + 1
        h10 = s3 - 2 * s2 + s
        h01 = -2 * s3 + 3 * s2
        h11 = s3 - s2

        result = (
            h00 * values[segment]
            + h10 * dt * out_tangents[segment]
            + h01 * values[segment + 1]
            + h11 * dt * in_tangents[segment + 1]
        )
        return float(result) if scalar else result
