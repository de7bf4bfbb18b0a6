"""Period degradation and jitter math."""

from .degradation import (
    effective_period,
    oversubscription_factor,
    phase_offset,
    settle_delay,
)
from .randomness import RandomnessProvider, SystemRandomness

__all__ = [
    "RandomnessProvider",
    "SystemRandomness",
    "effective_period",
    "oversubscription_factor",
    "phase_offset",
    "settle_delay",
]
