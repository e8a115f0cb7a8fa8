"""Classify buffer strength and check Henderson-Hasselbalch validity.

Buffer Region Definition:
    The operational criterion ``|pH - pKa| <= 1`` corresponds to
    ``0.1 <= [A-]/[HA] <= 10``. Inside this window both the acid and its
    conjugate base are present in significant amounts and the
    Henderson-Hasselbalch relation is a defensible description of the pH.

Capacity Classes:
    Capacity is judged from the total amount of the conjugate pair in moles
    (not molarity), so diluting a buffer does not change its class.
"""

from __future__ import annotations

from enum import Enum

import numpy as np

LOW_CAPACITY_MOL = 0.001
MODERATE_CAPACITY_MOL = 0.01
BUFFER_RATIO_MIN = 0.1
BUFFER_RATIO_MAX = 10.0


class BufferCapacity(str, Enum):
    NONE = "no buffer formed"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"


def classify_buffer_capacity(pair_moles: float) -> BufferCapacity:
    """Classify buffer capacity from total conjugate-pair moles.

    Args:
        pair_moles (float): Weak-acid plus conjugate-base amount in mol.

    Returns:
        BufferCapacity: ``NONE`` for ``<= 0``, ``LOW`` below 0.001 mol,
        ``MODERATE`` below 0.01 mol, otherwise ``HIGH``.
    """
    n = float(pair_moles)
    if n <= 0:
        return BufferCapacity.NONE
    if n < LOW_CAPACITY_MOL:
        return BufferCapacity.LOW
    if n < MODERATE_CAPACITY_MOL:
        return BufferCapacity.MODERATE
    return BufferCapacity.HIGH


def within_buffer_region(ratio: float) -> bool:
    """Return whether ``[A-]/[HA]`` lies in the Henderson-Hasselbalch window.

    Raises:
        ValueError: If ``ratio`` is non-finite.
    """
    if not np.isfinite(ratio):
        raise ValueError("Buffer ratio must be finite to check the buffer region.")
    return BUFFER_RATIO_MIN <= float(ratio) <= BUFFER_RATIO_MAX
