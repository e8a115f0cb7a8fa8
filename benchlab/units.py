"""Centralized unit conversion utilities."""

from __future__ import annotations

ML_PER_L: float = 1000.0


def ml_to_l(volume_ml: float) -> float:
    """Convert a volume from millilitres to litres.

    Args:
        volume_ml (float): Volume in mL (numerically equal to cm^3).

    Returns:
        float: Volume in L (numerically equal to dm^3).

    Note:
        Concentrations stay in mol L^-1 throughout the engine, so every
        volume is converted here before it meets a molarity.
    """
    return float(volume_ml) / ML_PER_L


def moles_from_volume(molarity: float, volume_ml: float) -> float:
    """Return moles delivered by ``volume_ml`` of a ``molarity`` solution.

    Args:
        molarity (float): Concentration in mol L^-1.
        volume_ml (float): Delivered volume in mL.

    Returns:
        float: Amount in mol, ``molarity * volume_ml / 1000``.
    """
    return float(molarity) * ml_to_l(volume_ml)
