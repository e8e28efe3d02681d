"""Lighting terms for the viewer's torch and remembered darkness.

Operates on NumPy distance arrays so the tracker can light a whole window
of cells in one pass.  Kept apart from ``tracker.py`` so the falloff model
can be tuned or swapped without touching the reveal bookkeeping.

Two independent terms are combined per cell:

- **Torch term** ``clamp01(1 - d / torch_radius) ** falloff_exponent``:
  bright near field; small exponents flatten the curve towards uniform
  brightness inside the radius.
- **Revealed-darkness term** ``lerp(1, multiplier, clamp01(d / radius))``:
  keeps remembered but unlit area dim instead of black.

The final intensity is the larger of the two, floored at
``min_visibility``.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

MIN_VISIBILITY = 0.2


@dataclass(frozen=True)
class LightingParams:
    """Tunable parameters of the light model.

    Attributes:
        torch_radius: Distance at which the torch term reaches zero.
        falloff_exponent: Exponent applied to the linear torch falloff.
        revealed_darkness_multiplier: Light level of remembered cells at
            the edge of the visibility radius.
        min_visibility: Floor applied to every revealed cell.
        torch_color: RGB tint of the torch (0.0-1.0 per channel).
    """

    torch_radius: float = 3.2
    falloff_exponent: float = 0.05
    revealed_darkness_multiplier: float = 0.5
    min_visibility: float = MIN_VISIBILITY
    torch_color: tuple[float, float, float] = (1.0, 0.8, 0.6)


def torch_term(
    distance: ArrayLike,
    torch_radius: float,
    falloff_exponent: float,
) -> NDArray[np.float64]:
    """Return the torch brightness for each distance.

    Args:
        distance: Distances from the viewer.
        torch_radius: Radius at which the torch is fully faded.
        falloff_exponent: Curve exponent; 1.0 is a linear falloff.
    """
    d = np.asarray(distance, dtype=np.float64)
    if torch_radius <= 0:
        return np.zeros_like(d)
    base = np.clip(1.0 - d / torch_radius, 0.0, 1.0)
    # 0 ** 0 would light the whole map at exponent 0
    return np.where(base > 0.0, np.power(base, falloff_exponent), 0.0)


def darkness_term(
    distance: ArrayLike,
    visibility_radius: float,
    multiplier: float,
) -> NDArray[np.float64]:
    """Return the remembered-area brightness for each distance.

    Args:
        distance: Distances from the viewer.
        visibility_radius: Radius inside which cells are revealed.
        multiplier: Brightness reached at and beyond ``visibility_radius``.
    """
    d = np.asarray(distance, dtype=np.float64)
    if visibility_radius <= 0:
        t = np.ones_like(d)
    else:
        t = np.clip(d / visibility_radius, 0.0, 1.0)
    return 1.0 + (multiplier - 1.0) * t


def light_intensity(
    distance: ArrayLike,
    visibility_radius: float,
    params: LightingParams,
) -> NDArray[np.float64]:
    """Combine both terms and apply the minimum-visibility floor.

    The result is only meaningful for revealed cells; callers zero the
    rest.

    Args:
        distance: Distances from the viewer.
        visibility_radius: Radius inside which cells are revealed.
        params: Light model parameters.
    """
    torch = torch_term(distance, params.torch_radius, params.falloff_exponent)
    dark = darkness_term(
        distance,
        visibility_radius,
        params.revealed_darkness_multiplier,
    )
    combined = np.maximum(torch, dark)
    return np.clip(np.maximum(combined, params.min_visibility), 0.0, 1.0)


def far_field_intensity(visibility_radius: float, params: LightingParams) -> float:
    """Return the light level of a cell beyond both radii.

    Every cell further than ``max(visibility_radius, torch_radius)`` from
    the viewer has this same value, which lets the tracker skip them.
    """
    return float(light_intensity(np.inf, visibility_radius, params))
