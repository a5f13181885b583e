"""Per-level erosion radii and mask erosion.

Before subsampling, each pyramid level is smoothed with a Gaussian of
standard deviation schedule/2, where the coarsest of N levels has a
schedule of 2^(N-1).  The kernel reaches roughly two standard deviations,
so a band of that width along the mask edge sees background intensity:

    fixed radius   = ceil(2^(N - level - 1)) + 1
    moving radius  = ceil(2^(N - level)) + 1

The moving mask gets one extra doubling because the metric derivative
samples the moving image gradient, which needs a wider neighborhood than
the intensity itself.
"""

import math
import operator
from dataclasses import dataclass

from scipy.ndimage import binary_erosion

from multires_mask.errors import InvalidScheduleError
from multires_mask.masks import MaskRole
from multires_mask.utils import build_ball


@dataclass(frozen=True)
class ScheduleEntry:
    level: int
    fixed_radius: int
    moving_radius: int


# ---------------------------------------------------------------------------
# Radius schedule
# ---------------------------------------------------------------------------
def _check_domain(level, total_levels):
    if total_levels < 1 or level < 0 or level >= total_levels:
        raise InvalidScheduleError(level, total_levels)


def radius_for(level, total_levels, role):
    """Erosion radius (voxels) for ``role`` at resolution ``level``."""
    try:
        level = operator.index(level)
        total_levels = operator.index(total_levels)
    except TypeError:
        raise InvalidScheduleError(level, total_levels) from None
    _check_domain(level, total_levels)

    exponent = total_levels - level - 1
    if MaskRole(role) is MaskRole.MOVING:
        exponent += 1
    return int(math.ceil(2.0 ** exponent)) + 1


def fixed_radius(level, total_levels):
    return radius_for(level, total_levels, MaskRole.FIXED)


def moving_radius(level, total_levels):
    return radius_for(level, total_levels, MaskRole.MOVING)


def erosion_schedule(total_levels):
    """One ScheduleEntry per level, coarsest (level 0) first."""
    if int(total_levels) < 1:
        raise InvalidScheduleError(0, total_levels)
    return [
        ScheduleEntry(level, fixed_radius(level, total_levels),
                      moving_radius(level, total_levels))
        for level in range(int(total_levels))
    ]


# ---------------------------------------------------------------------------
# Erosion
# ---------------------------------------------------------------------------
def erode(source, radius):
    """Erode ``source`` with an isotropic ball of ``radius`` voxels.

    Returns a new Mask on the same grid; ``source`` is left untouched.
    Voxels outside the grid count as foreground, so only the mask's own
    boundary recedes, never the image border.
    """
    radius = int(radius)
    if radius < 0:
        raise ValueError(f"radius must be non-negative, got {radius}")
    if radius == 0 or not source.data.any():
        return source.with_data(source.data.copy())

    structure = build_ball(radius, ndim=source.ndim)
    eroded = binary_erosion(source.data, structure=structure,
                            border_value=1)
    return source.with_data(eroded)
