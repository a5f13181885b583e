"""Smoothing pyramid schedule.

Level 0 is the coarsest of ``total_levels`` levels.  Each level is
Gaussian-smoothed with sigma = schedule / 2, where
schedule = 2^(total_levels - level - 1).  Images stay on their full
resolution grid so the per-level eroded masks apply voxel for voxel.
"""

import numpy as np
from scipy.ndimage import gaussian_filter

from multires_mask.errors import InvalidScheduleError


def schedule_factor(level, total_levels):
    if total_levels < 1 or not 0 <= level < total_levels:
        raise InvalidScheduleError(level, total_levels)
    return 2 ** (total_levels - level - 1)


def smoothing_sigma(level, total_levels):
    """Gaussian standard deviation (voxels) for ``level``."""
    return schedule_factor(level, total_levels) / 2.0


def smooth_level(image, level, total_levels):
    """Smoothed copy of ``image`` for resolution ``level``."""
    sigma = smoothing_sigma(level, total_levels)
    image = np.asarray(image, dtype=np.float32)
    return gaussian_filter(image, sigma=sigma, mode='reflect')
