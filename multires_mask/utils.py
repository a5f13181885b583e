"""Shared utilities: structuring elements and logger setup."""

import logging
import sys

import numpy as np

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


# ---------------------------------------------------------------------------
# Spherical structuring element
# ---------------------------------------------------------------------------
def build_ball(radius_vox, ndim=3):
    """Build a ball-shaped boolean structuring element.

    Returns an array of shape (2*radius_vox+1,) per axis, True where
    Euclidean distance from center <= radius_vox.
    """
    r = int(radius_vox)
    if r < 0:
        raise ValueError(f"radius must be non-negative, got {radius_vox}")
    ax = np.arange(2 * r + 1) - r
    grids = np.meshgrid(*([ax] * ndim), indexing='ij')
    dist2 = sum(g * g for g in grids)
    return dist2 <= r * r


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
def setup_logger(name="multires_mask", level=logging.INFO, stream=None):
    """Attach a single formatted stream handler to the named logger."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.handlers = []
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT,
                                           datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    return logger
