"""Mask volumes and their ownership during a registration run.

A Mask is a boolean voxel array plus the 4x4 voxel-to-physical affine of
the image it delimits.  MaskResourceManager owns the decoded source masks,
one slot per role, so every resolution level can re-erode from the
original rather than from the previous level's result.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import nibabel as nib
import numpy as np

from multires_mask.errors import MaskLoadError

logger = logging.getLogger(__name__)


class MaskRole(str, Enum):
    FIXED = "fixed"
    MOVING = "moving"

    def __str__(self):
        return self.value


ROLES = (MaskRole.FIXED, MaskRole.MOVING)


# ---------------------------------------------------------------------------
# Mask
# ---------------------------------------------------------------------------
@dataclass(frozen=True, eq=False)
class Mask:
    """Binary volume with the spatial metadata of its source image."""

    data: np.ndarray
    affine: np.ndarray

    def __post_init__(self):
        data = np.asarray(self.data, dtype=bool)
        affine = np.asarray(self.affine, dtype=np.float64)
        if affine.shape != (4, 4):
            raise ValueError(f"affine must be 4x4, got {affine.shape}")
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "affine", affine)

    @property
    def shape(self):
        return self.data.shape

    @property
    def ndim(self):
        return self.data.ndim

    @property
    def spacing(self):
        """Voxel size along each axis (column norms of the affine)."""
        return np.sqrt((self.affine[:3, :3] ** 2).sum(axis=0))

    @property
    def origin(self):
        return self.affine[:3, 3].copy()

    @property
    def direction(self):
        """Unit direction cosines, one column per voxel axis."""
        return self.affine[:3, :3] / self.spacing

    def count(self):
        """Number of foreground voxels."""
        return int(np.count_nonzero(self.data))

    def with_data(self, data):
        """New Mask on the same voxel grid with different content."""
        data = np.asarray(data, dtype=bool)
        if data.shape != self.shape:
            raise ValueError(
                f"Shape mismatch: mask={self.shape}, data={data.shape}")
        return Mask(data, self.affine.copy())


# ---------------------------------------------------------------------------
# I/O
# ---------------------------------------------------------------------------
def load_mask(path):
    """Decode a NIfTI mask.  Any non-zero voxel is foreground."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such mask file: {path}")
    img = nib.load(str(path))
    data = np.asarray(img.dataobj)
    return Mask(data != 0, img.affine.copy())


def save_mask(mask, path):
    """Write a mask as uint8 NIfTI with its affine."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    img = nib.Nifti1Image(mask.data.astype(np.uint8), mask.affine)
    img.header.set_data_dtype(np.uint8)
    nib.save(img, str(path))
    return path


# ---------------------------------------------------------------------------
# Ownership
# ---------------------------------------------------------------------------
class MaskResourceManager:
    """Owns the pre-erosion source mask for each role.

    ``decode`` is the image-decode collaborator: ``decode(path) -> Mask``,
    raising on failure.  Defaults to :func:`load_mask`.
    """

    def __init__(self, decode=load_mask):
        self._decode = decode
        self._sources = {}

    def try_load(self, role, path):
        """Load the mask for ``role`` from ``path``.

        Returns None without touching the decoder when ``path`` is empty.
        On failure raises MaskLoadError and leaves any previously loaded
        source for the role in place.
        """
        role = MaskRole(role)
        if not path:
            return None
        try:
            mask = self._decode(str(path))
        except Exception as e:
            raise MaskLoadError(role, path, e) from e
        self._sources[role] = mask
        logger.debug("Loaded %s mask %s  shape=%s  foreground=%d",
                     role, path, mask.shape, mask.count())
        return mask

    def get_source(self, role):
        return self._sources.get(MaskRole(role))

    def clear(self):
        """Release all source masks (end of run)."""
        self._sources.clear()
