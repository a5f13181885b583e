"""Masked similarity-metric collaborator.

Holds the fixed and moving images, the currently active mask per role and
the derivative step-length scales.  The similarity value itself (joint
histogram, mutual information) is computed elsewhere; this class only
tracks what the lifecycle configures.
"""

import numpy as np

from multires_mask.errors import DelegateInitializationError
from multires_mask.masks import MaskRole


class MaskedMetric:
    def __init__(self, fixed_image=None, moving_image=None):
        self.fixed_image = fixed_image
        self.moving_image = moving_image
        self.derivative_step_length_scales = None
        self.initialized = False
        self._active = {}

    # -- Masks --

    def set_active_mask(self, role, mask):
        """Replace the active mask for ``role``.  None clears it."""
        role = MaskRole(role)
        if mask is None:
            self._active.pop(role, None)
            return
        image = (self.fixed_image if role is MaskRole.FIXED
                 else self.moving_image)
        if image is not None and np.shape(image) != mask.shape:
            raise ValueError(
                f"{role} mask shape {mask.shape} does not match "
                f"{role} image shape {np.shape(image)}")
        self._active[role] = mask

    def get_active_mask(self, role):
        return self._active.get(MaskRole(role))

    # -- Lifecycle --

    def initialize(self):
        """Check that both images are present and usable."""
        for role, image in ((MaskRole.FIXED, self.fixed_image),
                            (MaskRole.MOVING, self.moving_image)):
            if image is None:
                raise DelegateInitializationError(f"{role} image is not set")
            if np.size(image) == 0:
                raise DelegateInitializationError(f"{role} image is empty")
        self.initialized = True

    def set_derivative_step_length_scales(self, scales):
        self.derivative_step_length_scales = np.asarray(scales,
                                                        dtype=np.float64)

    # -- Sampling --

    def sample_count(self):
        """Fixed-image voxels the metric would sample under the active mask."""
        mask = self.get_active_mask(MaskRole.FIXED)
        if mask is None:
            return int(np.size(self.fixed_image))
        return mask.count()
