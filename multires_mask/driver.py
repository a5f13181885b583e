"""Reference multi-resolution driver.

Calls a MetricLifecycle in contract order:

    before_all -> initialize -> before_registration
    -> before_each_resolution (level 0 .. total_levels - 1)

and, after each level's hook, hands the level's smoothed images to an
optional callback that stands in for optimization at that level.
"""

import logging

from multires_mask import pyramid
from multires_mask.profiling import step

logger = logging.getLogger(__name__)


class MultiResolutionDriver:
    def __init__(self, lifecycle, total_levels, number_of_parameters=None,
                 on_level=None):
        if int(total_levels) < 1:
            raise ValueError(f"total_levels must be >= 1, got {total_levels}")
        self.lifecycle = lifecycle
        self.total_levels = int(total_levels)
        self.number_of_parameters = (
            None if number_of_parameters is None else int(number_of_parameters))
        self.on_level = on_level
        self.current_level = 0
        lifecycle.bind(self)

    def run(self, fixed_image=None, moving_image=None):
        """Run all phases.  Errors from any phase abort the run."""
        lc = self.lifecycle
        with step("Registration total", logger):
            status = lc.before_all()
            if status != 0:
                raise RuntimeError(f"before_all() returned {status}")
            lc.initialize()
            lc.before_registration()

            for level in range(self.total_levels):
                self.current_level = level
                with step(f"Resolution {level}", logger):
                    lc.before_each_resolution()
                    if self.on_level is not None:
                        fixed, moving = self._level_images(
                            fixed_image, moving_image, level)
                        self.on_level(level, fixed, moving)

    def _level_images(self, fixed_image, moving_image, level):
        smooth = [
            None if img is None
            else pyramid.smooth_level(img, level, self.total_levels)
            for img in (fixed_image, moving_image)
        ]
        return smooth[0], smooth[1]
