"""Metric lifecycle: mask loading and per-level erosion.

The registration driver calls the four phases in a fixed order:

  1. before_all              echo mask options to the log
  2. initialize              initialize the wrapped metric (timed)
  3. before_registration     load fixed / moving masks, set them unmodified
  4. before_each_resolution  erode each source mask for the current level

Phase 4 repeats once per pyramid level, levels strictly increasing.  Every
level erodes the original source mask, never the previous level's output.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import numpy as np

from multires_mask import erosion
from multires_mask.errors import MaskLoadError
from multires_mask.masks import ROLES, MaskResourceManager, MaskRole
from multires_mask.profiling import Timer

logger = logging.getLogger(__name__)

MASK_OPTIONS = {MaskRole.FIXED: "fMask", MaskRole.MOVING: "mMask"}
DEFAULT_NUMBER_OF_RESOLUTIONS = 3


class MetricLifecycle(ABC):
    """Hooks a multi-resolution driver invokes on its similarity metric."""

    registration = None

    def bind(self, registration):
        """Attach the driver that reports ``current_level``."""
        self.registration = registration

    @abstractmethod
    def before_all(self):
        """One-time setup.  Returns 0 on success."""

    @abstractmethod
    def initialize(self):
        """Per-run initialization."""

    @abstractmethod
    def before_registration(self):
        """Called once, before the first resolution level."""

    @abstractmethod
    def before_each_resolution(self):
        """Called at the start of every resolution level."""


@dataclass
class RegistrationRunState:
    total_levels: int
    level: int = -1
    present: dict = field(default_factory=dict)


class MaskedMetricLifecycle(MetricLifecycle):
    """Drives resolution-adaptive mask erosion for a masked metric.

    Parameters
    ----------
    metric : object
        Similarity metric exposing ``initialize()``,
        ``set_active_mask(role, mask)`` and ``get_active_mask(role)``.
    config : Configuration
        Source of ``fMask``, ``mMask`` and ``NumberOfResolutions``.
    masks : MaskResourceManager, optional
        Owner of the decoded source masks.
    log : object with ``info(str)``, optional
        Diagnostic sink; defaults to this module's logger.
    """

    location = "MaskedMetricLifecycle - before_registration()"

    def __init__(self, metric, config, masks=None, log=None):
        self.metric = metric
        self.config = config
        self.masks = masks if masks is not None else MaskResourceManager()
        self.log = log if log is not None else logger
        self.registration = None
        self.state = None
        self.timer = Timer()

    # -- Phase 1 --

    def before_all(self):
        self.log.info("Command line options:")
        for role in ROLES:
            option = MASK_OPTIONS[role]
            path = self.config.get_command_line_argument(option)
            if path:
                self.log.info(f"-{option}\t\t{path}")
            else:
                self.log.info(
                    f"-{option}\t\tunspecified, so no {role} mask used")
        return 0

    # -- Phase 2 --

    def initialize(self):
        self.timer.start()
        self.metric.initialize()
        self.timer.stop()
        self.log.info(f"Initialization of {type(self.metric).__name__} "
                      f"took: {self.timer.elapsed_millis()} ms.")

    # -- Phase 3 --

    def before_registration(self):
        self.state = None
        self.masks.clear()
        state = RegistrationRunState(
            total_levels=self.number_of_resolutions())
        for role in ROLES:
            path = self.config.get_command_line_argument(MASK_OPTIONS[role])
            try:
                mask = self.masks.try_load(role, path)
            except MaskLoadError as e:
                raise e.with_context(
                    self.location,
                    f"Error occurred while reading {role} mask.") from e
            state.present[role] = mask is not None
            if mask is not None:
                self.metric.set_active_mask(role, mask)
        self.state = state

    # -- Phase 4 --

    def before_each_resolution(self):
        if self.state is None:
            raise RuntimeError(
                "before_each_resolution() called before before_registration()")
        level = self.registration.current_level
        if level <= self.state.level:
            raise RuntimeError(
                f"resolution level went from {self.state.level} to {level}")
        self.state.level = level
        self.state.total_levels = self.number_of_resolutions()

        n_params = getattr(self.registration, "number_of_parameters", None)
        if n_params is not None and hasattr(
                self.metric, "set_derivative_step_length_scales"):
            self.metric.set_derivative_step_length_scales(np.ones(n_params))

        for role in ROLES:
            if not self.state.present.get(role):
                continue
            source = self.masks.get_source(role)
            radius = erosion.radius_for(level, self.state.total_levels, role)
            eroded = erosion.erode(source, radius)
            self.metric.set_active_mask(role, eroded)
            self.log.info(f"Level {level}: eroded {role} mask with radius "
                          f"{radius} ({source.count()} -> {eroded.count()} "
                          f"voxels)")

    # -- Helpers --

    def number_of_resolutions(self):
        return self.config.read_parameter(
            "NumberOfResolutions", 0, DEFAULT_NUMBER_OF_RESOLUTIONS)
