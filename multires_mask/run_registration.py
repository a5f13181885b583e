"""Run the masked-metric lifecycle over a multi-resolution schedule.

Loads the fixed and moving images, wires the configuration, mask manager,
metric and lifecycle together, and runs every resolution level, logging the
erosion radii and the voxels left in each mask.

Usage:
    python -m multires_mask.run_registration -f fixed.nii.gz -m moving.nii.gz \
        -fMask fixed_mask.nii.gz -mMask moving_mask.nii.gz -p params.txt \
        --out eroded/
"""

import argparse
import logging
import sys
from pathlib import Path

import nibabel as nib
import numpy as np

from multires_mask import erosion, pyramid
from multires_mask.config import Configuration
from multires_mask.driver import MultiResolutionDriver
from multires_mask.lifecycle import (
    DEFAULT_NUMBER_OF_RESOLUTIONS, MaskedMetricLifecycle,
)
from multires_mask.masks import ROLES, MaskResourceManager, save_mask
from multires_mask.metric import MaskedMetric
from multires_mask.utils import setup_logger

logger = logging.getLogger("multires_mask.run_registration")


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------
def parse_args(argv=None):
    """Parse CLI arguments for run_registration."""
    parser = argparse.ArgumentParser(
        description="Resolution-adaptive mask erosion for a masked metric."
    )
    parser.add_argument("-f", dest="fixed",
                        help="Fixed image (NIfTI)")
    parser.add_argument("-m", dest="moving",
                        help="Moving image (NIfTI)")
    parser.add_argument("-fMask", dest="fMask", default="",
                        help="Fixed mask (NIfTI); omit for no fixed mask")
    parser.add_argument("-mMask", dest="mMask", default="",
                        help="Moving mask (NIfTI); omit for no moving mask")
    parser.add_argument("-p", dest="params", default=None,
                        help="Elastix-style parameter file")
    parser.add_argument("--out", type=Path, default=None,
                        help="Write per-level eroded masks to this directory")
    parser.add_argument("--show-schedule", action="store_true",
                        help="Print the erosion radius table and exit")
    parser.add_argument("--verbose", action="store_true",
                        help="Debug-level logging")
    args = parser.parse_args(argv)

    if not args.show_schedule and (args.fixed is None or args.moving is None):
        parser.error("-f and -m are required unless --show-schedule is given")

    return args


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def load_image(path):
    """Load a NIfTI image as float32."""
    img = nib.load(str(path))
    return np.asarray(img.dataobj, dtype=np.float32)


def transform_parameter_count(name, ndim):
    """Number of parameters of an elastix transform type."""
    counts = {
        "TranslationTransform": ndim,
        "EulerTransform": 3 if ndim == 2 else 6,
        "SimilarityTransform": 4 if ndim == 2 else 7,
        "AffineTransform": ndim * (ndim + 1),
    }
    if name not in counts:
        raise ValueError(f"Unsupported transform: {name}")
    return counts[name]


def print_schedule(total_levels):
    logger.info(f"Erosion schedule ({total_levels} resolutions):")
    logger.info("  level  sigma  fixed  moving")
    for entry in erosion.erosion_schedule(total_levels):
        sigma = pyramid.smoothing_sigma(entry.level, total_levels)
        logger.info(f"  {entry.level:>5d}  {sigma:>5.1f}"
                    f"  {entry.fixed_radius:>5d}  {entry.moving_radius:>6d}")


def make_level_report(metric, out_dir):
    """Per-level callback: log mask sizes, optionally save eroded masks."""
    def report(level, fixed_level, moving_level):
        logger.info(f"Level {level}: {metric.sample_count()} fixed samples")
        for role, image in zip(ROLES, (fixed_level, moving_level)):
            mask = metric.get_active_mask(role)
            if mask is None:
                continue
            if mask.count() > 0:
                logger.debug(f"Level {level}: mean {role} intensity in mask "
                             f"{float(image[mask.data].mean()):.4g}")
            if out_dir is not None:
                path = out_dir / f"{role}_mask_level{level}.nii.gz"
                logger.info(f"Saved {save_mask(mask, path)}")
    return report


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------
def run(args):
    config = Configuration.from_files(
        command_line={"-fMask": args.fMask, "-mMask": args.mMask},
        parameter_file=args.params,
    )
    total_levels = config.read_parameter(
        "NumberOfResolutions", 0, DEFAULT_NUMBER_OF_RESOLUTIONS)
    print_schedule(total_levels)
    if args.show_schedule:
        return None

    fixed = load_image(args.fixed)
    moving = load_image(args.moving)
    logger.info(f"Fixed: {args.fixed}  shape={fixed.shape}")
    logger.info(f"Moving: {args.moving}  shape={moving.shape}")

    metric = MaskedMetric(fixed, moving)
    lifecycle = MaskedMetricLifecycle(metric, config, MaskResourceManager(),
                                      log=logger)
    n_params = transform_parameter_count(
        config.read_parameter("Transform", 0, "AffineTransform"), fixed.ndim)
    driver = MultiResolutionDriver(
        lifecycle, total_levels, number_of_parameters=n_params,
        on_level=make_level_report(metric, args.out),
    )
    driver.run(fixed, moving)
    return metric


def main(argv=None):
    """Run the lifecycle; exit 1 on any fatal error."""
    args = parse_args(argv)
    setup_logger("multires_mask",
                 level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        run(args)
    except Exception as e:
        logger.error(f"FATAL: {type(e).__name__}: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
