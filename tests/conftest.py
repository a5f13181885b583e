"""Shared fixtures for the test suite."""

import logging

import nibabel as nib
import numpy as np
import pytest

from multires_mask.config import Configuration
from multires_mask.masks import Mask


class RecordingLog:
    """Minimal injected log sink: keeps every info() message."""

    def __init__(self):
        self.messages = []

    def info(self, message):
        self.messages.append(message)

    def text(self):
        return "\n".join(self.messages)


def make_cube_mask(size=40, lo=5, hi=35, spacing=1.0):
    """Cube of foreground [lo, hi) on a size^3 grid."""
    data = np.zeros((size, size, size), dtype=bool)
    data[lo:hi, lo:hi, lo:hi] = True
    affine = np.diag([spacing, spacing, spacing, 1.0])
    return Mask(data, affine)


def write_nifti(path, data, affine=None):
    affine = np.eye(4) if affine is None else affine
    nib.save(nib.Nifti1Image(np.asarray(data), affine), str(path))
    return path


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Drop handlers main() attaches so they never outlive a test."""
    yield
    logging.getLogger("multires_mask").handlers = []


@pytest.fixture
def log():
    return RecordingLog()


@pytest.fixture
def cube_mask():
    return make_cube_mask()


@pytest.fixture
def mask_files(tmp_path):
    """Fixed and moving cube masks on disk, plus matching images."""
    mask = make_cube_mask()
    image = np.random.default_rng(0).random(mask.shape).astype(np.float32)
    paths = {
        "fMask": write_nifti(tmp_path / "fixed_mask.nii.gz",
                             mask.data.astype(np.uint8), mask.affine),
        "mMask": write_nifti(tmp_path / "moving_mask.nii.gz",
                             mask.data.astype(np.uint8), mask.affine),
        "fixed": write_nifti(tmp_path / "fixed.nii.gz", image, mask.affine),
        "moving": write_nifti(tmp_path / "moving.nii.gz", image, mask.affine),
    }
    return paths


@pytest.fixture
def make_config():
    def _make(fmask="", mmask="", **params):
        return Configuration(
            command_line={"-fMask": str(fmask), "-mMask": str(mmask)},
            parameters={k: [v] for k, v in params.items()},
        )
    return _make
