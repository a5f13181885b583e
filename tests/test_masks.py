"""Tests for multires_mask/masks.py: Mask geometry, NIfTI I/O, ownership."""

import numpy as np
import pytest

from multires_mask.errors import MaskLoadError
from multires_mask.masks import (
    Mask, MaskResourceManager, MaskRole, load_mask, save_mask,
)

from tests.conftest import make_cube_mask, write_nifti


# ---------------------------------------------------------------------------
# Mask
# ---------------------------------------------------------------------------
class TestMask:
    def test_data_cast_to_bool(self):
        mask = Mask(np.array([[0, 2], [3, 0]], dtype=np.int16), np.eye(4))
        assert mask.data.dtype == bool
        assert mask.count() == 2

    def test_spatial_metadata(self):
        affine = np.diag([2.0, 0.5, 1.5, 1.0])
        affine[:3, 3] = [-10.0, 4.0, 7.0]
        mask = Mask(np.zeros((4, 4, 4)), affine)
        np.testing.assert_allclose(mask.spacing, [2.0, 0.5, 1.5])
        np.testing.assert_allclose(mask.origin, [-10.0, 4.0, 7.0])
        np.testing.assert_allclose(mask.direction, np.eye(3))

    def test_bad_affine(self):
        with pytest.raises(ValueError):
            Mask(np.zeros((4, 4, 4)), np.eye(3))

    def test_with_data_keeps_grid(self, cube_mask):
        out = cube_mask.with_data(np.zeros(cube_mask.shape))
        assert out.shape == cube_mask.shape
        np.testing.assert_array_equal(out.affine, cube_mask.affine)
        assert out.count() == 0
        assert cube_mask.count() > 0

    def test_with_data_shape_mismatch(self, cube_mask):
        with pytest.raises(ValueError):
            cube_mask.with_data(np.zeros((3, 3, 3)))


# ---------------------------------------------------------------------------
# load_mask / save_mask
# ---------------------------------------------------------------------------
class TestMaskIO:
    def test_save_then_load(self, tmp_path):
        mask = make_cube_mask(size=12, lo=2, hi=9, spacing=0.75)
        path = save_mask(mask, tmp_path / "sub" / "mask.nii.gz")
        assert path.exists()

        loaded = load_mask(path)
        np.testing.assert_array_equal(loaded.data, mask.data)
        np.testing.assert_allclose(loaded.affine, mask.affine)

    def test_nonzero_is_foreground(self, tmp_path):
        data = np.zeros((5, 5, 5), dtype=np.float32)
        data[1, 1, 1] = 0.3
        data[2, 2, 2] = -4.0
        loaded = load_mask(write_nifti(tmp_path / "m.nii", data))
        assert loaded.count() == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_mask(tmp_path / "nonexistent.nii.gz")


# ---------------------------------------------------------------------------
# MaskResourceManager
# ---------------------------------------------------------------------------
class TestMaskResourceManager:
    def test_empty_path_no_decode(self):
        calls = []
        manager = MaskResourceManager(decode=lambda p: calls.append(p))
        assert manager.try_load(MaskRole.FIXED, "") is None
        assert calls == []
        assert manager.get_source(MaskRole.FIXED) is None

    def test_load_sets_source(self, cube_mask):
        manager = MaskResourceManager(decode=lambda p: cube_mask)
        out = manager.try_load(MaskRole.MOVING, "moving.nii.gz")
        assert out is cube_mask
        assert manager.get_source("moving") is cube_mask
        assert manager.get_source(MaskRole.FIXED) is None

    def test_decode_failure(self):
        def decode(path):
            raise OSError("corrupt header")

        manager = MaskResourceManager(decode=decode)
        with pytest.raises(MaskLoadError) as exc:
            manager.try_load(MaskRole.FIXED, "/data/fixed_mask.nii.gz")
        err = exc.value
        assert err.role is MaskRole.FIXED
        assert err.path == "/data/fixed_mask.nii.gz"
        assert isinstance(err.cause, OSError)
        assert err.__cause__ is err.cause
        assert "corrupt header" in str(err)

    def test_failed_load_keeps_previous_source(self, cube_mask):
        results = [cube_mask, OSError("bad")]

        def decode(path):
            item = results.pop(0)
            if isinstance(item, Exception):
                raise item
            return item

        manager = MaskResourceManager(decode=decode)
        manager.try_load(MaskRole.FIXED, "a.nii.gz")
        with pytest.raises(MaskLoadError):
            manager.try_load(MaskRole.FIXED, "b.nii.gz")
        assert manager.get_source(MaskRole.FIXED) is cube_mask

    def test_real_decoder_missing_file(self, tmp_path):
        manager = MaskResourceManager()
        path = tmp_path / "nope.nii.gz"
        with pytest.raises(MaskLoadError) as exc:
            manager.try_load(MaskRole.MOVING, path)
        assert isinstance(exc.value.cause, FileNotFoundError)
        assert exc.value.path == str(path)

    def test_clear(self, cube_mask):
        manager = MaskResourceManager(decode=lambda p: cube_mask)
        manager.try_load(MaskRole.FIXED, "x")
        manager.clear()
        assert manager.get_source(MaskRole.FIXED) is None
