"""Tests for the brush sample cache."""

import numpy as np
import pytest

from py_sculpt.config.brush_settings import BrushSettings
from py_sculpt.core.brush_catalog import BrushCatalog
from py_sculpt.core.brush_samples import BrushSampleCache, SamplesDirty

ALL = SamplesDirty.SHAPE | SamplesDirty.SPEED | SamplesDirty.PREVIEW


@pytest.fixture
def catalog():
    return BrushCatalog()


@pytest.fixture
def brush():
    return BrushSettings(brush_speed=0.5)


@pytest.fixture
def cache(brush, catalog):
    cache = BrushSampleCache()
    cache.sync(brush, catalog, 9, preview_size=8)
    cache.refresh(catalog)
    return cache


class TestBrushSampleCache:
    """Test dirty tracking and regeneration."""

    def test_initial_sync_marks_everything(self, brush, catalog):
        """Test initial sync marks everything."""
        cache = BrushSampleCache()
        assert cache.sync(brush, catalog, 9) == ALL
        assert cache.refresh(catalog) == ALL
        assert cache.dirty == SamplesDirty.NONE

    def test_generated_masks(self, cache):
        """Test generated masks."""
        assert cache.samples.shape == (9, 9)
        np.testing.assert_allclose(cache.samples_with_speed, cache.samples * 0.5)
        assert list(cache.previews) == ["_DefaultProceduralBrush"]
        assert cache.previews["_DefaultProceduralBrush"].shape == (8, 8)

    def test_unchanged_inputs_do_nothing(self, cache, brush, catalog):
        """Test unchanged inputs do nothing."""
        assert cache.sync(brush, catalog, 9, preview_size=8) == SamplesDirty.NONE
        assert cache.refresh(catalog) == SamplesDirty.NONE

    def test_speed_change_only_rescales(self, cache, brush, catalog):
        """Test speed change only rescales."""
        samples = cache.samples
        brush.brush_speed = 2.0

        assert cache.sync(brush, catalog, 9, preview_size=8) == SamplesDirty.SPEED
        assert cache.refresh(catalog) == SamplesDirty.SPEED
        assert cache.samples is samples
        np.testing.assert_allclose(cache.samples_with_speed, samples * 2.0)

    def test_shape_change_regenerates(self, cache, brush, catalog):
        """Test shape change regenerates."""
        brush.brush_roundness = 0.5

        changed = cache.sync(brush, catalog, 9, preview_size=8)

        assert SamplesDirty.SHAPE in changed
        assert SamplesDirty.SPEED in changed
        assert SamplesDirty.SHAPE in cache.refresh(catalog)

    def test_size_change_regenerates(self, cache, brush, catalog):
        """Test size change regenerates."""
        cache.sync(brush, catalog, 11, preview_size=8)
        cache.refresh(catalog)
        assert cache.samples.shape == (11, 11)
        assert cache.samples_with_speed.shape == (11, 11)

    def test_new_catalog_entry_dirties_previews(self, cache, brush, catalog):
        """Test new catalog entry dirties previews."""
        catalog.upsert("rock.png", np.zeros((4, 4)))

        assert cache.sync(brush, catalog, 9, preview_size=8) == SamplesDirty.PREVIEW
        cache.refresh(catalog)
        assert set(cache.previews) == {"_DefaultProceduralBrush", "rock"}

    def test_selected_custom_brush(self, cache, brush, catalog):
        """Test selected custom brush."""
        catalog.upsert("rock.png", np.full((4, 4), 0.25))
        brush.selected_brush = "rock"

        cache.sync(brush, catalog, 9, preview_size=8)
        cache.refresh(catalog)

        assert cache.brush.name == "rock"
        np.testing.assert_allclose(cache.samples, 0.75)

    def test_unavailable_image_keeps_previous_samples(self, cache, brush, catalog):
        """Test unavailable image keeps previous samples."""
        rock = catalog.upsert("rock.png", np.full((4, 4), 0.25))
        brush.selected_brush = "rock"
        cache.sync(brush, catalog, 9, preview_size=8)
        cache.refresh(catalog)
        previous = cache.samples

        rock.detach()
        cache.sync(brush, catalog, 9, preview_size=8)
        regenerated = cache.refresh(catalog)

        assert SamplesDirty.SHAPE not in regenerated
        assert cache.samples is previous
        assert SamplesDirty.SHAPE in cache.dirty

    def test_missing_selection_falls_back(self, cache, brush, catalog):
        """Test missing selection falls back."""
        brush.selected_brush = "deleted"
        cache.sync(brush, catalog, 9, preview_size=8)
        assert cache.brush.name == "_DefaultProceduralBrush"

    def test_rotation_invariance(self, cache, brush, catalog):
        """Test rotation invariance."""
        assert cache.rotation_invariant()

        brush.brush_roundness = 0.5
        cache.sync(brush, catalog, 9, preview_size=8)
        assert not cache.rotation_invariant()
