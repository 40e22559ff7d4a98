"""Tests for the sculpt session."""

import numpy as np
import pytest
from PIL import Image

from py_sculpt.config.brush_settings import SculptSettings
from py_sculpt.core.commands import CommandKind, FlattenMode
from py_sculpt.core.falloff_curve import FalloffCurve
from py_sculpt.core.height_grid import InMemoryHeightStore, TerrainDimensions
from py_sculpt.core.sculpt_session import PointerEvent, SculptEventKind, SculptSession

CENTRE = (2.0, 0.0, 2.0)


def make_session(mode=CommandKind.RAISE_OR_LOWER, heights=None, size_y=1.0, **kwargs):
    store = InMemoryHeightStore(5, 5, heights)
    settings = SculptSettings(mode=mode)
    for brush in settings.brushes.values():
        brush.brush_size = 5.0
        brush.brush_speed = 1.0
        brush.falloff_curve = FalloffCurve.linear()
    session = SculptSession(
        store, TerrainDimensions.unit_cells(5, 5, size_y=size_y), settings=settings, **kwargs
    )
    return session, store


def save_image(path, size=(8, 8), value=128):
    Image.new("L", size, value).save(path)


def kinds(session):
    return [event.kind for event in session.drain_events()]


@pytest.fixture
def session():
    return make_session()[0]


class TestGesture:
    """Test pointer down, update and up."""

    def test_first_update_applies_a_dab(self):
        """Test first update applies a dab."""
        session, store = make_session()
        session.pointer_down(PointerEvent(CENTRE))

        result = session.update(PointerEvent(CENTRE))

        assert result is not None
        assert result.kind == CommandKind.RAISE_OR_LOWER
        assert result.heights.shape == (5, 5)
        assert result.heights[2, 2] == pytest.approx(0.01)
        assert store.read_all()[2, 2] == pytest.approx(0.01)

    def test_update_without_gesture_does_nothing(self, session):
        """Test update without gesture does nothing."""
        assert session.update(PointerEvent(CENTRE)) is None

        session.pointer_down(PointerEvent(CENTRE))
        session.pointer_up()
        assert session.update(PointerEvent(CENTRE)) is None

    def test_secondary_button_is_ignored(self, session):
        """Test secondary button is ignored."""
        session.pointer_down(PointerEvent(CENTRE, primary=False))
        assert session.stroke is None

    def test_dabs_reuse_the_gesture_command(self, session):
        """Test dabs reuse the gesture command."""
        session.pointer_down(PointerEvent(CENTRE))
        session.update(PointerEvent(CENTRE))
        command = session.stroke.command
        session.update(PointerEvent(CENTRE))

        assert session.stroke.command is command
        assert session.stroke.dab_count == 2
        assert session.heights.heights[2, 2] == pytest.approx(0.02)

    def test_spacing_gates_dabs(self, session):
        """Test spacing gates dabs."""
        brush = session.brush_settings
        brush.use_brush_spacing = True
        brush.min_brush_spacing = 1.0
        brush.max_brush_spacing = 1.0

        session.pointer_down(PointerEvent(CENTRE))
        assert session.update(PointerEvent(CENTRE)) is not None
        assert session.update(PointerEvent((3.0, 0.0, 2.0))) is None
        assert session.update(PointerEvent((4.0, 0.0, 2.0))) is None
        # Five units travelled since the last dab
        assert session.update(PointerEvent((0.0, 0.0, 2.0))) is not None

    def test_mouse_delta_accumulates(self, session):
        """Test mouse delta accumulates."""
        session.pointer_down(PointerEvent(CENTRE, screen_y=0.0))
        for screen_y in (5.0, 12.0, 9.0):
            session.update(PointerEvent(CENTRE, screen_y=screen_y, control=True))

        assert session.stroke.total_mouse_delta == pytest.approx(9.0)

    def test_control_drag_stays_on_anchor(self):
        """Test control drag stays on anchor."""
        session, store = make_session()
        session.pointer_down(PointerEvent(CENTRE, screen_y=0.0))

        session.update(PointerEvent((4.0, 0.0, 4.0), screen_y=-10.0, control=True))

        heights = store.read_all()
        assert heights[2, 2] == pytest.approx(0.05)
        assert heights[4, 4] == 0.0

    def test_off_grid_dab_is_empty(self, session):
        """Test off grid dab is empty."""
        session.pointer_down(PointerEvent((50.0, 0.0, 50.0)))
        result = session.update(PointerEvent((50.0, 0.0, 50.0)))

        assert result.area.is_empty
        assert result.heights.size == 0
        np.testing.assert_array_equal(session.heights.heights, 0.0)


class TestModes:
    """Test mode specific session behaviour."""

    def test_flatten_target_from_first_dab(self):
        """Test flatten target from first dab."""
        session, store = make_session(CommandKind.FLATTEN)
        session.pointer_down(PointerEvent((2.0, 0.5, 2.0)))

        session.update(PointerEvent((2.0, 0.5, 2.0)))
        session.update(PointerEvent((2.0, 0.9, 2.0)))

        assert session.flatten_height == pytest.approx(0.5)
        centre = store.read_all()[2, 2]
        assert 0.0 < centre <= 0.5

        session.pointer_up()
        assert session.flatten_height is None

    def test_set_height_target(self):
        """Test set height target."""
        session, store = make_session(CommandKind.SET_HEIGHT, size_y=100.0)
        session.settings.set_height = 50.0
        session.pointer_down(PointerEvent(CENTRE))

        session.update(PointerEvent(CENTRE))

        assert session.stroke.command.target_height == pytest.approx(0.5)
        assert 0.0 < store.read_all()[2, 2] <= 0.5

    def test_shift_samples_set_height(self):
        """Test shift samples set height."""
        heights = np.zeros((5, 5))
        heights[2, 2] = 0.3
        session, store = make_session(CommandKind.SET_HEIGHT, heights=heights, size_y=100.0)
        session.pointer_down(PointerEvent(CENTRE, shift=True))
        session.drain_events()

        session.update(PointerEvent(CENTRE, shift=True))
        session.update(PointerEvent(CENTRE, shift=True))

        assert session.settings.set_height == pytest.approx(30.0)
        assert kinds(session).count(SculptEventKind.SET_HEIGHT_SAMPLED) == 1
        np.testing.assert_array_equal(store.read_all(), heights)

    def test_sample_set_height_without_cursor(self, session):
        """Test sample set height without cursor."""
        assert session.sample_set_height() is None

    def test_mode_switch_mid_gesture_creates_new_command(self, session):
        """Test mode switch mid gesture creates new command."""
        session.pointer_down(PointerEvent(CENTRE))
        session.update(PointerEvent(CENTRE))
        session.settings.mode = CommandKind.SMOOTH

        result = session.update(PointerEvent(CENTRE))

        assert result.kind == CommandKind.SMOOTH
        assert session.stroke.command.kind == CommandKind.SMOOTH


class TestApplyDab:
    """Test dabs applied outside a gesture."""

    def test_single_dab(self):
        """Test single dab."""
        session, store = make_session()
        area = session.clipper.clip(0.4, 0.4, 5)

        updated = session.apply_dab(area)

        assert updated[2, 2] == pytest.approx(0.01)
        assert store.read_all()[2, 2] == pytest.approx(0.01)
        assert session.stroke is None

    def test_flatten_target_is_per_dab(self):
        """Test stand-alone flatten dabs each take their own target height."""
        heights = np.zeros((10, 10))
        heights[:, 5:] = 0.8
        store = InMemoryHeightStore(10, 10, heights)
        settings = SculptSettings(mode=CommandKind.FLATTEN, flatten_mode=FlattenMode.EXTEND)
        session = SculptSession(store, settings=settings)
        samples = np.ones((3, 3))

        session.apply_dab(session.clipper.clip(0.2, 0.5, 3), samples=samples)
        session.apply_dab(session.clipper.clip(0.8, 0.5, 3), samples=samples)

        assert session.flatten_height is None
        np.testing.assert_array_equal(store.read_all(), heights)

    def test_empty_area(self, session):
        """Test empty area."""
        updated = session.apply_dab(session.clipper.clip(3.0, 3.0, 5))
        assert updated.shape == (0, 0)


class TestRandomization:
    """Test per-dab randomization inside a session."""

    def test_offset_is_seeded(self):
        """Test offset is seeded."""
        results = []
        for _ in range(2):
            session, store = make_session(seed="jitter")
            session.brush_settings.use_random_offset = True
            session.brush_settings.random_offset = 1.0
            session.pointer_down(PointerEvent(CENTRE))
            for _ in range(3):
                session.update(PointerEvent(CENTRE))
            results.append(store.read_all())

        np.testing.assert_array_equal(results[0], results[1])

    def test_rotation_skipped_for_round_brush(self):
        """Test rotation skipped for round brush."""
        draws = []
        for rotate in (False, True):
            session, _ = make_session()
            session.brush_settings.use_random_rotation = rotate
            session.pointer_down(PointerEvent(CENTRE))
            session.update(PointerEvent(CENTRE))
            draws.append(session.randomizer.prng.call_count)

        assert draws[0] == draws[1]

    def test_rotation_draws_for_shaped_brush(self):
        """Test rotation draws for shaped brush."""
        draws = []
        for rotate in (False, True):
            session, _ = make_session()
            session.brush_settings.brush_roundness = 0.5
            session.brush_settings.use_random_rotation = rotate
            session.pointer_down(PointerEvent(CENTRE))
            session.update(PointerEvent(CENTRE))
            draws.append(session.randomizer.prng.call_count)

        assert draws[1] == draws[0] + 1


class TestNotifications:
    """Test host notifications and the event queue."""

    def test_first_tick_reports_masks(self, session):
        """Test first tick reports masks."""
        session.tick()
        assert kinds(session) == [SculptEventKind.BRUSH_SHAPE_CHANGED, SculptEventKind.PREVIEWS_CHANGED]

        session.tick()
        assert kinds(session) == []

    def test_undo_redo_reloads_heights(self):
        """Test undo redo reloads heights."""
        session, store = make_session()
        store.write(0, 0, np.full((5, 5), 0.7))

        session.on_undo_redo()

        np.testing.assert_array_equal(session.heights.heights, 0.7)
        assert kinds(session) == [SculptEventKind.HEIGHTS_RELOADED]

    def test_asset_changes(self, tmp_path):
        """Test asset changes."""
        brushes = tmp_path / "brushes"
        brushes.mkdir()
        save_image(brushes / "rock.png")
        session, _ = make_session(brush_directory=brushes)
        assert "rock" in session.catalog

        save_image(brushes / "cliff.png")
        assert session.on_assets_imported([brushes / "cliff.png"]) == ["cliff"]

        outside = tmp_path / "outside.png"
        save_image(outside)
        assert session.on_assets_imported([outside]) == []

        assert session.on_assets_deleted([brushes / "rock.png"]) == ["rock"]
        assert "rock" not in session.catalog

        (brushes / "nested").mkdir()
        save_image(brushes / "nested" / "ridge.png")
        session.on_assets_moved([brushes / "cliff.png"], [brushes / "nested" / "ridge.png"])
        assert "cliff" not in session.catalog
        assert "ridge" in session.catalog

        assert kinds(session) == [SculptEventKind.CATALOG_CHANGED] * 4

    def test_assets_ignored_without_brush_directory(self, session, tmp_path):
        """Test assets ignored without brush directory."""
        save_image(tmp_path / "rock.png")
        assert session.on_assets_imported([tmp_path / "rock.png"]) == []


class TestTerrainOperations:
    """Test whole-terrain operations through the session."""

    def test_linear_ramp(self):
        """Test linear ramp."""
        session, store = make_session()
        session.linear_ramp(max_height=1.0)

        np.testing.assert_allclose(store.read_all()[:, 0], [0.0, 0.2, 0.4, 0.6, 0.8])
        assert kinds(session) == [SculptEventKind.HEIGHTS_RELOADED]

    def test_flatten_all_uses_world_units(self):
        """Test flatten all uses world units."""
        session, store = make_session(size_y=100.0)
        session.flatten_all(25.0)
        np.testing.assert_allclose(store.read_all(), 0.25)

        session.settings.set_height = 50.0
        session.flatten_all()
        np.testing.assert_allclose(session.heights.heights, 0.5)

    def test_smooth_all(self):
        """Test smooth all."""
        heights = np.zeros((5, 5))
        heights[2, 2] = 0.9
        session, store = make_session(heights=heights)
        session.settings.box_filter_size = 1

        session.smooth_all()

        assert store.read_all()[2, 2] == pytest.approx(0.1)
        assert store.read_all()[0, 0] == pytest.approx(0.0, abs=1e-12)

    def test_circular_ramp_peaks_in_the_middle(self):
        """Test circular ramp peaks in the middle."""
        session, store = make_session()
        heights = session.circular_ramp(max_height=1.0)

        assert heights[2, 2] == pytest.approx(heights.max())
        np.testing.assert_array_equal(store.read_all(), heights)
