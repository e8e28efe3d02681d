"""Tests for torchdelve.visibility — light model, reveal mask, tracker."""

from __future__ import annotations

import numpy as np
import pytest

from torchdelve.dungeon.cell import CellState
from torchdelve.dungeon.grid import GridModel
from torchdelve.visibility.lighting import (
    LightingParams,
    darkness_term,
    far_field_intensity,
    light_intensity,
    torch_term,
)
from torchdelve.visibility.state import VisibilityState
from torchdelve.visibility.tracker import VisibilityTracker, update


class TestLightingTerms:
    """Tests for the per-distance light functions."""

    def test_torch_term_bright_at_viewer(self) -> None:
        assert torch_term(0.0, 3.2, 0.05) == pytest.approx(1.0)

    def test_torch_term_zero_beyond_radius(self) -> None:
        assert torch_term([3.2, 5.0, np.inf], 3.2, 0.05).tolist() == [0.0, 0.0, 0.0]

    def test_torch_term_linear_falloff(self) -> None:
        values = torch_term([0.0, 1.0, 2.0], 4.0, 1.0)
        assert values == pytest.approx([1.0, 0.75, 0.5])

    def test_torch_term_exponent_zero_stays_inside_radius(self) -> None:
        values = torch_term([0.0, 2.9, 3.0, 10.0], 3.0, 0.0)
        assert values.tolist() == [1.0, 1.0, 0.0, 0.0]

    def test_torch_term_non_positive_radius(self) -> None:
        assert torch_term([0.0, 1.0], 0.0, 1.0).tolist() == [0.0, 0.0]

    def test_darkness_term(self) -> None:
        values = darkness_term([0.0, 5.0, 10.0, 20.0], 10.0, 0.5)
        assert values == pytest.approx([1.0, 0.75, 0.5, 0.5])

    def test_darkness_term_zero_radius(self) -> None:
        assert darkness_term([0.0, 3.0], 0.0, 0.4) == pytest.approx([0.4, 0.4])

    def test_light_intensity_floored(self) -> None:
        params = LightingParams(revealed_darkness_multiplier=0.0, min_visibility=0.2)
        assert light_intensity(100.0, 10.0, params) == pytest.approx(0.2)

    def test_light_intensity_clipped_to_one(self) -> None:
        params = LightingParams(min_visibility=1.5)
        assert light_intensity(0.0, 10.0, params) == pytest.approx(1.0)

    def test_far_field(self) -> None:
        params = LightingParams()
        assert far_field_intensity(10.0, params) == pytest.approx(0.5)


class TestVisibilityState:
    """Tests for the reveal mask container."""

    def test_starts_dark(self) -> None:
        state = VisibilityState(width=4, height=3)
        assert state.revealed.shape == (3, 4)
        assert state.revealed_count() == 0
        assert state.revealed_fraction() == 0.0
        assert not state.light.any()

    def test_empty_grid_fraction(self) -> None:
        assert VisibilityState(width=0, height=0).revealed_fraction() == 0.0


class TestVisibilityUpdate:
    """Tests for revealing and lighting around a viewer."""

    def test_reveals_three_by_three_block(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((2.0, 2.0), 1.5, open_grid)

        expected = np.zeros((5, 5), dtype=np.bool_)
        expected[1:4, 1:4] = True
        assert np.array_equal(tracker.state.revealed, expected)
        for corner in [(0, 0), (4, 0), (0, 4), (4, 4)]:
            assert not tracker.is_revealed(*corner)
        assert tracker.revealed_fraction() == pytest.approx(9 / 25)

    def test_reveal_is_monotonic(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((0.0, 0.0), 1.5, open_grid)
        first = tracker.state.revealed.copy()
        tracker.update((4.0, 4.0), 1.5, open_grid)
        assert tracker.state.revealed[first].all()
        assert tracker.is_revealed(4, 4)
        assert tracker.is_revealed(0, 0)

    def test_reveal_ignores_walls(self, grid_from_rows) -> None:
        grid = grid_from_rows(["#####", "#...#", "#####"])
        tracker = VisibilityTracker.for_grid(grid)
        tracker.update((2.0, 1.0), 1.0, grid)
        assert tracker.is_revealed(2, 0)
        assert tracker.is_revealed(2, 2)

    def test_light_levels(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((2.0, 2.0), 1.5, open_grid)
        light = tracker.state.light
        revealed = tracker.state.revealed
        assert (light[revealed] >= tracker.lighting.min_visibility).all()
        assert (light[revealed] <= 1.0).all()
        assert (light[~revealed] == 0.0).all()
        assert tracker.light_at(2, 2) == pytest.approx(1.0)
        assert tracker.light_at(0, 0) == 0.0

    def test_remembered_cells_dim(self, open_grid: GridModel) -> None:
        params = LightingParams(torch_radius=1.0, revealed_darkness_multiplier=0.3)
        tracker = VisibilityTracker.for_grid(open_grid, params)
        tracker.update((0.0, 0.0), 1.5, open_grid)
        tracker.update((4.0, 4.0), 1.5, open_grid)
        # (0, 0) is remembered and far from both radii now
        assert tracker.is_revealed(0, 0)
        assert tracker.light_at(0, 0) == pytest.approx(0.3)
        assert tracker.torch_at(0, 0) == 0.0

    def test_fractional_viewer_position(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((2.5, 2.0), 0.6, open_grid)
        assert tracker.is_revealed(2, 2)
        assert tracker.is_revealed(3, 2)
        assert not tracker.is_revealed(1, 2)

    def test_out_of_range_queries(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((2.0, 2.0), 10.0, open_grid)
        assert not tracker.is_revealed(-1, 0)
        assert not tracker.is_visible(5, 5)
        assert tracker.light_at(9, 9) == 0.0

    def test_viewer_off_grid(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((-50.0, -50.0), 2.0, open_grid)
        assert tracker.state.revealed_count() == 0

    def test_size_mismatch(self, open_grid: GridModel) -> None:
        state = VisibilityState(width=3, height=3)
        with pytest.raises(ValueError, match="does not match"):
            update((1.0, 1.0), 2.0, open_grid, state)

    def test_empty_grid(self) -> None:
        grid = GridModel(width=0, height=0)
        tracker = VisibilityTracker.for_grid(grid)
        tracker.update((0.0, 0.0), 5.0, grid)
        assert tracker.revealed_fraction() == 0.0

    @pytest.mark.parametrize(
        ("viewer", "radius"),
        [
            ((7.0, 12.0), 4.0),
            ((7.5, 12.25), 2.5),
            ((0.0, 29.0), 6.0),
            ((15.0, 3.0), 1.0),
        ],
    )
    def test_window_matches_full_scan(
        self,
        viewer: tuple[float, float],
        radius: float,
    ) -> None:
        grid = GridModel(width=30, height=30)
        grid.cells[:, :] = int(CellState.FLOOR)
        params = LightingParams()
        tracker = VisibilityTracker.for_grid(grid, params)
        tracker.update(viewer, radius, grid)

        ys, xs = np.mgrid[0:30, 0:30]
        distance = np.hypot(xs - viewer[0], ys - viewer[1])
        revealed = distance <= radius
        full_light = np.where(
            revealed,
            light_intensity(distance, radius, params),
            0.0,
        )
        full_torch = torch_term(distance, params.torch_radius, params.falloff_exponent)

        assert np.array_equal(tracker.state.revealed, revealed)
        assert np.allclose(tracker.state.light, full_light)
        assert np.allclose(tracker.state.torch, full_torch)


class TestVisibilityTracker:
    """Tests for observers and lifecycle."""

    def test_observers_notified_per_update(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        calls: list[int] = []

        def handler() -> None:
            calls.append(tracker.state.revealed_count())

        tracker.subscribe(handler)
        tracker.update((2.0, 2.0), 1.0, open_grid)
        tracker.update((2.0, 2.0), 1.0, open_grid)
        assert calls == [5, 5]

        tracker.unsubscribe(handler)
        tracker.update((0.0, 0.0), 1.0, open_grid)
        assert len(calls) == 2

    def test_unsubscribe_unknown_handler(self) -> None:
        tracker = VisibilityTracker(width=2, height=2)
        tracker.unsubscribe(lambda: None)

    def test_reset(self, open_grid: GridModel) -> None:
        tracker = VisibilityTracker.for_grid(open_grid)
        tracker.update((2.0, 2.0), 3.0, open_grid)
        tracker.reset()
        assert tracker.state.revealed_count() == 0
        assert (tracker.width, tracker.height) == (5, 5)
