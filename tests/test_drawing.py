"""Tests for the skeleton overlay surface."""

import numpy as np
import pytest

from gesturecue import drawing
from gesturecue.drawing import HAND_CONNECTIONS, RenderError, new_surface, overlay, render

from handfactory import fist_hand, point_hand


def test_connections_cover_every_joint():
    joints = {i for pair in HAND_CONNECTIONS for i in pair}
    assert joints == set(range(21))
    assert len(HAND_CONNECTIONS) == 21


def test_connections_are_finger_chains_and_palm():
    bones = {frozenset(pair) for pair in HAND_CONNECTIONS}
    assert len(bones) == 21
    for tip in (4, 8, 12, 16, 20):
        assert frozenset((tip - 1, tip)) in bones
    for a, b in [(0, 5), (5, 9), (9, 13), (13, 17), (17, 0), (0, 1)]:
        assert frozenset((a, b)) in bones


def test_status_panel_draws_backdrop_and_text():
    frame = np.full((120, 320, 3), 200, dtype=np.uint8)
    drawing.draw_status_panel(frame, ["Tracking: on", "Left: Point"])
    assert tuple(frame[28 - 2, 10]) == drawing.HUD_BACKDROP
    assert frame[15:36, 12:60].max() > 150  # text over the dark box
    assert tuple(frame[110, 300]) == (200, 200, 200)


class TestRender:
    def test_draws_bones_and_joints(self):
        surface = render(new_surface(640, 480), [fist_hand()])
        assert surface.any()
        # joint 0 of the synthetic hand sits at (210, 400)
        assert tuple(surface[400, 210]) == drawing.JOINT_FILL

    def test_empty_list_clears(self):
        surface = render(new_surface(640, 480), [point_hand()])
        render(surface, [])
        assert not surface.any()

    def test_previous_frame_is_erased(self):
        surface = new_surface(640, 480)
        render(surface, [point_hand()])
        first = surface.copy()
        shifted = [(x + 200.0, y, z) for x, y, z in point_hand()]
        render(surface, [shifted])
        assert not np.array_equal(first, surface)
        assert not surface[400, 190:230].any()

    def test_malformed_hand_is_skipped(self):
        surface = render(new_surface(640, 480), [fist_hand()[:10]])
        assert not surface.any()

    def test_offscreen_points_are_clipped(self):
        far = [(x + 5000.0, y, z) for x, y, z in fist_hand()]
        surface = render(new_surface(320, 240), [far])
        assert not surface.any()

    def test_bad_coordinates_raise_render_error(self):
        hand = fist_hand()
        hand[3] = ("a", "b", 0.0)
        with pytest.raises(RenderError):
            render(new_surface(320, 240), [hand])


class TestSurface:
    @pytest.mark.parametrize("w, h", [(0, 480), (640, 0), (-1, 10)])
    def test_rejects_empty_size(self, w, h):
        with pytest.raises(ValueError):
            new_surface(w, h)

    def test_surface_matches(self):
        surface = new_surface(320, 240)
        assert drawing.surface_matches(surface, 320, 240)
        assert not drawing.surface_matches(surface, 640, 480)
        assert not drawing.surface_matches(None, 320, 240)

    def test_overlay_copies_drawn_pixels_only(self):
        frame = np.full((240, 320, 3), 7, dtype=np.uint8)
        surface = new_surface(320, 240)
        surface[10, 20] = (0, 255, 0)
        overlay(frame, surface)
        assert tuple(frame[10, 20]) == (0, 255, 0)
        assert tuple(frame[0, 0]) == (7, 7, 7)

    def test_overlay_rescales_surface(self):
        frame = np.zeros((480, 640, 3), dtype=np.uint8)
        surface = new_surface(320, 240)
        surface[:] = (255, 0, 255)
        overlay(frame, surface)
        assert (frame == (255, 0, 255)).all()
