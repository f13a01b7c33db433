"""Tests for per-slot edge triggering and hand-to-slot assignment."""

import pytest

from gesturecue.classifier import GestureClassifier
from gesturecue.slots import HandSlotState, SlotBank, assign_slots, slot_for_handedness, update
from gesturecue.types import GestureLabel, HandSlot, Handedness

from handfactory import detected, fist_hand, ok_hand, open_hand, point_hand


@pytest.fixture
def clf():
    return GestureClassifier()


def run(frames, clf):
    """Feed a sequence of hands (or None) through one slot; return per-tick updates."""
    state = HandSlotState()
    out = []
    for hand in frames:
        res = update(state, hand, clf)
        state = res.state
        out.append(res)
    return out


class TestUpdate:
    def test_absent_hand(self, clf):
        res = update(HandSlotState(last_edge_gesture=GestureLabel.FIST, present=True), None, clf)
        assert res.status == "None"
        assert res.events == frozenset()
        assert res.state.last_edge_gesture is None
        assert res.state.present is False

    def test_present_without_gesture_is_detected(self, clf):
        res = update(HandSlotState(), open_hand(), clf)
        assert res.status == "Detected"
        assert res.state.present is True
        assert res.events == frozenset()

    @pytest.mark.parametrize(
        "hand, label, status",
        [
            (point_hand(), GestureLabel.POINT, "Point"),
            (fist_hand(), GestureLabel.FIST, "Fist"),
            (ok_hand(), GestureLabel.OK_SIGN, "OK Sign"),
        ],
    )
    def test_first_frame_fires_edge(self, clf, hand, label, status):
        res = update(HandSlotState(), hand, clf)
        assert res.events == frozenset({label})
        assert res.status == status
        assert res.state.last_edge_gesture is label

    def test_input_state_not_mutated(self, clf):
        state = HandSlotState()
        update(state, fist_hand(), clf)
        assert state == HandSlotState()

    @pytest.mark.parametrize("k", [1, 2, 5, 30])
    def test_hold_fires_once(self, clf, k):
        results = run([fist_hand()] * k, clf)
        fired = sum(1 for r in results if GestureLabel.FIST in r.events)
        assert fired == 1
        assert GestureLabel.FIST in results[0].events

    def test_none_tick_rearms(self, clf):
        results = run([point_hand(), point_hand(), open_hand(), point_hand()], clf)
        assert [bool(r.events) for r in results] == [True, False, False, True]

    def test_absent_tick_rearms(self, clf):
        results = run([ok_hand(), None, ok_hand()], clf)
        assert results[1].status == "None"
        assert [bool(r.events) for r in results] == [True, False, True]

    def test_switching_gesture_fires_new_edge(self, clf):
        results = run([point_hand(), fist_hand(), fist_hand(), point_hand()], clf)
        assert [set(r.events) for r in results] == [
            {GestureLabel.POINT},
            {GestureLabel.FIST},
            set(),
            {GestureLabel.POINT},
        ]

    def test_malformed_hand_is_absent(self, clf):
        state = HandSlotState(last_edge_gesture=GestureLabel.FIST, present=True, status="Fist")
        res = update(state, fist_hand()[:20], clf)
        assert res.status == "None"
        assert res.state.last_edge_gesture is None
        assert res.events == frozenset()


class TestSlotAssignment:
    def test_mirroring(self):
        assert slot_for_handedness(Handedness.RIGHT) is HandSlot.LEFT
        assert slot_for_handedness(Handedness.LEFT) is HandSlot.RIGHT
        assert slot_for_handedness(None) is None

    def test_handedness_parse(self):
        assert Handedness.parse("Right") is Handedness.RIGHT
        assert Handedness.parse("left") is Handedness.LEFT
        assert Handedness.parse("Unknown") is None
        assert Handedness.parse(None) is None

    def test_one_hand_per_slot_first_wins(self):
        first = detected(point_hand(), Handedness.RIGHT)
        second = detected(fist_hand(), Handedness.RIGHT)
        other = detected(ok_hand(), Handedness.LEFT)
        assigned = assign_slots([first, second, other])
        assert assigned[HandSlot.LEFT] is first
        assert assigned[HandSlot.RIGHT] is other

    def test_unknown_handedness_is_unassigned(self):
        assert assign_slots([detected(fist_hand(), None)]) == {}


class TestSlotBank:
    def test_slots_are_independent(self):
        bank = SlotBank()
        res = bank.update({HandSlot.LEFT: detected(fist_hand(), Handedness.RIGHT)})
        assert res[HandSlot.LEFT].events == frozenset({GestureLabel.FIST})
        assert res[HandSlot.RIGHT].status == "None"

        res = bank.update(
            {
                HandSlot.LEFT: detected(fist_hand(), Handedness.RIGHT),
                HandSlot.RIGHT: detected(fist_hand(), Handedness.LEFT),
            }
        )
        assert res[HandSlot.LEFT].events == frozenset()
        assert res[HandSlot.RIGHT].events == frozenset({GestureLabel.FIST})

    def test_reset(self):
        bank = SlotBank()
        bank.update({HandSlot.LEFT: detected(ok_hand())})
        assert bank[HandSlot.LEFT].last_edge_gesture is GestureLabel.OK_SIGN
        bank.reset()
        assert bank[HandSlot.LEFT] == HandSlotState()
        assert bank.statuses() == {HandSlot.LEFT: "None", HandSlot.RIGHT: "None"}
