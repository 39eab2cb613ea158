from __future__ import annotations

import logging

import numpy as np
import pytest

from scoregrid.core import GridSettings
from scoregrid.layout import (
    LEFT,
    CandidateRegistry,
    Parameters,
    Scale,
    Shape,
    Staff,
    StaffLine,
    StaffManager,
    TopologyDetector,
    TopologyError,
    VerticalCandidate,
    check_partition,
    create_systems,
    retrieve_system_tops,
)

INTERLINE = 10


def _make_staff(staff_id: int, top: int, *, left: int = 100, right: int = 900) -> Staff:
    lines = [
        StaffLine([(left, top + i * INTERLINE), (right, top + i * INTERLINE)])
        for i in range(5)
    ]
    return Staff(staff_id, lines)


def _make_manager(tops=(100, 160, 220, 280)) -> StaffManager:
    return StaffManager(_make_staff(idx, top) for idx, top in enumerate(tops, start=1))


def _make_stick(stick_id: int, x: float, y_top: int, y_bottom: int) -> VerticalCandidate:
    ys = np.arange(y_top, y_bottom + 1)
    points = np.column_stack((np.full(len(ys), x, dtype=float), ys))
    return VerticalCandidate(stick_id, points, shape=Shape.THIN_BARLINE)


def _params(**overrides) -> Parameters:
    return Parameters.from_scale(Scale(INTERLINE), GridSettings(**overrides))


def _staff_ids(systems):
    return [[staff.id for staff in system.staves] for system in systems]


def test_staves_without_candidates_are_single_staff_systems():
    manager = _make_manager()
    tops, placements = retrieve_system_tops(manager, CandidateRegistry())
    systems = create_systems(manager, tops)
    assert tops == [0, 1, 2, 3]
    assert _staff_ids(systems) == [[1], [2], [3], [4]]
    assert all(not sticks for sticks in placements.values())


def test_create_systems_starts_new_system_on_later_top():
    manager = _make_manager()
    systems = create_systems(manager, [0, 0, 2, 2])
    assert _staff_ids(systems) == [[1, 2], [3, 4]]
    assert [system.id for system in systems] == [1, 2]
    assert systems[1].first_staff.id == 3
    assert systems[1].last_staff.id == 4


@pytest.mark.parametrize(
    "sticks, expected",
    [
        ([], [[1], [2], [3], [4]]),
        ([(500, 130, 290)], [[1, 2, 3, 4]]),
        ([(500, 170, 240)], [[1], [2, 3], [4]]),
        ([(100, 100, 200), (130, 220, 320)], [[1, 2], [3, 4]]),
        ([(100, 100, 320), (300, 170, 240), (400, 280, 300)], [[1, 2, 3, 4]]),
    ],
)
def test_systems_partition_all_staves_in_order(sticks, expected):
    manager = _make_manager()
    registry = CandidateRegistry(
        _make_stick(idx, x, y0, y1) for idx, (x, y0, y1) in enumerate(sticks, start=1)
    )
    systems, _ = TopologyDetector(manager, registry, _params()).detect()

    assert _staff_ids(systems) == expected
    flattened = [staff for system in systems for staff in system.staves]
    assert flattened == manager.staves
    check_partition(manager, systems)


def test_placements_are_recorded_for_every_spanned_staff():
    manager = _make_manager()
    stick = _make_stick(1, 500, 130, 290)
    _, placements = retrieve_system_tops(manager, CandidateRegistry([stick]))
    for staff in manager:
        assert [(sx.x, sx.stick) for sx in placements[staff.id]] == [(500, stick)]


def test_separate_left_bars_keep_systems_apart():
    manager = _make_manager()
    registry = CandidateRegistry([_make_stick(1, 100, 100, 200), _make_stick(2, 130, 220, 320)])
    detector = TopologyDetector(manager, registry, _params())

    systems, _ = detector.detect()

    assert _staff_ids(systems) == [[1, 2], [3, 4]]
    assert detector.iterations == 1
    assert len(registry) == 2
    assert manager.get_by_id(3).bar(LEFT).sticks == (registry.get(2),)


def test_continuous_left_bars_merge_adjacent_systems():
    manager = _make_manager()
    upper = _make_stick(1, 100, 100, 200)
    lower = _make_stick(2, 100, 215, 320)
    registry = CandidateRegistry([upper, lower])
    detector = TopologyDetector(manager, registry, _params())

    systems, _ = detector.detect()

    assert _staff_ids(systems) == [[1, 2, 3, 4]]
    assert detector.iterations == 2
    assert len(registry) == 1
    merged = registry.resolve(lower)
    assert merged.id == upper.id
    assert merged.start_point.y == 100
    assert merged.stop_point.y == 320
    for staff in manager:
        assert staff.bar(LEFT).sticks == (merged,)


def test_topology_iteration_cap_is_fatal(caplog):
    manager = _make_manager()
    registry = CandidateRegistry([_make_stick(1, 100, 100, 200), _make_stick(2, 100, 215, 320)])
    detector = TopologyDetector(manager, registry, _params(max_topology_iterations=1))

    with caplog.at_level(logging.ERROR, logger="scoregrid.layout.systems"):
        with pytest.raises(TopologyError):
            detector.detect()

    assert "still modified after 1 iterations" in caplog.text


def test_check_partition_rejects_missing_staff(caplog):
    manager = _make_manager()
    systems = create_systems(manager, [0, 0, 2, 2])
    systems[1].staves.pop()
    with caplog.at_level(logging.ERROR, logger="scoregrid.layout.systems"):
        with pytest.raises(TopologyError):
            check_partition(manager, systems)

    assert "do not match page staves" in caplog.text


def test_registry_absorb_keeps_aliases():
    first = _make_stick(1, 100, 100, 200)
    second = _make_stick(2, 100, 215, 320)
    third = _make_stick(3, 100, 330, 400)
    registry = CandidateRegistry([first, second, third])

    merged = registry.absorb(first, second)
    assert registry.resolve(second) is merged
    assert merged not in (first, second)
    assert len(registry) == 2

    survivor = registry.absorb(third, second)
    assert survivor.id == 3
    assert registry.resolve(first) is survivor
    assert len(registry) == 1
    assert survivor.start_point.y == 100
    assert survivor.stop_point.y == 400


def test_registry_rejects_duplicate_ids():
    with pytest.raises(ValueError):
        CandidateRegistry([_make_stick(1, 100, 0, 50), _make_stick(1, 200, 0, 50)])
