"""
Tests for wall validation.

Tests:
- Each geometric rule and the order they are checked in
- The trap rule for either player
- Exactness against an independent flood fill
"""

from dataclasses import replace

import pytest

from ..engine_core.state import BOARD_SIZE, Position, Wall
from ..engine_core.walls import (
    WallRejection,
    all_grooves,
    check_geometry,
    check_wall,
    crosses,
    is_legal_wall,
    overlaps,
)


def check(state, wall, placing=1):
    return check_wall(wall, state.walls, state.players[1], state.players[2], placing)


class TestGeometry:
    """Bounds, duplicate, overlap, cross."""

    @pytest.mark.parametrize("wall", [
        Wall.horizontal(0, 3),
        Wall.horizontal(9, 3),
        Wall.horizontal(4, 8),
        Wall.horizontal(4, -1),
        Wall.vertical(8, 3),
        Wall.vertical(3, 0),
        Wall.vertical(3, 9),
        Wall.vertical(-1, 4),
    ])
    def test_out_of_bounds(self, opening_state, wall):
        violation = check(opening_state, wall)
        assert violation.reason == WallRejection.OUT_OF_BOUNDS
        assert violation.code == "bounds"

    @pytest.mark.parametrize("wall", [
        Wall.horizontal(1, 0),
        Wall.horizontal(8, 7),
        Wall.vertical(0, 1),
        Wall.vertical(7, 8),
    ])
    def test_corner_grooves_in_bounds(self, opening_state, wall):
        assert check(opening_state, wall) is None

    def test_groove_count(self):
        assert len(list(all_grooves())) == 2 * (BOARD_SIZE - 1) ** 2

    def test_duplicate(self, make_state):
        state = make_state(walls=[Wall.horizontal(4, 4, 2)])
        violation = check(state, Wall.horizontal(4, 4))
        assert violation.reason == WallRejection.DUPLICATE

    def test_overlap(self, make_state):
        state = make_state(walls=[Wall.horizontal(4, 4, 2), Wall.vertical(2, 2, 2)])
        assert check(state, Wall.horizontal(4, 5)).reason == WallRejection.OVERLAP
        assert check(state, Wall.horizontal(4, 3)).reason == WallRejection.OVERLAP
        assert check(state, Wall.vertical(3, 2)).reason == WallRejection.OVERLAP
        assert check(state, Wall.vertical(1, 2)).reason == WallRejection.OVERLAP

    def test_adjacent_is_not_overlap(self, make_state):
        state = make_state(walls=[Wall.horizontal(4, 4, 2)])
        assert check(state, Wall.horizontal(4, 6)) is None
        assert check(state, Wall.horizontal(4, 2)) is None

    def test_cross(self, make_state):
        state = make_state(walls=[Wall.vertical(3, 5, 2)])
        violation = check(state, Wall.horizontal(4, 4))
        assert violation.reason == WallRejection.CROSS

        state = make_state(walls=[Wall.horizontal(4, 4, 2)])
        assert check(state, Wall.vertical(3, 5)).reason == WallRejection.CROSS

    def test_touching_perpendicular_is_legal(self, make_state):
        state = make_state(walls=[Wall.horizontal(4, 4, 2)])
        assert check(state, Wall.vertical(4, 4)) is None
        assert check(state, Wall.vertical(2, 5)) is None

    def test_predicates(self):
        assert overlaps(Wall.vertical(3, 3), Wall.vertical(4, 3))
        assert not overlaps(Wall.vertical(3, 3), Wall.horizontal(3, 3))
        assert crosses(Wall.horizontal(4, 4), Wall.vertical(3, 5))
        assert crosses(Wall.vertical(3, 5), Wall.horizontal(4, 4))
        assert not crosses(Wall.horizontal(4, 4), Wall.horizontal(3, 5))

    def test_check_geometry_ignores_players(self):
        assert check_geometry(Wall.horizontal(1, 0), []) is None


class TestCheckOrder:
    """The first failing check is reported."""

    def test_no_walls_beats_bounds(self, make_state):
        state = make_state(walls_left=0)
        violation = check(state, Wall.horizontal(0, 0))
        assert violation.reason == WallRejection.NO_WALLS_REMAINING

    def test_bounds_beats_duplicate(self, make_state):
        state = make_state(walls=[Wall.horizontal(1, 0, 2)])
        assert check(state, Wall.horizontal(0, 0)).reason == WallRejection.OUT_OF_BOUNDS

    def test_duplicate_beats_overlap(self, make_state):
        state = make_state(walls=[Wall.horizontal(4, 4, 2), Wall.horizontal(4, 6, 2)])
        assert check(state, Wall.horizontal(4, 4)).reason == WallRejection.DUPLICATE

    def test_walls_left_of_placer_only(self, make_state):
        state = make_state()
        state = state.with_player(replace(state.players[2], walls_left=0))
        assert check(state, Wall.horizontal(4, 4), placing=1) is None
        assert check(state, Wall.horizontal(4, 4), placing=2).reason == WallRejection.NO_WALLS_REMAINING


class TestTrapRule:
    """No wall may seal a player off from its goal row."""

    def test_trapping_player_two(self, make_state):
        # Player 2 in the top-left corner, already fenced on the right
        state = make_state(p2=(0, 0), walls=[Wall.vertical(0, 1, 1)])
        violation = check(state, Wall.horizontal(2, 0))
        assert violation.reason == WallRejection.WOULD_TRAP
        assert violation.trapped_player_id == 2
        assert violation.code == "would-trap-2"
        assert "Bob" in violation.message

    def test_trapping_yourself(self, make_state):
        state = make_state(p1=(8, 8), walls=[Wall.vertical(7, 8, 2)])
        violation = check(state, Wall.horizontal(7, 7), placing=1)
        assert violation.trapped_player_id == 1
        assert violation.code == "would-trap-1"

    def test_last_gap_in_fence(self, make_state, corridor_walls):
        state = make_state(walls=corridor_walls)
        # Only column 8 connects row 0 and row 1
        assert not is_legal_wall(Wall.vertical(0, 8), state.walls, state.players[1], state.players[2], 1)
        assert is_legal_wall(Wall.vertical(2, 8), state.walls, state.players[1], state.players[2], 1)


def _blocked_edges(walls) -> set:
    blocked = set()
    for w in walls:
        if w.is_horizontal:
            pairs = [((w.row - 1, w.col), (w.row, w.col)), ((w.row - 1, w.col + 1), (w.row, w.col + 1))]
        else:
            pairs = [((w.row, w.col - 1), (w.row, w.col)), ((w.row + 1, w.col - 1), (w.row + 1, w.col))]
        for a, b in pairs:
            blocked.add((a, b))
            blocked.add((b, a))
    return blocked


def _flood_reaches(start: Position, goal_row: int, walls, opponent: Position | None = None) -> bool:
    """Independent reachability check; the opponent pawn is jumped or walked around."""
    blocked = _blocked_edges(walls)
    other = (opponent.row, opponent.col) if opponent else None

    def open_step(a, b):
        return 0 <= b[0] < BOARD_SIZE and 0 <= b[1] < BOARD_SIZE and (a, b) not in blocked

    def destinations(cell):
        r, c = cell
        for dr, dc in ((-1, 0), (1, 0), (0, -1), (0, 1)):
            step = (r + dr, c + dc)
            if not open_step(cell, step):
                continue
            if step != other:
                yield step
                continue
            jump = (step[0] + dr, step[1] + dc)
            if open_step(step, jump):
                yield jump
                continue
            for sr, sc in (((0, -1), (0, 1)) if dc == 0 else ((-1, 0), (1, 0))):
                side = (step[0] + sr, step[1] + sc)
                if open_step(step, side):
                    yield side

    seen = {(start.row, start.col)}
    stack = [(start.row, start.col)]
    while stack:
        cell = stack.pop()
        if cell[0] == goal_row:
            return True
        for nxt in destinations(cell):
            if nxt not in seen:
                seen.add(nxt)
                stack.append(nxt)
    return False


def _expected_legal(state, walls) -> bool:
    p1, p2 = state.players[1], state.players[2]
    return (
        _flood_reaches(p1.position, p1.goal_row, walls, p2.position)
        and _flood_reaches(p2.position, p2.goal_row, walls, p1.position)
    )


class TestExactness:
    """The validator rejects exactly the trapping walls."""

    def test_against_flood_fill(self, make_state, corridor_walls):
        walls = corridor_walls + (Wall.vertical(3, 5, 1), Wall.horizontal(6, 0, 2))
        state = make_state(walls=walls)
        assert self._compare_all_grooves(state) > 0

    def test_pawn_in_the_only_exit(self, make_state, corridor_walls):
        # Player 2 sits in the single opening of the fence, on player 1's goal row
        state = make_state(p2=(0, 8), walls=corridor_walls)
        p1 = state.players[1]
        seal = Wall.vertical(0, 8)

        # Without the pawn the route through column 8 stays open
        assert _flood_reaches(p1.position, p1.goal_row, corridor_walls + (seal,))
        violation = check(state, seal)
        assert violation.reason == WallRejection.WOULD_TRAP
        assert violation.trapped_player_id == 1

        assert self._compare_all_grooves(state) > 0

    def _compare_all_grooves(self, state) -> int:
        walls = state.walls
        trapping = 0
        for groove in all_grooves():
            if check_geometry(groove, walls) is not None:
                assert check(state, groove) is not None
                continue
            expected = _expected_legal(state, walls + (groove,))
            assert (check(state, groove) is None) == expected, groove
            if not expected:
                trapping += 1
                assert check(state, groove).reason == WallRejection.WOULD_TRAP
        return trapping
