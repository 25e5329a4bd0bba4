import pytest

from drysland.grid.errors import ConfigurationError
from drysland.grid.lattice import (
    DIRECTIONS,
    ORIGIN,
    cells_within_radius,
    direction_between,
    hex_distance,
    lattice_index,
    lattice_size,
    neighbor,
    neighbors,
    opposite,
    to_world,
)


@pytest.mark.parametrize("radius,count", [(0, 1), (1, 7), (2, 19), (3, 37), (10, 331)])
def test_cells_within_radius_count(radius, count):
    cells = cells_within_radius(radius)
    assert len(cells) == count == lattice_size(radius)
    assert len(set(cells)) == count
    assert all(hex_distance(c) <= radius for c in cells)


def test_lattice_order_is_ascending_q_then_r():
    cells = cells_within_radius(2)
    assert cells == sorted(cells)
    assert cells[0] == (-2, 0)
    index = lattice_index(2)
    assert index[cells[5]] == 5


def test_negative_radius_rejected():
    with pytest.raises(ConfigurationError) as exc:
        cells_within_radius(-1)
    assert exc.value.field == "radius"
    with pytest.raises(ConfigurationError):
        lattice_size(-3)


def test_neighbors_ignore_radius_and_keep_direction_order():
    nbs = neighbors((5, -5))
    assert len(nbs) == 6
    assert nbs[0] == (6, -5)
    assert all(hex_distance(n, (5, -5)) == 1 for n in nbs)
    for d in range(6):
        assert neighbor(ORIGIN, d) == DIRECTIONS[d]


def test_direction_between_and_opposite():
    for d in range(6):
        nb = neighbor((1, 2), d)
        assert direction_between((1, 2), nb) == d
        assert direction_between(nb, (1, 2)) == opposite(d)
    assert direction_between(ORIGIN, (2, 0)) is None


def test_hex_distance_symmetric():
    assert hex_distance((2, -1), (-1, 1)) == hex_distance((-1, 1), (2, -1)) == 3


def test_to_world_origin_and_spacing():
    assert to_world(ORIGIN) == (0.0, 0.0)
    x, z = to_world((1, 0), size=2.0)
    assert z == 0.0
    assert x == pytest.approx(2 * 3 ** 0.5, abs=1e-3)
