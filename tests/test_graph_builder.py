import random

import pytest

from drysland.grid.cells import START, dead_ends
from drysland.grid.errors import ConfigurationError
from drysland.grid.generator import GraphBuilder, round_half_up, target_size
from drysland.grid.lattice import ORIGIN, in_radius, lattice_size


def test_round_half_up():
    assert round_half_up(9.5) == 10
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2


@pytest.mark.parametrize(
    "radius,coverage,expected",
    [(1, 1.0, 7), (2, 0.5, 10), (3, 0.01, 1), (3, 0.5, 19), (10, 1.0, 331)],
)
def test_target_size_clamped(radius, coverage, expected):
    assert target_size(radius, coverage) == expected


@pytest.mark.parametrize("strategy", ["dfs", "bfs", "prim"])
@pytest.mark.parametrize("radius,coverage", [(1, 0.3), (2, 0.5), (3, 0.8), (4, 1.0)])
def test_build_reaches_target_as_tree(strategy, radius, coverage):
    result = GraphBuilder(random.Random(5)).build(radius, coverage, strategy)
    assert len(result.cells) == result.target_size
    assert not result.exhausted
    assert len(result.edges) == len(result.cells) - 1
    assert result.cells[ORIGIN].role == START
    assert all(in_radius(c, radius) for c in result.cells)
    assert sorted(result.leaves) == sorted(dead_ends(result.cells))
    assert result.strategy == strategy


@pytest.mark.parametrize(
    "radius,coverage,field",
    [(0, 0.5, "radius"), (-2, 0.5, "radius"), (2, 0, "coverage"), (2, -0.1, "coverage"), (2, 1.5, "coverage"), (2, 0.5, "strategy")],
)
def test_invalid_build_configuration(radius, coverage, field):
    strategy = "zigzag" if field == "strategy" else "dfs"
    with pytest.raises(ConfigurationError) as exc:
        GraphBuilder().build(radius, coverage, strategy)
    assert exc.value.field == field


def test_full_coverage_visits_whole_lattice():
    result = GraphBuilder().build(3, 1.0, "bfs")
    assert len(result.cells) == lattice_size(3)
