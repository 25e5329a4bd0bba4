"""Helpers shared by grid tests."""
from collections import deque

from drysland.grid.cells import TREE_EDGE
from drysland.grid.lattice import in_radius, neighbors


def tree_is_spanning(grid):
    """True when tree edges connect every cell without cycles."""
    tree = [e for e in grid.edges.values() if e.kind == TREE_EDGE]
    if len(tree) != len(grid.cells) - 1:
        return False
    adj = {c: [] for c in grid.cells}
    for e in tree:
        adj[e.a].append(e.b)
        adj[e.b].append(e.a)
    seen = {grid.start}
    q = deque([grid.start])
    while q:
        cur = q.popleft()
        for nb in adj[cur]:
            if nb not in seen:
                seen.add(nb)
                q.append(nb)
    return len(seen) == len(grid.cells)


def edge_set(grid):
    return {frozenset((e.a, e.b)) for e in grid.edges.values()}


def path_to(grid, target):
    """Shortest path of coordinates from start to ``target`` over any edge (start excluded)."""
    parent = {grid.start: None}
    q = deque([grid.start])
    while q:
        cur = q.popleft()
        if cur == target:
            break
        for nb in grid.linked(cur):
            if nb not in parent:
                parent[nb] = cur
                q.append(nb)
    path = []
    node = target
    while node != grid.start:
        path.append(node)
        node = parent[node]
    return list(reversed(path))


def walk_to_goal(click, grid):
    """Click along the shortest path to the goal; return the click results."""
    return [click(c) for c in path_to(grid, grid.goal)]


def growth_room(grid):
    """Visited cells that still have an unvisited in-radius neighbor."""
    return [
        c for c in grid.cells
        if any(nb not in grid.cells and in_radius(nb, grid.radius) for nb in neighbors(c))
    ]
