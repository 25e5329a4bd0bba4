from typing import Dict

def init_metrics() -> Dict[str, int | float | bool | None]:
    return {
        'seed': None,
        'target_size': 0,
        'cells_visited': 0,
        'frontier_exhausted': False,
        'tree_edges': 0,
        'loop_edges': 0,
        'loop_candidates': 0,
        'loops_skipped': 0,
        'dead_ends': 0,
        'stubs_grown': 0,
        'runtime_ms': 0.0,
    }
