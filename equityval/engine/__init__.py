'''Projection and terminal value engine with pure math functions.'''

from equityval.engine.projection import (
    compute_pv_explicit,
    compute_terminal_value,
    project,
    Projection,
)

__all__ = [
    'compute_pv_explicit',
    'compute_terminal_value',
    'project',
    'Projection',
]
