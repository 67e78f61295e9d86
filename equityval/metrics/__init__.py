'''Stateless key valuation metrics.'''

from equityval.metrics.key_metrics import compute_key_metrics
from equityval.metrics.key_metrics import NOT_APPLICABLE

__all__ = [
    'compute_key_metrics',
    'NOT_APPLICABLE',
]
