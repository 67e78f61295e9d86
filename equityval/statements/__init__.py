"""Provider schema normalization into canonical fiscal periods."""

from equityval.statements.normalizer import normalize
from equityval.statements.normalizer import normalize_profile
from equityval.statements.normalizer import SchemaKind

__all__ = [
    'SchemaKind',
    'normalize',
    'normalize_profile',
]
