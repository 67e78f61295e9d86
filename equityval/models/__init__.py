"""
Valuation models and the model registry.

Each model composes the shared growth, discount, terminal and fade
policies with its own base-metric derivation.
"""

from typing import Any, Dict, List, Optional, Type

from equityval.models.affo import AffoModel
from equityval.models.base import ValuationModel
from equityval.models.ddm import DdmModel
from equityval.models.excess_return import ExcessReturnModel
from equityval.models.fcfe import FcfeModel
from equityval.scenarios.config import ValuationConfig

MODEL_REGISTRY: Dict[str, Type[ValuationModel]] = {
    'fcfe': FcfeModel,
    'ddm': DdmModel,
    'affo': AffoModel,
    'excess_return': ExcessReturnModel,
}


def create_model(name: str,
                 config: Optional[ValuationConfig] = None,
                 policies: Optional[Dict[str, Any]] = None) -> ValuationModel:
  """
  Instantiate a model by name.

  Raises:
    KeyError: If the model name is not registered
  """
  try:
    model_cls = MODEL_REGISTRY[name]
  except KeyError as e:
    raise KeyError(f"Unknown model: '{name}'. "
                   f'Available: {list(MODEL_REGISTRY.keys())}') from e
  return model_cls(config=config, policies=policies)


def list_models() -> List[str]:
  return list(MODEL_REGISTRY.keys())


__all__ = [
  'AffoModel', 'DdmModel', 'ExcessReturnModel', 'FcfeModel', 'ValuationModel',
  'MODEL_REGISTRY', 'create_model', 'list_models',
]
