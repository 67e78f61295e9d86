"""Valuation configuration and policy registry."""

from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig
from equityval.scenarios.registry import create_policies
from equityval.scenarios.registry import list_policies
from equityval.scenarios.registry import POLICY_REGISTRY

__all__ = [
  'ModelParams',
  'ValuationConfig',
  'POLICY_REGISTRY',
  'create_policies',
  'list_policies',
]
