"""
Policy registry for mapping config names to policy factories.

This lets ValuationConfig name its terminal and fade policies as plain
strings (JSON friendly) while still instantiating the correct policy
classes. Factories receive the config so policies pick up its constants.

To add a new policy:
1. Implement the policy class in the appropriate module
   (e.g., policies/fade.py)
2. Register a factory in the appropriate registry dictionary
3. Allow the name in scenarios/config.py

Example:
  # In policies/fade.py
  class FlatFade(FadePolicy):
    def compute(self, g0, g_terminal, n_years) -> PolicyOutput[List[float]]:
      ...

  # In scenarios/registry.py
  FADE_POLICIES['flat'] = lambda config: FlatFade()
"""

from typing import Any, Callable, Dict, List

from equityval.policies.discount import CapmDiscount
from equityval.policies.discount import DiscountPolicy
from equityval.policies.fade import FadePolicy
from equityval.policies.fade import LinearFade
from equityval.policies.fade import StepThenFade
from equityval.policies.shares import FallbackShares
from equityval.policies.shares import SharePolicy
from equityval.policies.terminal import GordonTerminal
from equityval.policies.terminal import RiskFreeTerminal
from equityval.policies.terminal import TerminalPolicy
from equityval.scenarios.config import ValuationConfig

TERMINAL_POLICIES: Dict[str, Callable[[ValuationConfig], TerminalPolicy]] = {
    'risk_free':
        lambda config: RiskFreeTerminal(cap=config.max_terminal_growth),
    'gordon':
        lambda config: GordonTerminal(g_terminal=config.fixed_terminal_growth),
}

FADE_POLICIES: Dict[str, Callable[[ValuationConfig], FadePolicy]] = {
    'linear':
        lambda config: LinearFade(),
    'step':
        lambda config: StepThenFade(high_growth_years=config.high_growth_years),
}


def _capm(config: ValuationConfig) -> DiscountPolicy:
  return CapmDiscount(
      equity_risk_premium=config.equity_risk_premium,
      default_cost_of_equity=config.default_cost_of_equity,
      default_risk_free_rate=config.default_risk_free_rate,
      window=config.risk_free_window,
      beta_bounds=(config.beta_floor, config.beta_cap),
      default_beta=config.default_beta,
      ceiling=config.cost_of_equity_ceiling,
  )


POLICY_REGISTRY = {
    'terminal': TERMINAL_POLICIES,
    'fade': FADE_POLICIES,
}


def create_policies(config: ValuationConfig) -> Dict[str, Any]:
  """
  Create policy instances from a valuation configuration.

  Args:
    config: ValuationConfig with policy names and constants

  Returns:
    Dictionary with instantiated policy objects:
    - discount: DiscountPolicy (CAPM with default fallback)
    - terminal: TerminalPolicy
    - fade: FadePolicy
    - shares: SharePolicy

  Raises:
    KeyError: If a policy name is not found in the registry
  """
  try:
    terminal_factory = TERMINAL_POLICIES[config.terminal]
  except KeyError as e:
    raise KeyError(f"Unknown terminal policy: '{config.terminal}'. "
                   f'Available: {list(TERMINAL_POLICIES.keys())}') from e

  try:
    fade_factory = FADE_POLICIES[config.fade]
  except KeyError as e:
    raise KeyError(f"Unknown fade policy: '{config.fade}'. "
                   f'Available: {list(FADE_POLICIES.keys())}') from e

  shares: SharePolicy = FallbackShares()
  return {
      'discount': _capm(config),
      'terminal': terminal_factory(config),
      'fade': fade_factory(config),
      'shares': shares,
  }


def list_policies() -> Dict[str, List[str]]:
  """
  List all available policies by category.

  Returns:
    Dictionary mapping category names to list of policy names
  """
  return {
      category: list(policies.keys())
      for category, policies in POLICY_REGISTRY.items()
  }
