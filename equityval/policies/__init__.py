"""
Valuation policies for estimating model inputs.

Each policy estimates one component of a valuation (growth rate, discount
rate, terminal growth, fade schedule, share count) and returns both a value
and diagnostic information.

To add a new policy:
1. Create a new class inheriting from the appropriate base (e.g., FadePolicy)
2. Implement the compute() method returning PolicyOutput
3. Register in scenarios/registry.py

Example:
  class FlatFade(FadePolicy):
    def compute(self, g0, g_terminal, n_years) -> PolicyOutput[List[float]]:
      return PolicyOutput(value=[g0] * n_years, diag={'fade_method': 'flat'})
"""

from equityval.policies.discount import CapmDiscount
from equityval.policies.discount import DiscountPolicy
from equityval.policies.discount import FixedRate
from equityval.policies.fade import FadePolicy
from equityval.policies.fade import LinearFade
from equityval.policies.fade import StepThenFade
from equityval.policies.growth import FallbackChainGrowth
from equityval.policies.growth import GrowthPolicy
from equityval.policies.shares import FallbackShares
from equityval.policies.shares import SharePolicy
from equityval.policies.terminal import GordonTerminal
from equityval.policies.terminal import RiskFreeTerminal
from equityval.policies.terminal import TerminalPolicy

__all__ = [
  'GrowthPolicy', 'FallbackChainGrowth',
  'DiscountPolicy', 'CapmDiscount', 'FixedRate',
  'TerminalPolicy', 'RiskFreeTerminal', 'GordonTerminal',
  'FadePolicy', 'LinearFade', 'StepThenFade',
  'SharePolicy', 'FallbackShares',
]
