"""
Growth path policies for the explicit forecast horizon.

A fade policy turns the estimated initial growth and the terminal growth
into one rate per projected year. Both policies here land exactly on
terminal growth in the final year, so the last explicit year and the
Gordon terminal value grow at the same rate.
"""

from abc import ABC, abstractmethod
from typing import List

from equityval.domain.types import PolicyOutput


def interpolate(start: float, end: float, steps: int) -> List[float]:
  """Evenly spaced rates from start to end inclusive, `steps` values long.

  A single step yields [start].
  """
  if steps <= 0:
    return []
  if steps == 1:
    return [start]
  increment = (end - start) / (steps - 1)
  rates = [start + increment * i for i in range(steps - 1)]
  rates.append(end)
  return rates


class FadePolicy(ABC):
  """Maps (initial growth, terminal growth, horizon) to a growth path."""

  @abstractmethod
  def compute(
      self,
      g0: float,
      g_terminal: float,
      n_years: int,
  ) -> PolicyOutput[List[float]]:
    """
    Build the per-year growth path.

    Args:
      g0: Growth applied in year 1
      g_terminal: Growth the path converges to
      n_years: Explicit horizon in years

    Returns:
      PolicyOutput whose value has one rate per year (empty when
      n_years < 1)
    """


class LinearFade(FadePolicy):
  """Straight line from g0 in year 1 to g_terminal in year N."""

  def compute(
      self,
      g0: float,
      g_terminal: float,
      n_years: int,
  ) -> PolicyOutput[List[float]]:
    path = interpolate(g0, g_terminal, n_years)
    diag = {'fade_method': 'linear'}
    if path:
      diag['g0'] = g0
      diag['g_terminal'] = g_terminal
      diag['annual_step'] = path[1] - path[0] if len(path) > 1 else 0.0
    return PolicyOutput(value=path, diag=diag)


class StepThenFade(FadePolicy):
  """Hold g0 for a plateau, then decline linearly to g_terminal.

  With a plateau of k years over an N-year horizon, years 1..k grow at g0
  and years k+1..N step down evenly so that year N grows at g_terminal.
  A plateau at least as long as the horizon keeps g0 throughout.
  """

  def __init__(self, high_growth_years: int = 3):
    self.high_growth_years = high_growth_years

  def compute(
      self,
      g0: float,
      g_terminal: float,
      n_years: int,
  ) -> PolicyOutput[List[float]]:
    if n_years < 1:
      return PolicyOutput(value=[], diag={'fade_method': 'step_then_fade'})

    plateau = max(0, min(self.high_growth_years, n_years))
    fade_years = n_years - plateau
    # The fade segment excludes its starting point, which is the plateau.
    tail = interpolate(g0, g_terminal, fade_years + 1)[1:]
    return PolicyOutput(value=[g0] * plateau + tail,
                        diag={
                            'fade_method': 'step_then_fade',
                            'high_growth_years': plateau,
                            'fade_years': fade_years,
                            'g_terminal': g_terminal,
                        })
