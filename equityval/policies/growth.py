'''
Growth rate estimation policies.

These policies estimate the initial (stage-1) growth rate for the
projection engine. Growth never fails: the fallback chain always degrades
to a conservative floor when better sources are unavailable.

Fallback order:
  1. Analyst-implied (target price / forward P/E vs latest EPS)
  2. PEG-implied (P/E / PEG)
  3. Historical average period-over-period growth
  4. Sustainable growth (ROE x retention ratio)
  5. Default floor
'''

from abc import ABC, abstractmethod
from dataclasses import dataclass
import logging
from math import isfinite
from typing import List, Optional, Sequence, Union

import pandas as pd

from equityval.domain.types import CompanyProfile
from equityval.domain.types import GrowthAssumption
from equityval.domain.types import GrowthSource
from equityval.domain.types import note
from equityval.domain.types import PolicyOutput
from equityval.domain.types import Severity

logger = logging.getLogger(__name__)

STAGE = 'growth'

# Empirically tuned; override per policy instance.
ANALYST_GROWTH_CAP = 0.35
MIN_HISTORY_PERIODS = 3
MAX_HISTORY_PERIODS = 8

History = Union[pd.Series, Sequence[Optional[float]]]


@dataclass(frozen=True)
class GrowthCaps:
  cap: float
  floor: float

  def clamp(self, rate: float) -> float:
    return max(self.floor, min(self.cap, rate))


@dataclass(frozen=True)
class AnalystInputs:
  '''Market-implied inputs for the analyst growth sources.'''
  forward_pe: Optional[float] = None
  target_price: Optional[float] = None
  latest_eps: Optional[float] = None
  pe_ratio: Optional[float] = None
  peg_ratio: Optional[float] = None

  @classmethod
  def from_profile(cls,
                   profile: CompanyProfile,
                   latest_eps: Optional[float] = None) -> 'AnalystInputs':
    return cls(
        forward_pe=profile.forward_pe,
        target_price=profile.analyst_target_price,
        latest_eps=latest_eps if latest_eps is not None else profile.eps,
        pe_ratio=profile.pe_ratio,
        peg_ratio=profile.peg_ratio,
    )


@dataclass(frozen=True)
class SustainableInputs:
  return_on_equity: Optional[float] = None
  payout_ratio: Optional[float] = None

  @property
  def rate(self) -> Optional[float]:
    roe = self.return_on_equity
    payout = self.payout_ratio
    if roe is None or payout is None or roe <= 0:
      return None
    if not 0.0 <= payout <= 1.0:
      return None
    return roe * (1.0 - payout)


def _positive(x: Optional[float]) -> bool:
  return x is not None and isfinite(x) and x > 0


def analyst_implied_growth(inputs: AnalystInputs) -> Optional[float]:
  '''Growth from forward EPS (target / forward P/E) over latest EPS.'''
  if not (_positive(inputs.forward_pe) and _positive(inputs.target_price) and
          _positive(inputs.latest_eps)):
    return None
  forward_eps = inputs.target_price / inputs.forward_pe
  growth = (forward_eps - inputs.latest_eps) / inputs.latest_eps
  return growth if growth > 0 else None


def peg_implied_growth(inputs: AnalystInputs) -> Optional[float]:
  '''Growth implied by P/E / PEG (PEG quotes growth in percent).'''
  if not (_positive(inputs.pe_ratio) and _positive(inputs.peg_ratio)):
    return None
  growth = (inputs.pe_ratio / inputs.peg_ratio) / 100.0
  return growth if growth > 0 else None


def _clean_history(history: History) -> List[float]:
  if isinstance(history, pd.Series):
    values = history.dropna().tolist()
  else:
    values = list(history)
  return [float(v) for v in values if v is not None and isfinite(v)]


def growth_observations(values: Sequence[float], cap: float) -> List[float]:
  '''
  Period-over-period growth observations, oldest first.

  A non-positive trailing value is excluded, except that a move from a
  negative base to a positive value counts as hitting the cap.
  '''
  observations = []
  for prev, cur in zip(values, values[1:]):
    if prev > 0:
      observations.append((cur - prev) / prev)
    elif prev < 0 and cur > 0:
      observations.append(cap)
  return observations


class GrowthPolicy(ABC):
  '''
  Base class for growth rate estimation policies.

  Subclasses implement compute() to return an initial growth assumption.
  '''

  @abstractmethod
  def compute(
      self,
      history: History,
      analyst: Optional[AnalystInputs] = None,
      sustainable: Optional[SustainableInputs] = None,
      default_rate: Optional[float] = None,
  ) -> PolicyOutput[GrowthAssumption]:
    '''
    Compute initial growth rate for the projection.

    Args:
      history: Base-metric history, oldest first
      analyst: Optional market-implied inputs
      sustainable: Optional ROE / payout inputs
      default_rate: Rate used when no source is usable (default: floor)

    Returns:
      PolicyOutput with GrowthAssumption and diagnostics
    '''


class FallbackChainGrowth(GrowthPolicy):
  '''
  Ordered fallback chain: analyst, PEG, historical, sustainable, floor.

  Analyst sources are bounded by [floor, analyst_cap]; historical and
  sustainable sources by [floor, cap].
  '''

  def __init__(
      self,
      cap: float = 0.15,
      floor: float = 0.02,
      analyst_cap: float = ANALYST_GROWTH_CAP,
      min_periods: int = MIN_HISTORY_PERIODS,
      max_periods: int = MAX_HISTORY_PERIODS,
      use_analyst: bool = True,
  ):
    '''
    Initialize fallback chain growth policy.

    Args:
      cap: Maximum historical/sustainable growth (default: 15%)
      floor: Minimum growth and default when no source works (default: 2%)
      analyst_cap: Maximum analyst-implied growth (default: 35%)
      min_periods: Minimum history values required (default: 3)
      max_periods: Most recent history values used (default: 8)
      use_analyst: Whether analyst sources are consulted (default: True)
    '''
    if floor > cap:
      raise ValueError(f'floor ({floor}) must not exceed cap ({cap})')
    self.caps = GrowthCaps(cap=cap, floor=floor)
    self.analyst_caps = GrowthCaps(cap=max(analyst_cap, floor), floor=floor)
    self.min_periods = min_periods
    self.max_periods = max_periods
    self.use_analyst = use_analyst

  def _bounded(self, raw: float, source: GrowthSource,
               caps: GrowthCaps) -> GrowthAssumption:
    rate = caps.clamp(raw)
    return GrowthAssumption(rate=rate,
                            source=source,
                            capped=raw > caps.cap,
                            floored=raw < caps.floor)

  def compute(
      self,
      history: History,
      analyst: Optional[AnalystInputs] = None,
      sustainable: Optional[SustainableInputs] = None,
      default_rate: Optional[float] = None,
  ) -> PolicyOutput[GrowthAssumption]:
    notes = []
    diag = {
        'growth_method': 'fallback_chain',
        'cap': self.caps.cap,
        'floor': self.caps.floor,
    }

    if self.use_analyst and analyst is not None:
      for method, estimator in (('analyst_target', analyst_implied_growth),
                                ('peg', peg_implied_growth)):
        raw = estimator(analyst)
        if raw is None:
          continue
        assumption = self._bounded(raw, GrowthSource.ANALYST_IMPLIED,
                                   self.analyst_caps)
        notes.append(
            note(STAGE,
                 f'Using {method}-implied growth of {assumption.rate:.2%}.',
                 raw_growth=raw,
                 rate=assumption.rate))
        diag.update({'method': method, 'raw_growth': raw})
        return PolicyOutput(value=assumption, diag=diag, notes=notes)
      notes.append(note(STAGE, 'Analyst-implied growth unavailable.'))

    values = _clean_history(history)
    diag['history_values'] = len(values)
    if len(values) >= self.min_periods:
      recent = values[-self.max_periods:]
      observations = growth_observations(recent, self.caps.cap)
      diag['observations'] = len(observations)
      if len(observations) >= 2:
        average = sum(observations) / len(observations)
        assumption = self._bounded(average, GrowthSource.HISTORICAL_AVERAGE,
                                   self.caps)
        if assumption.capped:
          message = (f'Historical growth of {average:.2%} capped at '
                     f'{assumption.rate:.2%}.')
        elif assumption.floored:
          message = (f'Historical growth of {average:.2%} floored at '
                     f'{assumption.rate:.2%}.')
        else:
          message = (f'Historical average growth of {average:.2%} over '
                     f'{len(observations)} periods.')
        notes.append(
            note(STAGE,
                 message,
                 raw_growth=average,
                 rate=assumption.rate,
                 periods=len(observations)))
        diag.update({'method': 'historical_average', 'raw_growth': average})
        return PolicyOutput(value=assumption, diag=diag, notes=notes)
      notes.append(
          note(STAGE,
               'Fewer than 2 valid historical growth observations.',
               observations=len(observations)))
    else:
      notes.append(
          note(STAGE,
               f'Insufficient history for growth ({len(values)} values, '
               f'{self.min_periods} required).',
               available=len(values),
               required=self.min_periods))

    if sustainable is not None and sustainable.rate is not None:
      raw = sustainable.rate
      assumption = self._bounded(raw, GrowthSource.SUSTAINABLE_GROWTH,
                                 self.caps)
      notes.append(
          note(STAGE,
               f'Using sustainable growth (ROE x retention) of '
               f'{assumption.rate:.2%}.',
               raw_growth=raw,
               rate=assumption.rate))
      diag.update({'method': 'sustainable', 'raw_growth': raw})
      return PolicyOutput(value=assumption, diag=diag, notes=notes)

    if default_rate is None:
      rate = self.caps.floor
      message = f'Falling back to default floor growth of {rate:.2%}.'
    else:
      rate = self.caps.clamp(default_rate)
      message = f'Falling back to default growth of {rate:.2%}.'
    notes.append(note(STAGE, message, Severity.DEGRADED, rate=rate))
    logger.debug('No growth source usable, using default %.4f', rate)
    diag['method'] = 'default_floor'
    default = GrowthAssumption(rate=rate, source=GrowthSource.DEFAULT_FLOOR)
    return PolicyOutput(value=default, diag=diag, notes=notes)


def estimate_growth(
    history: History,
    caps: GrowthCaps,
    analyst: Optional[AnalystInputs] = None,
    sustainable: Optional[SustainableInputs] = None,
) -> GrowthAssumption:
  '''Functional entry point over FallbackChainGrowth.'''
  policy = FallbackChainGrowth(cap=caps.cap, floor=caps.floor)
  return policy.compute(history, analyst, sustainable).value
