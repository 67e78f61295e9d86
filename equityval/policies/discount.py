"""
Discount rate policies.

These policies determine the cost of equity used to discount projected
metrics. The CAPM policy averages a risk-free series, resolves a beta and
falls back to a fixed default cost of equity when the result is unusable.
"""

from abc import ABC
from abc import abstractmethod
import logging
from typing import Optional, Tuple

from equityval.domain.types import BetaSource
from equityval.domain.types import DiscountRateAssumption
from equityval.domain.types import note
from equityval.domain.types import PolicyOutput
from equityval.domain.types import RiskFreeRateSeries
from equityval.domain.types import Severity

logger = logging.getLogger(__name__)

STAGE = 'discount'

DEFAULT_RISK_FREE_RATE = 0.045
DEFAULT_COST_OF_EQUITY = 0.085
EQUITY_RISK_PREMIUM = 0.055
RISK_FREE_WINDOW = 60
BETA_BOUNDS = (0.6, 2.0)
COST_OF_EQUITY_CEILING = 0.25


def average_risk_free_rate(risk_free_series: Optional[RiskFreeRateSeries],
                           window: int = RISK_FREE_WINDOW) -> Optional[float]:
  '''Mean of the most recent `window` samples, None if there are none.'''
  if risk_free_series is None:
    return None
  recent = risk_free_series.recent(window)
  if not recent:
    return None
  return sum(recent) / len(recent)


def bound_beta(beta: float, bounds: Tuple[float, float] = BETA_BOUNDS) -> float:
  low, high = bounds
  return max(low, min(high, beta))


def compute_discount_rate(
    risk_free_series: Optional[RiskFreeRateSeries],
    beta: Optional[float],
    equity_risk_premium: float = EQUITY_RISK_PREMIUM,
    beta_source: BetaSource = BetaSource.PROVIDED,
    terminal_growth: float = 0.0,
    window: int = RISK_FREE_WINDOW,
    default_risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
    beta_bounds: Tuple[float, float] = BETA_BOUNDS,
    default_beta: float = 1.0,
    ceiling: float = COST_OF_EQUITY_CEILING,
) -> Optional[DiscountRateAssumption]:
  '''
  Compute cost of equity = risk-free + beta x equity risk premium.

  A Provided or missing beta is bounded to beta_bounds; a Computed beta
  is used as given.

  Args:
    risk_free_series: Risk-free yield samples (decimals)
    beta: Levered beta, None to use default_beta
    equity_risk_premium: Market equity risk premium
    beta_source: Where `beta` came from
    terminal_growth: Rate the cost of equity must strictly exceed
    window: Number of most recent samples averaged
    default_risk_free_rate: Used when the series has no usable samples
    beta_bounds: (low, high) bounds for untrusted betas
    default_beta: Beta used when none is supplied
    ceiling: Implausibility ceiling on the cost of equity

  Returns:
    DiscountRateAssumption, or None when the resulting cost of equity
    does not exceed terminal_growth or reaches the ceiling
  '''
  risk_free = average_risk_free_rate(risk_free_series, window)
  if risk_free is None:
    risk_free = default_risk_free_rate

  if beta is None:
    beta_used = default_beta
    beta_source = BetaSource.DEFAULT_FALLBACK
  elif beta_source is BetaSource.COMPUTED:
    beta_used = beta
  else:
    beta_used = bound_beta(beta, beta_bounds)

  rate = risk_free + beta_used * equity_risk_premium
  if rate <= terminal_growth or rate >= ceiling:
    return None

  return DiscountRateAssumption(
      rate=rate,
      risk_free_component=risk_free,
      beta_used=beta_used,
      beta_source=beta_source,
      equity_risk_premium=equity_risk_premium,
  )


class DiscountPolicy(ABC):
  """
  Base class for discount rate policies.

  Subclasses implement compute() to return a discount rate assumption.
  """

  @abstractmethod
  def compute(
      self,
      risk_free_series: Optional[RiskFreeRateSeries],
      terminal_growth: float = 0.0,
      provided_beta: Optional[float] = None,
      levered_beta: Optional[float] = None,
      equity_risk_premium: Optional[float] = None,
  ) -> PolicyOutput[DiscountRateAssumption]:
    """
    Compute discount rate.

    Args:
      risk_free_series: Risk-free yield samples
      terminal_growth: Terminal growth the rate must exceed
      provided_beta: Provider-reported beta (untrusted, bounded)
      levered_beta: Caller-computed beta (used as given)
      equity_risk_premium: Override for the policy's ERP

    Returns:
      PolicyOutput with DiscountRateAssumption and diagnostics
    """


class CapmDiscount(DiscountPolicy):
  """
  CAPM cost of equity with a fixed-default fallback.
  """

  def __init__(
      self,
      equity_risk_premium: float = EQUITY_RISK_PREMIUM,
      default_cost_of_equity: float = DEFAULT_COST_OF_EQUITY,
      default_risk_free_rate: float = DEFAULT_RISK_FREE_RATE,
      window: int = RISK_FREE_WINDOW,
      beta_bounds: Tuple[float, float] = BETA_BOUNDS,
      default_beta: float = 1.0,
      ceiling: float = COST_OF_EQUITY_CEILING,
  ):
    self.equity_risk_premium = equity_risk_premium
    self.default_cost_of_equity = default_cost_of_equity
    self.default_risk_free_rate = default_risk_free_rate
    self.window = window
    self.beta_bounds = beta_bounds
    self.default_beta = default_beta
    self.ceiling = ceiling

  def compute(
      self,
      risk_free_series: Optional[RiskFreeRateSeries],
      terminal_growth: float = 0.0,
      provided_beta: Optional[float] = None,
      levered_beta: Optional[float] = None,
      equity_risk_premium: Optional[float] = None,
  ) -> PolicyOutput[DiscountRateAssumption]:
    notes = []
    erp = (self.equity_risk_premium
           if equity_risk_premium is None else equity_risk_premium)

    risk_free = average_risk_free_rate(risk_free_series, self.window)
    if risk_free is None:
      risk_free = self.default_risk_free_rate
      logger.debug('No usable risk-free samples, using %.4f', risk_free)
      notes.append(
          note(STAGE,
               f'No usable risk-free samples; using default '
               f'{risk_free:.2%}.',
               Severity.DEGRADED,
               risk_free_rate=risk_free))

    if levered_beta is not None:
      beta, source = levered_beta, BetaSource.COMPUTED
    elif provided_beta is not None:
      beta, source = provided_beta, BetaSource.PROVIDED
      bounded = bound_beta(provided_beta, self.beta_bounds)
      if bounded != provided_beta:
        notes.append(
            note(STAGE,
                 f'Provided beta {provided_beta:.2f} bounded to '
                 f'{bounded:.2f}.',
                 beta=provided_beta,
                 bounded=bounded))
    else:
      beta, source = None, BetaSource.DEFAULT_FALLBACK
      notes.append(
          note(STAGE,
               f'No beta available; using default beta '
               f'{self.default_beta:.2f}.',
               Severity.DEGRADED,
               beta=self.default_beta))

    assumption = compute_discount_rate(
        risk_free_series,
        beta,
        erp,
        beta_source=source,
        terminal_growth=terminal_growth,
        window=self.window,
        default_risk_free_rate=self.default_risk_free_rate,
        beta_bounds=self.beta_bounds,
        default_beta=self.default_beta,
        ceiling=self.ceiling,
    )

    if assumption is None:
      beta_used = self.default_beta if beta is None else beta
      attempted = risk_free + beta_used * erp
      logger.debug('Cost of equity %.4f unusable, using default %.4f',
                   attempted, self.default_cost_of_equity)
      notes.append(
          note(STAGE,
               f'Cost of equity {attempted:.2%} outside ('
               f'{terminal_growth:.2%}, {self.ceiling:.0%}); using default '
               f'{self.default_cost_of_equity:.2%}.',
               Severity.DEGRADED,
               attempted=attempted,
               terminal_growth=terminal_growth,
               default=self.default_cost_of_equity))
      assumption = DiscountRateAssumption(
          rate=self.default_cost_of_equity,
          risk_free_component=risk_free,
          beta_used=beta_used,
          beta_source=source,
          equity_risk_premium=erp,
          is_default=True,
      )

    return PolicyOutput(value=assumption,
                        diag={
                            'discount_method': 'capm',
                            'discount_rate': assumption.rate,
                            'risk_free_rate': assumption.risk_free_component,
                            'beta': assumption.beta_used,
                            'is_default': assumption.is_default,
                        },
                        notes=notes)


class FixedRate(DiscountPolicy):
  """
  Fixed discount rate.

  Simple policy that returns a constant required return. The risk-free
  component is still averaged from the series so that reports stay
  comparable; the beta is the one implied by the fixed rate.
  """

  def __init__(self,
               rate: float = DEFAULT_COST_OF_EQUITY,
               equity_risk_premium: float = EQUITY_RISK_PREMIUM,
               default_risk_free_rate: float = DEFAULT_RISK_FREE_RATE):
    """
    Initialize fixed rate policy.

    Args:
      rate: Fixed discount rate (default: 8.5%)
      equity_risk_premium: ERP used to back out the implied beta
      default_risk_free_rate: Risk-free rate when the series is empty
    """
    self.rate = rate
    self.equity_risk_premium = equity_risk_premium
    self.default_risk_free_rate = default_risk_free_rate

  def compute(
      self,
      risk_free_series: Optional[RiskFreeRateSeries],
      terminal_growth: float = 0.0,
      provided_beta: Optional[float] = None,
      levered_beta: Optional[float] = None,
      equity_risk_premium: Optional[float] = None,
  ) -> PolicyOutput[DiscountRateAssumption]:
    """Return fixed discount rate."""
    erp = (self.equity_risk_premium
           if equity_risk_premium is None else equity_risk_premium)
    risk_free = average_risk_free_rate(risk_free_series)
    if risk_free is None:
      risk_free = self.default_risk_free_rate
    implied_beta = (self.rate - risk_free) / erp if erp > 0 else 0.0
    return PolicyOutput(
        value=DiscountRateAssumption(
            rate=self.rate,
            risk_free_component=risk_free,
            beta_used=implied_beta,
            beta_source=BetaSource.COMPUTED,
            equity_risk_premium=erp,
        ),
        diag={
            'discount_method': 'fixed',
            'discount_rate': self.rate,
        },
        notes=[note(STAGE, f'Using fixed discount rate {self.rate:.2%}.')],
    )
