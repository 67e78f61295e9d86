'''
Shared valuation model pipeline.

Every model runs the same stages in the same order:
  1. Terminal growth (from the averaged risk-free rate)
  2. Cost of equity (CAPM, falling back to a fixed default)
  3. Terminal growth clamp below the cost of equity
  4. Share count resolution
  5. Model-specific base metric (may return a typed failure)
  6. Initial growth (fallback chain with per-model cap and floor, unless
     the base metric fixes it)
  7. Two-stage projection and terminal value
  8. Per-share value and interpretation against market price

Subclasses supply only the base metric (and optionally growth inputs).
Failures are returned as ValuationFailure values, never raised.
'''

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
import logging
from typing import (Any, Callable, Dict, List, Mapping, Optional, Tuple,
                    Union)

import pandas as pd

from equityval.domain.types import CompanyProfile
from equityval.domain.types import Diagnostic
from equityval.domain.types import DiscountRateAssumption
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import GrowthAssumption
from equityval.domain.types import INCOME
from equityval.domain.types import Interpretation
from equityval.domain.types import MissingDataError
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import RiskFreeRateSeries
from equityval.domain.types import ValuationFailure
from equityval.domain.types import ValuationOutcome
from equityval.domain.types import ValuationResult
from equityval.engine.projection import project
from equityval.policies.discount import average_risk_free_rate
from equityval.policies.growth import AnalystInputs
from equityval.policies.growth import FallbackChainGrowth
from equityval.policies.growth import SustainableInputs
from equityval.policies.terminal import clamp_terminal_growth
from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig
from equityval.scenarios.registry import create_policies

logger = logging.getLogger(__name__)

NO_DIVIDEND = 'no_dividend'
MISSING_SHARES = 'missing_shares'
NON_POSITIVE_BASE_CASH_FLOW = 'non_positive_base_cash_flow'
NON_POSITIVE_AFFO = 'non_positive_affo'
MISSING_BOOK_VALUE = 'missing_book_value'
MISSING_NET_INCOME = 'missing_net_income'
MISSING_CASH_FLOW = 'missing_cash_flow'


@dataclass(frozen=True)
class ModelContext:
  '''Inputs resolved before the base metric is derived.'''
  statements: NormalizedStatements
  profile: CompanyProfile
  market_price: Optional[float]
  params: ModelParams
  discount: DiscountRateAssumption
  terminal_growth: float
  shares: Optional[float]


@dataclass(frozen=True)
class BaseMetric:
  '''
  Model-specific starting point for the projection.

  Attributes:
    value: Year-0 metric (total, or per share when per_share is set)
    history: Metric history for growth estimation, oldest first
    per_share: Projection is per share; total = per-share value x shares
    anchor_value: Added to the projected total (book value for
      excess-return), not discounted
    suppress_terminal: Force a zero terminal value
    sustainable: ROE / payout inputs for sustainable growth
    growth: Initial growth fixed by the model; skips the fallback chain
    details: Extra figures surfaced on the result
    notes: Diagnostics raised while deriving the metric
  '''
  value: float
  history: pd.Series = field(default_factory=lambda: pd.Series(dtype=float))
  per_share: bool = False
  anchor_value: float = 0.0
  suppress_terminal: bool = False
  sustainable: Optional[SustainableInputs] = None
  growth: Optional[GrowthAssumption] = None
  details: Mapping[str, Any] = field(default_factory=dict)
  notes: Tuple[Diagnostic, ...] = ()


def metric_history(
    statements: NormalizedStatements,
    metric: Callable[[FiscalPeriodStatement], Optional[float]],
) -> pd.Series:
  '''Per-period derived metric, oldest first; unreported periods dropped.'''
  index = []
  values = []
  for period in statements.oldest_first:
    value = metric(period)
    if value is not None:
      index.append(period.period_end)
      values.append(value)
  return pd.Series(values, index=pd.DatetimeIndex(index), dtype=float)


def interpret(intrinsic_value: Optional[float],
              price: Optional[float],
              band: float = 0.20) -> Tuple[Interpretation, Optional[float]]:
  '''
  Classify intrinsic value against market price.

  Args:
    intrinsic_value: Value per share
    price: Current market price
    band: Fair-value band as a fraction of price (default: 20%)

  Returns:
    Tuple of (interpretation, difference in percent). The difference is
    None when the price is unusable.
  '''
  if intrinsic_value is None or price is None or price <= 0:
    return Interpretation.INDETERMINATE, None

  difference = (intrinsic_value - price) / price
  pct = difference * 100.0
  if intrinsic_value < 0:
    return Interpretation.INDETERMINATE, pct
  if difference > band:
    return Interpretation.UNDERVALUED, pct
  if difference < -band:
    return Interpretation.OVERVALUED, pct
  return Interpretation.FAIRLY_VALUED, pct


class ValuationModel(ABC):
  '''
  Base class for valuation models.

  Subclasses set name, horizon and growth bounds, and implement
  base_metric().
  '''

  name = 'base'
  horizon_years = 10
  growth_cap = 0.15
  growth_floor = 0.02
  use_analyst_growth = False

  def __init__(self,
               config: Optional[ValuationConfig] = None,
               policies: Optional[Dict[str, Any]] = None):
    '''
    Initialize model.

    Args:
      config: Valuation constants (default: ValuationConfig.default())
      policies: Policy overrides keyed by 'discount', 'terminal', 'fade'
        or 'shares'; missing keys are built from config
    '''
    self.config = config or ValuationConfig.default()
    self.policies = create_policies(self.config)
    self.policies.update(policies or {})

  def fail(self,
           code: str,
           reason: str,
           notes: List[Diagnostic],
           **details: Any) -> ValuationFailure:
    logger.debug('%s failed: %s (%s)', self.name, code, reason)
    return MissingDataError(model=self.name,
                            code=code,
                            reason=reason,
                            details=details,
                            diagnostics=tuple(notes))

  @abstractmethod
  def base_metric(self,
                  ctx: ModelContext) -> Union[BaseMetric, ValuationFailure]:
    '''
    Derive the model's year-0 metric.

    Args:
      ctx: Resolved discount rate, terminal growth, shares and inputs

    Returns:
      BaseMetric, or a ValuationFailure when required data is missing
    '''

  def growth_inputs(
      self, ctx: ModelContext, base: BaseMetric
  ) -> Tuple[pd.Series, Optional[AnalystInputs], Optional[SustainableInputs]]:
    analyst = None
    if self.use_analyst_growth:
      eps = ctx.statements.latest_value(INCOME, 'eps_diluted')
      analyst = AnalystInputs.from_profile(ctx.profile, latest_eps=eps)
    return base.history, analyst, base.sustainable

  def default_growth(self, ctx: ModelContext) -> Optional[float]:
    '''Growth used when no source in the chain is usable; None means floor.'''
    return None

  def calculate(
      self,
      statements: NormalizedStatements,
      profile: CompanyProfile,
      risk_free_series: Optional[RiskFreeRateSeries] = None,
      market_price: Optional[float] = None,
      model_params: Optional[ModelParams] = None,
  ) -> ValuationOutcome:
    '''
    Value one company.

    Args:
      statements: Normalized statements
      profile: Company metadata
      risk_free_series: Risk-free yield samples
      market_price: Current price (default: profile.price)
      model_params: Per-call ERP / beta overrides

    Returns:
      ValuationResult, or ValuationFailure when required data is missing
    '''
    config = self.config
    params = model_params or ModelParams()
    price = market_price if market_price is not None else profile.price
    notes: List[Diagnostic] = []

    risk_free = average_risk_free_rate(risk_free_series,
                                       config.risk_free_window)
    if risk_free is None:
      risk_free = config.default_risk_free_rate
    terminal = self.policies['terminal'].compute(risk_free)
    notes.extend(terminal.notes)

    discount = self.policies['discount'].compute(
        risk_free_series,
        terminal_growth=terminal.value,
        provided_beta=profile.beta,
        levered_beta=params.levered_beta,
        equity_risk_premium=params.equity_risk_premium,
    )
    notes.extend(discount.notes)
    rate = discount.value.rate

    clamped = clamp_terminal_growth(rate, terminal.value,
                                    config.min_terminal_spread)
    notes.extend(clamped.notes)
    g_terminal = clamped.value

    shares = self.policies['shares'].compute(profile, statements, price)
    notes.extend(shares.notes)

    ctx = ModelContext(
        statements=statements,
        profile=profile,
        market_price=price,
        params=params,
        discount=discount.value,
        terminal_growth=g_terminal,
        shares=shares.value,
    )
    base = self.base_metric(ctx)
    if isinstance(base, ValuationFailure):
      return replace(base, diagnostics=tuple(notes) + base.diagnostics)
    notes.extend(base.notes)

    if shares.value is None:
      return self.fail(MISSING_SHARES,
                       'No usable shares outstanding figure.',
                       notes,
                       ticker=profile.ticker)

    if base.growth is not None:
      initial_growth = base.growth
    else:
      history, analyst, sustainable = self.growth_inputs(ctx, base)
      growth = FallbackChainGrowth(
          cap=self.growth_cap,
          floor=self.growth_floor,
          analyst_cap=config.analyst_growth_cap,
          use_analyst=self.use_analyst_growth,
      ).compute(history,
                analyst,
                sustainable,
                default_rate=self.default_growth(ctx))
      notes.extend(growth.notes)
      initial_growth = growth.value

    projection = project(
        base.value,
        initial_growth.rate,
        g_terminal,
        rate,
        self.horizon_years,
        fade=self.policies['fade'],
        suppress_terminal=base.suppress_terminal,
    )
    notes.extend(projection.notes)

    if base.per_share:
      iv_per_share = projection.total_value + base.anchor_value
      total = iv_per_share * shares.value
    else:
      total = projection.total_value + base.anchor_value
      iv_per_share = total / shares.value

    interpretation, difference_pct = interpret(iv_per_share, price,
                                               config.fair_value_band)
    logger.debug('%s %s: iv=%.4f g0=%.4f gT=%.4f r=%.4f', profile.ticker,
                 self.name, iv_per_share, initial_growth.rate, g_terminal, rate)

    return ValuationResult(
        model=self.name,
        intrinsic_value_per_share=iv_per_share,
        total_equity_value=total,
        base_metric=base.value,
        growth_assumption=initial_growth,
        discount_rate_assumption=discount.value,
        terminal_growth=g_terminal,
        projection=projection.rows,
        terminal_value=projection.terminal_value,
        pv_terminal_value=projection.pv_terminal_value,
        shares_outstanding=shares.value,
        market_price=price,
        interpretation=interpretation,
        difference_pct=difference_pct,
        diagnostics=tuple(notes),
        details=dict(base.details),
    )
