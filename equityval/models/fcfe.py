'''
Free-cash-flow-to-equity DCF model.

Base metric: operating cash flow - capital expenditure. When capex consumes
at least `heavy_reinvestment_threshold` of operating cash flow, the cash
flow figure is dominated by reinvestment and net income is used instead.
A non-positive base is a typed failure.

When no analyst growth is available and revenue has compounded at
`high_revenue_growth_threshold` or more while FCFE growth stayed weak, the
base becomes latest revenue x average FCFE margin, grown at the historical
revenue growth rate.
'''

import logging
from typing import List, Optional, Tuple, Union

import pandas as pd

from equityval.domain.types import CASH_FLOW
from equityval.domain.types import Diagnostic
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import GrowthAssumption
from equityval.domain.types import GrowthSource
from equityval.domain.types import INCOME
from equityval.domain.types import note
from equityval.domain.types import Severity
from equityval.domain.types import ValuationFailure
from equityval.models.base import BaseMetric
from equityval.models.base import metric_history
from equityval.models.base import MISSING_CASH_FLOW
from equityval.models.base import ModelContext
from equityval.models.base import NON_POSITIVE_BASE_CASH_FLOW
from equityval.models.base import ValuationModel
from equityval.policies.growth import AnalystInputs
from equityval.policies.growth import analyst_implied_growth
from equityval.policies.growth import FallbackChainGrowth
from equityval.policies.growth import peg_implied_growth

logger = logging.getLogger(__name__)

STAGE = 'base_metric'


def period_fcfe(period: FiscalPeriodStatement) -> Optional[float]:
  '''OCF - capex for one period; capex defaults to zero when unreported.'''
  ocf = period.get(CASH_FLOW, 'operating_cash_flow')
  if ocf is None:
    return None
  return ocf - (period.get(CASH_FLOW, 'capital_expenditure') or 0.0)


def fcfe_margin(fcfe: pd.Series, revenue: pd.Series, floor: float,
                cap: float) -> Optional[float]:
  '''Mean FCFE / revenue over periods where both are positive, clamped.'''
  joined = pd.concat([fcfe.rename('fcfe'),
                      revenue.rename('revenue')], axis=1, join='inner')
  valid = joined[(joined['fcfe'] > 0) & (joined['revenue'] > 0)]
  if valid.empty:
    return None
  average = (valid['fcfe'] / valid['revenue']).mean()
  return max(floor, min(cap, float(average)))


class FcfeModel(ValuationModel):
  '''Two-stage FCFE discounting over a 10-year horizon.'''

  name = 'fcfe'
  horizon_years = 10
  growth_cap = 0.15
  growth_floor = 0.02
  use_analyst_growth = True

  def _net_income_proxy(self, period: FiscalPeriodStatement,
                        notes: List[Diagnostic]) -> Optional[float]:
    net_income = period.get(INCOME, 'net_income')
    if net_income is not None:
      return net_income
    pretax = period.get(INCOME, 'income_before_tax')
    if pretax is None:
      return None
    notes.append(
        note(STAGE,
             f'Net income missing; using pretax income x (1 - '
             f'{self.config.tax_rate:.0%}).',
             Severity.DEGRADED,
             income_before_tax=pretax,
             tax_rate=self.config.tax_rate))
    return pretax * (1.0 - self.config.tax_rate)

  def _analyst_growth_available(self, ctx: ModelContext) -> bool:
    eps = ctx.statements.latest_value(INCOME, 'eps_diluted')
    inputs = AnalystInputs.from_profile(ctx.profile, latest_eps=eps)
    return (analyst_implied_growth(inputs) is not None or
            peg_implied_growth(inputs) is not None)

  def _revenue_based(
      self, ctx: ModelContext, history: pd.Series, notes: List[Diagnostic]
  ) -> Optional[Tuple[float, GrowthAssumption, float]]:
    '''
    Revenue x average FCFE margin, grown at historical revenue growth.

    Used for fast-growing companies whose cash flow history grows weakly,
    typically because reinvestment keeps FCFE flat while sales compound.

    Args:
      ctx: Model context
      history: FCFE (or proxy) history, oldest first
      notes: Diagnostics list to append to

    Returns:
      (base, growth assumption, margin), or None when the company does not
      qualify
    '''
    config = self.config
    revenue = ctx.statements.series(INCOME, 'revenue')
    revenue_growth = FallbackChainGrowth(
        cap=config.revenue_growth_cap,
        floor=self.growth_floor,
        use_analyst=False,
    ).compute(revenue).value
    if (revenue_growth.source is not GrowthSource.HISTORICAL_AVERAGE or
        revenue_growth.rate < config.high_revenue_growth_threshold):
      return None

    fcfe_growth = FallbackChainGrowth(
        cap=self.growth_cap,
        floor=self.growth_floor,
        use_analyst=False,
    ).compute(history).value
    if fcfe_growth.rate >= self.growth_floor + config.weak_fcfe_growth_spread:
      return None

    margin = fcfe_margin(history, revenue, config.fcfe_margin_floor,
                         config.fcfe_margin_cap)
    latest_revenue = float(revenue.iloc[-1])
    if margin is None or latest_revenue <= 0:
      return None

    base = latest_revenue * margin
    logger.debug('%s: revenue growth %.4f, FCFE margin %.4f, base %.0f',
                 ctx.profile.ticker, revenue_growth.rate, margin, base)
    notes.append(
        note(STAGE,
             f'High revenue growth ({revenue_growth.rate:.1%}) with weak '
             f'FCFE growth ({fcfe_growth.rate:.1%}); projecting revenue x '
             f'FCFE margin ({margin:.1%}).',
             Severity.DEGRADED,
             revenue_growth=revenue_growth.rate,
             fcfe_growth=fcfe_growth.rate,
             fcfe_margin=margin,
             latest_revenue=latest_revenue))
    return base, revenue_growth, margin

  def base_metric(self,
                  ctx: ModelContext) -> Union[BaseMetric, ValuationFailure]:
    notes: List[Diagnostic] = []
    latest = ctx.statements.latest
    ocf = latest.get(CASH_FLOW, 'operating_cash_flow') if latest else None
    if ocf is None:
      return self.fail(MISSING_CASH_FLOW,
                       'Operating cash flow is not reported.', notes)

    capex = latest.get(CASH_FLOW, 'capital_expenditure')
    if capex is None:
      capex = 0.0
      notes.append(
          note(STAGE, 'Capital expenditure missing; treated as zero.',
               Severity.DEGRADED))

    base = ocf - capex
    heavy = ocf > 0 and capex / ocf >= self.config.heavy_reinvestment_threshold
    method = 'ocf_minus_capex'
    if heavy:
      proxy = self._net_income_proxy(latest, notes)
      if proxy is not None:
        notes.append(
            note(STAGE,
                 f'Heavy reinvestment (capex {capex / ocf:.0%} of operating '
                 f'cash flow); using net income as FCFE proxy.',
                 Severity.DEGRADED,
                 capex_ratio=capex / ocf,
                 threshold=self.config.heavy_reinvestment_threshold))
        base = proxy
        method = 'net_income_proxy'

    if method == 'net_income_proxy':
      history = ctx.statements.series(INCOME, 'net_income')
    else:
      history = metric_history(ctx.statements, period_fcfe)

    if base <= 0:
      return self.fail(NON_POSITIVE_BASE_CASH_FLOW,
                       f'Base FCFE {base:,.0f} is not positive.',
                       notes,
                       base_metric=base,
                       fcfe_method=method)

    details = {
        'operating_cash_flow': ocf,
        'capital_expenditure': capex,
        'fcfe_method': method,
    }
    growth = None
    if not self._analyst_growth_available(ctx):
      revenue_based = self._revenue_based(ctx, history, notes)
      if revenue_based is not None:
        base, growth, margin = revenue_based
        details.update(fcfe_method='revenue_margin', fcfe_margin=margin)

    return BaseMetric(
        value=base,
        history=history,
        growth=growth,
        details=details,
        notes=tuple(notes),
    )
