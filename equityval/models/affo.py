'''
Adjusted funds from operations model (REITs).

AFFO = FFO - recurring capital expenditure, where FFO is the reported
figure or net income + depreciation & amortization - gains on property
sales.
'''

import logging
from typing import List, Optional, Tuple, Union

from equityval.domain.types import CASH_FLOW
from equityval.domain.types import Diagnostic
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import INCOME
from equityval.domain.types import note
from equityval.domain.types import Severity
from equityval.domain.types import ValuationFailure
from equityval.models.base import BaseMetric
from equityval.models.base import metric_history
from equityval.models.base import MISSING_NET_INCOME
from equityval.models.base import ModelContext
from equityval.models.base import NON_POSITIVE_AFFO
from equityval.models.base import ValuationModel

logger = logging.getLogger(__name__)

STAGE = 'base_metric'


def _depreciation(period: FiscalPeriodStatement) -> Optional[float]:
  value = period.get(CASH_FLOW, 'depreciation_amortization')
  if value is None:
    value = period.get(INCOME, 'depreciation_amortization')
  return value


def funds_from_operations(
    period: FiscalPeriodStatement) -> Tuple[Optional[float], str]:
  '''FFO for one period and how it was obtained.'''
  reported = period.get(CASH_FLOW, 'funds_from_operations')
  if reported is not None:
    return reported, 'reported'
  net_income = period.get(INCOME, 'net_income')
  if net_income is None:
    return None, 'missing'
  gains = period.get(INCOME, 'gain_on_sale_of_assets') or 0.0
  return net_income + (_depreciation(period) or 0.0) - gains, 'derived'


def period_affo(period: FiscalPeriodStatement) -> Optional[float]:
  ffo, _ = funds_from_operations(period)
  if ffo is None:
    return None
  capex = period.get(CASH_FLOW, 'capital_expenditure')
  if capex is None:
    capex = _depreciation(period) or 0.0
  return ffo - capex


class AffoModel(ValuationModel):
  '''Two-stage AFFO discounting over a 10-year horizon.'''

  name = 'affo'
  horizon_years = 10
  growth_cap = 0.15
  growth_floor = 0.01

  def base_metric(self,
                  ctx: ModelContext) -> Union[BaseMetric, ValuationFailure]:
    notes: List[Diagnostic] = []
    latest = ctx.statements.latest
    if latest is None:
      return self.fail(MISSING_NET_INCOME, 'No statements available.', notes)

    ffo, ffo_method = funds_from_operations(latest)
    if ffo is None:
      return self.fail(MISSING_NET_INCOME,
                       'Neither FFO nor net income is reported.', notes)
    depreciation = _depreciation(latest)
    if ffo_method == 'derived' and depreciation is None:
      notes.append(
          note(STAGE, 'Depreciation & amortization missing from FFO.',
               Severity.DEGRADED))

    capex = latest.get(CASH_FLOW, 'capital_expenditure')
    if capex is None:
      capex = depreciation or 0.0
      notes.append(
          note(STAGE,
               'Capital expenditure missing; using depreciation & '
               'amortization as recurring capex.',
               Severity.DEGRADED,
               recurring_capex=capex))

    affo = ffo - capex
    if affo <= 0:
      return self.fail(NON_POSITIVE_AFFO,
                       f'AFFO {affo:,.0f} is not positive.',
                       notes,
                       ffo=ffo,
                       recurring_capex=capex)

    logger.debug('%s: FFO %.0f (%s), AFFO %.0f', ctx.profile.ticker, ffo,
                 ffo_method, affo)
    return BaseMetric(
        value=affo,
        history=metric_history(ctx.statements, period_affo),
        details={
            'ffo': ffo,
            'ffo_method': ffo_method,
            'recurring_capex': capex,
        },
        notes=tuple(notes),
    )
