'''
Dividend discount model.

Projects the annual dividend per share over a 10-year taper and a Gordon
terminal value. A company that pays no dividend is a typed failure, never
a value of zero.

Growth comes from the per-share dividend history: each period's dividends
paid over that period's balance-sheet share count, so buybacks and
issuance do not read as dividend growth. Without usable history the
initial growth equals terminal growth.
'''

from typing import List, Optional, Union

from equityval.domain.types import BALANCE
from equityval.domain.types import CASH_FLOW
from equityval.domain.types import Diagnostic
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import note
from equityval.domain.types import Severity
from equityval.domain.types import ValuationFailure
from equityval.models.base import BaseMetric
from equityval.models.base import metric_history
from equityval.models.base import MISSING_SHARES
from equityval.models.base import ModelContext
from equityval.models.base import NO_DIVIDEND
from equityval.models.base import ValuationModel

STAGE = 'base_metric'


def period_dividend_per_share(
    period: FiscalPeriodStatement,
    fallback_shares: Optional[float] = None) -> Optional[float]:
  '''Dividends paid / shares outstanding for one period.

  The period's own balance-sheet share count is preferred; fallback_shares
  is used when the period does not report one.
  '''
  paid = period.get(CASH_FLOW, 'dividends_paid')
  shares = period.get(BALANCE, 'shares_outstanding') or fallback_shares
  if paid is None or shares is None or shares <= 0:
    return None
  return paid / shares


class DdmModel(ValuationModel):
  '''Two-stage dividend discount model on dividend per share.'''

  name = 'ddm'
  horizon_years = 10
  growth_cap = 0.15
  growth_floor = 0.0

  def default_growth(self, ctx: ModelContext) -> Optional[float]:
    return ctx.terminal_growth

  def base_metric(self,
                  ctx: ModelContext) -> Union[BaseMetric, ValuationFailure]:
    notes: List[Diagnostic] = []
    history = metric_history(
        ctx.statements, lambda p: period_dividend_per_share(p, ctx.shares))

    d0 = ctx.profile.dividend_per_share
    method = 'reported_rate'
    if d0 is not None and d0 <= 0:
      return self.fail(NO_DIVIDEND,
                       'Company reports no dividend.',
                       notes,
                       dividend_per_share=d0)
    if d0 is None:
      paid = ctx.statements.latest_value(CASH_FLOW, 'dividends_paid')
      if paid is None or paid <= 0:
        return self.fail(NO_DIVIDEND,
                         'Company pays no dividend.',
                         notes,
                         dividends_paid=paid or 0.0)
      if ctx.shares is None:
        return self.fail(MISSING_SHARES,
                         'Dividend per share needs shares outstanding.',
                         notes,
                         dividends_paid=paid)
      d0 = paid / ctx.shares
      method = 'dividends_paid_over_shares'
      notes.append(
          note(STAGE,
               f'Dividend rate not reported; using dividends paid / shares '
               f'= {d0:.4f}.',
               Severity.DEGRADED,
               dividends_paid=paid,
               shares=ctx.shares))

    return BaseMetric(
        value=d0,
        history=history,
        per_share=True,
        details={
            'dividend_per_share': d0,
            'dividend_method': method,
        },
        notes=tuple(notes),
    )
