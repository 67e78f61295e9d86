'''
Excess-return model.

Value = book value + PV(excess returns over 5 years) + PV(terminal excess
return), where excess return = (ROE - cost of equity) x book value. When
ROE does not exceed the cost of equity there is no value-creation premium
and the terminal value is suppressed.
'''

from typing import List, Optional, Tuple, Union

import pandas as pd

from equityval.domain.types import BALANCE
from equityval.domain.types import CASH_FLOW
from equityval.domain.types import Diagnostic
from equityval.domain.types import INCOME
from equityval.domain.types import note
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import Severity
from equityval.domain.types import ValuationFailure
from equityval.models.base import BaseMetric
from equityval.models.base import MISSING_BOOK_VALUE
from equityval.models.base import MISSING_NET_INCOME
from equityval.models.base import ModelContext
from equityval.models.base import ValuationModel
from equityval.policies.growth import AnalystInputs
from equityval.policies.growth import SustainableInputs

STAGE = 'base_metric'


def payout_from_statements(
    statements: NormalizedStatements) -> Optional[float]:
  '''Dividends paid / net income for the latest period, within [0, 1].'''
  net_income = statements.latest_value(INCOME, 'net_income')
  if net_income is None or net_income <= 0:
    return None
  paid = statements.latest_value(CASH_FLOW, 'dividends_paid') or 0.0
  return max(0.0, min(1.0, paid / net_income))


class ExcessReturnModel(ValuationModel):
  '''Book value plus discounted excess returns over a 5-year horizon.'''

  name = 'excess_return'
  horizon_years = 5
  growth_cap = 0.15
  growth_floor = 0.0

  def base_metric(self,
                  ctx: ModelContext) -> Union[BaseMetric, ValuationFailure]:
    notes: List[Diagnostic] = []
    book_value = ctx.statements.latest_value(BALANCE, 'total_equity')
    if book_value is None or book_value <= 0:
      return self.fail(MISSING_BOOK_VALUE,
                       'Book value of equity is missing or not positive.',
                       notes,
                       book_value=book_value or 0.0)

    roe = ctx.profile.return_on_equity
    if roe is None:
      net_income = ctx.statements.latest_value(INCOME, 'net_income')
      if net_income is None:
        return self.fail(MISSING_NET_INCOME,
                         'ROE is not reported and net income is missing.',
                         notes)
      roe = net_income / book_value
      notes.append(
          note(STAGE,
               f'ROE not reported; computed as net income / book value = '
               f'{roe:.2%}.',
               net_income=net_income,
               book_value=book_value))

    cost_of_equity = ctx.discount.rate
    excess_return = (roe - cost_of_equity) * book_value
    suppress = roe <= cost_of_equity
    if suppress:
      notes.append(
          note(STAGE,
               f'ROE {roe:.2%} does not exceed cost of equity '
               f'{cost_of_equity:.2%}; no terminal excess return.',
               roe=roe,
               cost_of_equity=cost_of_equity))

    payout = ctx.profile.payout_ratio
    if payout is None:
      payout = payout_from_statements(ctx.statements)
      if payout is None:
        notes.append(
            note(STAGE, 'Payout ratio unavailable for sustainable growth.',
                 Severity.DEGRADED))

    return BaseMetric(
        value=excess_return,
        anchor_value=book_value,
        suppress_terminal=suppress,
        sustainable=SustainableInputs(return_on_equity=roe,
                                      payout_ratio=payout),
        details={
            'book_value': book_value,
            'roe': roe,
            'excess_return': excess_return,
            'payout_ratio': payout,
        },
        notes=tuple(notes),
    )

  def growth_inputs(
      self, ctx: ModelContext, base: BaseMetric
  ) -> Tuple[pd.Series, Optional[AnalystInputs], Optional[SustainableInputs]]:
    '''Sustainable growth only: book value compounds at the retention rate.'''
    _, _, sustainable = super().growth_inputs(ctx, base)
    return pd.Series(dtype=float), None, sustainable
