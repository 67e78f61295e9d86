'''
Key valuation metrics.

Stateless ratio functions over already-resolved scalars. Every ratio
returns NOT_APPLICABLE instead of raising when an input is non-numeric or
a denominator (or the numerator's base, e.g. price) is non-positive.
'''

from math import isfinite
from numbers import Real
from typing import Any, Dict, Optional, Sequence, Union

from equityval.domain.types import BALANCE
from equityval.domain.types import CASH_FLOW
from equityval.domain.types import CompanyProfile
from equityval.domain.types import INCOME
from equityval.domain.types import NormalizedStatements

NOT_APPLICABLE = 'N/A'
EPS_GROWTH_PERIODS = 6
EPS_GROWTH_CAP = 0.50

Metric = Union[float, str]


def _number(value: Any) -> Optional[float]:
  if isinstance(value, bool) or not isinstance(value, Real):
    return None
  value = float(value)
  return value if isfinite(value) else None


def _ratio(numerator: Any, denominator: Any) -> Metric:
  num = _number(numerator)
  den = _number(denominator)
  if num is None or den is None or num <= 0 or den <= 0:
    return NOT_APPLICABLE
  return round(num / den, 2)


def pe_ratio(price: Any, eps: Any) -> Metric:
  return _ratio(price, eps)


def pb_ratio(market_cap: Any, book_value: Any) -> Metric:
  return _ratio(market_cap, book_value)


def ps_ratio(market_cap: Any, revenue: Any) -> Metric:
  return _ratio(market_cap, revenue)


def ev_to_ebitda(enterprise_value: Any, ebitda: Any) -> Metric:
  return _ratio(enterprise_value, ebitda)


def ev_to_sales(enterprise_value: Any, revenue: Any) -> Metric:
  return _ratio(enterprise_value, revenue)


def enterprise_value(market_cap: Any,
                     long_term_debt: Any = None,
                     short_term_debt: Any = None,
                     cash: Any = None) -> Optional[float]:
  '''Market cap + total debt - cash; missing debt or cash counts as zero.'''
  cap = _number(market_cap)
  if cap is None:
    return None
  debt = (_number(long_term_debt) or 0.0) + (_number(short_term_debt) or 0.0)
  return cap + debt - (_number(cash) or 0.0)


def ebitda(operating_income: Any,
           depreciation_amortization: Any) -> Optional[float]:
  income = _number(operating_income)
  da = _number(depreciation_amortization)
  if income is None or da is None:
    return None
  return income + da


def fcf_yield(free_cash_flow: Any, market_cap: Any) -> Metric:
  '''Free cash flow / market cap in percent.'''
  fcf = _number(free_cash_flow)
  cap = _number(market_cap)
  if fcf is None or cap is None or cap <= 0:
    return NOT_APPLICABLE
  return round(fcf / cap * 100.0, 2)


def historical_eps_growth(eps_history: Sequence[Any]) -> Optional[float]:
  '''
  Mean period-over-period EPS growth, clamped to [0, 50%].

  Args:
    eps_history: Diluted EPS, oldest first. Only positive values among
      the last six periods are used.

  Returns:
    Growth as a decimal, or None with fewer than two positive values
  '''
  recent = [_number(v) for v in list(eps_history)[-EPS_GROWTH_PERIODS:]]
  positive = [v for v in recent if v is not None and v > 0]
  if len(positive) < 2:
    return None
  growth = [(cur - prev) / prev for prev, cur in zip(positive, positive[1:])]
  average = sum(growth) / len(growth)
  return max(0.0, min(average, EPS_GROWTH_CAP))


def compute_key_metrics(statements: NormalizedStatements,
                        profile: CompanyProfile,
                        price: Optional[float] = None) -> Dict[str, Any]:
  '''
  Assemble every key metric from normalized statements and a profile.

  Args:
    statements: Normalized statements (latest period drives the ratios)
    profile: Company metadata (EPS, market cap, shares)
    price: Current price (default: profile.price)

  Returns:
    Dictionary of metric name to value or NOT_APPLICABLE
  '''
  price = price if price is not None else profile.price
  latest = statements.latest

  def item(statement: str, name: str) -> Optional[float]:
    return latest.get(statement, name) if latest is not None else None

  eps = profile.eps
  if eps is None:
    eps = item(INCOME, 'eps_diluted')

  market_cap = profile.market_cap
  if market_cap is None and price is not None and profile.shares_outstanding:
    market_cap = price * profile.shares_outstanding

  revenue = item(INCOME, 'revenue')
  ev = enterprise_value(market_cap, item(BALANCE, 'long_term_debt'),
                        item(BALANCE, 'short_term_debt'), item(BALANCE, 'cash'))
  depreciation = item(INCOME, 'depreciation_amortization')
  if depreciation is None:
    depreciation = item(CASH_FLOW, 'depreciation_amortization')
  earnings = ebitda(item(INCOME, 'operating_income'), depreciation)

  ocf = item(CASH_FLOW, 'operating_cash_flow')
  investing = item(CASH_FLOW, 'investing_cash_flow')
  capex = item(CASH_FLOW, 'capital_expenditure')
  if ocf is not None and investing is not None:
    fcf = ocf + investing
  elif ocf is not None and capex is not None:
    fcf = ocf - capex
  else:
    fcf = None

  growth = historical_eps_growth(
      [p.get(INCOME, 'eps_diluted') for p in statements.oldest_first])

  return {
      'pe_ratio': pe_ratio(price, eps),
      'pb_ratio': pb_ratio(market_cap, item(BALANCE, 'total_equity')),
      'ps_ratio': ps_ratio(market_cap, revenue),
      'ev_to_ebitda': ev_to_ebitda(ev, earnings),
      'ev_to_sales': ev_to_sales(ev, revenue),
      'fcf_yield': fcf_yield(fcf, market_cap),
      'enterprise_value': ev if ev is not None else NOT_APPLICABLE,
      'ebitda': earnings if earnings is not None else NOT_APPLICABLE,
      'historical_eps_growth':
          growth if growth is not None else NOT_APPLICABLE,
  }
