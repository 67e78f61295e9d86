'''
Domain types for the valuation core.

These dataclasses provide typed interfaces between components, ensuring
policies and models never depend on raw provider payloads. Everything here
is immutable once built: models read statements, profiles and rate series
but never mutate them.
'''

from dataclasses import dataclass, field
import enum
from math import isfinite
from types import MappingProxyType
from typing import (Any, Dict, Generic, List, Mapping, Optional, Sequence,
                    Tuple, TypeVar, Union)

import pandas as pd

T = TypeVar('T')

INCOME = 'income'
BALANCE = 'balance'
CASH_FLOW = 'cash_flow'
STATEMENTS = (INCOME, BALANCE, CASH_FLOW)


class Severity(enum.Enum):
  '''How much a diagnostic note affects trust in the result.'''
  INFO = 'info'
  DEGRADED = 'degraded'
  INVALID = 'invalid'


@dataclass(frozen=True)
class Diagnostic:
  '''
  One structured entry of a valuation's diagnostic log.

  Attributes:
    stage: Component that produced the note (e.g. 'growth', 'discount')
    severity: INFO, DEGRADED (fell back to a default) or INVALID
      (a mathematically invalid condition that was resolved locally)
    message: Human-readable explanation
    context: Numeric or textual values behind the message
  '''
  stage: str
  severity: Severity
  message: str
  context: Mapping[str, Any] = field(default_factory=dict)


def note(stage: str,
         message: str,
         severity: Severity = Severity.INFO,
         **context: Any) -> Diagnostic:
  '''Shorthand constructor used by policies and models.'''
  return Diagnostic(stage=stage,
                    severity=severity,
                    message=message,
                    context=MappingProxyType(dict(context)))


@dataclass
class PolicyOutput(Generic[T]):
  '''
  Standard output from any policy.

  Every policy returns both a computed value and diagnostic information
  explaining how the value was computed.

  Attributes:
    value: The computed value (type depends on policy)
    diag: Flat dictionary of diagnostic fields
    notes: Ordered diagnostic records for the result log
  '''
  value: T
  diag: Dict[str, Any] = field(default_factory=dict)
  notes: List[Diagnostic] = field(default_factory=list)


def _freeze(values: Optional[Mapping[str, Optional[float]]]) -> Mapping:
  return MappingProxyType(dict(values or {}))


@dataclass(frozen=True)
class FiscalPeriodStatement:
  '''
  One reporting period of normalized statements.

  Line items are keyed by canonical name (see statements.schema). A
  missing item is simply absent from its mapping.

  Attributes:
    entity: Ticker or other entity identifier
    period_end: Fiscal period end date
    income: Income statement line items
    balance: Balance sheet line items
    cash_flow: Cash-flow statement line items
  '''
  entity: str
  period_end: pd.Timestamp
  income: Mapping[str, float] = field(default_factory=dict)
  balance: Mapping[str, float] = field(default_factory=dict)
  cash_flow: Mapping[str, float] = field(default_factory=dict)

  def __post_init__(self):
    object.__setattr__(self, 'income', _freeze(self.income))
    object.__setattr__(self, 'balance', _freeze(self.balance))
    object.__setattr__(self, 'cash_flow', _freeze(self.cash_flow))

  @property
  def key(self) -> Tuple[str, pd.Timestamp]:
    return (self.entity, self.period_end)

  def section(self, statement: str) -> Mapping[str, float]:
    if statement not in STATEMENTS:
      raise ValueError(f"Unknown statement '{statement}'. "
                       f'Available: {list(STATEMENTS)}')
    return getattr(self, statement)

  def get(self, statement: str, item: str) -> Optional[float]:
    '''Return a line item or None when the period does not report it.'''
    value = self.section(statement).get(item)
    if value is None or not isfinite(value):
      return None
    return float(value)


@dataclass(frozen=True)
class NormalizedStatements:
  '''
  Ordered collection of normalized fiscal periods for one entity.

  Periods are stored newest first; the oldest-first view used for growth
  series is derived from the same tuple.
  '''
  periods: Tuple[FiscalPeriodStatement, ...] = ()

  def __post_init__(self):
    ordered = tuple(
        sorted(self.periods, key=lambda p: p.period_end, reverse=True))
    object.__setattr__(self, 'periods', ordered)

  def __len__(self) -> int:
    return len(self.periods)

  def __bool__(self) -> bool:
    return bool(self.periods)

  @property
  def newest_first(self) -> Tuple[FiscalPeriodStatement, ...]:
    return self.periods

  @property
  def oldest_first(self) -> Tuple[FiscalPeriodStatement, ...]:
    return tuple(reversed(self.periods))

  @property
  def latest(self) -> Optional[FiscalPeriodStatement]:
    return self.periods[0] if self.periods else None

  def latest_value(self, statement: str, item: str) -> Optional[float]:
    if self.latest is None:
      return None
    return self.latest.get(statement, item)

  def series(self, statement: str, item: str) -> pd.Series:
    '''
    Line item history indexed by period end, oldest first.

    Periods that do not report the item are dropped.
    '''
    index = []
    values = []
    for period in self.oldest_first:
      value = period.get(statement, item)
      if value is not None:
        index.append(period.period_end)
        values.append(value)
    return pd.Series(values, index=pd.DatetimeIndex(index), dtype=float)


@dataclass(frozen=True)
class CompanyProfile:
  '''
  Company metadata owned by the caller and read-only to the core.

  Attributes:
    ticker: Company ticker symbol
    shares_outstanding: Reported shares outstanding
    beta: Provider-reported levered beta
    dividend_per_share: Annualized dividend rate per share
    price: Current market price
    currency: Reporting currency
    market_cap: Market capitalization
    eps: Trailing diluted EPS
    forward_pe: Forward price/earnings ratio
    analyst_target_price: Consensus analyst target price
    pe_ratio: Trailing price/earnings ratio
    peg_ratio: Price/earnings-to-growth ratio
    return_on_equity: Trailing ROE as a decimal
    payout_ratio: Dividend payout ratio as a decimal
  '''
  ticker: str = ''
  shares_outstanding: Optional[float] = None
  beta: Optional[float] = None
  dividend_per_share: Optional[float] = None
  price: Optional[float] = None
  currency: str = 'USD'
  market_cap: Optional[float] = None
  eps: Optional[float] = None
  forward_pe: Optional[float] = None
  analyst_target_price: Optional[float] = None
  pe_ratio: Optional[float] = None
  peg_ratio: Optional[float] = None
  return_on_equity: Optional[float] = None
  payout_ratio: Optional[float] = None


@dataclass(frozen=True)
class RiskFreeRateSeries:
  '''
  Ordered (date, yield) samples, oldest first, yields as decimals.
  '''
  samples: Tuple[Tuple[pd.Timestamp, float], ...] = ()

  def __post_init__(self):
    ordered = tuple(sorted(self.samples, key=lambda s: s[0]))
    object.__setattr__(self, 'samples', ordered)

  @classmethod
  def from_records(cls,
                   records: Sequence[Mapping[str, Any]],
                   percent: bool = True) -> 'RiskFreeRateSeries':
    '''
    Build from provider records like {'date': '2024-01-01', 'value': '4.2'}.

    Non-numeric values (providers use '.' for holidays) and unparseable
    dates are dropped.
    '''
    if not records:
      return cls()
    frame = pd.DataFrame(list(records))
    if 'date' not in frame.columns or 'value' not in frame.columns:
      return cls()
    frame['date'] = pd.to_datetime(frame['date'], errors='coerce')
    frame['value'] = pd.to_numeric(frame['value'], errors='coerce')
    frame = frame.dropna(subset=['date', 'value'])
    scale = 100.0 if percent else 1.0
    return cls(samples=tuple(
        (row.date, float(row.value) / scale) for row in frame.itertuples()))

  def __len__(self) -> int:
    return len(self.samples)

  def recent(self, window: int) -> List[float]:
    '''Most recent `window` finite yields.'''
    usable = [y for _, y in self.samples if isfinite(y)]
    if window <= 0:
      return []
    return usable[-window:]


class GrowthSource(enum.Enum):
  ANALYST_IMPLIED = 'analyst_implied'
  HISTORICAL_AVERAGE = 'historical_average'
  SUSTAINABLE_GROWTH = 'sustainable_growth'
  DEFAULT_FLOOR = 'default_floor'


@dataclass(frozen=True)
class GrowthAssumption:
  rate: float
  source: GrowthSource
  capped: bool = False
  floored: bool = False


class BetaSource(enum.Enum):
  PROVIDED = 'provided'
  COMPUTED = 'computed'
  DEFAULT_FALLBACK = 'default_fallback'


@dataclass(frozen=True)
class DiscountRateAssumption:
  '''
  Cost of equity and the pieces it was built from.

  Attributes:
    rate: Discount rate (cost of equity)
    risk_free_component: Averaged risk-free rate
    beta_used: Levered beta after bounding
    beta_source: Where the beta came from
    equity_risk_premium: ERP applied to beta
    is_default: True when the rate is the configured fallback
  '''
  rate: float
  risk_free_component: float
  beta_used: float
  beta_source: BetaSource
  equity_risk_premium: float
  is_default: bool = False


@dataclass(frozen=True)
class ProjectionRow:
  year_index: int
  growth_rate: float
  projected_metric: float
  discount_factor: float
  present_value: float


class Interpretation(enum.Enum):
  UNDERVALUED = 'undervalued'
  OVERVALUED = 'overvalued'
  FAIRLY_VALUED = 'fairly_valued'
  INDETERMINATE = 'indeterminate'


@dataclass(frozen=True)
class ValuationResult:
  '''
  Complete valuation result with its diagnostic log.

  Attributes:
    model: Name of the model that produced the result
    intrinsic_value_per_share: Value per share, None when unavailable
    total_equity_value: Total equity value
    base_metric: Model-specific starting metric (FCFE, D0, AFFO, ...)
    growth_assumption: Initial growth rate and its source
    discount_rate_assumption: Cost of equity and its components
    terminal_growth: Perpetual growth rate after clamping
    projection: Explicit-period rows
    terminal_value: Undiscounted terminal value
    pv_terminal_value: Discounted terminal value
    shares_outstanding: Share count used for the per-share figure
    market_price: Price used for the interpretation
    interpretation: Valuation verdict against market price
    difference_pct: (IV - price) / price in percent, None if undefined
    diagnostics: Ordered notes explaining every fallback taken
    details: Model-specific extra figures (book value, ROE, ...)
  '''
  model: str
  intrinsic_value_per_share: Optional[float]
  total_equity_value: float
  base_metric: float
  growth_assumption: GrowthAssumption
  discount_rate_assumption: DiscountRateAssumption
  terminal_growth: float
  projection: Tuple[ProjectionRow, ...]
  terminal_value: float
  pv_terminal_value: float
  shares_outstanding: float
  market_price: Optional[float]
  interpretation: Interpretation
  difference_pct: Optional[float]
  diagnostics: Tuple[Diagnostic, ...] = ()
  details: Mapping[str, Any] = field(default_factory=dict)

  @property
  def ok(self) -> bool:
    return True

  @property
  def has_degradation(self) -> bool:
    return any(d.severity is not Severity.INFO for d in self.diagnostics)

  def notes_for(self, stage: str) -> List[Diagnostic]:
    return [d for d in self.diagnostics if d.stage == stage]

  def to_dict(self) -> Dict[str, Any]:
    '''Convert to a flat dictionary for DataFrame creation.'''
    discount = self.discount_rate_assumption
    result = {
        'model': self.model,
        'iv_per_share': self.intrinsic_value_per_share,
        'total_equity_value': self.total_equity_value,
        'base_metric': self.base_metric,
        'g0': self.growth_assumption.rate,
        'growth_source': self.growth_assumption.source.value,
        'g_terminal': self.terminal_growth,
        'discount_rate': discount.rate,
        'risk_free_rate': discount.risk_free_component,
        'beta': discount.beta_used,
        'beta_source': discount.beta_source.value,
        'equity_risk_premium': discount.equity_risk_premium,
        'pv_explicit': sum(row.present_value for row in self.projection),
        'terminal_value': self.terminal_value,
        'pv_terminal_value': self.pv_terminal_value,
        'shares_outstanding': self.shares_outstanding,
        'market_price': self.market_price,
        'interpretation': self.interpretation.value,
        'difference_pct': self.difference_pct,
        'degraded': self.has_degradation,
    }
    result.update(self.details)
    return result


@dataclass(frozen=True)
class ValuationFailure:
  '''
  Reason why a valuation could not be produced.

  Attributes:
    model: Name of the model that failed
    code: Machine-readable code (e.g., 'no_dividend', 'missing_shares')
    reason: Human-readable explanation
    details: Additional context
    diagnostics: Notes gathered before the failure
  '''
  model: str
  code: str
  reason: str
  details: Mapping[str, Any] = field(default_factory=dict)
  diagnostics: Tuple[Diagnostic, ...] = ()

  @property
  def ok(self) -> bool:
    return False

  def to_dict(self) -> Dict[str, Any]:
    return {
        'model': self.model,
        'failure_code': self.code,
        'failure_reason': self.reason,
        **dict(self.details),
    }


@dataclass(frozen=True)
class MissingDataError(ValuationFailure):
  '''A required base input is absent or non-positive.'''


ValuationOutcome = Union[ValuationResult, ValuationFailure]
