"""
Valuation configuration.

ValuationConfig is a serializable (JSON-friendly) value object that carries
every tunable constant the models use. It is passed explicitly into each
model so that the core reads no ambient state.
"""

from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import fields
import json
from typing import Any, Dict, Optional

TERMINAL_CHOICES = ('risk_free', 'gordon')
FADE_CHOICES = ('linear', 'step')


@dataclass(frozen=True)
class ModelParams:
  """
  Per-call overrides supplied by the caller's settings.

  None means "use the config / profile value".

  Attributes:
    equity_risk_premium: Market equity risk premium override
    levered_beta: Caller-computed levered beta (used without bounding)
  """
  equity_risk_premium: Optional[float] = None
  levered_beta: Optional[float] = None


@dataclass(frozen=True)
class ValuationConfig:
  """
  Constants for a valuation run.

  Attributes:
    name: Human-readable configuration name
    equity_risk_premium: ERP applied to beta in CAPM
    tax_rate: Rate for the pretax-income proxy of net income
    default_cost_of_equity: Substituted when CAPM output is unusable
    default_risk_free_rate: Used when the risk-free series is empty
    risk_free_window: Number of most recent samples averaged
    beta_floor: Lower bound on provider-reported beta
    beta_cap: Upper bound on provider-reported beta
    default_beta: Beta used when none is available
    cost_of_equity_ceiling: Implausibility ceiling for CAPM output
    terminal: Terminal policy name ('risk_free' or 'gordon')
    fixed_terminal_growth: Terminal growth for the 'gordon' policy
    max_terminal_growth: Cap for the 'risk_free' policy
    min_terminal_spread: Minimum margin of discount over terminal growth
    fade: Fade policy name ('linear' or 'step')
    high_growth_years: Years held at g0 by the 'step' fade
    heavy_reinvestment_threshold: capex / OCF ratio that switches FCFE to
      net income
    high_revenue_growth_threshold: Historical revenue growth at which FCFE
      switches to revenue x FCFE margin when FCFE growth is weak
    revenue_growth_cap: Ceiling on historical revenue growth
    weak_fcfe_growth_spread: FCFE growth below the model floor plus this
      spread counts as weak
    fcfe_margin_floor: Lower bound on the average FCFE margin
    fcfe_margin_cap: Upper bound on the average FCFE margin
    analyst_growth_cap: Ceiling on analyst-implied growth
    fair_value_band: Band around price classified as fairly valued
  """
  name: str = 'default'
  equity_risk_premium: float = 0.055
  tax_rate: float = 0.21
  default_cost_of_equity: float = 0.085
  default_risk_free_rate: float = 0.045
  risk_free_window: int = 60
  beta_floor: float = 0.6
  beta_cap: float = 2.0
  default_beta: float = 1.0
  cost_of_equity_ceiling: float = 0.25
  terminal: str = 'risk_free'
  fixed_terminal_growth: float = 0.025
  max_terminal_growth: float = 0.04
  min_terminal_spread: float = 0.0025
  fade: str = 'linear'
  high_growth_years: int = 3
  heavy_reinvestment_threshold: float = 0.60
  high_revenue_growth_threshold: float = 0.15
  revenue_growth_cap: float = 0.20
  weak_fcfe_growth_spread: float = 0.01
  fcfe_margin_floor: float = 0.01
  fcfe_margin_cap: float = 0.25
  analyst_growth_cap: float = 0.35
  fair_value_band: float = 0.20

  def __post_init__(self):
    if self.terminal not in TERMINAL_CHOICES:
      raise ValueError(f"Unknown terminal policy: '{self.terminal}'. "
                       f'Available: {list(TERMINAL_CHOICES)}')
    if self.fade not in FADE_CHOICES:
      raise ValueError(f"Unknown fade policy: '{self.fade}'. "
                       f'Available: {list(FADE_CHOICES)}')
    if self.beta_floor > self.beta_cap:
      raise ValueError('beta_floor must not exceed beta_cap')
    if self.risk_free_window < 1:
      raise ValueError('risk_free_window must be >= 1')
    if self.min_terminal_spread <= 0:
      raise ValueError('min_terminal_spread must be positive')
    if self.fcfe_margin_floor > self.fcfe_margin_cap:
      raise ValueError('fcfe_margin_floor must not exceed fcfe_margin_cap')

  @classmethod
  def default(cls) -> 'ValuationConfig':
    """
    Create default configuration.

    Uses:
      - 5.5% equity risk premium, 21% tax rate
      - Terminal growth = averaged risk-free rate, capped at 4%
      - Linear fade from initial to terminal growth
      - 8.5% fallback cost of equity
    """
    return cls()

  @classmethod
  def conservative(cls) -> 'ValuationConfig':
    """Higher ERP, lower terminal cap, three years flat then fade."""
    return cls(
        name='conservative',
        equity_risk_premium=0.065,
        max_terminal_growth=0.03,
        fade='step',
        high_growth_years=3,
    )

  @classmethod
  def fixed_terminal(cls) -> 'ValuationConfig':
    """Fixed 2.5% terminal growth instead of the risk-free anchor."""
    return cls(name='fixed_terminal', terminal='gordon')

  def to_dict(self) -> Dict[str, Any]:
    """Convert to dictionary."""
    return asdict(self)

  def to_json(self) -> str:
    """Serialize to JSON string."""
    return json.dumps(self.to_dict(), indent=2)

  @classmethod
  def from_dict(cls, data: Dict[str, Any]) -> 'ValuationConfig':
    """
    Create from dictionary.

    Raises:
      ValueError: If data contains keys that are not config fields
    """
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known)
    if unknown:
      raise ValueError(f'Unknown config keys: {unknown}. '
                       f'Available: {sorted(known)}')
    return cls(**data)

  @classmethod
  def from_json(cls, json_str: str) -> 'ValuationConfig':
    """Create from JSON string."""
    return cls.from_dict(json.loads(json_str))
