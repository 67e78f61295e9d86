"""
Pure projection and terminal value engine.

This module contains pure functions for the two-stage projection shared by
every discounting model. No pandas, no I/O, just numeric computations. All
inputs must be prepared before calling these.

Key functions:
  project: Main entry point, explicit rows plus Gordon terminal value
  compute_pv_explicit: Rows for the explicit forecast period
  compute_terminal_value: Gordon growth terminal value, never negative
"""

from dataclasses import dataclass, field
import logging
from math import isfinite
from typing import List, Optional, Sequence, Tuple

from equityval.domain.types import Diagnostic
from equityval.domain.types import note
from equityval.domain.types import ProjectionRow
from equityval.domain.types import Severity
from equityval.policies.fade import FadePolicy
from equityval.policies.fade import LinearFade

logger = logging.getLogger(__name__)

STAGE = 'projection'


@dataclass(frozen=True)
class Projection:
  '''
  Output of the projection engine.

  Attributes:
    rows: Explicit-period rows, year 1 first
    terminal_value: Undiscounted Gordon terminal value
    pv_terminal_value: Terminal value discounted back N years
    pv_explicit: Sum of explicit-period present values
    growth_path: Growth rate applied in each explicit year
    notes: Diagnostics raised while projecting
  '''
  rows: Tuple[ProjectionRow, ...]
  terminal_value: float
  pv_terminal_value: float
  pv_explicit: float
  growth_path: Tuple[float, ...]
  notes: Tuple[Diagnostic, ...] = field(default_factory=tuple)

  @property
  def total_value(self) -> float:
    return self.pv_explicit + self.pv_terminal_value

  @property
  def final_metric(self) -> float:
    return self.rows[-1].projected_metric if self.rows else 0.0


def compute_pv_explicit(
    base_metric: float,
    growth_path: Sequence[float],
    discount_rate: float,
) -> List[ProjectionRow]:
  """
  Compound the base metric along the growth path and discount each year.

  Args:
    base_metric: Year-0 metric (FCFE, dividend, AFFO, excess return)
    growth_path: Sequence of yearly growth rates [g1, g2, ..., gN]
    discount_rate: Required return (r)

  Returns:
    One ProjectionRow per year
  """
  rows = []
  metric = base_metric
  for t, g in enumerate(growth_path, start=1):
    metric *= (1.0 + g)
    discount_factor = 1.0 / ((1.0 + discount_rate)**t)
    rows.append(
        ProjectionRow(
            year_index=t,
            growth_rate=g,
            projected_metric=metric,
            discount_factor=discount_factor,
            present_value=metric * discount_factor,
        ))
  return rows


def compute_terminal_value(
    final_metric: float,
    g_terminal: float,
    discount_rate: float,
    final_year: int,
) -> Tuple[float, float, Optional[Diagnostic]]:
  """
  Compute terminal value using the Gordon Growth Model.

  Args:
    final_metric: Metric in the final explicit year
    g_terminal: Terminal (perpetual) growth rate
    discount_rate: Required return (r)
    final_year: Number of years to discount back

  Returns:
    Tuple of (terminal_value, pv_terminal_value, diagnostic). Both values
    are 0.0, with a diagnostic explaining why, when the spread
    discount_rate - g_terminal is not positive or the result would be
    negative or non-finite.
  """
  spread = discount_rate - g_terminal
  if spread <= 0:
    logger.debug('Non-positive spread %.4f, terminal value forced to zero',
                 spread)
    return 0.0, 0.0, note(
        STAGE,
        f'Discount rate {discount_rate:.2%} does not exceed terminal growth '
        f'{g_terminal:.2%}; terminal value forced to zero.',
        Severity.INVALID,
        discount_rate=discount_rate,
        g_terminal=g_terminal)

  tv = (final_metric * (1.0 + g_terminal)) / spread
  if not isfinite(tv) or tv < 0:
    return 0.0, 0.0, note(
        STAGE,
        'Terminal value would be negative or non-finite; forced to zero.',
        Severity.INVALID,
        final_metric=final_metric,
        terminal_value=tv if isfinite(tv) else 0.0)

  return tv, tv / ((1.0 + discount_rate)**final_year), None


def project(
    base_metric: float,
    initial_growth: float,
    terminal_growth: float,
    discount_rate: float,
    horizon_years: int,
    fade: Optional[FadePolicy] = None,
    suppress_terminal: bool = False,
) -> Projection:
  """
  Run the two-stage projection.

  Stage 1: Explicit forecast period with growth tapering from
    initial_growth to terminal_growth (per the fade policy)
  Stage 2: Gordon terminal value on the final year's metric

  Args:
    base_metric: Year-0 metric
    initial_growth: Growth rate in year 1
    terminal_growth: Perpetual growth rate
    discount_rate: Required return (r)
    horizon_years: Number of explicit years
    fade: Fade policy (default: LinearFade)
    suppress_terminal: Force a zero terminal value

  Returns:
    Projection with rows, terminal value and notes

  Raises:
    ValueError: If horizon_years < 1, discount_rate <= -1 or any input is
      non-finite
  """
  if horizon_years < 1:
    raise ValueError(f'horizon_years must be >= 1, got {horizon_years}')
  if discount_rate <= -1.0:
    raise ValueError(f'discount_rate must be > -1, got {discount_rate}')
  if not all(
      isfinite(x)
      for x in (base_metric, initial_growth, terminal_growth, discount_rate)):
    raise ValueError('projection inputs must be finite')

  fade = fade or LinearFade()
  growth_path = fade.compute(initial_growth, terminal_growth,
                             horizon_years).value

  rows = compute_pv_explicit(base_metric, growth_path, discount_rate)
  pv_explicit = sum(row.present_value for row in rows)

  notes = []
  if suppress_terminal:
    tv, pv_tv = 0.0, 0.0
    notes.append(note(STAGE, 'Terminal value suppressed.'))
  else:
    tv, pv_tv, diagnostic = compute_terminal_value(rows[-1].projected_metric,
                                                   terminal_growth,
                                                   discount_rate,
                                                   horizon_years)
    if diagnostic is not None:
      notes.append(diagnostic)

  return Projection(
      rows=tuple(rows),
      terminal_value=tv,
      pv_terminal_value=pv_tv,
      pv_explicit=pv_explicit,
      growth_path=tuple(growth_path),
      notes=tuple(notes),
  )
