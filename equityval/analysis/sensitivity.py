"""
Sensitivity analysis for model valuations.

This module provides tools to generate 2D sensitivity tables that show
how intrinsic value varies across different discount rates and terminal
growth rates, for any registered valuation model.

CLI Usage:
  python -m equityval.analysis.sensitivity bundle.json \\
      --model fcfe \\
      --discount-rates 0.07,0.085,0.10 \\
      --terminal-rates 0.02,0.025,0.03
"""

import argparse
import logging
from pathlib import Path
from typing import List, Optional

import pandas as pd

from equityval.domain.types import CompanyProfile
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import RiskFreeRateSeries
from equityval.models import create_model
from equityval.models import list_models
from equityval.policies.discount import FixedRate
from equityval.policies.terminal import GordonTerminal
from equityval.run import load_bundle
from equityval.run import prepare_inputs
from equityval.scenarios.config import ValuationConfig

logger = logging.getLogger(__name__)


class SensitivityTableBuilder:
  """
  Build 2D sensitivity tables for intrinsic value analysis.

  Varies discount rate and terminal growth rate while keeping the base
  metric, initial growth and share count derived from the configuration.
  """

  def __init__(
      self,
      model_name: str,
      statements: NormalizedStatements,
      profile: CompanyProfile,
      risk_free_series: Optional[RiskFreeRateSeries] = None,
      market_price: Optional[float] = None,
      base_config: Optional[ValuationConfig] = None,
  ):
    """
    Initialize sensitivity table builder.

    Args:
        model_name: Registered model name
        statements: Normalized statements
        profile: Company metadata
        risk_free_series: Risk-free yield samples
        market_price: Current price (default: profile.price)
        base_config: Base configuration for the non-varied policies

    Raises:
        ValueError: If the base valuation fails for missing data
    """
    self.model_name = model_name
    self.statements = statements
    self.profile = profile
    self.risk_free_series = risk_free_series
    self.market_price = market_price
    self.base_config = base_config or ValuationConfig.default()

    base = create_model(model_name, self.base_config).calculate(
        statements, profile, risk_free_series, market_price)
    if not base.ok:
      raise ValueError(f'{profile.ticker} {model_name} cannot be valued: '
                       f'{base.code} ({base.reason})')
    self.base_result = base

    logger.info('Initialized SensitivityTableBuilder')
    logger.info('  Model: %s', model_name)
    logger.info('  Base metric: %.2f', base.base_metric)
    logger.info('  Initial growth: %.2f%%', base.growth_assumption.rate * 100)
    logger.info('  Base IV/share: $%.2f', base.intrinsic_value_per_share)

  def value_at(self, discount_rate: float, terminal_growth: float) -> float:
    """Intrinsic value per share with both rates fixed."""
    model = create_model(self.model_name,
                         self.base_config,
                         policies={
                             'discount': FixedRate(rate=discount_rate),
                             'terminal':
                                 GordonTerminal(g_terminal=terminal_growth),
                         })
    outcome = model.calculate(self.statements, self.profile,
                              self.risk_free_series, self.market_price)
    if not outcome.ok:
      return float('nan')
    return outcome.intrinsic_value_per_share

  def build(
      self,
      discount_rates: List[float],
      terminal_growth_rates: List[float],
  ) -> pd.DataFrame:
    """
    Build 2D sensitivity table.

    Args:
        discount_rates: List of discount rates (e.g., [0.07, 0.085, 0.10])
        terminal_growth_rates: List of terminal growth rates
                               (e.g., [0.02, 0.025, 0.03])

    Returns:
        DataFrame with discount rates as index, terminal growth rates as
        columns, and intrinsic values per share as cell values. A cell is
        NaN when the model cannot value the company at that rate pair.
    """
    if not discount_rates:
      raise ValueError('discount_rates cannot be empty')
    if not terminal_growth_rates:
      raise ValueError('terminal_growth_rates cannot be empty')

    logger.info('Building sensitivity table: %d x %d', len(discount_rates),
                len(terminal_growth_rates))

    data_rows = [[self.value_at(r, g)
                  for g in terminal_growth_rates]
                 for r in discount_rates]

    r_labels = [f'{r:.1%}' for r in discount_rates]
    g_labels = [f'{g:.1%}' for g in terminal_growth_rates]

    df = pd.DataFrame(data_rows, index=r_labels, columns=g_labels)
    df.index.name = 'Discount Rate'
    df.columns.name = 'Terminal Growth'
    return df


def _parse_float_list(s: str) -> List[float]:
  """Parse comma-separated float list."""
  return [float(x.strip()) for x in s.split(',')]


def main() -> None:
  """CLI entrypoint for sensitivity analysis."""
  parser = argparse.ArgumentParser(description='Valuation sensitivity table')
  parser.add_argument('bundle', type=Path, help='Path to bundle JSON')
  parser.add_argument('--model',
                      default='fcfe',
                      choices=list_models(),
                      help='Model to vary (default: fcfe)')
  parser.add_argument('--discount-rates',
                      type=str,
                      default='0.07,0.085,0.10',
                      help='Comma-separated discount rates')
  parser.add_argument('--terminal-rates',
                      type=str,
                      default='0.02,0.025,0.03',
                      help='Comma-separated terminal growth rates')
  parser.add_argument('--output', type=Path, help='Output CSV path (optional)')
  args = parser.parse_args()

  statements, profile, risk_free, price = prepare_inputs(
      load_bundle(args.bundle))
  builder = SensitivityTableBuilder(args.model, statements, profile,
                                    risk_free, price)
  table = builder.build(_parse_float_list(args.discount_rates),
                        _parse_float_list(args.terminal_rates))

  logger.info('Intrinsic Value per Share ($)')
  logger.info('\n%s', table.to_string(float_format=lambda x: f'${x:.2f}'))

  if args.output:
    table.to_csv(args.output)
    logger.info('Saved to: %s', args.output)


if __name__ == '__main__':
  logging.basicConfig(level=logging.INFO, format='%(message)s')
  main()
