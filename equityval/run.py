'''
Single-company valuation entrypoint.

This module provides the main entry point for running valuations. It:
1. Normalizes raw provider payloads into statements and a profile
2. Builds the requested model from the valuation configuration
3. Runs the model pipeline
4. Returns ValuationResult (or a typed ValuationFailure) with diagnostics

Usage:
  from equityval.run import run_valuation
  from equityval.scenarios.config import ValuationConfig

  result = run_valuation(
    'fcfe',
    statements,
    profile,
    risk_free_series,
    market_price=187.4,
    config=ValuationConfig.default(),
  )
  print(f"IV: ${result.intrinsic_value_per_share:.2f}")

A bundle is a JSON object of raw provider payloads:
  {
    "ticker": "KO",
    "schema": "flat",
    "statements": {...},   # normalize() input for the schema
    "overview": {...},     # normalize_profile() input
    "price": 61.2,
    "risk_free": [{"date": "2024-01-01", "value": "4.05"}, ...]
  }
'''

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from equityval.domain.types import CompanyProfile
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import RiskFreeRateSeries
from equityval.domain.types import ValuationOutcome
from equityval.models import create_model
from equityval.models import list_models
from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig
from equityval.statements.normalizer import normalize
from equityval.statements.normalizer import normalize_profile
from equityval.statements.normalizer import SchemaKind
from equityval.statements.normalizer import to_float

logger = logging.getLogger(__name__)

CONFIG_PRESETS = {
    'default': ValuationConfig.default,
    'conservative': ValuationConfig.conservative,
    'fixed_terminal': ValuationConfig.fixed_terminal,
}


def run_valuation(
    model_name: str,
    statements: NormalizedStatements,
    profile: CompanyProfile,
    risk_free_series: Optional[RiskFreeRateSeries] = None,
    market_price: Optional[float] = None,
    config: Optional[ValuationConfig] = None,
    model_params: Optional[ModelParams] = None,
    policies: Optional[Dict[str, Any]] = None,
) -> ValuationOutcome:
  '''
  Run one valuation model for one company.

  Args:
    model_name: Registered model name ('fcfe', 'ddm', 'affo',
      'excess_return')
    statements: Normalized statements
    profile: Company metadata
    risk_free_series: Risk-free yield samples
    market_price: Current price (default: profile.price)
    config: ValuationConfig (default: ValuationConfig.default())
    model_params: Per-call ERP / beta overrides
    policies: Policy overrides passed to the model

  Returns:
    ValuationResult, or ValuationFailure when required data is missing

  Raises:
    KeyError: If model_name is not registered
  '''
  model = create_model(model_name, config=config, policies=policies)
  return model.calculate(statements, profile, risk_free_series, market_price,
                         model_params)


def prepare_inputs(
    bundle: Mapping[str, Any]
) -> Tuple[NormalizedStatements, CompanyProfile, RiskFreeRateSeries,
           Optional[float]]:
  '''
  Normalize a raw provider bundle.

  Returns:
    Tuple of (statements, profile, risk_free_series, market_price)
  '''
  kind = SchemaKind(bundle.get('schema', SchemaKind.FLAT.value))
  price = to_float(bundle.get('price'))
  profile = normalize_profile(bundle.get('overview') or {}, kind, price=price)
  entity = bundle.get('ticker') or profile.ticker
  statements = normalize(bundle.get('statements') or {}, kind, entity=entity)
  risk_free = RiskFreeRateSeries.from_records(bundle.get('risk_free') or [])
  return statements, profile, risk_free, price


def value_company(
    bundle: Mapping[str, Any],
    models: Optional[Sequence[str]] = None,
    config: Optional[ValuationConfig] = None,
    model_params: Optional[ModelParams] = None,
) -> Dict[str, ValuationOutcome]:
  '''
  Normalize a bundle and run several models over it.

  Args:
    bundle: Raw provider payloads (see module docstring)
    models: Model names (default: every registered model)
    config: ValuationConfig (default: ValuationConfig.default())
    model_params: Per-call ERP / beta overrides

  Returns:
    Dictionary of model name to outcome
  '''
  statements, profile, risk_free, price = prepare_inputs(bundle)
  return {
      name: run_valuation(name,
                          statements,
                          profile,
                          risk_free,
                          market_price=price,
                          config=config,
                          model_params=model_params)
      for name in (models or list_models())
  }


def load_bundle(path: Path) -> Dict[str, Any]:
  '''Load a provider bundle from a JSON file.'''
  if not path.exists():
    raise FileNotFoundError(f'Bundle not found: {path}')
  with open(path, 'r', encoding='utf-8') as f:
    return json.load(f)


def _log_outcome(ticker: str, outcome: ValuationOutcome) -> None:
  if not outcome.ok:
    logger.info('%s %s: FAILED [%s] %s', ticker, outcome.model, outcome.code,
                outcome.reason)
    return

  discount = outcome.discount_rate_assumption
  growth = outcome.growth_assumption
  logger.info('')
  logger.info('=' * 60)
  logger.info('%s - %s', ticker, outcome.model.upper())
  logger.info('=' * 60)
  logger.info('Intrinsic value/share: $%.2f', outcome.intrinsic_value_per_share)
  if outcome.market_price is not None:
    logger.info('Market price:          $%.2f', outcome.market_price)
  if outcome.difference_pct is not None:
    logger.info('Difference:            %+.1f%% (%s)', outcome.difference_pct,
                outcome.interpretation.value)
  else:
    logger.info('Interpretation:        %s', outcome.interpretation.value)
  logger.info('Base metric:           %.2f', outcome.base_metric)
  logger.info('Initial growth:        %.2f%% (%s)', growth.rate * 100,
              growth.source.value)
  logger.info('Terminal growth:       %.2f%%', outcome.terminal_growth * 100)
  logger.info('Discount rate:         %.2f%% (rf %.2f%%, beta %.2f %s)',
              discount.rate * 100, discount.risk_free_component * 100,
              discount.beta_used, discount.beta_source.value)
  for d in outcome.diagnostics:
    logger.info('  [%s/%s] %s', d.stage, d.severity.value, d.message)


def main() -> None:
  '''CLI entrypoint for single-company valuation.'''
  parser = argparse.ArgumentParser(
      description='Value one company from a JSON bundle of provider data')
  parser.add_argument('bundle', type=Path, help='Path to bundle JSON')
  parser.add_argument('--model',
                      nargs='+',
                      choices=list_models(),
                      help='Models to run (default: all)')
  parser.add_argument('--config',
                      default='default',
                      choices=list(CONFIG_PRESETS.keys()),
                      help='Configuration preset (default: default)')
  parser.add_argument('--config-json',
                      type=Path,
                      help='Path to a ValuationConfig JSON (overrides preset)')
  parser.add_argument('--erp',
                      type=float,
                      help='Equity risk premium override (e.g., 0.06)')
  parser.add_argument('--beta',
                      type=float,
                      help='Levered beta override (used as given)')
  parser.add_argument('-v',
                      '--verbose',
                      action='store_true',
                      help='Verbose output')

  args = parser.parse_args()
  if args.verbose:
    logging.getLogger().setLevel(logging.DEBUG)

  if args.config_json:
    config = ValuationConfig.from_json(
        args.config_json.read_text(encoding='utf-8'))
  else:
    config = CONFIG_PRESETS[args.config]()

  bundle = load_bundle(args.bundle)
  outcomes = value_company(bundle,
                           models=args.model,
                           config=config,
                           model_params=ModelParams(
                               equity_risk_premium=args.erp,
                               levered_beta=args.beta))

  ticker = bundle.get('ticker') or args.bundle.stem
  logger.info('Config: %s', config.name)
  for outcome in outcomes.values():
    _log_outcome(ticker, outcome)


if __name__ == '__main__':
  logging.basicConfig(level=logging.INFO, format='%(message)s')
  main()
