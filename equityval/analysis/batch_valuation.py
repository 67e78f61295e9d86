'''
Batch valuation for multiple companies and models.

This module provides tools to:
1. Run several valuation models over many company bundles concurrently
2. Compare valuations across companies and models
3. Export results to CSV for further analysis

Usage (CLI):
  python -m equityval.analysis.batch_valuation \
    bundles/KO.json bundles/O.json \
    --models ddm affo \
    --output results/valuation.csv

Usage (Python API):
  from equityval.analysis.batch_valuation import batch_valuation

  df = batch_valuation(bundles, models=['fcfe', 'ddm'])
  df.to_csv('results.csv', index=False)
'''

import argparse
from concurrent.futures import as_completed
from concurrent.futures import ThreadPoolExecutor
import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from equityval.domain.types import ValuationOutcome
from equityval.models import list_models
from equityval.run import CONFIG_PRESETS
from equityval.run import load_bundle
from equityval.run import value_company
from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig

logger = logging.getLogger(__name__)


def _outcome_to_dict(ticker: str, config_name: str,
                     outcome: ValuationOutcome) -> Dict[str, Any]:
  '''Convert an outcome to a flat dictionary for a DataFrame row.'''
  row = {'ticker': ticker, 'config': config_name, 'ok': outcome.ok}
  row.update(outcome.to_dict())
  return row


def batch_valuation(
    bundles: Sequence[Mapping[str, Any]],
    models: Optional[Sequence[str]] = None,
    config: Optional[ValuationConfig] = None,
    model_params: Optional[ModelParams] = None,
    max_workers: int = 4,
) -> pd.DataFrame:
  '''
  Run valuations for many companies.

  Args:
    bundles: Raw provider bundles, one per company
    models: Model names (default: every registered model)
    config: ValuationConfig (default: ValuationConfig.default())
    model_params: Per-call ERP / beta overrides
    max_workers: Thread pool size

  Returns:
    DataFrame with one row per (ticker, model), sorted by both. Failed
    valuations keep their row with failure_code and failure_reason.
  '''
  config = config or ValuationConfig.default()
  rows: List[Dict[str, Any]] = []

  def _value(bundle: Mapping[str, Any]) -> Dict[str, ValuationOutcome]:
    return value_company(bundle,
                         models=models,
                         config=config,
                         model_params=model_params)

  with ThreadPoolExecutor(max_workers=max_workers) as executor:
    futures = {
        executor.submit(_value, bundle): bundle.get('ticker', f'#{i}')
        for i, bundle in enumerate(bundles)
    }

    for future in as_completed(futures):
      ticker = futures[future]
      outcomes = future.result()
      for outcome in outcomes.values():
        rows.append(_outcome_to_dict(ticker, config.name, outcome))
        if outcome.ok:
          logger.info('%s %s: IV=$%.2f (%s)', ticker, outcome.model,
                      outcome.intrinsic_value_per_share,
                      outcome.interpretation.value)
        else:
          logger.info('%s %s: failed [%s]', ticker, outcome.model,
                      outcome.code)

  if not rows:
    return pd.DataFrame(columns=['ticker', 'config', 'ok', 'model'])
  return pd.DataFrame(rows).sort_values(['ticker', 'model'],
                                        ignore_index=True)


def _print_summary(df: pd.DataFrame) -> None:
  '''Log summary statistics for batch valuation results.'''
  valued = df[df['ok']]
  logger.info('')
  logger.info('=' * 70)
  logger.info('Summary')
  logger.info('=' * 70)
  logger.info('Valuations: %d (%d failed)', len(df), len(df) - len(valued))
  if valued.empty:
    return
  for verdict, count in valued['interpretation'].value_counts().items():
    logger.info('  %s: %d', verdict, count)
  if 'degraded' in valued:
    logger.info('With degraded assumptions: %d', int(valued['degraded'].sum()))
  logger.info('=' * 70)


def main() -> None:
  '''CLI entrypoint for batch valuation.'''
  parser = argparse.ArgumentParser(
      description='Batch valuation for multiple companies',
      formatter_class=argparse.RawDescriptionHelpFormatter,
      epilog=__doc__,
  )
  parser.add_argument('bundles', nargs='+', type=Path, help='Bundle JSONs')
  parser.add_argument('--models',
                      nargs='+',
                      choices=list_models(),
                      help='Models to run (default: all)')
  parser.add_argument('--config',
                      default='default',
                      choices=list(CONFIG_PRESETS.keys()),
                      help='Configuration preset (default: default)')
  parser.add_argument('--output',
                      type=Path,
                      required=True,
                      help='Output CSV file path')
  parser.add_argument('--workers',
                      type=int,
                      default=4,
                      help='Number of worker threads (default: 4)')
  args = parser.parse_args()

  config = CONFIG_PRESETS[args.config]()
  bundles = [load_bundle(path) for path in args.bundles]
  logger.info('Valuing %d companies with config %s', len(bundles),
              config.name)

  results = batch_valuation(bundles,
                            models=args.models,
                            config=config,
                            max_workers=args.workers)

  args.output.parent.mkdir(parents=True, exist_ok=True)
  results.to_csv(args.output, index=False)
  logger.info('Saved %d rows to %s', len(results), args.output)

  _print_summary(results)


if __name__ == '__main__':
  logging.basicConfig(level=logging.INFO, format='%(message)s')
  main()
