import copy

import pandas as pd

from equityval.analysis.batch_valuation import batch_valuation
from equityval.scenarios.config import ValuationConfig


class TestBatchValuation:
  """Tests for batch_valuation()."""

  def test_rows_per_ticker_and_model(self, bundle):
    other = copy.deepcopy(bundle)
    other['ticker'] = 'ABC'
    other['overview']['Symbol'] = 'ABC'

    df = batch_valuation([bundle, other], models=['fcfe', 'ddm'],
                         max_workers=2)

    assert isinstance(df, pd.DataFrame)
    assert len(df) == 4
    assert list(zip(df['ticker'], df['model'])) == [
        ('ABC', 'ddm'),
        ('ABC', 'fcfe'),
        ('TEST', 'ddm'),
        ('TEST', 'fcfe'),
    ]
    assert df['ok'].all()
    assert (df['config'] == 'default').all()
    assert {'iv_per_share', 'discount_rate', 'interpretation'} <= set(
        df.columns)

  def test_failures_kept(self, bundle):
    no_dividend = copy.deepcopy(bundle)
    no_dividend['overview']['DividendPerShare'] = '0'
    del no_dividend['statements']['cash_flow'][0]['dividendPayout']

    df = batch_valuation([no_dividend], models=['ddm'])

    assert len(df) == 1
    assert not df.loc[0, 'ok']
    assert df.loc[0, 'failure_code'] == 'no_dividend'

  def test_same_as_single_runs(self, bundle):
    """Concurrent runs give the same values as a single run."""
    bundles = []
    for i in range(6):
      copied = copy.deepcopy(bundle)
      copied['ticker'] = f'T{i}'
      bundles.append(copied)

    df = batch_valuation(bundles, models=['fcfe'], max_workers=4)

    assert df['iv_per_share'].nunique() == 1

  def test_config_name_recorded(self, bundle):
    df = batch_valuation([bundle],
                         models=['fcfe'],
                         config=ValuationConfig.conservative())
    assert df.loc[0, 'config'] == 'conservative'

  def test_empty(self):
    df = batch_valuation([])

    assert df.empty
    assert 'ticker' in df.columns
