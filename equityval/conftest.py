import pandas as pd
import pytest

from equityval.domain.types import CompanyProfile
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import RiskFreeRateSeries


def make_statements(entity: str,
                    start_year: int,
                    income: dict[str, list[float]] | None = None,
                    balance: dict[str, list[float]] | None = None,
                    cash_flow: dict[str, list[float]] | None = None,
                    num_years: int | None = None) -> NormalizedStatements:
  """Build annual periods from per-item value lists, oldest first.

  A None entry leaves the item out of that period.
  """
  sections = {'income': income or {}, 'balance': balance or {},
              'cash_flow': cash_flow or {}}
  if num_years is None:
    num_years = max(
        (len(v) for items in sections.values() for v in items.values()),
        default=0)

  periods = []
  for i in range(num_years):
    values = {
        name: {
            item: series[i]
            for item, series in items.items()
            if series[i] is not None
        } for name, items in sections.items()
    }
    periods.append(
        FiscalPeriodStatement(
            entity=entity,
            period_end=pd.Timestamp(year=start_year + i, month=12, day=31),
            **values,
        ))
  return NormalizedStatements(periods=tuple(periods))


@pytest.fixture
def fcfe_statements() -> NormalizedStatements:
  """Four years ending with OCF 120M and capex 20M (FCFE 100M)."""
  return make_statements(
      'TEST',
      start_year=2020,
      income={
          'net_income': [60e6, 66e6, 72e6, 80e6],
          'eps_diluted': [1.20, 1.32, 1.44, 1.60],
          'revenue': [900e6, 950e6, 1000e6, 1100e6],
      },
      balance={
          'total_equity': [700e6, 740e6, 780e6, 800e6],
          'shares_outstanding': [50e6, 50e6, 50e6, 50e6],
      },
      cash_flow={
          'operating_cash_flow': [90e6, 100e6, 110e6, 120e6],
          'capital_expenditure': [15e6, 17e6, 18e6, 20e6],
          'dividends_paid': [20e6, 22e6, 24e6, 26e6],
      },
  )


@pytest.fixture
def fcfe_profile() -> CompanyProfile:
  """Profile whose P/E 20 over PEG 2 implies 10% growth."""
  return CompanyProfile(
      ticker='TEST',
      shares_outstanding=50e6,
      beta=1.1,
      price=40.0,
      pe_ratio=20.0,
      peg_ratio=2.0,
  )


@pytest.fixture
def dividend_statements() -> NormalizedStatements:
  """Dividends paid growing 5% a year."""
  return make_statements(
      'DIV',
      start_year=2020,
      income={'net_income': [150e6, 155e6, 160e6, 170e6]},
      balance={'total_equity': [1000e6, 1050e6, 1100e6, 1150e6]},
      cash_flow={
          'operating_cash_flow': [200e6, 210e6, 220e6, 230e6],
          'capital_expenditure': [40e6, 40e6, 45e6, 45e6],
          'dividends_paid': [80e6, 84e6, 88.2e6, 92.61e6],
      },
  )


@pytest.fixture
def dividend_profile() -> CompanyProfile:
  return CompanyProfile(
      ticker='DIV',
      shares_outstanding=46.305e6,
      beta=0.8,
      dividend_per_share=2.0,
      price=50.0,
  )


@pytest.fixture
def reit_statements() -> NormalizedStatements:
  """Single year: NI 50M, D&A 30M, gains 5M, capex 15M (AFFO 60M)."""
  return make_statements(
      'REIT',
      start_year=2023,
      income={
          'net_income': [50e6],
          'gain_on_sale_of_assets': [5e6],
      },
      cash_flow={
          'operating_cash_flow': [85e6],
          'depreciation_amortization': [30e6],
          'capital_expenditure': [15e6],
      },
  )


@pytest.fixture
def risk_free_series() -> RiskFreeRateSeries:
  """Sixty monthly samples of a flat 4% yield."""
  dates = pd.date_range('2019-01-01', periods=60, freq='MS')
  return RiskFreeRateSeries(samples=tuple((d, 0.04) for d in dates))


@pytest.fixture
def flat_reports() -> dict:
  """Raw FLAT provider reports, values as strings like the provider."""
  return {
      'income_statement': [
          {
              'fiscalDateEnding': '2023-12-31',
              'totalRevenue': '1100000000',
              'netIncome': '80000000',
              'reportedEPS': '1.60',
              'operatingIncome': 'None',
          },
          {
              'fiscalDateEnding': '2022-12-31',
              'totalRevenue': '1000000000',
              'netIncome': '72000000',
              'reportedEPS': '1.44',
          },
      ],
      'balance_sheet': [
          {
              'fiscalDateEnding': '2023-12-31',
              'totalShareholderEquity': '800000000',
              'commonStockSharesOutstanding': '50000000',
          },
          {
              'fiscalDateEnding': '2022-12-31',
              'totalShareholderEquity': '780000000',
          },
      ],
      'cash_flow': [
          {
              'fiscalDateEnding': '2023-12-31',
              'operatingCashflow': '120000000',
              'capitalExpenditures': '-20000000',
              'dividendPayout': '26000000',
          },
          {
              'fiscalDateEnding': '2022-12-31',
              'operatingCashflow': '110000000',
              'capitalExpenditures': '18000000',
          },
      ],
  }


@pytest.fixture
def statements_factory():
  """Expose make_statements to tests that build their own periods."""
  return make_statements


@pytest.fixture
def bundle(flat_reports) -> dict:
  """Raw provider bundle as read by run.load_bundle()."""
  return {
      'ticker': 'TEST',
      'schema': 'flat',
      'statements': flat_reports,
      'overview': {
          'Symbol': 'TEST',
          'SharesOutstanding': '50000000',
          'Beta': '1.1',
          'PERatio': '20',
          'PEGRatio': '2',
          'DividendPerShare': '0.52',
      },
      'price': 40.0,
      'risk_free': [{
          'date': f'2023-{month:02d}-01',
          'value': '4.00'
      } for month in range(1, 13)],
  }
