import copy
import json
import logging
import sys

import pytest

from equityval.domain.types import CASH_FLOW
from equityval.models.base import NO_DIVIDEND
from equityval.run import load_bundle
from equityval.run import main
from equityval.run import prepare_inputs
from equityval.run import run_valuation
from equityval.run import value_company
from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig


class TestPrepareInputs:
  """Tests for prepare_inputs()."""

  def test_normalizes_bundle(self, bundle):
    statements, profile, risk_free, price = prepare_inputs(bundle)

    assert len(statements) == 2
    assert statements.latest.entity == 'TEST'
    assert statements.latest_value(CASH_FLOW, 'capital_expenditure') == 20e6
    assert profile.ticker == 'TEST'
    assert profile.shares_outstanding == 50e6
    assert profile.price == 40.0
    assert len(risk_free) == 12
    assert price == 40.0

  def test_missing_sections(self):
    statements, profile, risk_free, price = prepare_inputs({'ticker': 'X'})

    assert len(statements) == 0
    assert profile.shares_outstanding is None
    assert len(risk_free) == 0
    assert price is None


class TestRunValuation:
  """Tests for run_valuation()."""

  def test_single_model(self, fcfe_statements, fcfe_profile,
                        risk_free_series):
    result = run_valuation('fcfe', fcfe_statements, fcfe_profile,
                           risk_free_series)

    assert result.ok
    assert result.model == 'fcfe'

  def test_config_and_params(self, fcfe_statements, fcfe_profile,
                             risk_free_series):
    """Conservative ERP 6.5% with caller beta 1.0: r = 10.5%."""
    result = run_valuation('fcfe',
                           fcfe_statements,
                           fcfe_profile,
                           risk_free_series,
                           config=ValuationConfig.conservative(),
                           model_params=ModelParams(levered_beta=1.0))

    assert result.discount_rate_assumption.rate == pytest.approx(0.105)
    assert result.terminal_growth == pytest.approx(0.03)

  def test_unknown_model(self, fcfe_statements, fcfe_profile):
    with pytest.raises(KeyError):
      run_valuation('capm', fcfe_statements, fcfe_profile)


class TestValueCompany:
  """Tests for value_company()."""

  def test_all_models(self, bundle):
    outcomes = value_company(bundle)

    assert list(outcomes) == ['fcfe', 'ddm', 'affo', 'excess_return']
    assert all(outcome.ok for outcome in outcomes.values())
    assert outcomes['ddm'].base_metric == 0.52

  def test_selected_models(self, bundle):
    outcomes = value_company(bundle, models=['fcfe'])
    assert list(outcomes) == ['fcfe']

  def test_failure_kept_beside_results(self, bundle):
    """A non-payer fails DDM without affecting the other models."""
    no_dividend = copy.deepcopy(bundle)
    no_dividend['overview']['DividendPerShare'] = '0'
    del no_dividend['statements']['cash_flow'][0]['dividendPayout']

    outcomes = value_company(no_dividend, models=['fcfe', 'ddm'])

    assert outcomes['fcfe'].ok
    assert not outcomes['ddm'].ok
    assert outcomes['ddm'].code == NO_DIVIDEND


class TestLoadBundle:
  """Tests for load_bundle()."""

  def test_load(self, tmp_path, bundle):
    path = tmp_path / 'TEST.json'
    path.write_text(json.dumps(bundle), encoding='utf-8')

    assert load_bundle(path) == bundle

  def test_missing_file(self, tmp_path):
    with pytest.raises(FileNotFoundError):
      load_bundle(tmp_path / 'missing.json')


class TestMain:
  """Tests for the CLI entrypoint."""

  def test_logs_valuation(self, tmp_path, bundle, monkeypatch, caplog):
    path = tmp_path / 'TEST.json'
    path.write_text(json.dumps(bundle), encoding='utf-8')
    monkeypatch.setattr(sys, 'argv',
                        ['run', str(path), '--model', 'fcfe', '--erp', '0.06'])

    with caplog.at_level(logging.INFO):
      main()

    assert 'TEST - FCFE' in caplog.text
    assert 'Intrinsic value/share' in caplog.text
