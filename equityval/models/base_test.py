import pandas as pd
import pytest

from equityval.domain.types import CASH_FLOW
from equityval.domain.types import CompanyProfile
from equityval.domain.types import Interpretation
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import Severity
from equityval.models import create_model
from equityval.models import list_models
from equityval.models.base import interpret
from equityval.models.base import metric_history
from equityval.models.base import MISSING_SHARES
from equityval.models.fcfe import FcfeModel
from equityval.models.fcfe import period_fcfe
from equityval.policies.discount import CapmDiscount
from equityval.policies.discount import FixedRate
from equityval.policies.fade import LinearFade
from equityval.policies.fade import StepThenFade
from equityval.policies.terminal import GordonTerminal
from equityval.policies.terminal import RiskFreeTerminal
from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig


class TestInterpret:
  """Tests for interpret()."""

  def test_undervalued(self):
    verdict, pct = interpret(130.0, 100.0)
    assert verdict is Interpretation.UNDERVALUED
    assert pct == pytest.approx(30.0)

  def test_overvalued(self):
    verdict, pct = interpret(70.0, 100.0)
    assert verdict is Interpretation.OVERVALUED
    assert pct == pytest.approx(-30.0)

  @pytest.mark.parametrize('iv', [80.0, 100.0, 110.0, 120.0])
  def test_fairly_valued(self, iv):
    """Differences within +/-20% (inclusive) are fairly valued."""
    verdict, _ = interpret(iv, 100.0)
    assert verdict is Interpretation.FAIRLY_VALUED

  def test_custom_band(self):
    verdict, _ = interpret(110.0, 100.0, band=0.05)
    assert verdict is Interpretation.UNDERVALUED

  @pytest.mark.parametrize('price', [None, 0.0, -5.0])
  def test_unusable_price(self, price):
    assert interpret(50.0, price) == (Interpretation.INDETERMINATE, None)

  def test_negative_value(self):
    """Negative value is indeterminate but still reports the difference."""
    verdict, pct = interpret(-10.0, 100.0)
    assert verdict is Interpretation.INDETERMINATE
    assert pct == pytest.approx(-110.0)


class TestMetricHistory:
  """Tests for metric_history()."""

  def test_oldest_first(self, fcfe_statements):
    history = metric_history(fcfe_statements, period_fcfe)

    assert history.tolist() == [75e6, 83e6, 92e6, 100e6]
    assert history.index[-1] == pd.Timestamp(2023, 12, 31)

  def test_unreported_periods_dropped(self, statements_factory):
    statements = statements_factory(
        'TEST', 2021, cash_flow={'operating_cash_flow': [10.0, None, 12.0]})
    assert metric_history(statements, period_fcfe).tolist() == [10.0, 12.0]


class TestModelRegistry:
  """Tests for create_model() and list_models()."""

  def test_list_models(self):
    assert list_models() == ['fcfe', 'ddm', 'affo', 'excess_return']

  def test_create_model(self):
    model = create_model('fcfe')
    assert isinstance(model, FcfeModel)
    assert model.config == ValuationConfig.default()

  def test_unknown_model(self):
    with pytest.raises(KeyError, match='Unknown model'):
      create_model('residual_income')


class TestValuationModelPipeline:
  """Tests for the shared calculate() pipeline."""

  def test_policies_from_config(self):
    model = FcfeModel(ValuationConfig.conservative())

    assert isinstance(model.policies['discount'], CapmDiscount)
    assert isinstance(model.policies['terminal'], RiskFreeTerminal)
    assert isinstance(model.policies['fade'], StepThenFade)

  def test_policy_overrides(self):
    """Overrides replace only the named policies."""
    model = FcfeModel(policies={'discount': FixedRate(rate=0.09)})

    assert isinstance(model.policies['discount'], FixedRate)
    assert isinstance(model.policies['fade'], LinearFade)

  def test_terminal_growth_from_risk_free(self, fcfe_statements, fcfe_profile,
                                          risk_free_series):
    """A 4% risk-free rate anchors 4% terminal growth under the 4% cap."""
    result = FcfeModel().calculate(fcfe_statements, fcfe_profile,
                                   risk_free_series)

    assert result.ok
    assert result.terminal_growth == pytest.approx(0.04)
    assert result.discount_rate_assumption.rate == pytest.approx(0.1005)

  def test_terminal_growth_clamped(self, fcfe_statements, fcfe_profile,
                                   risk_free_series):
    """Fixed 9% terminal growth above an 8.5% rate is clamped below it."""
    model = FcfeModel(policies={
        'discount': FixedRate(rate=0.085),
        'terminal': GordonTerminal(g_terminal=0.09),
    })
    result = model.calculate(fcfe_statements, fcfe_profile, risk_free_series)

    assert result.terminal_growth == pytest.approx(0.0825)
    assert result.terminal_growth < result.discount_rate_assumption.rate
    invalid = [
        d for d in result.diagnostics if d.severity is Severity.INVALID
    ]
    assert invalid and invalid[0].stage == 'terminal'

  def test_default_risk_free_without_series(self, fcfe_statements,
                                            fcfe_profile):
    """No series: 4.5% default, terminal capped at 4%, degraded note."""
    result = FcfeModel().calculate(fcfe_statements, fcfe_profile)

    assert result.discount_rate_assumption.risk_free_component == 0.045
    assert result.terminal_growth == pytest.approx(0.04)
    assert result.has_degradation

  def test_model_params(self, fcfe_statements, fcfe_profile,
                        risk_free_series):
    """Caller ERP and beta: r = 4% + 1.2 x 6% = 11.2%."""
    result = FcfeModel().calculate(
        fcfe_statements,
        fcfe_profile,
        risk_free_series,
        model_params=ModelParams(equity_risk_premium=0.06, levered_beta=1.2))

    assert result.discount_rate_assumption.rate == pytest.approx(0.112)
    assert result.discount_rate_assumption.beta_used == 1.2

  def test_market_price_overrides_profile(self, fcfe_statements,
                                          fcfe_profile, risk_free_series):
    result = FcfeModel().calculate(fcfe_statements,
                                   fcfe_profile,
                                   risk_free_series,
                                   market_price=10.0)

    assert result.market_price == 10.0
    assert result.interpretation is Interpretation.UNDERVALUED

  def test_missing_shares(self, statements_factory, risk_free_series):
    """Failure carries the notes gathered before it."""
    statements = statements_factory(
        'NOSH',
        2023,
        cash_flow={
            'operating_cash_flow': [120e6],
            'capital_expenditure': [20e6],
        })
    result = FcfeModel().calculate(statements, CompanyProfile(ticker='NOSH'),
                                   risk_free_series)

    assert not result.ok
    assert result.code == MISSING_SHARES
    assert any(d.stage == 'discount' for d in result.diagnostics)

  def test_inputs_not_mutated(self, fcfe_statements, fcfe_profile,
                              risk_free_series):
    before = (fcfe_statements.latest.cash_flow['operating_cash_flow'],
              fcfe_profile.shares_outstanding, len(risk_free_series))
    FcfeModel().calculate(fcfe_statements, fcfe_profile, risk_free_series)

    after = (fcfe_statements.latest.get(CASH_FLOW, 'operating_cash_flow'),
             fcfe_profile.shares_outstanding, len(risk_free_series))
    assert before == after

  def test_empty_statements(self, fcfe_profile, risk_free_series):
    result = FcfeModel().calculate(NormalizedStatements(), fcfe_profile,
                                   risk_free_series)
    assert not result.ok
