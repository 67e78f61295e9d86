import json

import pytest

from equityval.policies.discount import CapmDiscount
from equityval.policies.fade import LinearFade
from equityval.policies.fade import StepThenFade
from equityval.policies.shares import FallbackShares
from equityval.policies.terminal import GordonTerminal
from equityval.policies.terminal import RiskFreeTerminal
from equityval.scenarios.config import ModelParams
from equityval.scenarios.config import ValuationConfig
from equityval.scenarios.registry import create_policies
from equityval.scenarios.registry import FADE_POLICIES
from equityval.scenarios.registry import list_policies


class TestValuationConfig:
  """Tests for ValuationConfig."""

  def test_defaults(self):
    config = ValuationConfig.default()

    assert config.name == 'default'
    assert config.equity_risk_premium == 0.055
    assert config.tax_rate == 0.21
    assert config.default_cost_of_equity == 0.085
    assert config.risk_free_window == 60
    assert (config.beta_floor, config.beta_cap) == (0.6, 2.0)
    assert config.max_terminal_growth == 0.04
    assert config.min_terminal_spread == 0.0025
    assert config.heavy_reinvestment_threshold == 0.60
    assert config.fair_value_band == 0.20

  def test_presets(self):
    conservative = ValuationConfig.conservative()
    assert conservative.equity_risk_premium == 0.065
    assert conservative.fade == 'step'

    assert ValuationConfig.fixed_terminal().terminal == 'gordon'

  def test_json_round_trip(self):
    config = ValuationConfig.conservative()
    restored = ValuationConfig.from_json(config.to_json())

    assert restored == config
    assert json.loads(config.to_json())['name'] == 'conservative'

  def test_from_dict_partial(self):
    config = ValuationConfig.from_dict({'equity_risk_premium': 0.06})

    assert config.equity_risk_premium == 0.06
    assert config.tax_rate == 0.21

  def test_from_dict_unknown_key(self):
    with pytest.raises(ValueError, match='Unknown config keys'):
      ValuationConfig.from_dict({'equity_risk_premum': 0.06})

  @pytest.mark.parametrize('kwargs', [
      {'terminal': 'perpetuity'},
      {'fade': 'geometric'},
      {'beta_floor': 2.5},
      {'risk_free_window': 0},
      {'min_terminal_spread': 0.0},
      {'fcfe_margin_floor': 0.30},
  ])
  def test_invalid(self, kwargs):
    with pytest.raises(ValueError):
      ValuationConfig(**kwargs)

  def test_frozen(self):
    config = ValuationConfig.default()
    with pytest.raises(AttributeError):
      config.tax_rate = 0.3


class TestModelParams:

  def test_defaults_are_unset(self):
    params = ModelParams()
    assert params.equity_risk_premium is None
    assert params.levered_beta is None


class TestRegistry:
  """Tests for the policy registry."""

  def test_default_policies(self):
    policies = create_policies(ValuationConfig.default())

    assert isinstance(policies['discount'], CapmDiscount)
    assert isinstance(policies['terminal'], RiskFreeTerminal)
    assert isinstance(policies['fade'], LinearFade)
    assert isinstance(policies['shares'], FallbackShares)

  def test_config_constants_flow_into_policies(self):
    config = ValuationConfig(equity_risk_premium=0.06,
                             beta_floor=0.8,
                             beta_cap=1.5,
                             max_terminal_growth=0.03)
    policies = create_policies(config)

    assert policies['discount'].equity_risk_premium == 0.06
    assert policies['discount'].beta_bounds == (0.8, 1.5)
    assert policies['terminal'].cap == 0.03

  def test_named_policies(self):
    config = ValuationConfig(terminal='gordon',
                             fixed_terminal_growth=0.02,
                             fade='step',
                             high_growth_years=4)
    policies = create_policies(config)

    assert isinstance(policies['terminal'], GordonTerminal)
    assert policies['terminal'].g_terminal == 0.02
    assert isinstance(policies['fade'], StepThenFade)
    assert policies['fade'].high_growth_years == 4

  def test_unregistered_policy(self, monkeypatch):
    monkeypatch.delitem(FADE_POLICIES, 'step')
    with pytest.raises(KeyError, match='Unknown fade policy'):
      create_policies(ValuationConfig(fade='step'))

  def test_list_policies(self):
    assert list_policies() == {
        'terminal': ['risk_free', 'gordon'],
        'fade': ['linear', 'step'],
    }
