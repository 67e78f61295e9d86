import pytest

from equityval.domain.types import PolicyOutput
from equityval.domain.types import Severity
from equityval.policies.terminal import clamp_terminal_growth
from equityval.policies.terminal import GordonTerminal
from equityval.policies.terminal import RiskFreeTerminal


class TestRiskFreeTerminal:
  """Tests for RiskFreeTerminal policy."""

  def test_below_cap(self):
    """Terminal growth tracks the risk-free rate under the cap."""
    result = RiskFreeTerminal(cap=0.04).compute(0.035)

    assert isinstance(result, PolicyOutput)
    assert result.value == 0.035
    assert result.diag['terminal_method'] == 'risk_free'
    assert result.notes == []

  def test_capped(self):
    """A 4.5% risk-free rate is capped at 4%."""
    result = RiskFreeTerminal(cap=0.04).compute(0.045)

    assert result.value == 0.04
    assert len(result.notes) == 1
    assert result.notes[0].context['risk_free_rate'] == 0.045


class TestGordonTerminal:
  """Tests for GordonTerminal policy."""

  def test_basic_usage(self):
    result = GordonTerminal(g_terminal=0.025).compute(0.045)

    assert result.value == 0.025
    assert result.diag['terminal_method'] == 'gordon'

  def test_default_initialization(self):
    assert GordonTerminal().compute(0.0).value == 0.025


class TestClampTerminalGrowth:
  """Tests for clamp_terminal_growth."""

  def test_no_clamp(self):
    result = clamp_terminal_growth(0.085, 0.025)

    assert result.value == 0.025
    assert result.diag['clamped'] is False
    assert result.notes == []

  def test_equal_rates_clamped(self):
    """g = r is clamped to r - 0.25%."""
    result = clamp_terminal_growth(0.04, 0.04)

    assert result.value == pytest.approx(0.0375)
    assert result.diag['clamped'] is True
    assert result.notes[0].severity is Severity.INVALID

  def test_growth_above_rate(self):
    """Only growth moves; the discount rate stays where it is."""
    result = clamp_terminal_growth(0.03, 0.05, spread=0.01)

    assert result.value == pytest.approx(0.02)
    assert result.diag['g_terminal_raw'] == 0.05
    assert result.notes[0].context['discount_rate'] == 0.03
