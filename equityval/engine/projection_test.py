import math

import pytest

from equityval.domain.types import Severity
from equityval.engine.projection import compute_pv_explicit
from equityval.engine.projection import compute_terminal_value
from equityval.engine.projection import project
from equityval.policies.fade import StepThenFade


class TestComputePVExplicit:
  """Tests for compute_pv_explicit function."""

  def test_normal_case(self):
    """Standard 3-year forecast with positive growth.

    Manual calculation (base=100, r=10%):
    Year 1: metric=105.00, DF=0.9091, PV=95.455
    Year 2: metric=109.20, DF=0.8264, PV=90.248
    Year 3: metric=112.48, DF=0.7513, PV=84.505
    Total PV: 270.207
    """
    rows = compute_pv_explicit(100.0, [0.05, 0.04, 0.03], 0.10)

    assert [row.year_index for row in rows] == [1, 2, 3]
    assert rows[1].projected_metric == pytest.approx(109.2)
    assert rows[2].projected_metric == pytest.approx(112.476)
    assert rows[0].discount_factor == pytest.approx(1 / 1.1)
    assert sum(row.present_value for row in rows) == pytest.approx(270.207,
                                                                   abs=0.001)

  def test_zero_growth(self):
    """Flat metric: PV = 100 x (0.909 + 0.826 + 0.751) = 248.685."""
    rows = compute_pv_explicit(100.0, [0.0, 0.0, 0.0], 0.10)

    assert all(row.projected_metric == 100.0 for row in rows)
    assert sum(row.present_value for row in rows) == pytest.approx(248.685,
                                                                   abs=0.001)

  def test_empty_path(self):
    assert compute_pv_explicit(100.0, [], 0.10) == []


class TestComputeTerminalValue:
  """Tests for compute_terminal_value function."""

  def test_normal_case(self):
    """TV = 112.476 x 1.03 / (0.10 - 0.03) = 1655.00, PV over 3 years."""
    tv, pv_tv, diagnostic = compute_terminal_value(112.476, 0.03, 0.10, 3)

    assert tv == pytest.approx(1655.004, abs=0.001)
    assert pv_tv == pytest.approx(1655.004 / 1.331, abs=0.001)
    assert diagnostic is None

  @pytest.mark.parametrize('discount_rate,g_terminal', [
      (0.05, 0.05),
      (0.03, 0.05),
  ])
  def test_non_positive_spread(self, discount_rate, g_terminal):
    """r <= g forces zero terminal value with an INVALID note."""
    tv, pv_tv, diagnostic = compute_terminal_value(100.0, g_terminal,
                                                   discount_rate, 10)

    assert tv == 0.0
    assert pv_tv == 0.0
    assert diagnostic.severity is Severity.INVALID

  def test_negative_metric(self):
    """A negative final metric never yields a negative terminal value."""
    tv, pv_tv, diagnostic = compute_terminal_value(-50.0, 0.02, 0.08, 5)

    assert tv == 0.0
    assert pv_tv == 0.0
    assert diagnostic is not None


class TestProject:
  """Tests for the two-stage projection."""

  def test_fcfe_scenario(self):
    """FCFE 100M, g0 10% fading to 2.5%, r 8.5%, 10 years, 50M shares.

    Manual calculation:
    Year 1: g=10.00%, FCFE=110,000,000.00, PV=101,382,488.48
    Year 2: g=9.17%,  FCFE=120,083,333.33, PV=102,005,422.36
    ...
    Year 10: g=2.50%, FCFE=182,888,700.60, PV=80,889,004.85
    PV explicit: 952,181,727.84
    TV = 182,888,700.60 x 1.025 / 0.06 = 3,124,348,635.27
    PV(TV) = 1,381,853,832.87
    Total 2,334,035,560.71 / 50M shares = 46.68
    """
    projection = project(100e6, 0.10, 0.025, 0.085, 10)

    rows = projection.rows
    assert len(rows) == 10
    assert rows[0].growth_rate == pytest.approx(0.10)
    assert rows[0].projected_metric == pytest.approx(110e6)
    assert rows[0].present_value == pytest.approx(101_382_488.48, abs=0.01)
    assert rows[1].projected_metric == pytest.approx(120_083_333.33,
                                                     abs=0.01)
    assert rows[1].present_value == pytest.approx(102_005_422.36, abs=0.01)
    assert rows[9].growth_rate == pytest.approx(0.025)
    assert rows[9].projected_metric == pytest.approx(182_888_700.60,
                                                     abs=0.01)
    assert rows[9].present_value == pytest.approx(80_889_004.85, abs=0.01)

    assert projection.pv_explicit == pytest.approx(952_181_727.84, abs=0.01)
    assert projection.terminal_value == pytest.approx(3_124_348_635.27,
                                                      abs=0.01)
    assert projection.pv_terminal_value == pytest.approx(
        1_381_853_832.87, abs=0.01)
    assert projection.total_value == pytest.approx(2_334_035_560.71,
                                                   abs=0.01)
    assert projection.total_value / 50e6 == pytest.approx(46.68, abs=0.005)
    assert projection.notes == ()

  def test_custom_fade(self):
    projection = project(100.0, 0.10, 0.03, 0.09, 5,
                         fade=StepThenFade(high_growth_years=2))

    assert projection.growth_path[:2] == (0.10, 0.10)
    assert projection.growth_path[-1] == pytest.approx(0.03)

  def test_suppressed_terminal(self):
    """Suppressed terminal value leaves only the explicit stage."""
    projection = project(100.0, 0.05, 0.03, 0.10, 5, suppress_terminal=True)

    assert projection.terminal_value == 0.0
    assert projection.pv_terminal_value == 0.0
    assert projection.total_value == pytest.approx(projection.pv_explicit)
    assert projection.notes[0].message == 'Terminal value suppressed.'

  @pytest.mark.parametrize('discount_rate,terminal_growth', [
      (0.03, 0.03),
      (0.02, 0.04),
      (0.08, 0.02),
  ])
  def test_terminal_value_never_negative(self, discount_rate,
                                         terminal_growth):
    projection = project(100.0, 0.05, terminal_growth, discount_rate, 10)

    assert projection.terminal_value >= 0.0
    assert projection.pv_terminal_value >= 0.0
    assert math.isfinite(projection.total_value)

  def test_value_falls_as_discount_rate_rises(self):
    values = [
        project(100.0, 0.08, 0.025, r, 10).total_value
        for r in (0.07, 0.085, 0.10, 0.12)
    ]
    assert all(a > b for a, b in zip(values, values[1:]))

  def test_final_metric(self):
    projection = project(100.0, 0.0, 0.0, 0.10, 3)
    assert projection.final_metric == pytest.approx(100.0)

  @pytest.mark.parametrize('kwargs', [
      {'horizon_years': 0},
      {'discount_rate': -1.0},
      {'base_metric': float('nan')},
      {'initial_growth': float('inf')},
  ])
  def test_invalid_inputs(self, kwargs):
    args = {
        'base_metric': 100.0,
        'initial_growth': 0.05,
        'terminal_growth': 0.02,
        'discount_rate': 0.08,
        'horizon_years': 5,
    }
    args.update(kwargs)
    with pytest.raises(ValueError):
      project(**args)
