"""
Terminal growth policies.

These policies determine the terminal (perpetual) growth rate used
in the Gordon Growth Model for terminal value calculation.
"""

from abc import ABC
from abc import abstractmethod
import logging

from equityval.domain.types import note
from equityval.domain.types import PolicyOutput
from equityval.domain.types import Severity

logger = logging.getLogger(__name__)

STAGE = 'terminal'

MAX_TERMINAL_GROWTH = 0.04
MIN_TERMINAL_SPREAD = 0.0025


class TerminalPolicy(ABC):
  """
  Base class for terminal growth policies.

  Subclasses implement compute() to return a terminal growth rate.
  """

  @abstractmethod
  def compute(self, risk_free_rate: float) -> PolicyOutput[float]:
    """
    Compute terminal growth rate.

    Args:
      risk_free_rate: Averaged risk-free rate for the valuation

    Returns:
      PolicyOutput with terminal growth rate and diagnostics
    """


class RiskFreeTerminal(TerminalPolicy):
  """
  Terminal growth equal to the risk-free rate, capped.

  Long-run nominal growth is anchored to the long bond yield but never
  allowed above the cap.
  """

  def __init__(self, cap: float = MAX_TERMINAL_GROWTH):
    """
    Initialize risk-free terminal policy.

    Args:
      cap: Maximum terminal growth (default: 4%)
    """
    self.cap = cap

  def compute(self, risk_free_rate: float) -> PolicyOutput[float]:
    g_terminal = min(risk_free_rate, self.cap)
    notes = []
    if g_terminal < risk_free_rate:
      notes.append(
          note(STAGE,
               f'Terminal growth capped at {self.cap:.2%} (risk-free '
               f'{risk_free_rate:.2%}).',
               risk_free_rate=risk_free_rate,
               cap=self.cap))
    return PolicyOutput(value=g_terminal,
                        diag={
                            'terminal_method': 'risk_free',
                            'g_terminal': g_terminal,
                            'cap': self.cap,
                        },
                        notes=notes)


class GordonTerminal(TerminalPolicy):
  """
  Fixed terminal growth rate for Gordon Growth Model.

  Typically set to long-term GDP growth rate or inflation rate.
  """

  def __init__(self, g_terminal: float = 0.025):
    """
    Initialize Gordon terminal policy.

    Args:
      g_terminal: Terminal growth rate (default: 2.5%)
    """
    self.g_terminal = g_terminal

  def compute(self, risk_free_rate: float) -> PolicyOutput[float]:
    """Return fixed terminal growth rate."""
    return PolicyOutput(value=self.g_terminal,
                        diag={
                            'terminal_method': 'gordon',
                            'g_terminal': self.g_terminal,
                        })


def clamp_terminal_growth(
    discount_rate: float,
    g_terminal: float,
    spread: float = MIN_TERMINAL_SPREAD,
) -> PolicyOutput[float]:
  '''
  Keep terminal growth strictly below the discount rate.

  Only the growth rate moves; the discount rate is never raised.

  Args:
    discount_rate: Cost of equity
    g_terminal: Proposed terminal growth
    spread: Minimum margin of discount rate over growth

  Returns:
    PolicyOutput with the (possibly clamped) terminal growth
  '''
  if discount_rate - g_terminal > 0:
    return PolicyOutput(value=g_terminal, diag={'clamped': False})

  clamped = discount_rate - spread
  logger.debug('Terminal growth %.4f >= discount %.4f, clamped to %.4f',
               g_terminal, discount_rate, clamped)
  return PolicyOutput(
      value=clamped,
      diag={
          'clamped': True,
          'g_terminal_raw': g_terminal,
      },
      notes=[
          note(STAGE,
               f'Terminal growth {g_terminal:.2%} not below discount rate '
               f'{discount_rate:.2%}; clamped to {clamped:.2%}.',
               Severity.INVALID,
               g_terminal=g_terminal,
               discount_rate=discount_rate,
               clamped=clamped)
      ],
  )
