'''
Share count policies.

These policies resolve the share count used to turn total equity value
into a per-share figure.
'''

from abc import ABC, abstractmethod
import logging
from typing import Optional

from equityval.domain.types import BALANCE
from equityval.domain.types import CompanyProfile
from equityval.domain.types import note
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import PolicyOutput
from equityval.domain.types import Severity

logger = logging.getLogger(__name__)

STAGE = 'shares'


class SharePolicy(ABC):
  '''
  Base class for share count policies.

  Subclasses implement compute() to return shares outstanding, or None
  when no usable figure exists.
  '''

  @abstractmethod
  def compute(
      self,
      profile: CompanyProfile,
      statements: NormalizedStatements,
      market_price: Optional[float] = None,
  ) -> PolicyOutput[Optional[float]]:
    '''
    Resolve shares outstanding.

    Args:
      profile: Company metadata
      statements: Normalized statements (balance-sheet fallback)
      market_price: Current price, preferred over profile.price

    Returns:
      PolicyOutput with the share count (None if unresolved)
    '''


class FallbackShares(SharePolicy):
  '''
  Reported shares, then market cap / price, then the balance sheet.
  '''

  def compute(
      self,
      profile: CompanyProfile,
      statements: NormalizedStatements,
      market_price: Optional[float] = None,
  ) -> PolicyOutput[Optional[float]]:
    reported = profile.shares_outstanding
    if reported is not None and reported > 0:
      return PolicyOutput(value=reported,
                          diag={'shares_method': 'reported'})

    notes = []
    price = market_price if market_price is not None else profile.price
    market_cap = profile.market_cap
    if (market_cap is not None and market_cap > 0 and price is not None and
        price > 0):
      shares = market_cap / price
      notes.append(
          note(STAGE,
               'Shares outstanding derived from market cap / price.',
               Severity.DEGRADED,
               market_cap=market_cap,
               price=price,
               shares=shares))
      return PolicyOutput(value=shares,
                          diag={'shares_method': 'market_cap_over_price'},
                          notes=notes)

    balance_shares = statements.latest_value(BALANCE, 'shares_outstanding')
    if balance_shares is not None and balance_shares > 0:
      notes.append(
          note(STAGE,
               'Shares outstanding taken from latest balance sheet.',
               Severity.DEGRADED,
               shares=balance_shares))
      return PolicyOutput(value=balance_shares,
                          diag={'shares_method': 'balance_sheet'},
                          notes=notes)

    logger.debug('%s: no usable shares outstanding', profile.ticker)
    return PolicyOutput(value=None, diag={'shares_method': 'unresolved'})
