"""Domain types for the valuation core."""

from equityval.domain.types import BetaSource
from equityval.domain.types import CompanyProfile
from equityval.domain.types import Diagnostic
from equityval.domain.types import DiscountRateAssumption
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import GrowthAssumption
from equityval.domain.types import GrowthSource
from equityval.domain.types import Interpretation
from equityval.domain.types import MissingDataError
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import PolicyOutput
from equityval.domain.types import ProjectionRow
from equityval.domain.types import RiskFreeRateSeries
from equityval.domain.types import Severity
from equityval.domain.types import ValuationFailure
from equityval.domain.types import ValuationResult

__all__ = [
    'BetaSource',
    'CompanyProfile',
    'Diagnostic',
    'DiscountRateAssumption',
    'FiscalPeriodStatement',
    'GrowthAssumption',
    'GrowthSource',
    'Interpretation',
    'MissingDataError',
    'NormalizedStatements',
    'PolicyOutput',
    'ProjectionRow',
    'RiskFreeRateSeries',
    'Severity',
    'ValuationFailure',
    'ValuationResult',
]
