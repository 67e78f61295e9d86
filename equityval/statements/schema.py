"""
Line-item lookup rules.

Defines how each canonical line item is found in the provider schemas the
normalizer understands. For FLAT payloads, `keys` are tried in order. For
TAGGED payloads, `concepts` are tried first and then `labels`
(case-insensitive). Items with `abs` set are outflows stored as absolute
values regardless of the provider's sign convention.
"""

from equityval.domain.types import BALANCE
from equityval.domain.types import CASH_FLOW
from equityval.domain.types import INCOME

LINE_ITEM_SPECS = {
    INCOME: {
        'revenue': {
            'keys': ['totalRevenue'],
            'concepts': ['revenues'],
            'labels': ['Revenues'],
        },
        'operating_income': {
            'keys': ['operatingIncome'],
            'concepts': ['operating_income_loss'],
            'labels': ['Operating Income/Loss'],
        },
        'income_before_tax': {
            'keys': ['incomeBeforeTax'],
            'concepts': [
                'income_loss_from_continuing_operations_before_tax'
            ],
            'labels': ['Income/Loss From Continuing Operations Before Tax'],
        },
        'net_income': {
            'keys': ['netIncome'],
            'concepts': [
                'net_income_loss',
                'net_income_loss_attributable_to_parent',
            ],
            'labels': ['Net Income/Loss', 'Net Income'],
        },
        'depreciation_amortization': {
            'keys': ['depreciationAndAmortization'],
            'concepts': ['depreciation_and_amortization'],
            'labels': ['Depreciation and Amortization'],
        },
        'eps_diluted': {
            'keys': ['reportedEPS', 'dilutedEPS'],
            'concepts': ['diluted_earnings_per_share'],
            'labels': ['Diluted Earnings Per Share'],
        },
        'gain_on_sale_of_assets': {
            'keys': [
                'gainOnSaleOfFixedAssetsAndDisposalOfBusiness',
                'gainOnSaleOfPpe',
            ],
            'concepts': ['gain_loss_on_sale_properties_net_tax'],
            'labels': ['Gain/Loss on Sale of Properties'],
        },
    },
    BALANCE: {
        'total_equity': {
            'keys': ['totalShareholderEquity'],
            'concepts': ['equity_attributable_to_parent', 'equity'],
            'labels': ['Equity Attributable To Parent', 'Equity'],
        },
        'shares_outstanding': {
            'keys': ['commonStockSharesOutstanding'],
            'concepts': ['common_stock_shares_outstanding'],
            'labels': ['Common Stock Shares Outstanding'],
        },
        'long_term_debt': {
            'keys': ['longTermDebt', 'longTermDebtNoncurrent'],
            'concepts': ['long_term_debt'],
            'labels': ['Long-Term Debt'],
        },
        'short_term_debt': {
            'keys': ['shortTermDebt', 'currentDebt'],
            'concepts': ['short_term_debt'],
            'labels': ['Short-Term Debt'],
        },
        'cash': {
            'keys': [
                'cashAndCashEquivalentsAtCarryingValue',
                'cashAndShortTermInvestments',
            ],
            'concepts': ['cash', 'cash_and_cash_equivalents'],
            'labels': ['Cash and Cash Equivalents', 'Cash'],
        },
        'total_current_assets': {
            'keys': ['totalCurrentAssets'],
            'concepts': ['current_assets'],
            'labels': ['Current Assets'],
        },
        'total_current_liabilities': {
            'keys': ['totalCurrentLiabilities'],
            'concepts': ['current_liabilities'],
            'labels': ['Current Liabilities'],
        },
    },
    CASH_FLOW: {
        'operating_cash_flow': {
            'keys': ['operatingCashflow'],
            'concepts': [
                'net_cash_flow_from_operating_activities',
                'net_cash_flow_from_operating_activities_continuing',
            ],
            'labels': [
                'Net Cash Flow From Operating Activities',
                'Net Cash Flow From Operating Activities, Continuing',
            ],
        },
        'capital_expenditure': {
            'keys': ['capitalExpenditures'],
            'concepts': ['payments_to_acquire_property_plant_and_equipment'],
            'labels': ['Capital Expenditures'],
            'abs': True,
        },
        'depreciation_amortization': {
            'keys': [
                'depreciationDepletionAndAmortization',
                'depreciationAndAmortization',
                'depreciation',
            ],
            'concepts': ['depreciation_and_amortization'],
            'labels': ['Depreciation and Amortization'],
        },
        'dividends_paid': {
            'keys': ['dividendPayout', 'dividendPayoutCommonStock'],
            'concepts': ['payments_of_dividends'],
            'labels': ['Payments of Dividends'],
            'abs': True,
        },
        'investing_cash_flow': {
            'keys': ['cashflowFromInvestment'],
            'concepts': ['net_cash_flow_from_investing_activities'],
            'labels': ['Net Cash Flow From Investing Activities'],
        },
        'funds_from_operations': {
            'keys': ['fundsFromOperations'],
            'concepts': ['funds_from_operations'],
            'labels': ['Funds From Operations'],
        },
    },
}

# Provider overview keys for CompanyProfile fields.
FLAT_PROFILE_KEYS = {
    'shares_outstanding': 'SharesOutstanding',
    'beta': 'Beta',
    'dividend_per_share': 'DividendPerShare',
    'market_cap': 'MarketCapitalization',
    'eps': 'EPS',
    'forward_pe': 'ForwardPE',
    'analyst_target_price': 'AnalystTargetPrice',
    'pe_ratio': 'PERatio',
    'peg_ratio': 'PEGRatio',
    'return_on_equity': 'ReturnOnEquityTTM',
    'payout_ratio': 'PayoutRatio',
}

TAGGED_PROFILE_KEYS = {
    'shares_outstanding': [
        'share_class_shares_outstanding',
        'weighted_shares_outstanding',
    ],
    'market_cap': ['market_cap'],
    'beta': ['beta'],
}
