'''
Valuation analysis utilities.

Note: To avoid RuntimeWarning when using -m flag, import directly:
  from equityval.analysis.batch_valuation import batch_valuation
  from equityval.analysis.sensitivity import SensitivityTableBuilder
'''
