'''
Equity valuation core with a policy-based architecture.

Each valuation model (FCFE-DCF, DDM, AFFO, Excess-Return) composes the same
growth, discount-rate, terminal and fade policies and the same projection
engine, differing only in how it derives its base metric. Inputs are
already-normalized statements; outputs are a ValuationResult carrying a
structured diagnostic log, or a typed ValuationFailure.

Usage:
  from equityval.scenarios.config import ValuationConfig
  from equityval.statements.normalizer import normalize, SchemaKind
  from equityval.run import run_valuation

  statements = normalize(raw_reports, SchemaKind.FLAT, entity='KO')
  result = run_valuation('ddm', statements, profile, risk_free_series,
                         market_price=61.2, config=ValuationConfig.default())
'''
