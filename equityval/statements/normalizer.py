"""
Statement normalizer.

Maps provider-specific statement payloads into canonical
FiscalPeriodStatement records. Two schema families are understood:

  FLAT:   one key->scalar map per statement and period, values often
          strings with 'None' for absent items (e.g. Alpha Vantage).
  TAGGED: one filing per period whose statement sections are either
          concept-keyed maps of {value, unit, label} or lists of
          {label|concept, value} items (e.g. Polygon / XBRL-style).

Missing line items never raise: they are simply absent from the period.
The functions here are pure; they never mutate the raw payloads.
"""

import enum
import logging
from math import isfinite
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pandas as pd

from equityval.domain.types import BALANCE
from equityval.domain.types import CASH_FLOW
from equityval.domain.types import CompanyProfile
from equityval.domain.types import FiscalPeriodStatement
from equityval.domain.types import INCOME
from equityval.domain.types import NormalizedStatements
from equityval.domain.types import STATEMENTS
from equityval.statements.schema import FLAT_PROFILE_KEYS
from equityval.statements.schema import LINE_ITEM_SPECS
from equityval.statements.schema import TAGGED_PROFILE_KEYS

logger = logging.getLogger(__name__)


class SchemaKind(enum.Enum):
  FLAT = 'flat'
  TAGGED = 'tagged'


FLAT_SECTIONS = {
    INCOME: 'income_statement',
    BALANCE: 'balance_sheet',
    CASH_FLOW: 'cash_flow',
}

TAGGED_SECTIONS = {
    INCOME: 'income_statement',
    BALANCE: 'balance_sheet',
    CASH_FLOW: 'cash_flow_statement',
}


def to_float(value: Any) -> Optional[float]:
  '''Parse a provider scalar; None for absent, non-numeric or non-finite.'''
  if value is None or isinstance(value, bool):
    return None
  try:
    parsed = float(value)
  except (TypeError, ValueError):
    return None
  return parsed if isfinite(parsed) else None


def _parse_date(value: Any) -> Optional[pd.Timestamp]:
  if value is None:
    return None
  parsed = pd.to_datetime(value, errors='coerce')
  if pd.isna(parsed):
    return None
  return pd.Timestamp(parsed).normalize()


def _apply_sign(value: Optional[float], rule: Mapping[str, Any]):
  if value is not None and rule.get('abs', False):
    return abs(value)
  return value


def _extract_flat(report: Mapping[str, Any],
                  rules: Mapping[str, Mapping[str, Any]]) -> Dict[str, float]:
  items = {}
  for name, rule in rules.items():
    for key in rule['keys']:
      value = to_float(report.get(key))
      if value is not None:
        items[name] = _apply_sign(value, rule)
        break
  return items


def _item_value(item: Any) -> Optional[float]:
  if isinstance(item, Mapping):
    return to_float(item.get('value'))
  return to_float(item)


def _lookup_tagged(section: Any, rule: Mapping[str, Any]) -> Optional[float]:
  '''Find a line item by concept, then by case-insensitive label.'''
  labels = {label.casefold() for label in rule.get('labels', [])}

  if isinstance(section, Mapping):
    for concept in rule.get('concepts', []):
      if concept in section:
        value = _item_value(section[concept])
        if value is not None:
          return value
    entries: Iterable[Any] = section.values()
  elif isinstance(section, Sequence) and not isinstance(section, str):
    for concept in rule.get('concepts', []):
      for entry in section:
        if isinstance(entry, Mapping) and entry.get('concept') == concept:
          value = _item_value(entry)
          if value is not None:
            return value
    entries = section
  else:
    return None

  for entry in entries:
    if not isinstance(entry, Mapping):
      continue
    label = entry.get('label')
    if isinstance(label, str) and label.casefold() in labels:
      value = _item_value(entry)
      if value is not None:
        return value
  return None


def _extract_tagged(section: Any,
                    rules: Mapping[str, Mapping[str, Any]]) -> Dict[str, float]:
  items = {}
  for name, rule in rules.items():
    value = _lookup_tagged(section, rule)
    if value is not None:
      items[name] = _apply_sign(value, rule)
  return items


def _flat_reports(payload: Any) -> List[Mapping[str, Any]]:
  if payload is None:
    return []
  if isinstance(payload, Mapping):
    return list(payload.get('annualReports') or [])
  return list(payload)


def _normalize_flat(raw_reports: Mapping[str, Any],
                    entity: str) -> List[FiscalPeriodStatement]:
  by_date: Dict[pd.Timestamp, Dict[str, Dict[str, float]]] = {}
  for statement in STATEMENTS:
    seen = set()
    for report in _flat_reports(raw_reports.get(FLAT_SECTIONS[statement])):
      period_end = _parse_date(report.get('fiscalDateEnding'))
      if period_end is None:
        logger.warning('%s: dropping %s report with bad date %r', entity,
                       statement, report.get('fiscalDateEnding'))
        continue
      if period_end in seen:
        logger.debug('%s: duplicate %s report for %s ignored', entity,
                     statement, period_end.date())
        continue
      seen.add(period_end)
      by_date.setdefault(period_end, {})[statement] = _extract_flat(
          report, LINE_ITEM_SPECS[statement])

  return [
      FiscalPeriodStatement(
          entity=entity,
          period_end=period_end,
          income=sections.get(INCOME, {}),
          balance=sections.get(BALANCE, {}),
          cash_flow=sections.get(CASH_FLOW, {}),
      ) for period_end, sections in by_date.items()
  ]


def _tagged_filings(raw_reports: Any) -> List[Mapping[str, Any]]:
  if isinstance(raw_reports, Mapping):
    return list(raw_reports.get('results') or [])
  return list(raw_reports or [])


def _normalize_tagged(raw_reports: Any,
                      entity: str) -> List[FiscalPeriodStatement]:
  periods = []
  seen = set()
  for filing in _tagged_filings(raw_reports):
    period_end = _parse_date(
        filing.get('end_date') or filing.get('fiscal_period_end'))
    if period_end is None:
      logger.warning('%s: dropping filing without a usable end date', entity)
      continue
    if period_end in seen:
      logger.debug('%s: duplicate filing for %s ignored', entity,
                   period_end.date())
      continue
    seen.add(period_end)

    financials = filing.get('financials') or {}
    sections = {
        statement:
            _extract_tagged(financials.get(TAGGED_SECTIONS[statement]),
                            LINE_ITEM_SPECS[statement])
        for statement in STATEMENTS
    }
    periods.append(
        FiscalPeriodStatement(
            entity=entity,
            period_end=period_end,
            income=sections[INCOME],
            balance=sections[BALANCE],
            cash_flow=sections[CASH_FLOW],
        ))
  return periods


def normalize(raw_reports: Any,
              schema_kind: SchemaKind,
              entity: str = '') -> NormalizedStatements:
  '''
  Normalize raw provider reports into ordered fiscal periods.

  Args:
    raw_reports: FLAT: mapping of 'income_statement' / 'balance_sheet' /
      'cash_flow' to report lists (or {'annualReports': [...]}).
      TAGGED: list of filings (or {'results': [...]}).
    schema_kind: Which schema family the payload follows
    entity: Entity identifier stamped on every period

  Returns:
    NormalizedStatements, newest first (oldest_first derivable)

  Raises:
    ValueError: If schema_kind is not a known SchemaKind
  '''
  try:
    kind = SchemaKind(schema_kind)
  except ValueError as e:
    raise ValueError(f"Unknown schema kind: '{schema_kind}'. "
                     f'Available: {[k.value for k in SchemaKind]}') from e

  if kind is SchemaKind.FLAT:
    if not isinstance(raw_reports, Mapping):
      raise ValueError('FLAT reports must be a mapping of statement lists')
    periods = _normalize_flat(raw_reports, entity)
  else:
    periods = _normalize_tagged(raw_reports, entity)

  logger.debug('%s: normalized %d periods (%s)', entity, len(periods),
               kind.value)
  return NormalizedStatements(periods=tuple(periods))


def normalize_profile(overview: Mapping[str, Any],
                      schema_kind: SchemaKind,
                      price: Optional[float] = None) -> CompanyProfile:
  '''Build a CompanyProfile from a provider company overview.'''
  kind = SchemaKind(schema_kind)
  overview = overview or {}

  if kind is SchemaKind.FLAT:
    values = {
        field_name: to_float(overview.get(key))
        for field_name, key in FLAT_PROFILE_KEYS.items()
    }
    return CompanyProfile(
        ticker=str(overview.get('Symbol', '')),
        currency=str(overview.get('Currency') or 'USD'),
        price=to_float(price),
        **values,
    )

  details = overview.get('results', overview)
  values = {}
  for field_name, keys in TAGGED_PROFILE_KEYS.items():
    values[field_name] = next(
        (to_float(details.get(k))
         for k in keys
         if to_float(details.get(k)) is not None),
        None,
    )
  return CompanyProfile(
      ticker=str(details.get('ticker', '')),
      currency=str(details.get('currency_name') or 'USD').upper(),
      price=to_float(price),
      **values,
  )
