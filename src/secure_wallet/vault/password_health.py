# Wallet - Password Health
#
# Vault-wide report over already-opened records: how many stored passwords
# are weak (zxcvbn score below 3), which values are reused across items,
# and a 0-100 health score. Works on plaintext, so callers pass the output
# of RecordStore.list(); nothing here is persisted or audited.
#
# A "password field" is any schema field typed PASSWORD or whose name
# contains "password". Fields that failed to decrypt are skipped.

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List

from .categories import CategoryRegistry, CategorySchema, FieldType
from .codec import DECRYPTION_FAILED
from .models import Record
from .password_generator import STRENGTH_LABELS, analyze_password_strength

WEAK_SCORE_BELOW = 3

REASON_WEAK = "Weak Password"
REASON_REUSED = "Reused Password"


@dataclass(frozen=True)
class AtRiskItem:
    record_id: str
    title: str
    reason: str
    score: int


@dataclass
class PasswordHealthReport:
    total_passwords: int = 0
    weak_passwords: int = 0
    reused_count: int = 0       # distinct values stored more than once
    strength_distribution: Dict[str, int] = field(
        default_factory=lambda: {label: 0 for label in STRENGTH_LABELS}
    )
    at_risk: List[AtRiskItem] = field(default_factory=list)
    health_score: int = 100


def _password_fields(schema: CategorySchema) -> List[str]:
    return [
        f.name for f in schema.fields
        if f.value_type is FieldType.PASSWORD or "password" in f.name
    ]


def _title(record: Record, schema: CategorySchema) -> str:
    return str(record.fields.get(schema.fields[0].name) or "Untitled") if schema.fields else "Untitled"


def password_health(records: Iterable[Record], registry: CategoryRegistry) -> PasswordHealthReport:
    """
    Analyse every password field across ``records``.

    Records whose category is not registered are skipped. The health
    score starts at 100 and loses up to 50 points for the weak share and
    up to 50 for the reused share of all stored passwords.
    """
    report = PasswordHealthReport()
    by_value: Dict[str, List[Record]] = defaultdict(list)
    titles: Dict[str, str] = {}

    for record in records:
        schema = registry.resolve(record.category)
        if schema is None:
            continue
        for name in _password_fields(schema):
            value = record.fields.get(name)
            if not value or value == DECRYPTION_FAILED:
                continue
            value = str(value)
            report.total_passwords += 1

            strength = analyze_password_strength(value)
            report.strength_distribution[strength["strength"]] += 1
            if strength["score"] < WEAK_SCORE_BELOW:
                report.weak_passwords += 1
                report.at_risk.append(
                    AtRiskItem(record.id, _title(record, schema), REASON_WEAK, strength["score"])
                )

            if record not in by_value[value]:
                by_value[value].append(record)
            titles[record.id] = _title(record, schema)

    for holders in by_value.values():
        if len(holders) < 2:
            continue
        report.reused_count += 1
        for record in holders:
            entry = AtRiskItem(record.id, titles[record.id], REASON_REUSED, 0)
            if entry not in report.at_risk:
                report.at_risk.append(entry)

    if report.total_passwords:
        score = 100.0
        score -= report.weak_passwords / report.total_passwords * 50
        score -= report.reused_count / report.total_passwords * 50
        report.health_score = max(0, math.floor(score + 0.5))
    return report
