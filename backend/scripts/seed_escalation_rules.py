"""
Seed Escalation Rules - Creates the pilot escalation rules and, optionally,
the pilot officers that receive escalations
Run: python -m scripts.seed_escalation_rules [--officers officers.json]

Idempotent: a rule is only inserted when no active rule exists for its level
with the same scope, and an officer only when its officer_id is unknown.

The officers file is a JSON list of objects with officer_id, employee_id
(e.g. "PHED-L2-001"), department_id, location_id and optionally full_name,
designation and email.
"""
import argparse
import json
from typing import Any, Dict, Iterable, Optional

from civic_escalation.domain.models import EscalationConditions, EscalationRule, Officer, TimeBasedCondition
from civic_escalation.domain.enums import ComplaintStatus
from civic_escalation.repositories.mongo_client import create_indexes, get_collection, ESCALATION_RULES
from civic_escalation.repositories.officer_repo import OfficerRepository
from civic_escalation.repositories.rule_repo import RuleRepository
from civic_escalation.utils.idgen import generate_rule_id
from civic_escalation.utils.time import utc_now


# Global pilot rules: L1 -> L2 after 72h, L2 -> L3 after 120h without a status change
PILOT_RULES = [
    {"escalation_level": 0, "sla_hours": 72},
    {"escalation_level": 1, "sla_hours": 120},
]

PILOT_STATUSES = [ComplaintStatus.UNDER_REVIEW.value, ComplaintStatus.IN_PROGRESS.value]


def build_pilot_rule(escalation_level: int, sla_hours: int) -> EscalationRule:
    """Global rule: no department/location filter, escalate within the same department"""
    return EscalationRule(
        rule_id=generate_rule_id(),
        escalation_level=escalation_level,
        conditions=EscalationConditions(
            statuses=PILOT_STATUSES,
            time_based=TimeBasedCondition(sla_hours=sla_hours)
        ),
        is_active=True,
        created_at=utc_now()
    )


def seed_rules(dry_run: bool = False) -> int:
    """Insert missing pilot rules; returns how many were created"""
    rules_collection = get_collection(ESCALATION_RULES)
    repo = RuleRepository(rules_collection)
    created = 0

    for entry in PILOT_RULES:
        existing = rules_collection.find_one({
            "is_active": True,
            "escalation_level": entry["escalation_level"],
            "from_department_id": None,
            "from_location_id": None,
        })
        if existing:
            print(f"  = level {entry['escalation_level']}: already present ({existing['rule_id']})")
            continue

        rule = build_pilot_rule(entry["escalation_level"], entry["sla_hours"])
        if dry_run:
            print(f"  + level {entry['escalation_level']}: would create (sla_hours={entry['sla_hours']})")
        else:
            repo.create_rule(rule)
            print(f"  + level {entry['escalation_level']}: created {rule.rule_id} (sla_hours={entry['sla_hours']})")
        created += 1

    return created


def seed_officers(
    officers: Iterable[Dict[str, Any]],
    repo: Optional[OfficerRepository] = None,
    dry_run: bool = False
) -> int:
    """Insert officers not yet in the directory; returns how many were created"""
    repo = repo or OfficerRepository()
    created = 0

    for raw in officers:
        officer = Officer.model_validate(raw)
        if repo.get_officer(officer.officer_id):
            print(f"  = officer {officer.employee_id}: already present")
            continue

        if dry_run:
            print(f"  + officer {officer.employee_id}: would create")
        else:
            repo.create_officer(officer)
            print(f"  + officer {officer.employee_id}: created")
        created += 1

    return created


def main():
    parser = argparse.ArgumentParser(description="Seed pilot escalation rules")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be created")
    parser.add_argument("--officers", help="JSON file with pilot officers to seed")
    args = parser.parse_args()

    if not args.dry_run:
        create_indexes()

    print("Seeding pilot escalation rules...")
    created = seed_rules(dry_run=args.dry_run)
    print(f"\nDone: {created} rule(s) {'to create' if args.dry_run else 'created'}")

    if args.officers:
        with open(args.officers, encoding="utf-8") as f:
            officers = json.load(f)
        print("\nSeeding pilot officers...")
        created = seed_officers(officers, dry_run=args.dry_run)
        print(f"\nDone: {created} officer(s) {'to create' if args.dry_run else 'created'}")


if __name__ == "__main__":
    main()
