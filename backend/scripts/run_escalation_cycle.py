"""
Run Escalation Cycle - Run one cycle now and print the report
Run: python -m scripts.run_escalation_cycle [--json]
"""
import argparse
import sys

from civic_escalation.domain.errors import EngineError
from civic_escalation.engine.engine import EscalationEngine
from civic_escalation.utils.logger import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Run one escalation cycle")
    parser.add_argument("--json", action="store_true", help="Print the full report as JSON")
    args = parser.parse_args()

    setup_logging()

    try:
        report = EscalationEngine().run_cycle()
    except EngineError as e:
        print(f"Cycle aborted: {e.error_code} - {e.message}", file=sys.stderr)
        sys.exit(1)

    if args.json:
        print(report.model_dump_json(indent=2))
        return

    print(f"Cycle {report.correlation_id}")
    print(f"  Rules loaded: {report.rules_loaded}")
    print(f"  Candidates:   {report.candidates}")
    print(f"  Escalated:    {report.escalated_count}")
    print(f"  Reminders:    {report.reminder_count}")
    print(f"  Skipped:      {len(report.skipped)}")
    print(f"  Failed:       {len(report.failed)}")

    for result in report.results:
        print(f"  * {result.complaint_number or result.complaint_id}: {result.outcome.value} - {result.reason}")
    for result in report.skipped:
        print(f"  - {result.complaint_number or result.complaint_id}: {result.outcome.value} - {result.reason}")
    for failure in report.failed:
        print(f"  ! {failure.complaint_number or failure.complaint_id}: {failure.error_type} - {failure.error}")

    if report.failed:
        sys.exit(2)


if __name__ == "__main__":
    main()
