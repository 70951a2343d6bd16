"""
Backend Scripts Module

Utility scripts for database seeding and operations.

Available scripts:
    - seed_escalation_rules.py: Creates the pilot escalation rules
    - run_escalation_cycle.py: Runs one escalation cycle and prints the report

Usage:
    python -m scripts.seed_escalation_rules
    python -m scripts.run_escalation_cycle
"""
