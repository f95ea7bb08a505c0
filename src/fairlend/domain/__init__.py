"""Domain layer — redirect rules, ledger naming, payment status rules.

This layer depends only on stdlib and pydantic.
It must never import from services, infrastructure, commands, or config.
"""
