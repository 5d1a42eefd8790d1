"""Daisies, their life cycle, and the population ledger."""
