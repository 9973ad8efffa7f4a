"""Ticket analytics guardrail and aggregation engine."""
