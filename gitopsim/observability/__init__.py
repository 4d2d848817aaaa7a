"""Operator-facing observability (structured logging)."""
