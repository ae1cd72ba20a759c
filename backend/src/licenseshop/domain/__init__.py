"""
Domain package - Core business logic with no external dependencies.

This package contains pure Python domain models and rules for invoice
totals, money formatting and email address classification.
"""
