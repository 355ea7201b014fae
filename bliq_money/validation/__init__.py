"""Validation package."""

from bliq_money.validation.validator import TransactionValidator

__all__ = ["TransactionValidator"]
