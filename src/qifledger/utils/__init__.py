"""Utility functions for qifledger."""

from qifledger.utils.date_parser import parse_date, parse_qif_date
from qifledger.utils.amount_parser import parse_amount
from qifledger.utils.identity import hash_fields, stable_id

__all__ = ["parse_date", "parse_qif_date", "parse_amount", "hash_fields", "stable_id"]
