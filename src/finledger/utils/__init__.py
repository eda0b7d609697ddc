"""Utility functions for finledger."""

from finledger.utils.date_parser import parse_date, parse_timestamp
from finledger.utils.amount_parser import parse_amount, quantize_amount

__all__ = ["parse_date", "parse_timestamp", "parse_amount", "quantize_amount"]
