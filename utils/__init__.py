"""Utility modules for cross-cutting concerns."""

from utils.timezone import now_utc, today_utc
from utils.money import to_money, parse_money, parse_rate, format_money
