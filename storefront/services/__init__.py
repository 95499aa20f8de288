# Services Module
from .money import to_decimal, round_money, multiply, format_money

__all__ = ["to_decimal", "round_money", "multiply", "format_money"]
