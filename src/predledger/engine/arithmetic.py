"""Checked unsigned 64-bit arithmetic for pool and stake accounting."""

from __future__ import annotations

from predledger.errors import ErrorCode, LedgerArithmeticError

U64_MAX = 2**64 - 1
BPS_DENOMINATOR = 10_000


def checked_add(a: int, b: int) -> int:
    """a + b, or ArithmeticOverflow if the sum leaves the u64 range."""
    total = a + b
    if total > U64_MAX:
        raise LedgerArithmeticError(ErrorCode.ARITHMETIC_OVERFLOW, f"{a} + {b} exceeds u64")
    return total


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise LedgerArithmeticError(ErrorCode.ARITHMETIC_OVERFLOW, f"{a} - {b} underflows")
    return a - b


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator). The product is exact; the result must fit u64."""
    if denominator == 0:
        raise LedgerArithmeticError(ErrorCode.DIVISION_BY_ZERO, "division by a zero pool")
    result = a * b // denominator
    if result > U64_MAX:
        raise LedgerArithmeticError(ErrorCode.ARITHMETIC_OVERFLOW, f"{a} * {b} / {denominator} exceeds u64")
    return result


def bps_of(amount: int, bps: int) -> int:
    """floor(amount * bps / 10000)."""
    return mul_div(amount, bps, BPS_DENOMINATOR)
