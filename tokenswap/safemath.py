# Copyright 2025 Hathor Labs
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#    http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Checked unsigned arithmetic.

Amounts handled by the engine are unsigned 128-bit integers. Python integers never overflow, so every operation here
checks its result against that range explicitly and fails instead of wrapping or going negative.
"""

import math

from tokenswap.conf.settings import BPS_DENOMINATOR, PERCENT_DENOMINATOR
from tokenswap.exception import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero, InvalidAmount

UINT_BITS = 128
UINT_MAX = 2**UINT_BITS - 1

# Eight decimal places, the precision of the ledger's base units.
ONE_8 = 10**8


def check_uint(value: int, name: str = 'value') -> int:
    """Return `value` if it is a valid unsigned amount, raising InvalidAmount otherwise."""
    # bool is a subclass of int and is never a valid amount.
    if not isinstance(value, int) or isinstance(value, bool):
        raise InvalidAmount(f'{name} must be an integer, got {type(value).__name__}')
    if value < 0 or value > UINT_MAX:
        raise InvalidAmount(f'{name} out of range: {value}')
    return value


def _fit(result: int) -> int:
    if result > UINT_MAX:
        raise ArithmeticOverflow(f'result does not fit in {UINT_BITS} bits')
    return result


def safe_add(a: int, b: int) -> int:
    check_uint(a, 'a')
    check_uint(b, 'b')
    return _fit(a + b)


def safe_sub(a: int, b: int) -> int:
    check_uint(a, 'a')
    check_uint(b, 'b')
    if b > a:
        raise ArithmeticUnderflow(f'{a} - {b} is negative')
    return a - b


def safe_mul(a: int, b: int) -> int:
    check_uint(a, 'a')
    check_uint(b, 'b')
    return _fit(a * b)


def safe_div(a: int, b: int) -> int:
    """Floor division."""
    check_uint(a, 'a')
    check_uint(b, 'b')
    if b == 0:
        raise DivisionByZero(f'{a} / 0')
    return a // b


def mul_div(a: int, b: int, c: int) -> int:
    """Return `a * b // c`.

    The intermediate product is exact, so only the final result has to fit. This is what lets the pricing functions
    multiply two reserves together without losing precision.
    """
    check_uint(a, 'a')
    check_uint(b, 'b')
    check_uint(c, 'c')
    if c == 0:
        raise DivisionByZero(f'{a} * {b} / 0')
    return _fit(a * b // c)


def mul_div_up(a: int, b: int, c: int) -> int:
    """Same as mul_div() but rounding up."""
    check_uint(a, 'a')
    check_uint(b, 'b')
    check_uint(c, 'c')
    if c == 0:
        raise DivisionByZero(f'{a} * {b} / 0')
    return _fit(-(-(a * b) // c))


def isqrt(n: int) -> int:
    """Integer square root, rounded down."""
    if not isinstance(n, int) or isinstance(n, bool) or n < 0:
        raise InvalidAmount(f'cannot take the square root of {n!r}')
    return math.isqrt(n)


def apply_bps(amount: int, bps: int) -> int:
    """Return `bps` basis points of `amount`, rounded down."""
    return mul_div(amount, bps, BPS_DENOMINATOR)


def calculate_percentage(amount: int, percentage: int) -> int:
    """Return `percentage` percent of `amount`, rounded down.

    The percentage is not capped at 100, callers validate their own bounds.
    """
    return mul_div(amount, percentage, PERCENT_DENOMINATOR)
