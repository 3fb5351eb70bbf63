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
Constant-product pricing.

Every function here is pure and works on plain integers. Divisions round down unless stated otherwise, so rounding
always favours the pool over the trader or the liquidity provider.
"""

from tokenswap.conf.settings import BPS_DENOMINATOR
from tokenswap.exception import InsufficientLiquidity, InsufficientShares, InvalidAmount, MinimumLiquidity
from tokenswap.safemath import check_uint, isqrt, mul_div, mul_div_up, safe_add, safe_sub

DEFAULT_MINIMUM_LIQUIDITY = 1000


def _check_fee(fee_bps: int) -> None:
    check_uint(fee_bps, 'fee_bps')
    if fee_bps >= BPS_DENOMINATOR:
        raise InvalidAmount(f'fee_bps must be below {BPS_DENOMINATOR}, got {fee_bps}')


def _check_reserves(reserve_in: int, reserve_out: int) -> None:
    check_uint(reserve_in, 'reserve_in')
    check_uint(reserve_out, 'reserve_out')
    if reserve_in == 0 or reserve_out == 0:
        raise InsufficientLiquidity('pool has no liquidity')


def net_amount(amount_in: int, fee_bps: int) -> int:
    """Return the part of `amount_in` left after the trading fee."""
    _check_fee(fee_bps)
    return mul_div(amount_in, BPS_DENOMINATOR - fee_bps, BPS_DENOMINATOR)


def swap_fee(amount_in: int, fee_bps: int) -> int:
    """Return the trading fee charged on `amount_in`."""
    return amount_in - net_amount(amount_in, fee_bps)


def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Given an input amount of an asset and pair reserves, returns the maximum output amount of the other asset.
    """
    check_uint(amount_in, 'amount_in')
    if amount_in == 0:
        raise InvalidAmount('amount_in must be positive')
    _check_reserves(reserve_in, reserve_out)
    net = net_amount(amount_in, fee_bps)
    denominator = safe_add(reserve_in, net)
    amount_out = mul_div(net, reserve_out, denominator)
    if amount_out == 0:
        raise InsufficientLiquidity(f'amount_in={amount_in} is too small to buy anything')
    if amount_out >= reserve_out:
        raise InsufficientLiquidity('trade would drain the pool')
    return amount_out


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Given an output amount of an asset and pair reserves, returns the minimum input amount of the other asset.

    The result is the smallest `amount_in` for which `get_amount_out(amount_in, ...) >= amount_out`.
    """
    check_uint(amount_out, 'amount_out')
    if amount_out == 0:
        raise InvalidAmount('amount_out must be positive')
    _check_reserves(reserve_in, reserve_out)
    _check_fee(fee_bps)
    if amount_out >= reserve_out:
        raise InsufficientLiquidity(f'amount_out={amount_out} exceeds the reserve of {reserve_out}')
    # smallest net input such that net * reserve_out // (reserve_in + net) >= amount_out
    net = mul_div_up(amount_out, reserve_in, reserve_out - amount_out)
    # smallest gross input whose net part reaches it
    return mul_div_up(net, BPS_DENOMINATOR, BPS_DENOMINATOR - fee_bps)


def quote(amount_a: int, reserve_a: int, reserve_b: int) -> int:
    """Given some amount of an asset and pair reserves, returns an equivalent amount of the other asset."""
    check_uint(amount_a, 'amount_a')
    if amount_a == 0:
        raise InvalidAmount('amount must be positive')
    _check_reserves(reserve_a, reserve_b)
    return mul_div(amount_a, reserve_b, reserve_a)


def share_issuance(
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
    total_shares: int,
    minimum_liquidity: int = DEFAULT_MINIMUM_LIQUIDITY,
) -> int:
    """Return how many shares a deposit of `amount_a` and `amount_b` is worth.

    The first deposit of a pool gets the geometric mean of both amounts minus `minimum_liquidity`, which is locked
    away by the caller. Later deposits get the smaller of both proportional claims.
    """
    check_uint(amount_a, 'amount_a')
    check_uint(amount_b, 'amount_b')
    check_uint(total_shares, 'total_shares')
    if total_shares == 0:
        shares = isqrt(amount_a * amount_b) - minimum_liquidity
        if shares <= 0:
            raise MinimumLiquidity(f'initial deposit must be worth more than {minimum_liquidity} shares')
        return shares
    _check_reserves(reserve_a, reserve_b)
    return min(
        mul_div(amount_a, total_shares, reserve_a),
        mul_div(amount_b, total_shares, reserve_b),
    )


def share_redemption(shares: int, total_shares: int, reserve_a: int, reserve_b: int) -> tuple[int, int]:
    """Return the amounts of both reserves that `shares` can be redeemed for."""
    check_uint(shares, 'shares')
    check_uint(total_shares, 'total_shares')
    if total_shares == 0:
        raise InsufficientLiquidity('pool has no shares')
    if shares > total_shares:
        raise InsufficientShares(f'cannot redeem {shares} out of {total_shares} shares')
    return mul_div(shares, reserve_a, total_shares), mul_div(shares, reserve_b, total_shares)


def optimal_deposit(desired_a: int, desired_b: int, reserve_a: int, reserve_b: int) -> tuple[int, int]:
    """Return the largest deposit keeping the pool ratio that does not exceed any of the desired amounts.

    An empty pool accepts the desired amounts as they are.
    """
    check_uint(desired_a, 'desired_a')
    check_uint(desired_b, 'desired_b')
    if reserve_a == 0 and reserve_b == 0:
        return desired_a, desired_b
    optimal_b = quote(desired_a, reserve_a, reserve_b)
    if optimal_b <= desired_b:
        return desired_a, optimal_b
    optimal_a = quote(desired_b, reserve_b, reserve_a)
    assert optimal_a <= desired_a
    return optimal_a, desired_b


def price_impact_bps(amount_in: int, amount_out: int, reserve_in: int, reserve_out: int) -> int:
    """Return how much worse than the spot price a trade executes, in basis points.

    The trading fee is part of the impact.
    """
    spot_out = quote(amount_in, reserve_in, reserve_out)
    if spot_out == 0 or amount_out >= spot_out:
        return 0
    return mul_div(safe_sub(spot_out, amount_out), BPS_DENOMINATOR, spot_out)


def constant_product(reserve_a: int, reserve_b: int) -> int:
    # Not bounded to 128 bits, it is only compared, never stored.
    return reserve_a * reserve_b
