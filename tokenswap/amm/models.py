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

from dataclasses import dataclass
from typing import Any, NamedTuple

from tokenswap.amm.pair_key import PairKey, Side
from tokenswap.safemath import safe_add, safe_sub
from tokenswap.types import Address, Amount, BlockHeight, SwapId, TokenUid


def _shift(reserve: Amount, delta: int) -> Amount:
    if delta < 0:
        return safe_sub(reserve, -delta)
    return safe_add(reserve, delta)


@dataclass(slots=True, kw_only=True)
class Pool:
    """State of a single pool, always stored in canonical order (`token_a < token_b`)."""
    token_a: TokenUid
    token_b: TokenUid
    reserve_a: Amount = 0
    reserve_b: Amount = 0
    total_shares: Amount = 0
    active: bool = True
    # Sum of every swap's input amount and trading fee, in units of the input token.
    cumulative_volume: Amount = 0
    cumulative_fee: Amount = 0
    fee_bps: int
    created_at: BlockHeight

    @property
    def key(self) -> PairKey:
        return PairKey(self.token_a, self.token_b)

    def get_reserve(self, token: TokenUid) -> Amount:
        if self.key.side_of(token) is Side.A:
            return self.reserve_a
        return self.reserve_b

    def update_reserve(self, token: TokenUid, delta: int) -> None:
        """Add `delta` (possibly negative) to the reserve of `token`, failing if the reserve leaves the amount range."""
        if self.key.side_of(token) is Side.A:
            self.reserve_a = _shift(self.reserve_a, delta)
        else:
            self.reserve_b = _shift(self.reserve_b, delta)

    def to_json(self) -> dict[str, Any]:
        return {
            'token_a': self.token_a.hex(),
            'token_b': self.token_b.hex(),
            'reserve_a': self.reserve_a,
            'reserve_b': self.reserve_b,
            'total_shares': self.total_shares,
            'active': self.active,
            'cumulative_volume': self.cumulative_volume,
            'cumulative_fee': self.cumulative_fee,
            'fee_bps': self.fee_bps,
            'created_at': self.created_at,
        }


@dataclass(slots=True, kw_only=True)
class LiquidityPosition:
    holder: Address
    key: PairKey
    shares: Amount = 0


@dataclass(frozen=True, slots=True, kw_only=True)
class SwapRecord:
    """Append-only entry of the swap history."""
    id: SwapId
    user: Address
    token_in: TokenUid
    token_out: TokenUid
    amount_in: Amount
    amount_out: Amount
    fee_paid: Amount
    block_height: BlockHeight

    def to_json(self) -> dict[str, Any]:
        return {
            'id': self.id,
            'user': self.user.hex(),
            'token_in': self.token_in.hex(),
            'token_out': self.token_out.hex(),
            'amount_in': self.amount_in,
            'amount_out': self.amount_out,
            'fee_paid': self.fee_paid,
            'block_height': self.block_height,
        }


@dataclass(slots=True, kw_only=True)
class RegistryCounters:
    total_pools: int = 0
    total_swaps: int = 0
    next_swap_id: SwapId = 1


class SwapResult(NamedTuple):
    """Result of a swap."""
    swap_id: SwapId
    token_in: TokenUid
    token_out: TokenUid
    amount_in: Amount
    amount_out: Amount
    fee_paid: Amount
    protocol_fee: Amount


class LiquidityResult(NamedTuple):
    """Result of a liquidity operation, with amounts in the order the caller gave the tokens."""
    amount_x: Amount
    amount_y: Amount
    shares: Amount


class SwapQuote(NamedTuple):
    amount_in: Amount
    amount_out: Amount
    fee_paid: Amount
    price_impact_bps: int


class ContractStats(NamedTuple):
    total_pools: int
    total_swaps: int
    paused: bool
    protocol_fee_rate: int

    def to_json(self) -> dict[str, Any]:
        return self._asdict()
