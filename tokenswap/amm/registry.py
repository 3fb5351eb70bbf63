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

from typing import Iterator, Optional

from tokenswap.amm.models import LiquidityPosition, Pool, RegistryCounters, SwapRecord
from tokenswap.amm.pair_key import PairKey
from tokenswap.amm.storage import PoolBaseStorage
from tokenswap.exception import PoolNotFound
from tokenswap.safemath import safe_add, safe_sub
from tokenswap.types import Address, Amount, SwapId, TokenUid

_COUNTERS_KEY = 'counters'
_POOL_INDEX_KEY = 'pools'


def _pool_key(key: PairKey) -> str:
    return f'pool:{key}'


def _position_key(holder: Address, key: PairKey) -> str:
    return f'position:{holder.hex()}:{key}'


def _swap_key(swap_id: SwapId) -> str:
    return f'swap:{swap_id}'


def _protocol_fee_key(token: TokenUid) -> str:
    return f'protocol_fee:{token.hex()}'


class PoolRegistry:
    """Typed view over a keyed storage.

    The registry never validates business rules, it only knows how each record is laid out in the storage. Wrap a
    PoolChangesTracker to buffer writes, or the committed storage directly for reads.
    """

    def __init__(self, storage: PoolBaseStorage) -> None:
        self.storage = storage

    # pools

    def get_pool(self, key: PairKey) -> Optional[Pool]:
        return self.storage.get(_pool_key(key), default=None)

    def has_pool(self, key: PairKey) -> bool:
        return self.get_pool(key) is not None

    def require_pool(self, key: PairKey) -> Pool:
        pool = self.get_pool(key)
        if pool is None:
            raise PoolNotFound(f'pool {key} does not exist')
        return pool

    def put_pool(self, pool: Pool) -> None:
        key = pool.key
        storage_key = _pool_key(key)
        if self.storage.get(storage_key, default=None) is None:
            index: list[PairKey] = self.storage.get(_POOL_INDEX_KEY, default=[])
            self.storage.put(_POOL_INDEX_KEY, [*index, key])
        self.storage.put(storage_key, pool)

    def iter_pool_keys(self) -> Iterator[PairKey]:
        yield from self.storage.get(_POOL_INDEX_KEY, default=[])

    # positions

    def get_position(self, holder: Address, key: PairKey) -> LiquidityPosition:
        position = self.storage.get(_position_key(holder, key), default=None)
        if position is None:
            return LiquidityPosition(holder=holder, key=key)
        return position

    def put_position(self, position: LiquidityPosition) -> None:
        self.storage.put(_position_key(position.holder, position.key), position)

    def credit_shares(self, holder: Address, key: PairKey, shares: Amount) -> LiquidityPosition:
        position = self.get_position(holder, key)
        position.shares = safe_add(position.shares, shares)
        self.put_position(position)
        return position

    def debit_shares(self, holder: Address, key: PairKey, shares: Amount) -> LiquidityPosition:
        position = self.get_position(holder, key)
        position.shares = safe_sub(position.shares, shares)
        self.put_position(position)
        return position

    # swap history

    def get_swap_record(self, swap_id: SwapId) -> Optional[SwapRecord]:
        return self.storage.get(_swap_key(swap_id), default=None)

    def append_swap_record(self, record: SwapRecord) -> None:
        key = _swap_key(record.id)
        assert self.storage.get(key, default=None) is None, f'swap {record.id} already recorded'
        self.storage.put(key, record)

    # counters

    def get_counters(self) -> RegistryCounters:
        return self.storage.get(_COUNTERS_KEY, default=None) or RegistryCounters()

    def put_counters(self, counters: RegistryCounters) -> None:
        self.storage.put(_COUNTERS_KEY, counters)

    # protocol fees

    def get_protocol_fee(self, token: TokenUid) -> Amount:
        return self.storage.get(_protocol_fee_key(token), default=0)

    def add_protocol_fee(self, token: TokenUid, amount: int) -> None:
        """Add `amount` (possibly negative) to the protocol fees accrued in `token`."""
        current = self.get_protocol_fee(token)
        if amount >= 0:
            new = safe_add(current, amount)
        else:
            new = safe_sub(current, -amount)
        self.storage.put(_protocol_fee_key(token), new)
