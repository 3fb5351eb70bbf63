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

from enum import Enum
from typing import NamedTuple

from tokenswap.exception import PoolNotFound, SameAsset
from tokenswap.types import TokenUid


class Side(Enum):
    A = 'a'
    B = 'b'


class PairKey(NamedTuple):
    """Canonical identifier of a pool: both tokens sorted by their byte representation.

    Use canonical_pair() to build one, never the constructor, so that the order invariant holds.
    """
    token_a: TokenUid
    token_b: TokenUid

    def __str__(self) -> str:
        return f'{self.token_a.hex()}/{self.token_b.hex()}'

    def side_of(self, token: TokenUid) -> Side:
        """Return which side of the pool holds `token`."""
        if token == self.token_a:
            return Side.A
        elif token == self.token_b:
            return Side.B
        raise PoolNotFound(f'token {token.hex()} is not part of pool {self}')

    def to_canonical(self, token_x: TokenUid, x: int, y: int) -> tuple[int, int]:
        """Reorder a pair of values given in caller order (`token_x` first) into canonical (A, B) order.

        The same function maps canonical values back to caller order, since the mapping is its own inverse.
        """
        if self.side_of(token_x) is Side.A:
            return x, y
        return y, x


def canonical_pair(token_x: TokenUid, token_y: TokenUid) -> PairKey:
    """Return the key of the pool for two tokens, regardless of the order they are given in."""
    if not isinstance(token_x, bytes) or not isinstance(token_y, bytes):
        raise TypeError('token uids must be bytes')
    if token_x == token_y:
        raise SameAsset(f'a pool cannot pair {token_x.hex()} with itself')
    if token_x > token_y:
        token_x, token_y = token_y, token_x
    return PairKey(token_x, token_y)
