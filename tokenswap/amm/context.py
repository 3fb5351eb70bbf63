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

from __future__ import annotations

from typing import Any, final

from tokenswap.types import Address, BlockHeight


@final
class Context:
    """Context passed to every write operation of the engine: who is calling and at which block height.

    Instances are immutable.
    """
    __slots__ = ('__caller', '__block_height')
    __caller: Address
    __block_height: BlockHeight

    def __init__(self, caller: Address, block_height: BlockHeight) -> None:
        if not isinstance(caller, bytes) or not caller:
            raise TypeError('caller must be a non-empty bytes address')
        if not isinstance(block_height, int) or isinstance(block_height, bool) or block_height < 0:
            raise TypeError('block_height must be a non-negative integer')
        object.__setattr__(self, '_Context__caller', caller)
        object.__setattr__(self, '_Context__block_height', block_height)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError('Context is immutable')

    @property
    def caller(self) -> Address:
        return self.__caller

    @property
    def block_height(self) -> BlockHeight:
        return self.__block_height

    def copy(self, *, block_height: BlockHeight | None = None) -> Context:
        """Return a copy of this context, optionally at another block height."""
        return Context(self.__caller, self.__block_height if block_height is None else block_height)

    def __repr__(self) -> str:
        return f'Context(caller={self.__caller.hex()}, block_height={self.__block_height})'

    def to_json(self) -> dict[str, Any]:
        return {
            'caller': self.__caller.hex(),
            'block_height': self.__block_height,
        }
