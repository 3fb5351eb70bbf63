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

from abc import ABC, abstractmethod
from typing import Any

from tokenswap.amm.storage.types import _NOT_PROVIDED


class PoolBaseStorage(ABC):
    """Keyed store holding the state of the swap engine: pools, positions, swap history and counters.
    """

    @abstractmethod
    def get(self, key: str, *, default: Any = _NOT_PROVIDED) -> Any:
        """Return the value of the provided `key`.

        It raises KeyError if key is not found and no default is given.
        """
        raise NotImplementedError

    @abstractmethod
    def put(self, key: str, value: Any) -> None:
        """Store the `value` for the provided `key`.
        """
        raise NotImplementedError

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete `key` from storage.
        """
        raise NotImplementedError

    @abstractmethod
    def commit(self) -> None:
        """Flush all local changes to the storage."""
        raise NotImplementedError

    def check_if_locked(self) -> None:
        """Raise if this storage cannot be changed anymore. Plain storages never lock."""
        pass
