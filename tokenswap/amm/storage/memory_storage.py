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

import pickle
from typing import Any

from typing_extensions import override

from tokenswap.amm.storage.base_storage import PoolBaseStorage
from tokenswap.amm.storage.types import _NOT_PROVIDED


class PoolMemoryStorage(PoolBaseStorage):
    """Memory implementation of the storage.

    Values are kept serialized, so callers always get a fresh copy and can never mutate committed state in place.
    """

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}

    def _serialize(self, value: Any) -> bytes:
        return pickle.dumps(value)

    def _deserialize(self, _bytes: bytes) -> Any:
        return pickle.loads(_bytes)

    @override
    def get(self, key: str, *, default: Any = _NOT_PROVIDED) -> Any:
        try:
            value_bytes = self._data[key]
        except KeyError:
            if default is _NOT_PROVIDED:
                raise
            return default
        return self._deserialize(value_bytes)

    @override
    def put(self, key: str, value: Any) -> None:
        self._data[key] = self._serialize(value)

    @override
    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    @override
    def commit(self) -> None:
        # Every put is already durable for a memory storage.
        pass

    def __len__(self) -> int:
        return len(self._data)
