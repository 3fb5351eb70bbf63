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

from typing import Any

from typing_extensions import override

from tokenswap.amm.storage.base_storage import PoolBaseStorage
from tokenswap.amm.storage.types import _NOT_PROVIDED, DeletedKey


class PoolChangesTracker(PoolBaseStorage):
    """Keep track of changes during the execution of a single engine operation.

    These changes are not committed to the storage until `commit()` is called. Reads fall through to the underlying
    storage for keys that have not been changed."""

    def __init__(self, storage: PoolBaseStorage) -> None:
        self.storage = storage
        self.data: dict[str, Any] = {}

        self.has_been_commited = False
        self.has_been_blocked = False

    @override
    def check_if_locked(self) -> None:
        """Check if this instance has been locked. A lock occurs after a commit is executed."""
        if self.has_been_commited:
            raise RuntimeError('you cannot change any value after the commit has been executed')
        elif self.has_been_blocked:
            raise RuntimeError('you cannot change any value after the changes have been blocked')

    def block(self) -> None:
        """Block the changes and prevent them from being committed."""
        self.check_if_locked()
        self.has_been_blocked = True

    def is_empty(self) -> bool:
        return not self.data

    @override
    def get(self, key: str, *, default: Any = _NOT_PROVIDED) -> Any:
        if key in self.data:
            value = self.data[key]
        else:
            value = self.storage.get(key, default=default)
        if value is DeletedKey:
            if default is _NOT_PROVIDED:
                raise KeyError(key)
            return default
        return value

    @override
    def put(self, key: str, value: Any) -> None:
        self.check_if_locked()
        self.data[key] = value

    @override
    def delete(self, key: str) -> None:
        self.check_if_locked()
        self.data[key] = DeletedKey

    @override
    def commit(self) -> None:
        """Save the changes in the storage."""
        self.check_if_locked()
        for key, value in self.data.items():
            if value is not DeletedKey:
                self.storage.put(key, value)
            else:
                self.storage.delete(key)
        self.storage.commit()
        self.has_been_commited = True

    def reset(self) -> None:
        """Discard all local changes without persisting."""
        self.data = {}
