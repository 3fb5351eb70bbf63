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

from collections import defaultdict
from enum import Enum
from typing import Any, Callable


class SwapEvents(Enum):
    """Events published by the swap engine after an operation has been committed."""
    POOL_CREATED = 'pool:created'
    POOL_STATUS_CHANGED = 'pool:status_changed'
    LIQUIDITY_ADDED = 'liquidity:added'
    LIQUIDITY_REMOVED = 'liquidity:removed'
    SWAP_EXECUTED = 'swap:executed'
    ADMIN_PAUSED_CHANGED = 'admin:paused_changed'
    ADMIN_PROTOCOL_FEE_RATE_CHANGED = 'admin:protocol_fee_rate_changed'
    ADMIN_OWNER_CHANGED = 'admin:owner_changed'
    ADMIN_PROTOCOL_FEES_WITHDRAWN = 'admin:protocol_fees_withdrawn'


class EventArguments:
    """Simple object for storing event arguments.
    """
    def __init__(self, **kwargs: Any) -> None:
        for key, value in kwargs.items():
            setattr(self, key, value)

    def __contains__(self, key: str) -> bool:
        return key in self.__dict__


Subscriber = Callable[[SwapEvents, EventArguments], None]


class PubSubManager:
    """Manages a pub/sub pattern bus.

    It is used to let independent objects respond to events. Subscribers are called synchronously, in subscription
    order, from the thread that published the event.
    """
    def __init__(self) -> None:
        self._subscribers: defaultdict[SwapEvents, list[Subscriber]] = defaultdict(list)

    def subscribe(self, key: SwapEvents, fn: Subscriber) -> None:
        """Subscribe to a specific event.

        :param key: Event to which to subscribe.
        :param fn: A function to be called when an event with `key` is published.
        """
        if fn not in self._subscribers[key]:
            self._subscribers[key].append(fn)

    def unsubscribe(self, key: SwapEvents, fn: Subscriber) -> None:
        """Unsubscribe from a specific event.
        """
        if fn in self._subscribers[key]:
            self._subscribers[key].remove(fn)

    def publish(self, key: SwapEvents, **kwargs: Any) -> None:
        """Publish a new event.

        :param key: Key of the new event.
        :param **kwargs: Named arguments to be given to the functions that will be called with this event.
        """
        args = EventArguments(**kwargs)
        for fn in list(self._subscribers[key]):
            fn(key, args)
