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

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from tokenswap.amm.transfer import TransferLeg
from tokenswap.pubsub import SwapEvents

T = TypeVar('T')


@dataclass(slots=True, kw_only=True)
class OperationPlan(Generic[T]):
    """What a write operation needs once its state changes have been buffered.

    The engine executes `legs`, commits the buffered changes, publishes `event` and returns `result`.
    """
    result: T
    legs: list[TransferLeg] = field(default_factory=list)
    event: SwapEvents
    event_args: dict[str, Any] = field(default_factory=dict)
