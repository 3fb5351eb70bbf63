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
import os
import re
from typing import Optional

from structlog import get_logger

BASE_VERSION = '0.3.0'

DEFAULT_VERSION_SUFFIX = '-local'
BUILD_VERSION_ENV_VAR = 'TOKENSWAP_BUILD_VERSION'
BUILD_VERSION_FILE_PATH = './BUILD_VERSION'

# Valid formats: 1.2.3 and 1.2.3-rc.1
BUILD_VERSION_REGEX = re.compile(r'^\d+\.\d+\.\d+(-rc\.\d+)?$')

logger = get_logger()


def _read_build_version() -> Optional[str]:
    """Build version stamped by the release pipeline, from the environment first and then from a file."""
    build_version = os.environ.get(BUILD_VERSION_ENV_VAR)
    if build_version is None and os.path.isfile(BUILD_VERSION_FILE_PATH):
        with open(BUILD_VERSION_FILE_PATH, 'r') as f:
            build_version = f.readline()
    if build_version is None:
        return None

    build_version = build_version.strip()
    if not BUILD_VERSION_REGEX.match(build_version):
        logger.warn('ignoring build version with an invalid format', build_version=build_version)
        return None
    return build_version


def get_version() -> str:
    """Release version when one was stamped, otherwise the base version with a local suffix."""
    return _read_build_version() or BASE_VERSION + DEFAULT_VERSION_SUFFIX


__version__ = get_version()
