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
from pathlib import Path
from typing import Any, Union

import yaml

_EXTENDS_KEY = 'extends'


def dict_from_yaml(*, filepath: Union[Path, str]) -> dict[str, Any]:
    """Takes a filepath to a yaml file and returns a dictionary with its contents."""
    if not os.path.isfile(filepath):
        raise ValueError(f"'{filepath}' is not a file")

    with open(filepath, 'r') as file:
        contents = yaml.safe_load(file)

    if contents is None:
        return {}

    if not isinstance(contents, dict):
        raise ValueError(f"'{filepath}' cannot be parsed as a dictionary")

    return contents


def dict_from_extended_yaml(*, filepath: Union[Path, str]) -> dict[str, Any]:
    """
    Same as dict_from_yaml(), but a file may name a base file through the 'extends' key. The base file is loaded
    first and the extending file's values are merged over it, recursively for nested mappings.

    Only one level of extension is resolved and the 'extends' key never shows up in the result.
    """
    extension_dict = dict_from_yaml(filepath=filepath)
    base_file = extension_dict.pop(_EXTENDS_KEY, None)

    if not base_file:
        return extension_dict

    base_filepath = Path(filepath).parent / str(base_file)

    if not os.path.isfile(base_filepath):
        raise ValueError(f"'{base_filepath}' is not a file")

    assert base_filepath.resolve() != Path(filepath).resolve(), 'cannot extend self'

    base_dict = dict_from_yaml(filepath=base_filepath)
    _merge_into(base_dict, extension_dict)
    return base_dict


def _merge_into(base: dict, override: dict) -> None:
    """Merge `override` into `base` in place. Nested dicts are merged, any other value replaces the base one."""
    for key, value in override.items():
        if isinstance(base.get(key), dict) and isinstance(value, dict):
            _merge_into(base[key], value)
        else:
            base[key] = value
