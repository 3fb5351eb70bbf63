#!/usr/bin/env python
"""
Copyright 2025 Hathor Labs

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import re
from pathlib import Path

from setuptools import find_packages, setup

# The version is read without importing the package, whose dependencies may not be installed yet.
_version_file = Path(__file__).parent / 'tokenswap' / 'version.py'
__version__ = re.search(r"^BASE_VERSION = '([^']+)'", _version_file.read_text(), re.MULTILINE).group(1)

install_requires = [
    'colorama>=0.4.6',
    'configargparse>=1.7',
    'pydantic>=2.5,<3',
    'PyYAML>=6.0',
    'structlog>=24.1',
    'typing_extensions>=4.9',
]

tests_require = [
    'pytest>=8.0',
    'twisted>=24.3',
]

setup(
    name='tokenswap',
    version=__version__,
    description='Constant-product automated market maker engine',
    author='Hathor Team',
    author_email='contact@hathor.network',
    url='https://hathor.network/',
    license='Apache License 2.0',
    entry_points={
        'console_scripts': ['tokenswap-cli=tokenswap.cli.main:main'],
    },
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
        'License :: OSI Approved :: Apache Software License',
    ],
    python_requires='>=3.11',
    packages=find_packages(exclude=('tests', 'tests.*')),
    package_data={'tokenswap.conf': ['*.yml']},
    install_requires=install_requires,
    extras_require={'test': tests_require},
)
