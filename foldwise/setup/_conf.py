# Licensed to the Apache Software Foundation (ASF) under one
# or more contributor license agreements.  See the NOTICE file
# distributed with this work for additional information
# regarding copyright ownership.  The ASF licenses this file
# to you under the Apache License, Version 2.0 (the
# "License"); you may not use this file except in compliance
# with the License.  You may obtain a copy of the License at
#
#   http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

"""Foldwise configuration
"""
import os
import pathlib
import re
import sys
import types
import typing
from logging import handlers

import tomli

import foldwise


class Config(dict):
    """Config parser implementation.

    Values are merged from the defaults and then from each of the given paths in order (the later
    taking precedence). Files that don't exist are silently skipped.
    """

    def __init__(self, defaults: typing.Mapping[str, typing.Any], *paths: pathlib.Path):
        super().__init__()
        self._sources: list[pathlib.Path] = []
        self._errors: dict[pathlib.Path, Exception] = {}
        self._notifiers: list[typing.Callable[[], None]] = []
        self.update(defaults)
        for src in paths:
            self.read(src)

    def subscribe(self, notifier: typing.Callable[[], None]) -> None:
        """Register a callback to be called upon configuration updates.

        Args:
            notifier: Simple callable to be executed when config gets updated.
        """
        self._notifiers.append(notifier)

    @staticmethod
    def _merge(left: typing.Mapping, right: typing.Mapping) -> typing.Mapping[str, typing.Any]:
        """Recursive merge of two mappings with the right side taking precedence.

        Nested mappings get merged recursively, sequences get concatenated (right values first,
        without duplicates) and anything else is replaced by reference.

        Args:
            left: Old values.
            right: New values.

        Returns:
            Read-only merged mapping.
        """
        # pylint: disable=isinstance-second-argument-not-valid-type
        result = dict(left)
        for key, new in right.items():
            old = left.get(key)
            if isinstance(old, typing.Mapping) and isinstance(new, typing.Mapping):
                new = Config._merge(old, new)
            elif isinstance(old, (list, tuple)) and isinstance(new, (list, tuple)):
                new = *new, *(v for v in old if v not in new)
            result[key] = new
        return types.MappingProxyType(result)

    def update(self, other: typing.Optional[typing.Mapping[str, typing.Any]] = None, **kwargs) -> None:
        """Config gets updated by recursive merge with right (new) scalar values overwriting left (old) ones.

        Args:
            other: Another mapping with config values to be merged with our config.
            **kwargs: Other values provided as keyword arguments.
        """
        super().update(self._merge(self._merge(self, other or {}), kwargs))
        for notifier in self._notifiers:
            notifier()

    @property
    def sources(self) -> typing.Iterable[pathlib.Path]:
        """Get the sources files used by this parser.

        Returns:
            Source files.
        """
        return tuple(self._sources)

    @property
    def errors(self) -> typing.Mapping[pathlib.Path, Exception]:
        """Errors captured during parsing.

        Returns:
            Mapping between files and the captured errors.
        """
        return types.MappingProxyType(self._errors)

    def read(self, path: typing.Union[str, pathlib.Path]) -> None:
        """Read and merge config from given file.

        Args:
            path: Path to file to parse.
        """
        path = pathlib.Path(path)
        try:
            with path.open('rb') as cfg:
                self.update(tomli.load(cfg))
        except FileNotFoundError:  # not an error (ignore)
            pass
        except PermissionError as err:  # soft error (warn)
            self._errors[path] = err
        except tomli.TOMLDecodeError as err:  # hard error (abort)
            raise foldwise.InvalidError(f'Invalid config file {path}: {err}') from err
        else:
            self._sources.append(path)

    def option(self, section: str, option: str, default: typing.Any = None) -> typing.Any:
        """Lookup of a single option value.

        Args:
            section: Config section name.
            option: Option name within the section.
            default: Value to return if the option is not configured.

        Returns:
            Configured value or the default.
        """
        return self.get(section, {}).get(option, default)


SECTION_LOGGING = 'LOGGING'
SECTION_RANDOM = 'RANDOM'
SECTION_SPLIT = 'SPLIT'
SECTION_RESAMPLE = 'RESAMPLE'
SECTION_TUNING = 'TUNING'
OPT_CONFIG = 'config'
OPT_FACILITY = 'facility'
OPT_PATH = 'path'
OPT_SEED = 'seed'
OPT_FRACTION = 'train_fraction'
OPT_BREAKS = 'breaks'
OPT_FOLDS = 'folds'
OPT_WORKERS = 'workers'
OPT_TIMEOUT = 'timeout'
OPT_LEVELS = 'levels'
OPT_SIZE = 'size'

APPNAME = 'foldwise'
PRJNAME = re.sub(r'\.[^.]*$', '', pathlib.Path(sys.argv[0]).name)
#: System-level setup directory
SYSDIR = pathlib.Path('/etc') / APPNAME
#: User-level setup directory
USRDIR = pathlib.Path(os.getenv(f'{APPNAME.upper()}_HOME', pathlib.Path.home() / f'.{APPNAME}'))
#: Sequence of setup directories in ascending priority order
PATH = pathlib.Path(__file__).parent, SYSDIR, USRDIR
#: Main config file name
APPCFG = 'config.toml'

DEFAULTS = {
    # all static defaults should go rather to the ./config.toml (in this package)
    SECTION_LOGGING: {
        OPT_FACILITY: handlers.SysLogHandler.LOG_USER,
        OPT_PATH: f'./{PRJNAME}.log',
    },
}

CONFIG = Config(DEFAULTS, *(p / APPCFG for p in PATH))
