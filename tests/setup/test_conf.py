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

"""
Foldwise config unit tests.
"""
import pathlib
import types
import typing

import pytest

import foldwise
from foldwise.setup import _conf


def test_defaults():
    """Test the packaged defaults."""
    packaged = _conf.Config(_conf.DEFAULTS, pathlib.Path(_conf.__file__).parent / _conf.APPCFG)
    assert packaged[_conf.SECTION_LOGGING][_conf.OPT_CONFIG] == 'logging.ini'
    assert packaged[_conf.SECTION_LOGGING][_conf.OPT_PATH]
    assert packaged.option(_conf.SECTION_SPLIT, _conf.OPT_FRACTION) == 0.75
    assert packaged.option(_conf.SECTION_RESAMPLE, _conf.OPT_FOLDS) == 10
    assert isinstance(packaged.option(_conf.SECTION_RANDOM, _conf.OPT_SEED), int)


def test_src():
    """Test the packaged config is among the sources."""
    assert pathlib.Path(_conf.__file__).parent / _conf.APPCFG in _conf.CONFIG.sources


class TestConfig:
    """Parser unit tests."""

    @staticmethod
    @pytest.fixture(scope='session')
    def defaults() -> typing.Mapping[str, typing.Any]:
        """Default values fixtures."""
        return types.MappingProxyType({'foo': 'bar', 'baz': {'scalar': 1, 'seq': [10, 3, 'asd']}})

    @staticmethod
    @pytest.fixture(scope='function')
    def parser(defaults: typing.Mapping[str, typing.Any]) -> _conf.Config:
        """Parser fixture."""
        return _conf.Config(defaults)

    @staticmethod
    @pytest.fixture(scope='function')
    def cfg_file(tmp_path: pathlib.Path) -> pathlib.Path:
        """Config file fixture."""
        path = tmp_path / 'config.toml'
        path.write_text('foobar = "baz"\n[baz]\nscalar = 5\n')
        return path

    def test_update(self, parser: _conf.Config):
        """Parser update tests."""
        parser.update(baz={'another': 2})
        assert parser['baz']['scalar'] == 1
        parser.update({'baz': {'scalar': 3}})
        assert parser['baz']['scalar'] == 3
        assert parser['baz']['another'] == 2
        parser.update({'baz': {'seq': [3, 'qwe', 'asd']}})
        assert parser['baz']['seq'] == (3, 'qwe', 'asd', 10)

    def test_read(self, parser: _conf.Config, cfg_file: pathlib.Path):
        """Test parser file reading."""
        parser.read(cfg_file)
        assert cfg_file in parser.sources
        assert parser['foobar'] == 'baz'
        assert parser.option('baz', 'scalar') == 5
        assert parser.option('baz', 'missing', 'default') == 'default'

    def test_missing(self, parser: _conf.Config, tmp_path: pathlib.Path):
        """Test nonexistent files are silently ignored."""
        parser.read(tmp_path / 'nonexistent.toml')
        assert not parser.sources
        assert not parser.errors

    def test_invalid(self, parser: _conf.Config, tmp_path: pathlib.Path):
        """Test invalid file parsing."""
        path = tmp_path / 'invalid.toml'
        path.write_text('foo = [')
        with pytest.raises(foldwise.InvalidError):
            parser.read(path)

    def test_subscribe(self, parser: _conf.Config):
        """Test the update notifications."""
        calls = []
        parser.subscribe(lambda: calls.append(True))
        parser.update(foo='baz')
        assert calls == [True]
