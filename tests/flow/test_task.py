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
Flow task unit tests.
"""
import typing

import cloudpickle
import pytest

import foldwise
from foldwise import flow


class Scaler(flow.Actor[float, typing.Sequence[float], typing.Sequence[float]]):
    """Simple stateful actor scaling the values by the learned maximum."""

    def __init__(self, factor: float = 1.0):
        super().__init__(factor=factor)

    def fit(self, features: typing.Sequence[float], labels=None, /) -> float:
        return max(features)

    def apply(self, state: float, features: typing.Sequence[float], /) -> typing.Sequence[float]:
        return [f / state * self.get_params()['factor'] for f in features]


class Doubler(flow.Actor[None, typing.Sequence[float], typing.Sequence[float]]):
    """Stateless actor."""

    def apply(self, state: None, features: typing.Sequence[float], /) -> typing.Sequence[float]:
        return [f * 2 for f in features]


def test_name():
    """Test the actor naming."""
    assert flow.name(Scaler, factor=2) == 'Scaler(factor=2)'
    assert flow.name(Scaler) == 'Scaler'


class TestActor:
    """Actor unit tests."""

    @staticmethod
    @pytest.fixture(scope='function')
    def instance() -> Scaler:
        """Instance fixture."""
        return Scaler(factor=10)

    def test_fit(self, instance: Scaler):
        """Test the fit/apply separation."""
        assert instance.is_stateful()
        assert not Doubler.is_stateful()
        state = instance.fit([1, 2, 4])
        assert instance.apply(state, [2, 8]) == [5, 20]
        assert Doubler().apply(Doubler().fit([1]), [1, 2]) == [2, 4]

    def test_update(self, instance: Scaler):
        """Test the immutable parameter updates."""
        updated = instance.update(factor=1)
        assert updated.get_params() == {'factor': 1}
        assert instance.get_params() == {'factor': 10}
        with pytest.raises(foldwise.UnexpectedError):
            instance.update(foo=1)

    def test_equality(self, instance: Scaler):
        """Test the actor equality."""
        assert instance == Scaler(factor=10)
        assert instance != Scaler(factor=1)

    def test_serializable(self, instance: Scaler):
        """Test actor serializability."""
        actor = cloudpickle.loads(cloudpickle.dumps(instance))
        assert actor == instance
        assert actor.apply(actor.fit([2]), [1]) == [5]


class TestSpec:
    """Spec unit tests."""

    @staticmethod
    @pytest.fixture(scope='function')
    def spec() -> flow.Spec[Scaler]:
        """Spec fixture."""
        return Scaler.builder(factor=3)

    def test_instantiate(self, spec: flow.Spec[Scaler]):
        """Testing spec to actor instantiation."""
        assert spec() == Scaler(factor=3)
        assert spec(factor=4) == Scaler(factor=4)

    def test_update(self, spec: flow.Spec[Scaler]):
        """Test the spec updates."""
        assert spec.update(factor=5).kwargs == {'factor': 5}
        assert spec.kwargs == {'factor': 3}
        assert spec.reset().kwargs == {}

    def test_invalid(self):
        """Test the signature validation."""
        with pytest.raises(TypeError):
            Scaler.builder(foo=1)

    def test_serializable(self, spec: flow.Spec[Scaler]):
        """Test spec serializability."""
        assert cloudpickle.loads(cloudpickle.dumps(spec)) == spec

    def test_repr(self, spec: flow.Spec[Scaler]):
        """Test the spec representation."""
        assert repr(spec) == 'Scaler(factor=3)'
