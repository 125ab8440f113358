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
Stratified splitter unit tests.
"""
import numpy
import pandas
import pytest

import foldwise
from foldwise import evaluation


class TestSplit:
    """Split unit tests."""

    @staticmethod
    @pytest.fixture(scope='session')
    def balanced() -> pandas.DataFrame:
        """Dataset with two equally sized classes."""
        return pandas.DataFrame({'value': range(100), 'label': ['a', 'b'] * 50})

    def test_sizes(self, balanced: pandas.DataFrame):
        """Test the partition sizes and disjointness."""
        split = evaluation.split(balanced, 0.7, 'label', random_state=1)
        assert len(split.train) == 70
        assert len(split.test) == 30
        assert not set(split.train) & set(split.test)
        assert sorted({*split.train, *split.test}) == list(range(100))
        assert (split.training(balanced)['label'] == 'a').mean() == 0.5

    def test_stratified(self, classification: pandas.DataFrame):
        """Test the class proportions are preserved on both sides."""
        split = evaluation.split(classification, 0.75, 'label', random_state=7)
        full = (classification['label'] == 'yes').mean()
        for subset in split.training(classification), split.testing(classification):
            assert abs((subset['label'] == 'yes').mean() - full) < 0.05

    def test_numeric(self, regression: pandas.DataFrame):
        """Test the stratification by binned numeric column."""
        split = evaluation.split(regression, 0.8, 'y', random_state=3)
        assert len(split.train) == 80
        assert regression['y'].iloc[split.test].between(*regression['y'].quantile([0, 1])).all()

    def test_unstratified(self, regression: pandas.DataFrame):
        """Test the plain random split."""
        split = evaluation.split(regression, 0.5)
        assert len(split.train) == len(split.test) == 50

    def test_deterministic(self, classification: pandas.DataFrame):
        """Test the same seed produces the same split."""
        first = evaluation.split(classification, 0.6, 'label', random_state=11)
        second = evaluation.split(classification, 0.6, 'label', random_state=11)
        numpy.testing.assert_array_equal(first.train, second.train)
        numpy.testing.assert_array_equal(first.test, second.test)
        other = evaluation.split(classification, 0.6, 'label', random_state=12)
        assert not numpy.array_equal(first.train, other.train)

    @pytest.mark.parametrize('fraction, train', [(0.5, 1), (0.75, 1), (0.25, 0)])
    def test_singleton(self, fraction: float, train: int):
        """Test single-record strata go to the larger side."""
        data = pandas.DataFrame({'label': ['a'] * 8 + ['b']})
        split = evaluation.split(data, fraction, 'label', random_state=0)
        assert (8 in split.train) == bool(train)

    def test_no_mutation(self, classification: pandas.DataFrame):
        """Test the input data stays untouched."""
        original = classification.copy()
        evaluation.split(classification, 0.5, 'label').training(classification)
        pandas.testing.assert_frame_equal(classification, original)

    @pytest.mark.parametrize('fraction', [0, 1, -0.1, 1.5])
    def test_invalid_fraction(self, classification: pandas.DataFrame, fraction: float):
        """Test the fraction validation."""
        with pytest.raises(foldwise.InvalidFractionError):
            evaluation.split(classification, fraction)

    def test_unknown_column(self, classification: pandas.DataFrame):
        """Test the stratification column validation."""
        with pytest.raises(foldwise.UnknownColumnError):
            evaluation.split(classification, 0.5, 'foo')


def test_strata():
    """Test the strata coding."""
    data = pandas.DataFrame({'nominal': ['x', 'y', 'x', None], 'numeric': range(4), 'flag': [True, False] * 2})
    codes = evaluation.strata(data, 'nominal')
    assert codes[0] == codes[2] != codes[1]
    assert codes[3] not in (codes[0], codes[1])
    assert len(set(evaluation.strata(data, 'numeric', breaks=2))) == 2
    assert len(set(evaluation.strata(data, 'flag', breaks=1))) == 2


def test_generator():
    """Test the random generator resolution."""
    random = numpy.random.default_rng(0)
    assert evaluation.generator(random) is random
    assert evaluation.generator(5).integers(1000) == numpy.random.default_rng(5).integers(1000)
    assert evaluation.generator().integers(1000) == evaluation.generator().integers(1000)
