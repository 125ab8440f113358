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
K-fold resampler unit tests.
"""
import collections

import numpy
import pandas
import pytest

import foldwise
from foldwise import evaluation


class TestFolds:
    """Folds unit tests."""

    @staticmethod
    @pytest.fixture(scope='function')
    def folds(classification: pandas.DataFrame) -> evaluation.Folds:
        """Folds fixture."""
        return evaluation.make_folds(classification, 5, 'label', random_state=0)

    def test_partition(self, folds: evaluation.Folds, classification: pandas.DataFrame):
        """Test each record is held out exactly once and trains in all other folds."""
        assert len(folds) == 5
        held = collections.Counter(i for f in folds for i in f.split.test)
        trained = collections.Counter(i for f in folds for i in f.split.train)
        assert set(held.values()) == {1}
        assert set(trained.values()) == {4}
        assert len(held) == len(trained) == len(classification)
        for fold in folds:
            assert not set(fold.split.train) & set(fold.split.test)

    def test_stratified(self, folds: evaluation.Folds, classification: pandas.DataFrame):
        """Test every fold gets its share of each class."""
        for _, _, test in folds.subsets():
            assert (test['label'] == 'yes').sum() in {7, 8}
            assert len(test) == 24

    def test_restartable(self, folds: evaluation.Folds):
        """Test the iteration can be repeated with identical output."""
        first = [f.split.test for f in folds]
        second = [f.split.test for f in folds]
        for one, two in zip(first, second):
            numpy.testing.assert_array_equal(one, two)
        assert [f.id for f in folds] == [1, 2, 3, 4, 5]

    def test_indexing(self, folds: evaluation.Folds):
        """Test the sequence access."""
        assert folds[-1].id == 5
        with pytest.raises(IndexError):
            folds[5]  # pylint: disable=pointless-statement

    def test_deterministic(self, classification: pandas.DataFrame):
        """Test the same seed produces the same folds."""
        first = evaluation.make_folds(classification, 3, random_state=4)
        second = evaluation.make_folds(classification, 3, random_state=4)
        numpy.testing.assert_array_equal(first[0].split.test, second[0].split.test)

    @pytest.mark.parametrize('k', [0, 1, 121])
    def test_invalid(self, classification: pandas.DataFrame, k: int):
        """Test the fold count validation."""
        with pytest.raises(foldwise.InvalidFoldCountError):
            evaluation.make_folds(classification, k)


def test_leave_one_out():
    """Test the maximum number of folds."""
    data = pandas.DataFrame({'value': range(4)})
    folds = evaluation.make_folds(data, 4)
    assert sorted(len(f.split.test) for f in folds) == [1, 1, 1, 1]
