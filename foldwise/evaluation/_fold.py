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
K-fold resampling.
"""
import collections.abc
import logging
import typing

import numpy
import pandas

import foldwise
from foldwise import setup

from . import _split

LOGGER = logging.getLogger(__name__)


class Fold(typing.NamedTuple):
    """Single resampling fold."""

    id: int
    """Fold number (starting from 1)."""
    split: _split.Split
    """Indices of the analysis (train) and assessment (held-out) records."""


class Folds(collections.abc.Sequence):
    """Lazy sequence of folds over a dataset.

    Only the fold membership of each record is kept; the actual subsets are materialized on access
    so iterating is cheap and can be repeated with identical results.

    Args:
        data: The dataset being resampled.
        membership: Fold index (zero based) of each record.
        count: Number of folds.
    """

    def __init__(self, data: pandas.DataFrame, membership: numpy.ndarray, count: int):
        self._data: pandas.DataFrame = data
        self._membership: numpy.ndarray = membership
        self._count: int = count

    def __repr__(self):
        return f'Folds[{self._count}x{len(self._data)}]'

    def __len__(self) -> int:
        return self._count

    def __getitem__(self, index: int) -> Fold:
        if isinstance(index, slice):
            raise TypeError('Folds can not be sliced')
        if index < 0:
            index += self._count
        if not 0 <= index < self._count:
            raise IndexError(f'Fold index out of range: {index}')
        held = self._membership == index
        return Fold(index + 1, _split.Split(numpy.flatnonzero(~held), numpy.flatnonzero(held)))

    @property
    def data(self) -> pandas.DataFrame:
        """The resampled dataset."""
        return self._data

    def subsets(self) -> typing.Iterator[tuple[int, pandas.DataFrame, pandas.DataFrame]]:
        """Iterate over the materialized fold subsets.

        Returns:
            Generator of ``(fold_id, train, held_out)`` tuples.
        """
        for fold in self:
            yield fold.id, fold.split.training(self._data), fold.split.testing(self._data)


def make_folds(
    data: pandas.DataFrame,
    k: typing.Optional[int] = None,
    stratify: typing.Optional[str] = None,
    *,
    breaks: typing.Optional[int] = None,
    random_state: _split.RandomState = None,
) -> Folds:
    """Partition the dataset into ``k`` folds.

    Records are shuffled (within their strata if stratifying), the strata are concatenated and the
    fold membership is assigned round-robin so each stratum gets spread evenly across all folds.

    Args:
        data: Dataset to be resampled (typically the training side of a split).
        k: Number of folds (defaults to the configured value).
        stratify: Optional name of the column to stratify by.
        breaks: Number of quantile bins for a numeric stratification column.
        random_state: Seed or generator (defaults to the configured seed).

    Returns:
        The fold sequence.
    """
    if k is None:
        k = setup.CONFIG.option(setup.SECTION_RESAMPLE, setup.OPT_FOLDS, 10)
    if not 2 <= k <= len(data):
        raise foldwise.InvalidFoldCountError(f'Invalid number of folds for {len(data)} records: {k}')
    codes = None if stratify is None else _split.strata(data, stratify, breaks)
    random = _split.generator(random_state)
    order = numpy.concatenate([random.permutation(g) for g in _split.groups(codes, len(data))])
    membership = numpy.empty(len(data), dtype=int)
    membership[order] = numpy.arange(len(order)) % k
    LOGGER.debug('Created %d folds over %d records', k, len(data))
    return Folds(data, membership, k)
