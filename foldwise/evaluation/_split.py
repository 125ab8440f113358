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
Stratified train/test splitting.
"""
import logging
import typing

import numpy
import pandas

import foldwise
from foldwise import setup

LOGGER = logging.getLogger(__name__)

#: Acceptable random state specifications.
RandomState = typing.Optional[typing.Union[int, numpy.random.Generator]]


def generator(random_state: RandomState = None) -> numpy.random.Generator:
    """Get the source of randomness.

    Args:
        random_state: Explicit seed or an existing generator (defaults to the configured seed).

    Returns:
        Random generator instance.
    """
    if isinstance(random_state, numpy.random.Generator):
        return random_state
    if random_state is None:
        random_state = setup.CONFIG.option(setup.SECTION_RANDOM, setup.OPT_SEED)
    return numpy.random.default_rng(random_state)


def strata(data: pandas.DataFrame, column: str, breaks: typing.Optional[int] = None) -> numpy.ndarray:
    """Label each of the records with its stratum code.

    Numeric columns with more distinct values than ``breaks`` are binned into quantiles first.
    Missing values form a stratum of their own.

    Args:
        data: Dataset to be stratified.
        column: Name of the stratification column.
        breaks: Number of quantile bins for numeric columns (defaults to the configured value).

    Returns:
        Array of integer stratum codes (one per record).
    """
    if column not in data.columns:
        raise foldwise.UnknownColumnError(f'Stratification column {column} not in dataset')
    values = data[column]
    if breaks is None:
        breaks = setup.CONFIG.option(setup.SECTION_SPLIT, setup.OPT_BREAKS, 4)
    if (
        pandas.api.types.is_numeric_dtype(values)
        and not pandas.api.types.is_bool_dtype(values)
        and values.nunique() > breaks
    ):
        LOGGER.debug('Binning numeric stratification column %s into %d quantiles', column, breaks)
        values = pandas.qcut(values, breaks, labels=False, duplicates='drop')
    codes, _ = pandas.factorize(values)
    return codes


def groups(codes: typing.Optional[numpy.ndarray], size: int) -> list[numpy.ndarray]:
    """Positional indices of the members of each stratum (in the stratum code order).

    Args:
        codes: Stratum codes (or None for a single stratum of everything).
        size: Number of records.

    Returns:
        List of index arrays.
    """
    if codes is None:
        return [numpy.arange(size)]
    return [numpy.flatnonzero(codes == c) for c in numpy.unique(codes)]


def _concat(parts: typing.Sequence[numpy.ndarray]) -> numpy.ndarray:
    return numpy.sort(numpy.concatenate(parts)) if parts else numpy.empty(0, dtype=int)


class Split(typing.NamedTuple):
    """Train/test partition of a dataset given by positional row indices."""

    train: numpy.ndarray
    """Sorted positional indices of the training records."""
    test: numpy.ndarray
    """Sorted positional indices of the testing records."""

    def training(self, data: pandas.DataFrame) -> pandas.DataFrame:
        """Select the training subset.

        Args:
            data: The dataset this split was created for.

        Returns:
            Training records.
        """
        return data.iloc[self.train].reset_index(drop=True)

    def testing(self, data: pandas.DataFrame) -> pandas.DataFrame:
        """Select the testing subset.

        Args:
            data: The dataset this split was created for.

        Returns:
            Testing records.
        """
        return data.iloc[self.test].reset_index(drop=True)


def split(
    data: pandas.DataFrame,
    train_fraction: typing.Optional[float] = None,
    stratify: typing.Optional[str] = None,
    *,
    breaks: typing.Optional[int] = None,
    random_state: RandomState = None,
) -> Split:
    """Partition the dataset into disjoint training and testing subsets.

    With stratification, each stratum is shuffled and split independently so the class proportions
    are preserved on both sides.

    Args:
        data: Dataset to be split.
        train_fraction: Proportion of records going to the training side (defaults to the configured
                        value).
        stratify: Optional name of the column to stratify by.
        breaks: Number of quantile bins for a numeric stratification column.
        random_state: Seed or generator (defaults to the configured seed).

    Returns:
        The split indices.
    """
    if train_fraction is None:
        train_fraction = setup.CONFIG.option(setup.SECTION_SPLIT, setup.OPT_FRACTION, 0.75)
    if not 0 < train_fraction < 1:
        raise foldwise.InvalidFractionError(f'Train fraction must be within (0, 1): {train_fraction}')
    codes = None if stratify is None else strata(data, stratify, breaks)
    random = generator(random_state)
    train, test = [], []
    for members in groups(codes, len(data)):
        members = random.permutation(members)
        if len(members) == 1:
            size = 1 if train_fraction >= 0.5 else 0
        else:
            size = int(numpy.floor(train_fraction * len(members) + 0.5))
        train.append(members[:size])
        test.append(members[size:])
    result = Split(_concat(train), _concat(test))
    LOGGER.debug('Split %d records into %d training and %d testing', len(data), len(result.train), len(result.test))
    return result
