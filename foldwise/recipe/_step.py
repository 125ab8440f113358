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
Transformation steps.
"""
import abc
import logging
import math
import typing

import numpy
import pandas

import foldwise
from foldwise import flow

from . import _select

LOGGER = logging.getLogger(__name__)

Columns = typing.Optional[typing.Union[str, typing.Iterable[str], _select.Selector]]


class Step(flow.Actor[typing.Any, pandas.DataFrame, pandas.DataFrame], metaclass=abc.ABCMeta):
    """Base class of the recipe transformation steps.

    The *fit* mode resolves the column selection and learns whatever statistics the step needs; the
    *apply* mode is a pure function of that state and the input data. No step ever modifies its
    input frame.

    Args:
        columns: Names or selector of the columns to operate on.
        params: Step specific parameters.
    """

    DEFAULT: _select.Selector = _select.everything()

    def __init__(self, columns: Columns = None, **params: typing.Any):
        super().__init__(columns=_select.resolve(columns, self.DEFAULT), **params)

    @property
    def columns(self) -> _select.Selector:
        """The column selector."""
        return self._params['columns']

    def fit(self, data: pandas.DataFrame, outcome: typing.Optional[str] = None, /) -> typing.Any:
        """Learn the step state from the reference data.

        Args:
            data: Reference dataset.
            outcome: Name of the outcome column.

        Returns:
            The learned state.
        """
        return self.learn(data, self.columns(data, outcome))

    def apply(self, state: typing.Any, data: pandas.DataFrame, /) -> pandas.DataFrame:
        """Transform the data using the learned state.

        Args:
            state: State previously returned from :meth:`fit`.
            data: Dataset to be transformed.

        Returns:
            New transformed dataset.
        """
        if state is None:
            raise foldwise.FitBeforeApplyError(f'{self} not fitted')
        return self.transform(state, data)

    @abc.abstractmethod
    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> typing.Any:
        """Step specific fitting over the already resolved columns."""

    @abc.abstractmethod
    def transform(self, state: typing.Any, data: pandas.DataFrame) -> pandas.DataFrame:
        """Step specific application of the (non-empty) state."""

    @staticmethod
    def require(data: pandas.DataFrame, columns: typing.Iterable[str]) -> None:
        """Check the learned columns are present in the data.

        Args:
            data: Dataset to be transformed.
            columns: Columns learned during fit.
        """
        missing = [c for c in columns if c not in data.columns]
        if missing:
            raise foldwise.MissingColumnError(f'Columns missing from dataset: {", ".join(missing)}')


class Log(Step):
    """Logarithmic transformation ``log_base(value + offset)``.

    Non-positive values (after the offset shift) are rejected.

    Args:
        columns: Columns to transform (numeric by default).
        base: Logarithm base.
        offset: Constant added before taking the logarithm.
    """

    DEFAULT = _select.numeric()

    def __init__(self, columns: Columns = None, base: float = math.e, offset: float = 0.0):
        if base <= 0 or base == 1:
            raise foldwise.InvalidError(f'Invalid logarithm base: {base}')
        super().__init__(columns, base=base, offset=offset)

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> tuple[str]:
        return columns

    def transform(self, state: tuple[str], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        if not state:
            return data.copy()
        values = data[list(state)].astype(float) + self._params['offset']
        invalid = [c for c in state if (values[c] <= 0).any()]
        if invalid:
            raise foldwise.NonPositiveValueError(f'Non-positive values in: {", ".join(invalid)}')
        result = data.copy()
        result[list(state)] = numpy.log(values) / math.log(self._params['base'])
        return result


class CorrelationFilter(Step):
    """Removal of highly correlated columns.

    The column with the highest mean absolute correlation among those taking part in any pair above
    the threshold gets dropped repeatedly until no such pair remains. Ties drop the later column.

    Args:
        columns: Columns to consider (numeric by default).
        threshold: Maximum absolute Pearson correlation allowed between the remaining columns.
    """

    DEFAULT = _select.numeric()

    def __init__(self, columns: Columns = None, threshold: float = 0.9):
        if not 0 <= threshold <= 1:
            raise foldwise.InvalidError(f'Invalid correlation threshold: {threshold}')
        super().__init__(columns, threshold=threshold)

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> tuple[str]:
        remaining = list(columns)
        correlation = data[remaining].corr().abs().fillna(0).to_numpy(copy=True)
        numpy.fill_diagonal(correlation, 0)
        indices = list(range(len(remaining)))
        dropped = []
        while len(indices) > 1:
            matrix = correlation[numpy.ix_(indices, indices)]
            high = matrix > self._params['threshold']
            if not high.any():
                break
            candidates = numpy.flatnonzero(high.any(axis=0))
            means = matrix.sum(axis=0)[candidates] / (len(indices) - 1)
            drop = candidates[len(candidates) - 1 - numpy.argmax(means[::-1])]
            dropped.append(remaining[indices.pop(drop)])
        LOGGER.debug('Correlation filter dropping %s', dropped)
        return tuple(dropped)

    def transform(self, state: tuple[str], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        return data.drop(columns=list(state))


class Normalize(Step):
    """Centering and scaling to zero mean and unit (sample) standard deviation.

    Args:
        columns: Columns to normalize (numeric by default).
        zero_variance: Policy for columns with zero standard deviation - ``error`` to fail the fit,
                       ``skip`` to leave such columns untouched.
    """

    DEFAULT = _select.numeric()
    POLICIES = frozenset({'error', 'skip'})

    def __init__(self, columns: Columns = None, zero_variance: str = 'error'):
        if zero_variance not in self.POLICIES:
            raise foldwise.InvalidError(f'Invalid zero variance policy: {zero_variance}')
        super().__init__(columns, zero_variance=zero_variance)

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> typing.Mapping[str, tuple[float, float]]:
        state = {}
        for column in columns:
            values = data[column].astype(float)
            mean, std = values.mean(), values.std(ddof=1)
            if not std > 0:
                if self._params['zero_variance'] == 'error':
                    raise foldwise.ZeroVarianceError(f'Column {column} has zero variance')
                LOGGER.debug('Skipping zero variance column %s', column)
                continue
            state[column] = float(mean), float(std)
        return state

    def transform(self, state: typing.Mapping[str, tuple[float, float]], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        result = data.copy()
        for column, (mean, std) in state.items():
            result[column] = (data[column].astype(float) - mean) / std
        return result


class Dummy(Step):
    """Indicator (one-hot) encoding of nominal columns with the first level as the reference.

    Each encoded column is replaced by ``<column>_<level>`` indicators of all its levels but the
    first (sorted by type name, then value). Levels unseen during fit and missing values yield all zeros.

    Args:
        columns: Columns to encode (nominal by default).
        exclude_outcome: Never encode the outcome column (even if explicitly named).
    """

    DEFAULT = _select.nominal()

    def __init__(self, columns: Columns = None, exclude_outcome: bool = True):
        if columns is None:
            columns = _select.nominal(exclude_outcome)
        super().__init__(columns, exclude_outcome=exclude_outcome)

    def fit(self, data: pandas.DataFrame, outcome: typing.Optional[str] = None, /) -> typing.Any:
        columns = self.columns(data, outcome)
        if self._params['exclude_outcome'] and outcome is not None:
            columns = tuple(c for c in columns if c != outcome)
        return self.learn(data, columns)

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> typing.Mapping[str, tuple[typing.Any]]:
        return {c: tuple(sorted(data[c].dropna().unique().tolist(), key=self.order)) for c in columns}

    @staticmethod
    def order(level: typing.Any) -> tuple:
        """Sorting key of the levels working across mixed types (grouped by the type name)."""
        return type(level).__name__, level

    def transform(self, state: typing.Mapping[str, tuple[typing.Any]], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        indicators = {
            f'{column}_{level}': (data[column] == level).astype(int)
            for column, levels in state.items()
            for level in levels[1:]
        }
        result = data.drop(columns=list(state))
        if indicators:
            result = pandas.concat([result, pandas.DataFrame(indicators, index=data.index)], axis=1)
        return result


class ImputeMedian(Step):
    """Filling missing values with the median learned at fit time.

    Args:
        columns: Columns to impute (numeric by default).
    """

    DEFAULT = _select.numeric()

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> typing.Mapping[str, float]:
        state = {}
        for column in columns:
            median = data[column].median()
            if pandas.isna(median):
                raise foldwise.InvalidError(f'Column {column} has no values to impute from')
            state[column] = median
        return state

    def transform(self, state: typing.Mapping[str, float], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        return data.fillna(value=dict(state))


class ImputeMode(Step):
    """Filling missing values with the most frequent value learned at fit time.

    Ties are resolved in favour of the smallest value.

    Args:
        columns: Columns to impute (nominal by default).
    """

    DEFAULT = _select.nominal()

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> typing.Mapping[str, typing.Any]:
        state = {}
        for column in columns:
            mode = data[column].mode(dropna=True)
            if mode.empty:
                raise foldwise.InvalidError(f'Column {column} has no values to impute from')
            state[column] = mode.iloc[0]
        return state

    def transform(self, state: typing.Mapping[str, typing.Any], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        return data.fillna(value=dict(state))


class Remove(Step):
    """Dropping of the selected columns.

    Args:
        columns: Columns to drop.
    """

    def __init__(self, columns: Columns):
        super().__init__(columns)

    def learn(self, data: pandas.DataFrame, columns: tuple[str]) -> tuple[str]:
        return columns

    def transform(self, state: tuple[str], data: pandas.DataFrame) -> pandas.DataFrame:
        self.require(data, state)
        return data.drop(columns=list(state))
