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
Hyper-parameter domains.
"""
import abc
import typing

import numpy

import foldwise


class Domain(abc.ABC):
    """Set of values a hyper-parameter can take when being tuned."""

    @abc.abstractmethod
    def levels(self, count: int) -> tuple[typing.Any]:
        """Regular selection of values from the domain.

        Args:
            count: Requested number of levels (might produce fewer for small discrete domains).

        Returns:
            Ordered tuple of distinct values.
        """

    @abc.abstractmethod
    def sample(self, generator: numpy.random.Generator, size: int) -> tuple[typing.Any]:
        """Random selection of values from the domain.

        Args:
            generator: Source of randomness.
            size: Number of values to draw.

        Returns:
            Tuple of drawn values (not necessarily distinct).
        """


class Range(Domain):
    """Continuous (or integer) interval domain.

    Args:
        low: Lower bound (inclusive).
        high: Upper bound (inclusive).
        integer: Whether the values are integers.
        log: Whether the levels should be spread regularly on the log10 scale.
    """

    def __init__(self, low: float, high: float, integer: bool = False, log: bool = False):
        if high < low:
            raise foldwise.InvalidError(f'Invalid range [{low}, {high}]')
        if log and low <= 0:
            raise foldwise.InvalidError(f'Log range requires positive bounds: [{low}, {high}]')
        self.low: float = low
        self.high: float = high
        self.integer: bool = integer
        self.log: bool = log

    def __repr__(self):
        return f'Range[{self.low}, {self.high}]'

    def _cast(self, values: numpy.ndarray) -> tuple[typing.Any]:
        if self.integer:
            return tuple(dict.fromkeys(int(v) for v in numpy.rint(values)))
        return tuple(float(v) for v in values)

    def levels(self, count: int) -> tuple[typing.Any]:
        if count < 1:
            raise foldwise.InvalidError('At least one level required')
        if self.log:
            return self._cast(numpy.logspace(numpy.log10(self.low), numpy.log10(self.high), count))
        return self._cast(numpy.linspace(self.low, self.high, count))

    def sample(self, generator: numpy.random.Generator, size: int) -> tuple[typing.Any]:
        if self.integer:
            return tuple(int(v) for v in generator.integers(int(self.low), int(self.high), size=size, endpoint=True))
        if self.log:
            return tuple(float(v) for v in 10 ** generator.uniform(numpy.log10(self.low), numpy.log10(self.high), size))
        return tuple(float(v) for v in generator.uniform(self.low, self.high, size))


class Choice(Domain):
    """Discrete domain of explicit values.

    Args:
        values: The candidate values.
    """

    def __init__(self, *values: typing.Any):
        if not values:
            raise foldwise.InvalidError('Choice requires values')
        self.values: tuple[typing.Any] = tuple(dict.fromkeys(values))

    def __repr__(self):
        return f'Choice{self.values}'

    def levels(self, count: int) -> tuple[typing.Any]:
        if count < 1:
            raise foldwise.InvalidError('At least one level required')
        if count >= len(self.values):
            return self.values
        return tuple(self.values[int(i)] for i in numpy.linspace(0, len(self.values) - 1, count))

    def sample(self, generator: numpy.random.Generator, size: int) -> tuple[typing.Any]:
        return tuple(self.values[i] for i in generator.integers(0, len(self.values), size=size))


class Tune:
    """Placeholder marking a hyper-parameter to be tuned.

    Args:
        domain: Explicit domain to select the values from (defaults to the one declared by the
                model family for the particular parameter).

    Examples:
        >>> TREE = model.DecisionTree.builder(cost_complexity=tuning.Tune(), tree_depth=tuning.Tune())
    """

    def __init__(self, domain: typing.Optional[Domain] = None):
        self.domain: typing.Optional[Domain] = domain

    def __repr__(self):
        return f'Tune({self.domain!r})' if self.domain else 'Tune()'
