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
Hyper-parameter grids.
"""
import collections.abc
import itertools
import logging
import typing

import pandas

import foldwise
from foldwise import evaluation, model, setup

LOGGER = logging.getLogger(__name__)


class Assignment(typing.NamedTuple):
    """Single point of the hyper-parameter grid."""

    id: int
    """Assignment number (starting from 1) - the tie-breaker when selecting the best one."""
    params: typing.Mapping[str, typing.Any]
    """Hyper-parameter values."""

    def __repr__(self):
        return f'#{self.id}{dict(self.params)}'


class Grid(collections.abc.Sequence):
    """Finite sequence of hyper-parameter assignments.

    Args:
        assignments: The grid points (as plain mappings).
    """

    def __init__(self, assignments: typing.Iterable[typing.Mapping[str, typing.Any]]):
        self._assignments: tuple[Assignment] = tuple(
            Assignment(i, dict(p)) for i, p in enumerate(assignments, start=1)
        )
        if not self._assignments:
            raise foldwise.InvalidError('Empty grid')

    def __repr__(self):
        return f'Grid[{len(self)}]'

    def __len__(self) -> int:
        return len(self._assignments)

    def __getitem__(self, index):
        return self._assignments[index]

    @classmethod
    def of(cls, *assignments: typing.Mapping[str, typing.Any]) -> 'Grid':
        """Create a grid from explicit assignments.

        Args:
            assignments: Mappings of the hyper-parameter values.

        Returns:
            Grid instance.

        Examples:
            >>> GRID = tuning.Grid.of({'tree_depth': 3}, {'tree_depth': 6})
        """
        return cls(assignments or [{}])

    @property
    def names(self) -> tuple[str]:
        """Names of all the parameters present in the grid."""
        return tuple(dict.fromkeys(k for a in self._assignments for k in a.params))

    def frame(self) -> pandas.DataFrame:
        """Tabular representation of the grid.

        Returns:
            Data frame with the ``assignment`` column followed by one column per parameter.
        """
        return pandas.DataFrame(
            [{'assignment': a.id, **a.params} for a in self._assignments], columns=['assignment', *self.names]
        )


def grid_regular(spec: model.Model, levels: typing.Optional[int] = None) -> Grid:
    """Regular grid as the cross product of evenly spread levels of each tunable parameter.

    Args:
        spec: Model with some parameters marked for tuning.
        levels: Number of levels per parameter (defaults to the configured value).

    Returns:
        Grid instance (single empty assignment if nothing to be tuned).
    """
    if levels is None:
        levels = setup.CONFIG.option(setup.SECTION_TUNING, setup.OPT_LEVELS, 3)
    domains = spec.tunable
    values = [d.levels(levels) for d in domains.values()]
    grid = Grid(dict(zip(domains, p)) for p in itertools.product(*values))
    LOGGER.debug('Regular grid of %d assignments for %s', len(grid), spec)
    return grid


def grid_random(
    spec: model.Model, size: typing.Optional[int] = None, random_state: evaluation.RandomState = None
) -> Grid:
    """Random grid with each tunable parameter sampled independently from its domain.

    Duplicate assignments are removed so the grid might end up smaller than requested.

    Args:
        spec: Model with some parameters marked for tuning.
        size: Number of assignments to draw (defaults to the configured value).
        random_state: Seed or generator (defaults to the configured seed).

    Returns:
        Grid instance (single empty assignment if nothing to be tuned).
    """
    if size is None:
        size = setup.CONFIG.option(setup.SECTION_TUNING, setup.OPT_SIZE, 10)
    if size < 1:
        raise foldwise.InvalidError(f'Invalid grid size: {size}')
    domains = spec.tunable
    if not domains:
        return Grid([{}])
    random = evaluation.generator(random_state)
    samples = [d.sample(random, size) for d in domains.values()]
    grid = Grid(dict(zip(domains, p)) for p in dict.fromkeys(zip(*samples)))
    LOGGER.debug('Random grid of %d assignments for %s', len(grid), spec)
    return grid
