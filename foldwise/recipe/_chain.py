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
Recipe - the ordered chain of transformation steps.
"""
import logging
import typing

import pandas

import foldwise

from . import _step

LOGGER = logging.getLogger(__name__)


class Recipe(typing.NamedTuple):
    """Immutable chain of transformation steps.

    Examples:
        >>> PREPROCESS = recipe.Recipe('Survived') >> recipe.ImputeMedian() >> recipe.Dummy() >> recipe.Normalize()
    """

    outcome: typing.Optional[str] = None
    """Name of the outcome column (never selected by the step selectors)."""
    steps: tuple[_step.Step] = ()
    """The transformation steps in the application order."""

    def __repr__(self):
        return ' >> '.join([f'Recipe({self.outcome!r})', *(repr(s) for s in self.steps)])

    def add(self, step: _step.Step) -> 'Recipe':
        """Create a new recipe with the given step appended.

        Args:
            step: Step to be appended.

        Returns:
            New recipe instance.
        """
        if not isinstance(step, _step.Step):
            raise TypeError(f'Not a step: {step}')
        return self._replace(steps=(*self.steps, step))

    def __rshift__(self, step: _step.Step) -> 'Recipe':
        return self.add(step)

    def fit(self, data: pandas.DataFrame) -> 'Prepared':
        """Prepare the recipe on the reference data.

        Each step is fitted on the output of the previous one.

        Args:
            data: Reference (training) dataset.

        Returns:
            The prepared recipe.
        """
        if self.outcome is not None and self.outcome not in data.columns:
            raise foldwise.UnknownColumnError(f'Outcome column {self.outcome} not in dataset')
        states = []
        for index, step in enumerate(self.steps):
            try:
                state = step.fit(data, self.outcome)
                data = step.apply(state, data)
            except Exception as err:
                LOGGER.error('Fitting step #%d (%s) failed: %s', index, step, err)
                raise
            states.append(state)
        LOGGER.debug('Prepared %s', self)
        return Prepared(self, tuple(states))


class Prepared(typing.NamedTuple):
    """Recipe with the learned states of all its steps."""

    recipe: Recipe
    states: tuple[typing.Any]

    def apply(self, data: pandas.DataFrame) -> pandas.DataFrame:
        """Transform the data using the learned states (no statistics are re-estimated).

        Args:
            data: Dataset to be transformed.

        Returns:
            New transformed dataset.
        """
        if len(self.states) != len(self.recipe.steps):
            raise foldwise.FitBeforeApplyError(f'{self.recipe} not (fully) prepared')
        for index, (step, state) in enumerate(zip(self.recipe.steps, self.states)):
            try:
                data = step.apply(state, data)
            except Exception as err:
                LOGGER.error('Applying step #%d (%s) failed: %s', index, step, err)
                raise
        return data


def fit(chain: Recipe, data: pandas.DataFrame) -> Prepared:
    """Prepare the recipe on the reference data.

    See :meth:`Recipe.fit` for the details.
    """
    return chain.fit(data)


def apply(prepared: Prepared, data: pandas.DataFrame) -> pandas.DataFrame:
    """Transform the data using the prepared recipe.

    Args:
        prepared: Recipe previously prepared by :func:`fit`.
        data: Dataset to be transformed.

    Returns:
        New transformed dataset.
    """
    if not isinstance(prepared, Prepared):
        raise foldwise.FitBeforeApplyError(f'Recipe not prepared: {prepared}')
    return prepared.apply(data)
