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
Workflow - the recipe and model bundle.
"""
import logging
import typing

import cloudpickle
import pandas

import foldwise
from foldwise import model as modmod
from foldwise import recipe as recmod

LOGGER = logging.getLogger(__name__)


class Workflow(typing.NamedTuple):
    """Immutable bundle of a preprocessing recipe and a model specification.

    Examples:
        >>> TITANIC = workflow.Workflow(
        ...     recipe.Recipe('Survived') >> recipe.ImputeMedian() >> recipe.Dummy(),
        ...     model.RandomForest.builder(mode='classification', trees=500, mtry=3),
        ... )
    """

    recipe: recmod.Recipe
    model: modmod.Model

    def __repr__(self):
        return f'{self.recipe} => {self.model}'

    @property
    def outcome(self) -> str:
        """Name of the outcome column as declared by the recipe."""
        if self.recipe.outcome is None:
            raise foldwise.MissingError(f'Recipe of {self} has no outcome')
        return self.recipe.outcome

    def with_recipe(self, recipe: recmod.Recipe) -> 'Workflow':
        """Create a new workflow with the recipe replaced."""
        return self._replace(recipe=recipe)

    def with_model(self, model: modmod.Model) -> 'Workflow':
        """Create a new workflow with the model replaced."""
        return self._replace(model=model)

    def finalize(self, params: typing.Mapping[str, typing.Any]) -> 'Workflow':
        """Create a new workflow with the model hyper-parameters bound to the given values.

        Args:
            params: Hyper-parameter values (typically the selected best assignment).

        Returns:
            New workflow instance.
        """
        return self._replace(model=self.model.update(**params))

    def fit(self, data: pandas.DataFrame, params: typing.Optional[typing.Mapping[str, typing.Any]] = None) -> 'Fitted':
        """Prepare the recipe and fit the model on the given data.

        Args:
            data: Training dataset.
            params: Optional hyper-parameter values.

        Returns:
            Fitted workflow.
        """
        prepared = self.recipe.fit(data)
        fitted = modmod.fit(self.model, params, prepared.apply(data), self.outcome)
        LOGGER.debug('Fitted %s on %d records', self, len(data))
        return Fitted(self, prepared, fitted)


class Fitted(typing.NamedTuple):
    """Trained workflow artifact."""

    workflow: Workflow
    prepared: recmod.Prepared
    model: modmod.Fitted

    def predict(
        self, data: pandas.DataFrame, kind: typing.Optional[typing.Union[modmod.Kind, str]] = None
    ) -> typing.Union[pandas.Series, pandas.DataFrame]:
        """Predict using the prepared recipe followed by the fitted model.

        Args:
            data: Raw dataset (the outcome column is not required).
            kind: Prediction kind.

        Returns:
            Predictions.
        """
        return self.model.predict(self.prepared.apply(data), kind)

    def dumps(self) -> bytes:
        """Serialize the fitted workflow."""
        return cloudpickle.dumps(self)

    @staticmethod
    def loads(state: bytes) -> 'Fitted':
        """Deserialize the fitted workflow."""
        loaded = cloudpickle.loads(state)
        if not isinstance(loaded, Fitted):
            raise foldwise.InvalidError(f'Not a fitted workflow: {type(loaded).__name__}')
        return loaded
