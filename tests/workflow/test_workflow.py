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
Workflow unit tests.
"""
import pandas
import pytest

import foldwise
from foldwise import model, recipe, tuning, workflow


class TestWorkflow:
    """Workflow unit tests."""

    @staticmethod
    @pytest.fixture(scope='session')
    def flow() -> workflow.Workflow:
        """Workflow fixture."""
        return workflow.Workflow(
            recipe.Recipe('label') >> recipe.Dummy() >> recipe.Normalize(),
            model.LogisticRegression.builder(penalty=tuning.Tune()),
        )

    def test_builders(self, flow: workflow.Workflow):
        """Test the immutable builder methods."""
        other = recipe.Recipe('label')
        assert flow.with_recipe(other).recipe is other
        assert flow.recipe is not other
        tree = model.DecisionTree.builder(mode='classification')
        assert flow.with_model(tree).model is tree
        assert flow.finalize({'penalty': 0.5}).model.kwargs == {'penalty': 0.5}
        assert isinstance(flow.model.kwargs['penalty'], tuning.Tune)

    def test_fit(self, flow: workflow.Workflow, classification: pandas.DataFrame):
        """Test the workflow fitting and prediction."""
        fitted = flow.fit(classification, {'penalty': 0.1})
        labels = fitted.predict(classification.drop(columns='label'))
        assert len(labels) == len(classification)
        assert set(labels) <= {'yes', 'no'}
        proba = fitted.predict(classification, model.Kind.PROBABILITY)
        assert list(proba.columns) == ['no', 'yes']
        assert 'color_red' in fitted.model.predictors

    def test_unbound(self, flow: workflow.Workflow, classification: pandas.DataFrame):
        """Test fitting with unresolved tuning placeholders."""
        with pytest.raises(foldwise.MissingError):
            flow.fit(classification)

    def test_outcome(self):
        """Test the outcome requirement."""
        with pytest.raises(foldwise.MissingError):
            flow = workflow.Workflow(recipe.Recipe(), model.LinearRegression.builder())
            flow.outcome  # pylint: disable=pointless-statement

    def test_serializable(self, flow: workflow.Workflow, classification: pandas.DataFrame):
        """Test the fitted workflow serializability."""
        fitted = flow.finalize({'penalty': 1.0}).fit(classification)
        loaded = workflow.Fitted.loads(fitted.dumps())
        pandas.testing.assert_series_equal(loaded.predict(classification), fitted.predict(classification))
        with pytest.raises(foldwise.InvalidError):
            workflow.Fitted.loads(fitted.model.dumps())
