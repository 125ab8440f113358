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
Grid search tuner unit tests.
"""
import time
import typing

import pandas
import pytest

import foldwise
from foldwise import evaluation, model, recipe, tuning, workflow


class Constant(model.Family):
    """Regression family predicting the training mean (optionally slow or failing)."""

    MODES = (model.Mode.REGRESSION,)

    def __init__(self, fail: bool = False, delay: float = 0.0, mode: typing.Optional[str] = None):
        super().__init__(mode, fail=fail, delay=delay)

    def fit(self, features: pandas.DataFrame, labels: pandas.Series, /) -> float:
        time.sleep(self._params['delay'])
        if self._params['fail']:
            raise ValueError('Failing on purpose')
        return float(labels.mean())

    def predict(self, state: float, features: pandas.DataFrame, kind: model.Kind) -> pandas.Series:
        return pandas.Series(state, index=features.index, name='.pred')


@pytest.fixture(scope='session')
def folds(regression: pandas.DataFrame) -> evaluation.Folds:
    """Folds fixture."""
    return evaluation.make_folds(regression, 4, random_state=0)


@pytest.fixture(scope='session')
def linear() -> workflow.Workflow:
    """Linear regression workflow with tunable penalty."""
    return workflow.Workflow(
        recipe.Recipe('y') >> recipe.Normalize(),
        model.LinearRegression.builder(penalty=tuning.Tune(tuning.Choice(0.001, 0.1, 10.0))),
    )


class TestTune:
    """Tuner unit tests."""

    @staticmethod
    @pytest.fixture(scope='session')
    def tuned(linear: workflow.Workflow, folds: evaluation.Folds) -> tuning.Tuned:
        """Tuned fixture."""
        return tuning.tune(linear, folds, metrics=[evaluation.RMSE, evaluation.RSQ])

    def test_results(self, tuned: tuning.Tuned):
        """Test the raw results."""
        assert len(tuned.grid) == 3
        assert len(tuned.results) == 3 * 4 * 2
        frame = tuned.collect()
        assert set(frame['fold']) == {1, 2, 3, 4}
        assert set(frame['assignment']) == {1, 2, 3}
        assert 'penalty' in frame.columns

    def test_summarize(self, tuned: tuning.Tuned):
        """Test the aggregation across folds."""
        summary = tuned.summarize()
        assert len(summary) == 3 * 2
        assert set(summary['n']) == {4}
        assert {'mean', 'std', 'penalty'} <= set(summary.columns)

    def test_select_best(self, tuned: tuning.Tuned):
        """Test the best assignment selection."""
        assert tuned.select_best().params == {'penalty': 0.001}
        assert tuned.select_best('rsq').params == {'penalty': 0.001}
        assert tuned.select_best('rmse', direction='maximize').params == {'penalty': 10.0}
        best = tuned.show_best('rmse', n=2)
        assert best['assignment'].tolist() == [1, 2]
        with pytest.raises(foldwise.MissingError):
            tuned.select_best('accuracy')

    def test_ties(self, linear: workflow.Workflow, folds: evaluation.Folds):
        """Test ties resolve to the lowest assignment id."""
        grid = tuning.Grid.of({'penalty': 1.0}, {'penalty': 0.5}, {'penalty': 1.0})
        tuned = tuning.tune(linear, folds, grid, [evaluation.RMSE])
        assert tuned.select_best().id == 2
        tied = tuning.tune(linear, folds, tuning.Grid.of({'penalty': 1.0}, {'penalty': 1.0}), [evaluation.RMSE])
        assert tied.select_best().id == 1

    def test_parallel(self, linear: workflow.Workflow, folds: evaluation.Folds, tuned: tuning.Tuned):
        """Test the parallel run produces the same results."""
        parallel = tuning.tune(linear, folds, metrics=[evaluation.RMSE, evaluation.RSQ], workers=3)
        pandas.testing.assert_frame_equal(parallel.collect(), tuned.collect())

    @pytest.mark.parametrize('workers', [1, 2])
    def test_failure(self, regression: pandas.DataFrame, folds: evaluation.Folds, workers: int):
        """Test any failing evaluation aborts the run."""
        flow = workflow.Workflow(recipe.Recipe('y'), Constant.builder(fail=tuning.Tune(tuning.Choice(False, True))))
        with pytest.raises(foldwise.TuningError) as caught:
            tuning.tune(flow, folds, workers=workers)
        assert caught.value.assignment.params == {'fail': True}
        assert caught.value.fold in {1, 2, 3, 4}
        assert isinstance(caught.value.__cause__, ValueError)

    def test_timeout(self, folds: evaluation.Folds):
        """Test the evaluation timeout."""
        flow = workflow.Workflow(recipe.Recipe('y'), Constant.builder(delay=0.2))
        with pytest.raises(foldwise.EvaluationTimeoutError):
            tuning.fit_resamples(flow, folds, timeout=0.05)

    def test_validation(self, linear: workflow.Workflow, folds: evaluation.Folds):
        """Test the eager validation."""
        with pytest.raises(foldwise.UnsupportedOutputKindError):
            tuning.tune(linear, folds, metrics=[evaluation.ACCURACY])
        with pytest.raises(foldwise.UnexpectedError):
            tuning.tune(linear, folds, tuning.Grid.of({'foo': 1}))
        with pytest.raises(foldwise.MissingError):
            tuning.tune(linear, folds, tuning.Grid.of({}))
        with pytest.raises(foldwise.InvalidError):
            tuning.tune(linear, folds, workers=0)


def test_fit_resamples(regression: pandas.DataFrame, folds: evaluation.Folds):
    """Test the evaluation without tuning."""
    flow = workflow.Workflow(recipe.Recipe('y'), Constant.builder())
    resampled = tuning.fit_resamples(flow, folds)
    assert len(resampled.results) == 4 * 2
    assert set(resampled.collect()['assignment']) == {1}
    assert resampled.metrics == tuning.DEFAULTS[model.Mode.REGRESSION]


def test_last_fit(titanic: pandas.DataFrame):
    """Test the final fit and evaluation."""
    split = evaluation.split(titanic, 0.75, 'Survived', random_state=0)
    flow = workflow.Workflow(
        recipe.Recipe('Survived') >> recipe.ImputeMedian() >> recipe.ImputeMode() >> recipe.Dummy(),
        model.DecisionTree.builder(mode='classification', tree_depth=2),
    )
    final = tuning.last_fit(flow, split, titanic)
    assert final.collect()['metric'].tolist() == ['accuracy', 'roc_auc']
    assert final.collect()['value'].between(0, 1).all()
    assert len(final.fitted.predict(split.testing(titanic))) == len(split.test)
