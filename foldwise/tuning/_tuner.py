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
Grid search tuner.
"""
import logging
import math
import time
import typing
from concurrent import futures

import pandas

import foldwise
from foldwise import evaluation, model, setup, workflow

from . import _grid

LOGGER = logging.getLogger(__name__)

#: Metrics used when none are explicitly requested.
DEFAULTS: typing.Mapping[model.Mode, tuple[evaluation.Metric]] = {
    model.Mode.CLASSIFICATION: (evaluation.ACCURACY, evaluation.ROC_AUC),
    model.Mode.REGRESSION: (evaluation.RMSE, evaluation.RSQ),
}


class Tuned:
    """Outcome of a grid search providing access to the raw and aggregated metrics.

    Args:
        flow: The workflow that was tuned.
        grid: The evaluated grid.
        metrics: The computed metrics.
        results: Raw results of all the (fold, assignment) evaluations.
    """

    def __init__(
        self,
        flow: workflow.Workflow,
        grid: _grid.Grid,
        metrics: typing.Sequence[evaluation.Metric],
        results: evaluation.Results,
    ):
        self.workflow: workflow.Workflow = flow
        self.grid: _grid.Grid = grid
        self.metrics: tuple[evaluation.Metric] = tuple(metrics)
        self.results: evaluation.Results = results

    def __repr__(self):
        return f'Tuned[{self.workflow}: {len(self.grid)} assignments, {len(self.results)} results]'

    def _metric(self, name: typing.Optional[str]) -> evaluation.Metric:
        if name is None:
            return self.metrics[0]
        for metric in self.metrics:
            if metric.name == name:
                return metric
        raise foldwise.MissingError(f'Unknown metric {name} (available: {", ".join(m.name for m in self.metrics)})')

    def collect(self) -> pandas.DataFrame:
        """All the individual results along with the parameter values.

        Returns:
            Data frame with one row per metric per fold per assignment.
        """
        return self.results.frame().merge(self.grid.frame(), on='assignment', how='left')

    def summarize(self) -> pandas.DataFrame:
        """Metrics aggregated across the folds.

        Returns:
            Data frame with the ``mean``, ``std`` and ``n`` values of each metric per assignment.
        """
        summary = self.results.aggregate('assignment', 'metric', stats=('mean', 'std', 'count'))
        return summary.rename(columns={'count': 'n'}).merge(self.grid.frame(), on='assignment', how='left')

    def show_best(
        self, metric: typing.Optional[str] = None, n: int = 5, direction: typing.Optional[evaluation.Direction] = None
    ) -> pandas.DataFrame:
        """Top assignments according to the mean value of the given metric.

        Args:
            metric: Metric name (defaults to the first metric).
            n: Number of assignments to show.
            direction: Explicit direction of improvement (defaults to the metric one).

        Returns:
            Summary rows of the best assignments (best first, ties ordered by the assignment id).
        """
        metric = self._metric(metric)
        direction = evaluation.Direction(direction or metric.direction)
        summary = self.summarize()
        summary = summary[summary['metric'] == metric.name]
        return summary.sort_values(
            ['mean', 'assignment'], ascending=[direction.ascending, True], na_position='last', kind='mergesort'
        ).head(n)

    def select_best(
        self, metric: typing.Optional[str] = None, direction: typing.Optional[evaluation.Direction] = None
    ) -> _grid.Assignment:
        """The assignment with the best mean value of the given metric.

        Ties are resolved in favour of the lowest assignment id.

        Args:
            metric: Metric name (defaults to the first metric).
            direction: Explicit direction of improvement (defaults to the metric one).

        Returns:
            The best assignment.
        """
        best = self.show_best(metric, 1, direction)
        if best.empty:
            raise foldwise.MissingError('No results to select from')
        return self.grid[int(best['assignment'].iloc[0]) - 1]


class Prepared(typing.NamedTuple):
    """Fold subsets transformed using the recipe prepared on the fold training part."""

    fold: int
    train: pandas.DataFrame
    test: pandas.DataFrame


class LastFit(typing.NamedTuple):
    """Outcome of the final fit on the full training part evaluated on the testing part."""

    fitted: workflow.Fitted
    results: evaluation.Results

    def collect(self) -> pandas.DataFrame:
        """Tabular representation of the test metrics."""
        return self.results.frame()[['metric', 'value']]


def _prepare(flow: workflow.Workflow, fold: int, train: pandas.DataFrame, test: pandas.DataFrame) -> Prepared:
    try:
        prepared = flow.recipe.fit(train)
        return Prepared(fold, prepared.apply(train), prepared.apply(test))
    except Exception as err:
        raise foldwise.TuningError(f'Preparing fold #{fold} failed: {err}', fold) from err


def _evaluate(
    flow: workflow.Workflow,
    prepared: Prepared,
    assignment: _grid.Assignment,
    metrics: typing.Sequence[evaluation.Metric],
    timeout: typing.Optional[float],
) -> list[evaluation.Result]:
    start = time.monotonic()
    try:
        fitted = model.fit(flow.model, assignment.params, prepared.train, flow.outcome)
        results = evaluation.score(
            metrics,
            prepared.test[flow.outcome],
            lambda k: fitted.predict(prepared.test, k),
            prepared.fold,
            assignment.id,
        )
    except Exception as err:
        raise foldwise.TuningError(
            f'Evaluating assignment {assignment} on fold #{prepared.fold} failed: {err}', prepared.fold, assignment
        ) from err
    elapsed = time.monotonic() - start
    if timeout and elapsed > timeout:
        raise foldwise.EvaluationTimeoutError(
            f'Evaluating assignment {assignment} on fold #{prepared.fold} took {elapsed:.1f}s (limit {timeout}s)',
            prepared.fold,
            assignment,
        )
    LOGGER.debug('Evaluated assignment %s on fold #%d in %.3fs', assignment, prepared.fold, elapsed)
    return results


def _run(
    executor: typing.Optional[futures.Executor],
    tasks: typing.Sequence[tuple[typing.Callable, tuple]],
    bound: typing.Optional[float],
    describe: typing.Callable[[int], tuple[typing.Optional[int], typing.Any]],
) -> list:
    """Execute the tasks either inline or using the executor, keeping the results in the task order.

    Args:
        executor: Optional executor to use.
        tasks: Sequence of (function, args) pairs.
        bound: Optional limit of the total waiting time.
        describe: Callable returning the (fold, assignment) pair of the given task index.

    Returns:
        Results in the task order.
    """
    if not executor:
        return [f(*a) for f, a in tasks]
    slots = [None] * len(tasks)
    pending = {executor.submit(f, *a): i for i, (f, a) in enumerate(tasks)}
    try:
        for future in futures.as_completed(pending, timeout=bound):
            slots[pending[future]] = future.result()
    except futures.TimeoutError as err:
        index = min(i for f, i in pending.items() if not f.done())
        raise foldwise.EvaluationTimeoutError(f'Evaluations not finished within {bound}s', *describe(index)) from err
    finally:
        for future in pending:
            future.cancel()
    return slots


def tune(
    flow: workflow.Workflow,
    folds: evaluation.Folds,
    grid: typing.Optional[_grid.Grid] = None,
    metrics: typing.Optional[typing.Sequence[evaluation.Metric]] = None,
    *,
    workers: typing.Optional[int] = None,
    timeout: typing.Optional[float] = None,
) -> Tuned:
    """Grid search evaluating every assignment on every fold.

    For each fold the recipe is prepared on its training part just once (it doesn't depend on the
    model hyper-parameters) and both parts are transformed. Then for each assignment the model is
    fitted on the transformed training part and scored on the held-out part.

    The run is all-or-nothing - any failing evaluation aborts it with :class:`foldwise.TuningError`
    carrying the fold and assignment.

    Args:
        flow: Workflow with some of the model parameters marked for tuning.
        folds: Resampling folds.
        grid: Assignments to evaluate (defaults to the regular grid of the model).
        metrics: Metrics to compute (defaults depend on the model mode).
        workers: Number of parallel workers (defaults to the configured value).
        timeout: Limit in seconds for a single evaluation (defaults to the configured value; zero
                 disables the limit).

    Returns:
        Tuning results.
    """
    if grid is None:
        grid = _grid.grid_regular(flow.model)
    metrics = tuple(metrics or DEFAULTS[flow.model.mode])
    unsupported = [m.name for m in metrics if m.kind not in flow.model.mode.kinds]
    if unsupported:
        raise foldwise.UnsupportedOutputKindError(
            f'Metrics not applicable to {flow.model.mode.value}: {", ".join(unsupported)}'
        )
    for assignment in grid:  # eager validation of all the assignments
        try:
            flow.model.bind(**assignment.params)
        except TypeError as err:
            raise foldwise.UnexpectedError(f'Invalid assignment {assignment}: {err}') from err
    if workers is None:
        workers = setup.CONFIG.option(setup.SECTION_TUNING, setup.OPT_WORKERS, 1)
    if timeout is None:
        timeout = setup.CONFIG.option(setup.SECTION_TUNING, setup.OPT_TIMEOUT, 0)
    if workers < 1 or timeout < 0:
        raise foldwise.InvalidError(f'Invalid tuning setup: workers={workers}, timeout={timeout}')
    timeout = timeout or None

    LOGGER.info(
        'Tuning %s: %d assignments x %d folds using %d worker(s)', flow.model, len(grid), len(folds), workers
    )
    executor = futures.ThreadPoolExecutor(workers) if workers > 1 or timeout else None
    try:
        subsets = list(folds.subsets())
        prepared = _run(
            executor,
            [(_prepare, (flow, *s)) for s in subsets],
            None,
            lambda i: (subsets[i][0], None),
        )
        tasks = [(a, p) for a in grid for p in prepared]
        results = _run(
            executor,
            [(_evaluate, (flow, p, a, metrics, timeout)) for a, p in tasks],
            timeout and timeout * math.ceil(len(tasks) / workers),
            lambda i: (tasks[i][1].fold, tasks[i][0]),
        )
    except foldwise.TuningError as err:
        LOGGER.error('Tuning aborted: %s', err)
        raise
    finally:
        if executor:
            executor.shutdown(wait=False, cancel_futures=True)
    tuned = Tuned(flow, grid, metrics, evaluation.Results(r for e in results for r in e))
    LOGGER.info('Tuning completed with %d results', len(tuned.results))
    return tuned


def fit_resamples(
    flow: workflow.Workflow,
    folds: evaluation.Folds,
    metrics: typing.Optional[typing.Sequence[evaluation.Metric]] = None,
    *,
    workers: typing.Optional[int] = None,
    timeout: typing.Optional[float] = None,
) -> Tuned:
    """Evaluate a fully specified workflow across the folds (tuning of a single empty assignment).

    Args:
        flow: Workflow with no parameters left for tuning.
        folds: Resampling folds.
        metrics: Metrics to compute (defaults depend on the model mode).
        workers: Number of parallel workers.
        timeout: Limit in seconds for a single evaluation.

    Returns:
        Evaluation results (all tagged with assignment #1).
    """
    return tune(flow, folds, _grid.Grid.of(), metrics, workers=workers, timeout=timeout)


def last_fit(
    flow: workflow.Workflow,
    split: evaluation.Split,
    data: pandas.DataFrame,
    metrics: typing.Optional[typing.Sequence[evaluation.Metric]] = None,
) -> LastFit:
    """Fit the (finalized) workflow on the training part of the split and evaluate it on the testing part.

    Args:
        flow: Workflow with no parameters left for tuning.
        split: The initial train/test split.
        data: The dataset the split was created for.
        metrics: Metrics to compute (defaults depend on the model mode).

    Returns:
        The fitted workflow with its test metrics.
    """
    metrics = tuple(metrics or DEFAULTS[flow.model.mode])
    train, test = split.training(data), split.testing(data)
    fitted = flow.fit(train)
    results = evaluation.score(metrics, test[flow.outcome], lambda k: fitted.predict(test, k))
    for result in results:
        LOGGER.info('Test %s: %.4f', result.metric, result.value)
    return LastFit(fitted, evaluation.Results(results))
