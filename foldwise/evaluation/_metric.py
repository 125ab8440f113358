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
Metric implementations.
"""
import abc
import collections.abc
import enum
import logging
import typing

import numpy
import pandas
import sklearn.metrics

from foldwise import model

LOGGER = logging.getLogger(__name__)


class Direction(enum.Enum):
    """Direction of metric improvement."""

    MAXIMIZE = 'maximize'
    MINIMIZE = 'minimize'

    @property
    def ascending(self) -> bool:
        """Whether sorting ascending puts the best values first."""
        return self is Direction.MINIMIZE


class Metric(abc.ABC):
    """Evaluation metric base class.

    Args:
        name: Metric name used for reporting and selection.
        kind: Kind of predictions the metric is computed from.
        direction: Direction of improvement.
    """

    def __init__(self, name: str, kind: model.Kind, direction: Direction):
        self.name: str = name
        self.kind: model.Kind = model.Kind(kind)
        self.direction: Direction = Direction(direction)

    def __repr__(self):
        return self.name

    @abc.abstractmethod
    def score(self, true: pandas.Series, pred: typing.Union[pandas.Series, pandas.DataFrame]) -> float:
        """Compute the metric value.

        Args:
            true: Actual outcome values.
            pred: Predictions of the metric kind.

        Returns:
            The metric value.
        """


class Function(Metric):
    """Basic metric implementation wrapping a plain scoring function.

    Args:
        metric: Actual metric function implementation accepting the true and predicted values.
        name: Metric name (defaults to the function name).
        kind: Kind of predictions the function expects.
        direction: Direction of improvement.

    Examples:
        >>> BALANCED = evaluation.Function(sklearn.metrics.balanced_accuracy_score)
        >>> MAPE = evaluation.Function(
        ...     sklearn.metrics.mean_absolute_percentage_error, kind='numeric', direction='minimize'
        ... )
    """

    def __init__(
        self,
        metric: typing.Callable[[typing.Any, typing.Any], float],
        name: typing.Optional[str] = None,
        kind: typing.Union[model.Kind, str] = model.Kind.CLASS,
        direction: typing.Union[Direction, str] = Direction.MAXIMIZE,
    ):
        super().__init__(name or metric.__name__, kind, direction)
        self._metric: typing.Callable[[typing.Any, typing.Any], float] = metric

    def score(self, true: pandas.Series, pred: typing.Union[pandas.Series, pandas.DataFrame]) -> float:
        return float(self._metric(true, pred))


def _rmse(true, pred) -> float:
    return numpy.sqrt(sklearn.metrics.mean_squared_error(true, pred))


def _f1(true, pred) -> float:
    return sklearn.metrics.f1_score(true, pred, average='macro')


def _roc_auc(true: pandas.Series, pred: pandas.DataFrame) -> float:
    if pred.shape[1] == 2:  # binary - the second class is the event
        return sklearn.metrics.roc_auc_score(true == pred.columns[-1], pred.iloc[:, -1])
    return sklearn.metrics.roc_auc_score(true, pred.to_numpy(), multi_class='ovr', labels=list(pred.columns))


def _log_loss(true: pandas.Series, pred: pandas.DataFrame) -> float:
    return sklearn.metrics.log_loss(true, pred.to_numpy(), labels=list(pred.columns))


RMSE = Function(_rmse, 'rmse', model.Kind.NUMERIC, Direction.MINIMIZE)
RSQ = Function(sklearn.metrics.r2_score, 'rsq', model.Kind.NUMERIC, Direction.MAXIMIZE)
MAE = Function(sklearn.metrics.mean_absolute_error, 'mae', model.Kind.NUMERIC, Direction.MINIMIZE)
ACCURACY = Function(sklearn.metrics.accuracy_score, 'accuracy', model.Kind.CLASS, Direction.MAXIMIZE)
F1 = Function(_f1, 'f1', model.Kind.CLASS, Direction.MAXIMIZE)
ROC_AUC = Function(_roc_auc, 'roc_auc', model.Kind.PROBABILITY, Direction.MAXIMIZE)
LOG_LOSS = Function(_log_loss, 'log_loss', model.Kind.PROBABILITY, Direction.MINIMIZE)

#: Built-in metrics by name.
METRICS: typing.Mapping[str, Metric] = {m.name: m for m in (RMSE, RSQ, MAE, ACCURACY, F1, ROC_AUC, LOG_LOSS)}


class Result(typing.NamedTuple):
    """Single metric value tagged with its origin."""

    metric: str
    value: float
    fold: typing.Optional[int] = None
    assignment: typing.Optional[int] = None


def score(
    metrics: typing.Iterable[Metric],
    true: pandas.Series,
    predictions: typing.Callable[[model.Kind], typing.Union[pandas.Series, pandas.DataFrame]],
    fold: typing.Optional[int] = None,
    assignment: typing.Optional[int] = None,
) -> list[Result]:
    """Compute the given metrics.

    Predictions of each kind are requested just once even if needed by multiple metrics.

    Args:
        metrics: Metrics to compute.
        true: Actual outcome values.
        predictions: Callable producing predictions of the requested kind.
        fold: Fold id to tag the results with.
        assignment: Assignment id to tag the results with.

    Returns:
        List of results (in the metrics order).
    """
    cache = {}
    results = []
    for metric in metrics:
        if metric.kind not in cache:
            cache[metric.kind] = predictions(metric.kind)
        results.append(Result(metric.name, metric.score(true, cache[metric.kind]), fold, assignment))
    return results


class Results(collections.abc.Sequence):
    """Collection of metric results with aggregation capabilities.

    Args:
        results: The individual results.
    """

    STATS = ('mean', 'min', 'median', 'max', 'std', 'count')

    def __init__(self, results: typing.Iterable[Result] = ()):
        self._results: tuple[Result] = tuple(results)

    def __len__(self) -> int:
        return len(self._results)

    def __getitem__(self, index):
        return self._results[index]

    def __repr__(self):
        return f'Results[{len(self)}]'

    def __add__(self, other: typing.Iterable[Result]) -> 'Results':
        return Results((*self._results, *other))

    def frame(self) -> pandas.DataFrame:
        """Tabular representation of the results.

        Returns:
            Data frame with the ``metric``, ``value``, ``fold`` and ``assignment`` columns.
        """
        return pandas.DataFrame(self._results, columns=Result._fields)

    def aggregate(self, *by: str, stats: typing.Sequence[str] = STATS) -> pandas.DataFrame:
        """Aggregate the metric values.

        Args:
            by: Columns to group by (defaults to ``assignment`` and ``metric``).
            stats: Aggregation functions (any of the pandas aggregations).

        Returns:
            Data frame with the group keys and the aggregated values, one column per statistic.
        """
        by = list(by or ('assignment', 'metric'))
        return self.frame().groupby(by, sort=True, dropna=False)['value'].agg(list(stats)).reset_index()
