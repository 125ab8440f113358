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
Model adapter interface.
"""
import abc
import enum
import logging
import typing

import cloudpickle
import pandas

import foldwise
from foldwise import flow

LOGGER = logging.getLogger(__name__)


class Kind(enum.Enum):
    """Kind of predictions a model can produce."""

    CLASS = 'class'
    """Class labels as a :class:`pandas:pandas.Series`."""
    PROBABILITY = 'prob'
    """Class probabilities as a :class:`pandas:pandas.DataFrame` with one column per class."""
    NUMERIC = 'numeric'
    """Continuous values as a :class:`pandas:pandas.Series`."""


class Mode(enum.Enum):
    """Task type of a model."""

    CLASSIFICATION = 'classification'
    REGRESSION = 'regression'

    @property
    def kinds(self) -> frozenset[Kind]:
        """Prediction kinds available in this mode."""
        if self is Mode.CLASSIFICATION:
            return frozenset({Kind.CLASS, Kind.PROBABILITY})
        return frozenset({Kind.NUMERIC})

    @property
    def default(self) -> Kind:
        """Prediction kind used when not explicitly requested."""
        return Kind.CLASS if self is Mode.CLASSIFICATION else Kind.NUMERIC


class Family(flow.Actor[typing.Any, pandas.DataFrame, typing.Any], metaclass=abc.ABCMeta):
    """Base class for a model algorithm family.

    New families are added simply by implementing this interface - nothing else in the pipeline
    needs to know about them.

    Attributes:
        MODES: Modes supported by the family (the first one being the default if there is just one).
        DOMAINS: Default tuning domains of the family hyper-parameters.

    Args:
        mode: Task type (required if the family supports more than one mode).
        params: Family specific hyper-parameters.
    """

    MODES: tuple[Mode] = ()
    DOMAINS: typing.Mapping[str, flow.Domain] = {}

    def __init__(self, mode: typing.Optional[typing.Union[Mode, str]] = None, **params: typing.Any):
        super().__init__(mode=self.resolve(mode), **params)

    @classmethod
    def resolve(cls, mode: typing.Optional[typing.Union[Mode, str]]) -> Mode:
        """Validate the requested mode against the family capabilities.

        Args:
            mode: Requested mode (or None for the implicit one).

        Returns:
            Resolved mode.
        """
        if mode is None:
            if len(cls.MODES) > 1:
                raise foldwise.MissingError(f'{cls.__name__} requires explicit mode')
            return cls.MODES[0]
        mode = Mode(mode)
        if mode not in cls.MODES:
            raise foldwise.UnexpectedError(f'{cls.__name__} does not support {mode.value}')
        return mode

    @property
    def mode(self) -> Mode:
        """The task type."""
        return self._params['mode']

    def check(self, kind: typing.Union[Kind, str]) -> Kind:
        """Validate the prediction kind against the actual mode.

        Args:
            kind: Requested prediction kind.

        Returns:
            Validated kind.
        """
        kind = Kind(kind)
        if kind not in self.mode.kinds:
            raise foldwise.UnsupportedOutputKindError(f'{self} in {self.mode.value} mode can not predict {kind.value}')
        return kind

    @abc.abstractmethod
    def fit(self, features: pandas.DataFrame, labels: pandas.Series, /) -> typing.Any:
        """Train a new model.

        Args:
            features: Predictor columns.
            labels: Outcome values.

        Returns:
            The learned model state.
        """

    @abc.abstractmethod
    def predict(
        self, state: typing.Any, features: pandas.DataFrame, kind: Kind
    ) -> typing.Union[pandas.Series, pandas.DataFrame]:
        """Produce predictions of the given kind.

        Args:
            state: The learned model state.
            features: Predictor columns.
            kind: Prediction kind (already validated).

        Returns:
            Predictions indexed like the features.
        """

    def apply(self, state: typing.Any, features: pandas.DataFrame, /) -> typing.Union[pandas.Series, pandas.DataFrame]:
        return self.predict(state, features, self.mode.default)

    @classmethod
    def builder(cls, *args, **kwargs: typing.Any) -> 'Model':
        return Model(cls, *args, **kwargs)


class Model(flow.Spec):
    """Immutable model specification - the family plus its (possibly to-be-tuned) hyper-parameters.

    Any of the keyword parameters can be a :class:`tuning.Tune <foldwise.flow.Tune>` placeholder
    that needs to be bound to an actual value before fitting.

    Examples:
        >>> TREE = model.Model(model.DecisionTree, mode='classification', tree_depth=tuning.Tune())
        >>> TREE.update(tree_depth=4)
    """

    def __new__(cls, actor: type[Family], *args: typing.Any, **kwargs: typing.Any):
        if not (isinstance(actor, type) and issubclass(actor, Family)):
            raise TypeError(f'Not a model family: {actor}')
        actor.resolve(kwargs.get('mode'))
        return super().__new__(cls, actor, *args, **kwargs)

    @property
    def family(self) -> type[Family]:
        """The model family."""
        return self.actor

    @property
    def mode(self) -> Mode:
        """The task type."""
        return self.actor.resolve(self.kwargs.get('mode'))

    @property
    def tunable(self) -> typing.Mapping[str, flow.Domain]:
        """Hyper-parameters marked for tuning along with their domains.

        Returns:
            Mapping of parameter names to their tuning domains (in the declaration order).
        """
        domains = {}
        for key, value in self.kwargs.items():
            if isinstance(value, flow.Tune):
                domain = value.domain or self.actor.DOMAINS.get(key)
                if not domain:
                    raise foldwise.MissingError(f'No tuning domain for {self.actor.__name__}.{key}')
                domains[key] = domain
        return domains

    def bind(self, **params: typing.Any) -> Family:
        """Instantiate the family with all the tuning placeholders bound to actual values.

        Args:
            params: Hyper-parameter values.

        Returns:
            Model family instance.
        """
        spec = self.update(**params)
        pending = sorted(k for k, v in spec.kwargs.items() if isinstance(v, flow.Tune))
        if pending:
            raise foldwise.MissingError(f'Unbound tuning parameters of {spec}: {", ".join(pending)}')
        return spec()


class Fitted(typing.NamedTuple):
    """Immutable artifact of a trained model."""

    model: Model
    """The (fully bound) model specification."""
    family: Family
    """The family instance used for fitting."""
    state: typing.Any
    """The learned state."""
    outcome: str
    """Name of the outcome column."""
    predictors: tuple[str]
    """Names of the predictor columns in the training order."""

    def predict(
        self, data: pandas.DataFrame, kind: typing.Optional[typing.Union[Kind, str]] = None
    ) -> typing.Union[pandas.Series, pandas.DataFrame]:
        """Predict on the given dataset.

        Args:
            data: Dataset containing (at least) all the predictor columns.
            kind: Prediction kind (defaults to class labels for classification or numeric values for
                  regression).

        Returns:
            Predictions.
        """
        kind = self.family.check(kind or self.family.mode.default)
        missing = [c for c in self.predictors if c not in data.columns]
        if missing:
            raise foldwise.MissingColumnError(f'Predictors missing from dataset: {", ".join(missing)}')
        return self.family.predict(self.state, data[list(self.predictors)], kind)

    def dumps(self) -> bytes:
        """Serialize the fitted model.

        Returns:
            Bytes representation.
        """
        return cloudpickle.dumps(self)

    @staticmethod
    def loads(state: bytes) -> 'Fitted':
        """Deserialize a fitted model.

        Args:
            state: Bytes representation previously produced by :meth:`dumps`.

        Returns:
            Fitted model instance.
        """
        return cloudpickle.loads(state)


def fit(
    spec: Model,
    hyperparameters: typing.Optional[typing.Mapping[str, typing.Any]],
    data: pandas.DataFrame,
    outcome: str,
) -> Fitted:
    """Fit the model on the given dataset.

    Args:
        spec: Model specification.
        hyperparameters: Values for binding the tuning placeholders (or overriding any other params).
        data: Training dataset containing the predictors and the outcome column.
        outcome: Name of the outcome column.

    Returns:
        Fitted model artifact.
    """
    hyperparameters = dict(hyperparameters or {})
    family = spec.bind(**hyperparameters)
    if outcome not in data.columns:
        raise foldwise.UnknownColumnError(f'Outcome column {outcome} not in dataset')
    features = data.drop(columns=outcome)
    LOGGER.debug('Fitting %s on %d rows x %d predictors', family, *features.shape)
    state = family.fit(features, data[outcome])
    return Fitted(spec.update(**hyperparameters), family, state, outcome, tuple(features.columns))


def predict(
    fitted: Fitted, data: pandas.DataFrame, kind: typing.Optional[typing.Union[Kind, str]] = None
) -> typing.Union[pandas.Series, pandas.DataFrame]:
    """Predict using the fitted model.

    See :meth:`Fitted.predict` for the details.
    """
    return fitted.predict(data, kind)
