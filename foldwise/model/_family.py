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
Scikit-learn backed model families.
"""
import abc
import logging
import typing

import pandas
from sklearn import base, ensemble, linear_model, tree

import foldwise
from foldwise import flow, setup

from . import _api

LOGGER = logging.getLogger(__name__)


class Estimator(_api.Family, metaclass=abc.ABCMeta):
    """Common base for families implemented using a scikit-learn estimator.

    The estimator instance itself is the learned state.
    """

    @abc.abstractmethod
    def estimator(self) -> base.BaseEstimator:
        """Create a fresh (unfitted) estimator instance configured using our hyper-parameters.

        Returns:
            Scikit-learn estimator.
        """

    def fit(self, features: pandas.DataFrame, labels: pandas.Series, /) -> base.BaseEstimator:
        estimator = self.estimator()
        LOGGER.debug('Training %s', estimator)
        return estimator.fit(features, labels)

    def predict(
        self, state: base.BaseEstimator, features: pandas.DataFrame, kind: _api.Kind
    ) -> typing.Union[pandas.Series, pandas.DataFrame]:
        if kind is _api.Kind.PROBABILITY:
            return pandas.DataFrame(state.predict_proba(features), index=features.index, columns=state.classes_)
        return pandas.Series(
            state.predict(features), index=features.index, name='.pred_class' if kind is _api.Kind.CLASS else '.pred'
        )

    @property
    def seed(self) -> typing.Optional[int]:
        """Random state for the estimator (defaulting to the configured seed)."""
        seed = self._params.get('seed')
        return setup.CONFIG.option(setup.SECTION_RANDOM, setup.OPT_SEED) if seed is None else seed


class LinearRegression(Estimator):
    """Linear regression optionally regularized using the elastic-net penalty.

    Args:
        penalty: Total amount of regularization (zero for ordinary least squares).
        mixture: Proportion of the L1 penalty (zero for pure ridge, one for pure lasso).
    """

    MODES = (_api.Mode.REGRESSION,)
    DOMAINS = {'penalty': flow.Range(1e-10, 1.0, log=True), 'mixture': flow.Range(0.0, 1.0)}

    def __init__(self, penalty: float = 0.0, mixture: float = 0.0, mode: typing.Optional[str] = None):
        if penalty < 0 or not 0 <= mixture <= 1:
            raise foldwise.InvalidError(f'Invalid regularization: penalty={penalty}, mixture={mixture}')
        super().__init__(mode, penalty=penalty, mixture=mixture)

    def estimator(self) -> base.BaseEstimator:
        penalty, mixture = self._params['penalty'], self._params['mixture']
        if not penalty:
            return linear_model.LinearRegression()
        if not mixture:
            return linear_model.Ridge(alpha=penalty)
        return linear_model.ElasticNet(alpha=penalty, l1_ratio=mixture)


class LogisticRegression(Estimator):
    """Logistic regression classifier.

    Args:
        penalty: Regularization strength (inverse of the scikit-learn ``C``); None keeps the
                 scikit-learn default.
        mixture: Proportion of the L1 penalty (non-zero switches to the elastic-net penalty).
    """

    MODES = (_api.Mode.CLASSIFICATION,)
    DOMAINS = {'penalty': flow.Range(1e-10, 1.0, log=True), 'mixture': flow.Range(0.0, 1.0)}

    def __init__(
        self, penalty: typing.Optional[float] = None, mixture: float = 0.0, mode: typing.Optional[str] = None
    ):
        if (penalty is not None and penalty <= 0) or not 0 <= mixture <= 1:
            raise foldwise.InvalidError(f'Invalid regularization: penalty={penalty}, mixture={mixture}')
        super().__init__(mode, penalty=penalty, mixture=mixture)

    def estimator(self) -> base.BaseEstimator:
        params = {'max_iter': 1000}
        if self._params['penalty'] is not None:
            params['C'] = 1.0 / self._params['penalty']
        if self._params['mixture']:
            params.update(penalty='elasticnet', solver='saga', l1_ratio=self._params['mixture'])
        return linear_model.LogisticRegression(**params)


class DecisionTree(Estimator):
    """CART decision tree.

    Args:
        cost_complexity: Minimal cost-complexity pruning parameter.
        tree_depth: Maximum depth (None for unlimited).
        min_n: Minimum number of records required to split a node.
        mode: Classification or regression.
        seed: Random state (defaults to the configured seed).
    """

    MODES = (_api.Mode.CLASSIFICATION, _api.Mode.REGRESSION)
    DOMAINS = {
        'cost_complexity': flow.Range(1e-10, 0.1, log=True),
        'tree_depth': flow.Range(1, 15, integer=True),
        'min_n': flow.Range(2, 40, integer=True),
    }

    def __init__(
        self,
        cost_complexity: float = 0.0,
        tree_depth: typing.Optional[int] = None,
        min_n: int = 2,
        mode: typing.Optional[str] = None,
        seed: typing.Optional[int] = None,
    ):
        super().__init__(mode, cost_complexity=cost_complexity, tree_depth=tree_depth, min_n=min_n, seed=seed)

    def estimator(self) -> base.BaseEstimator:
        factory = tree.DecisionTreeClassifier if self.mode is _api.Mode.CLASSIFICATION else tree.DecisionTreeRegressor
        return factory(
            ccp_alpha=self._params['cost_complexity'],
            max_depth=self._params['tree_depth'],
            min_samples_split=max(2, self._params['min_n']),
            random_state=self.seed,
        )


class RandomForest(Estimator):
    """Random forest ensemble.

    Args:
        trees: Number of trees.
        mtry: Number of predictors sampled at each split (None for the scikit-learn default).
        min_n: Minimum number of records in a leaf.
        mode: Classification or regression.
        seed: Random state (defaults to the configured seed).
    """

    MODES = (_api.Mode.CLASSIFICATION, _api.Mode.REGRESSION)
    DOMAINS = {
        'trees': flow.Range(10, 2000, integer=True),
        'mtry': flow.Range(1, 10, integer=True),
        'min_n': flow.Range(1, 40, integer=True),
    }

    def __init__(
        self,
        trees: int = 500,
        mtry: typing.Optional[int] = None,
        min_n: int = 1,
        mode: typing.Optional[str] = None,
        seed: typing.Optional[int] = None,
    ):
        super().__init__(mode, trees=trees, mtry=mtry, min_n=min_n, seed=seed)

    def estimator(self, predictors: typing.Optional[int] = None) -> base.BaseEstimator:
        factory = (
            ensemble.RandomForestClassifier
            if self.mode is _api.Mode.CLASSIFICATION
            else ensemble.RandomForestRegressor
        )
        params = {
            'n_estimators': self._params['trees'],
            'min_samples_leaf': self._params['min_n'],
            'random_state': self.seed,
        }
        mtry = self._params['mtry']
        if mtry is not None:
            params['max_features'] = min(mtry, predictors) if predictors else mtry
        return factory(**params)

    def fit(self, features: pandas.DataFrame, labels: pandas.Series, /) -> base.BaseEstimator:
        # mtry can't exceed the actual number of predictors
        return self.estimator(features.shape[1]).fit(features, labels)
