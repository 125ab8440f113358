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
Foldwise top level.

Model evaluation pipelines: stratified splitting, fit-then-apply preprocessing recipes, uniform model
adapters, k-fold resampling and grid search tuning.
"""

__version__ = '0.1.dev0'


class AnyError(Exception):
    """Base class for all Foldwise exceptions."""


class InvalidError(AnyError):
    """Exception state of an invalid element."""


class MissingError(InvalidError):
    """Exception state of a missing element."""


class UnexpectedError(InvalidError):
    """Exception state of an unexpected element."""


class FailedError(AnyError):
    """Exception indicating an unsuccessful result of an operation."""


class InvalidFractionError(InvalidError, ValueError):
    """Train fraction outside of the open (0, 1) interval."""


class InvalidFoldCountError(InvalidError, ValueError):
    """Number of folds not usable for the given dataset."""


class UnknownColumnError(MissingError, KeyError):
    """Column referenced by a configuration is not present in the dataset."""

    def __str__(self):
        return Exception.__str__(self)


class MissingColumnError(MissingError, KeyError):
    """Column learned at fit time is not present in the dataset passed to apply."""

    def __str__(self):
        return Exception.__str__(self)


class ZeroVarianceError(InvalidError, ValueError):
    """Normalization over a column with zero standard deviation."""


class NonPositiveValueError(InvalidError, ValueError):
    """Logarithm of a non-positive value."""


class UnsupportedOutputKindError(InvalidError, TypeError):
    """Prediction kind not supported by the model family or mode."""


class FitBeforeApplyError(MissingError, RuntimeError):
    """Apply called on a recipe or step that has not been fitted."""


class TuningError(FailedError):
    """Failure of a single (fold, assignment) evaluation aborting the whole tuning run.

    Args:
        message: Error description.
        fold: Id of the fold the failing evaluation was running on.
        assignment: Hyperparameter assignment of the failing evaluation.
    """

    def __init__(self, message: str, fold=None, assignment=None):
        super().__init__(message)
        self.fold = fold
        self.assignment = assignment


class EvaluationTimeoutError(TuningError):
    """Evaluation exceeding the configured timeout."""
