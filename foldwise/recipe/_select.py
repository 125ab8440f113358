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
Column selectors.
"""
import abc
import typing

import pandas

import foldwise


class Selector(abc.ABC):
    """Rule for choosing the columns a step operates on.

    Selectors are resolved at *fit* time against the reference data; the resolved names then become
    part of the learned state.

    Args:
        exclude_outcome: Never select the outcome column.
    """

    def __init__(self, exclude_outcome: bool = True):
        self.exclude_outcome: bool = exclude_outcome

    def __repr__(self):
        return f'{self.__class__.__name__.lower()}()'

    def __eq__(self, other):
        return type(other) is type(self) and other.__dict__ == self.__dict__

    def __hash__(self):
        return hash(type(self))

    def __call__(self, data: pandas.DataFrame, outcome: typing.Optional[str] = None) -> tuple[str]:
        """Resolve the selector against the given data.

        Args:
            data: Reference dataset.
            outcome: Name of the outcome column.

        Returns:
            Selected column names (in the dataset order).
        """
        return tuple(
            c for c in self.match(data) if not (self.exclude_outcome and outcome is not None and c == outcome)
        )

    @abc.abstractmethod
    def match(self, data: pandas.DataFrame) -> typing.Iterable[str]:
        """Get the matching columns.

        Args:
            data: Reference dataset.

        Returns:
            Matching column names.
        """


class Everything(Selector):
    """All columns."""

    def match(self, data: pandas.DataFrame) -> typing.Iterable[str]:
        return data.columns


class Numeric(Selector):
    """Columns of numeric (non boolean) types."""

    def match(self, data: pandas.DataFrame) -> typing.Iterable[str]:
        return (
            c
            for c in data.columns
            if pandas.api.types.is_numeric_dtype(data[c]) and not pandas.api.types.is_bool_dtype(data[c])
        )


class Nominal(Selector):
    """Columns of non-numeric types (strings, categories, booleans, objects)."""

    def match(self, data: pandas.DataFrame) -> typing.Iterable[str]:
        return (
            c
            for c in data.columns
            if not pandas.api.types.is_numeric_dtype(data[c]) or pandas.api.types.is_bool_dtype(data[c])
        )


class Names(Selector):
    """Explicitly named columns.

    Args:
        names: The column names.
    """

    def __init__(self, *names: str):
        super().__init__(exclude_outcome=False)
        self.names: tuple[str] = names

    def __repr__(self):
        return repr(list(self.names))

    def __hash__(self):
        return hash(self.names)

    def match(self, data: pandas.DataFrame) -> typing.Iterable[str]:
        missing = [n for n in self.names if n not in data.columns]
        if missing:
            raise foldwise.UnknownColumnError(f'Unknown columns: {", ".join(missing)}')
        return self.names


def everything(exclude_outcome: bool = True) -> Selector:
    """Select all columns.

    Args:
        exclude_outcome: Never select the outcome column.

    Returns:
        Selector instance.
    """
    return Everything(exclude_outcome)


def numeric(exclude_outcome: bool = True) -> Selector:
    """Select all numeric columns.

    Args:
        exclude_outcome: Never select the outcome column.

    Returns:
        Selector instance.
    """
    return Numeric(exclude_outcome)


def nominal(exclude_outcome: bool = True) -> Selector:
    """Select all nominal columns.

    Args:
        exclude_outcome: Never select the outcome column.

    Returns:
        Selector instance.
    """
    return Nominal(exclude_outcome)


def resolve(columns: typing.Optional[typing.Union[str, typing.Iterable[str], Selector]], default: Selector) -> Selector:
    """Normalize the columns specification into a selector.

    Args:
        columns: Single name, sequence of names or a selector.
        default: Selector to use if no columns given.

    Returns:
        Selector instance.
    """
    if columns is None:
        return default
    if isinstance(columns, Selector):
        return columns
    if isinstance(columns, str):
        return Names(columns)
    return Names(*columns)
