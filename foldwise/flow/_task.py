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
Flow actor abstraction.
"""

import abc
import collections
import inspect
import logging
import types
import typing

import foldwise

if typing.TYPE_CHECKING:
    from foldwise import flow


LOGGER = logging.getLogger(__name__)


def name(actor: typing.Any, *args, **kwargs) -> str:
    """Infer the task name of given instance or type.

    Args:
        actor: Type or actor instance.
        *args: Optional positional parameters.
        **kwargs: Optional keyword parameters.

    Returns:
        String name representation.
    """

    def extract(obj: typing.Any) -> str:
        """Extract the name of given object

        Args:
            obj: Object whose name to be extracted.

        Returns:
            Extracted name.
        """
        return obj.__name__ if hasattr(obj, '__name__') else repr(obj)

    value = extract(actor)
    params = [extract(a) for a in args] + [f'{k}={extract(v)}' for k, v in kwargs.items()]
    if params:
        value += '(' + ', '.join(params) + ')'
    return value


# Actor state type.
State = typing.TypeVar('State')

# Actor features type.
Features = typing.TypeVar('Features')

# Actor labels type.
Labels = typing.TypeVar('Labels')

# Actor apply result type.
Result = typing.TypeVar('Result')


class Actor(typing.Generic[State, Features, Result], metaclass=abc.ABCMeta):
    """Abstract actor base class.

    An actor is an immutable piece of configuration (its *hyper-parameters*) with two modes:

    * *fit* - learning a new *state* from the reference features (and optionally labels) without
      touching the actor itself
    * *apply* - deterministic transformation of any features using nothing but the given state

    Keeping the state outside of the actor makes the *fit* and *apply* modes strictly separated -
    there is no way for *apply* to peek at the statistics of the data passed to it.

    Args:
        params: Hyper-parameters of the actor.
    """

    def __init__(self, **params: typing.Any):
        self._params: typing.Mapping[str, typing.Any] = types.MappingProxyType(dict(params))

    def __repr__(self):
        return name(self.__class__, **self._params)

    def __getstate__(self) -> dict[str, typing.Any]:
        return dict(self._params)

    def __setstate__(self, state: dict[str, typing.Any]) -> None:
        self._params = types.MappingProxyType(state)

    def __eq__(self, other):
        return type(other) is type(self) and other.get_params() == self.get_params()

    def __hash__(self):
        return hash(type(self))

    def fit(self, features: 'flow.Features', labels: typing.Optional['flow.Labels'] = None, /) -> 'flow.State':
        """The *fit* mode entry point.

        Optional method for stateful actors returning the learned state.

        Args:
            features: Reference feature-set.
            labels: Optional reference labels.

        Returns:
            New state instance.
        """
        return None

    @abc.abstractmethod
    def apply(self, state: 'flow.State', features: 'flow.Features', /) -> 'flow.Result':
        """The *apply* mode entry-point.

        Args:
            state: State previously returned from the :meth:`fit` method.
            features: Input feature-set.

        Returns:
            Transformation result (i.e. predictions).
        """

    def get_params(self) -> typing.Mapping[str, typing.Any]:
        """Get the hyper-parameters of the actor.

        Returns:
            Dictionary of the name-value of the hyper-parameters.
        """
        return dict(self._params)

    def update(self: '_Actor', **params: typing.Any) -> '_Actor':
        """Return a new actor of the same type with the given hyper-parameters updated.

        Args:
            params: Hyper-parameters to be replaced.

        Returns:
            New actor instance.
        """
        unknown = set(params).difference(self._params)
        if unknown:
            raise foldwise.UnexpectedError(f'Unknown hyper-parameters for {self}: {", ".join(sorted(unknown))}')
        return self.__class__(**(self.get_params() | params))

    @classmethod
    def builder(cls: 'type[_Actor]', *args, **kwargs: typing.Any) -> 'flow.Builder[_Actor]':
        """Creating a builder instance for this actor.

        Args:
            args: Positional arguments.
            kwargs: Keyword arguments.

        Returns:
            Actor builder instance.
        """
        return Spec(cls, *args, **kwargs)

    @classmethod
    def is_stateful(cls) -> bool:
        """Check whether this actor is stateful.

        By default, this is determined based on the existence of user-overridden fit method.

        Returns:
            True if stateful.
        """
        return cls.fit.__code__ is not Actor.fit.__code__


# Generic actor type.
_Actor = typing.TypeVar('_Actor', bound=Actor)


class Builder(typing.Generic[_Actor], metaclass=abc.ABCMeta):
    """Interface for actor builders providing all the required initialization configuration
    for instantiating an actor."""

    @property
    @abc.abstractmethod
    def actor(self) -> type[_Actor]:
        """Target actor class."""

    @property
    @abc.abstractmethod
    def args(self) -> typing.Sequence[typing.Any]:
        """Actor positional arguments."""

    @property
    @abc.abstractmethod
    def kwargs(self) -> typing.Mapping[str, typing.Any]:
        """Actor keyword arguments."""

    def update(self, *args, **kwargs) -> 'flow.Builder[_Actor]':
        """Return new builder with the updated parameters.

        Args:
            args: Positional arguments to *replace* the original ones.
            kwargs: Keyword arguments to *update* the original ones.

        Returns:
            New builder instance with the updated parameters.
        """
        return self.actor.builder(*(args or self.args), **self.kwargs | kwargs)

    def reset(self, *args, **kwargs) -> 'flow.Builder[_Actor]':
        """Return new builder with the new parameters.

        Args:
            args: Positional arguments to *replace* the original ones.
            kwargs: Keyword arguments to *replace* the original ones.

        Returns:
            New builder instance with the new parameters.
        """
        return self.actor.builder(*args, **kwargs)

    def __repr__(self):
        return name(self.actor, *self.args, **self.kwargs)

    def __call__(self, *args, **kwargs) -> _Actor:
        return self.actor(*(args or self.args), **self.kwargs | kwargs)


class Spec(collections.namedtuple('Spec', 'actor, args, kwargs'), Builder[_Actor]):
    """Actor builder holding all the required initialization configuration for instantiating the
    particular actor.

    Args:
        actor: Target actor class.
        args: Actor positional arguments.
        kwargs: Actor keyword arguments.
    """

    actor: type[_Actor]
    args: tuple[typing.Any]
    kwargs: typing.Mapping[str, typing.Any]

    def __new__(cls, actor: type[_Actor], *args: typing.Any, **kwargs: typing.Any):
        inspect.signature(actor).bind_partial(*args, **kwargs)
        return super().__new__(cls, actor, args, types.MappingProxyType(kwargs))

    def __getnewargs_ex__(self):
        return (self.actor, *self.args), dict(self.kwargs)

    def __repr__(self) -> str:
        return Builder.__repr__(self)
