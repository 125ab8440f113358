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
Foldwise command line interface.
"""
import sys
import typing

import click
from click import core

import foldwise
from foldwise import setup

from . import _model


class Scope(typing.NamedTuple):
    """Case class for holding the partial command config."""

    config: typing.Optional[str]
    loglevel: typing.Optional[str]


@click.group(name='foldwise')
@click.option('--config', '-C', type=click.Path(exists=True, file_okay=True), help='Additional config file.')
@click.option(
    '--loglevel',
    '-L',
    type=click.Choice(['debug', 'info', 'warning', 'error'], case_sensitive=False),
    help='Global loglevel to use.',
)
@click.pass_context
def group(context: core.Context, config: typing.Optional[str], loglevel: typing.Optional[str]):
    """Model evaluation pipelines."""
    if config:
        setup.CONFIG.read(config)
    setup.logging(level=loglevel)
    context.obj = Scope(config, loglevel)


group.add_command(_model.tune)
group.add_command(_model.predict)


def main() -> None:
    """Cli wrapper for handling Foldwise exceptions."""
    try:
        group()  # pylint: disable=no-value-for-parameter
    except foldwise.AnyError as err:
        print(err, file=sys.stderr)
        sys.exit(1)
