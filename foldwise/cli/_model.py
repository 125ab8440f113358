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
Model tuning and prediction commands.
"""
import logging
import pathlib
import typing

import click
import pandas

import foldwise
from foldwise import evaluation, model, recipe, setup, tuning, workflow

if typing.TYPE_CHECKING:
    from foldwise import cli

LOGGER = logging.getLogger(__name__)

#: Model families available from the command line.
FAMILIES: typing.Mapping[str, type[model.Family]] = {
    'linear': model.LinearRegression,
    'logistic': model.LogisticRegression,
    'tree': model.DecisionTree,
    'forest': model.RandomForest,
}


def load(path: str) -> pandas.DataFrame:
    """Read the CSV dataset.

    Args:
        path: File path.

    Returns:
        Loaded dataset.
    """
    data = pandas.read_csv(path)
    LOGGER.info('Loaded %d records x %d columns from %s', *data.shape, path)
    return data


def infer(family: type[model.Family], outcome: pandas.Series, mode: typing.Optional[str]) -> model.Mode:
    """Determine the model mode.

    An explicit mode wins, otherwise the only mode supported by the family is used, otherwise a
    numeric outcome with many distinct values means regression.

    Args:
        family: Model family.
        outcome: Outcome values.
        mode: Explicitly requested mode.

    Returns:
        The model mode.
    """
    if mode or len(family.MODES) == 1:
        return family.resolve(mode)
    breaks = setup.CONFIG.option(setup.SECTION_SPLIT, setup.OPT_BREAKS, 4)
    if (
        pandas.api.types.is_numeric_dtype(outcome)
        and not pandas.api.types.is_bool_dtype(outcome)
        and outcome.nunique() > breaks
    ):
        return model.Mode.REGRESSION
    return model.Mode.CLASSIFICATION


def preprocess(outcome: str, drop: typing.Sequence[str]) -> recipe.Recipe:
    """The default preprocessing recipe.

    Args:
        outcome: Outcome column name.
        drop: Columns to be removed upfront.

    Returns:
        Recipe instance.
    """
    result = recipe.Recipe(outcome)
    if drop:
        result >>= recipe.Remove(drop)
    return (
        result
        >> recipe.ImputeMedian()
        >> recipe.ImputeMode()
        >> recipe.Dummy()
        >> recipe.Normalize(zero_variance='skip')
    )


@click.command()
@click.argument('dataset', type=click.Path(exists=True, dir_okay=False))
@click.option('--outcome', '-y', required=True, help='Outcome column name.')
@click.option('--model', '-m', 'family', type=click.Choice(sorted(FAMILIES)), default='tree', help='Model family.')
@click.option('--mode', type=click.Choice([m.value for m in model.Mode]), help='Model mode.')
@click.option('--tune', '-t', 'tuned', multiple=True, help='Hyper-parameter to tune (all by default).')
@click.option('--drop', '-d', multiple=True, help='Column to ignore.')
@click.option('--folds', '-k', type=int, help='Number of folds.')
@click.option('--fraction', '-f', type=float, help='Training fraction of the initial split.')
@click.option('--metric', multiple=True, type=click.Choice(sorted(evaluation.METRICS)), help='Metric to compute.')
@click.option('--levels', type=int, help='Number of levels per tuned hyper-parameter.')
@click.option('--seed', type=int, help='Random seed.')
@click.option('--workers', '-w', type=int, help='Number of parallel workers.')
@click.option('--save', '-s', type=click.Path(dir_okay=False), help='Path to store the final fitted workflow.')
@click.pass_obj
def tune(
    scope: 'cli.Scope',  # pylint: disable=unused-argument
    dataset: str,
    outcome: str,
    family: str,
    mode: typing.Optional[str],
    tuned: tuple[str],
    drop: tuple[str],
    folds: typing.Optional[int],
    fraction: typing.Optional[float],
    metric: tuple[str],
    levels: typing.Optional[int],
    seed: typing.Optional[int],
    workers: typing.Optional[int],
    save: typing.Optional[str],
) -> None:
    """Tune the model on the DATASET and evaluate the best one on a held-out part."""
    if seed is not None:
        setup.CONFIG.update({setup.SECTION_RANDOM: {setup.OPT_SEED: seed}})
    data = load(dataset)
    if outcome not in data.columns:
        raise foldwise.UnknownColumnError(f'Outcome column {outcome} not in {dataset}')
    actor = FAMILIES[family]
    unknown = set(tuned).difference(actor.DOMAINS)
    if unknown:
        raise foldwise.UnexpectedError(f'Not tunable for {family}: {", ".join(sorted(unknown))}')
    spec = model.Model(
        actor,
        mode=infer(actor, data[outcome], mode),
        **{p: tuning.Tune() for p in (tuned or actor.DOMAINS)},
    )
    flow = workflow.Workflow(preprocess(outcome, drop), spec)
    metrics = [evaluation.METRICS[m] for m in metric] or None

    split = evaluation.split(data, fraction, outcome)
    training = split.training(data)
    resamples = evaluation.make_folds(training, folds, outcome)
    result = tuning.tune(flow, resamples, tuning.grid_regular(spec, levels), metrics, workers=workers)
    click.echo(result.show_best().to_string(index=False))

    best = result.select_best()
    click.echo(f'Best assignment: {best}')
    final = tuning.last_fit(flow.finalize(best.params), split, data, result.metrics)
    click.echo(final.collect().to_string(index=False))
    if save:
        pathlib.Path(save).write_bytes(final.fitted.dumps())
        LOGGER.info('Fitted workflow saved to %s', save)


@click.command()
@click.argument('model', type=click.Path(exists=True, dir_okay=False))
@click.argument('dataset', type=click.Path(exists=True, dir_okay=False))
@click.option('--output', '-o', required=True, type=click.Path(dir_okay=False), help='Output CSV file.')
@click.option('--id', 'ident', help='Identifier column to include in the output.')
@click.pass_obj
def predict(
    scope: 'cli.Scope',  # pylint: disable=unused-argument
    model: str,  # pylint: disable=redefined-outer-name
    dataset: str,
    output: str,
    ident: typing.Optional[str],
) -> None:
    """Predict the DATASET using the saved MODEL and write the submission CSV."""
    fitted = workflow.Fitted.loads(pathlib.Path(model).read_bytes())
    data = load(dataset)
    predictions = fitted.predict(data)
    submission = pandas.DataFrame({fitted.workflow.outcome: predictions.to_numpy()})
    if ident:
        if ident not in data.columns:
            raise foldwise.UnknownColumnError(f'Identifier column {ident} not in {dataset}')
        submission.insert(0, ident, data[ident].to_numpy())
    submission.to_csv(output, index=False)
    LOGGER.info('Written %d predictions to %s', len(submission), output)
