#!/usr/bin/env python3

"""Solve the epochs of an unfolded reward-bounded property."""

import click

from rewardbound import config
from rewardbound.exceptions.configuration_error import ConfigurationError
from rewardbound.exceptions.epoch_file_error import EpochFileError
from rewardbound.exceptions.module_error import ModuleError
from rewardbound.exceptions.unchecked_requirement_error import UncheckedRequirementError
from rewardbound.input.epochfile import EpochFile
from rewardbound.solver.environment import SolverEnvironment


@click.command()
@click.option('--epoch-file', help='epoch sequence in JSON format', type=click.Path(exists=True), required=True)
@click.option('--epoch', help='name of the epoch whose result is printed [default: last epoch]')
@click.option('--linear-method', type=click.Choice(config.LINEAR_METHODS),
              help='method for linear equation systems [default: from config]')
@click.option('--minmax-method', type=click.Choice(config.MINMAX_METHODS),
              help='method for min-max equation systems [default: from config]')
@click.option('--precision', type=float, help='precision of iterative methods [default: from config]')
@click.option('--sound/--no-sound', default=None, help='certify the precision of iterative methods')
@click.option('--stats', is_flag=True, help='print usage statistics')
def solve_epochs(epoch_file, epoch, linear_method, minmax_method, precision, sound, stats):
    """Solve all epochs of an epoch sequence file.

    The epochs are analysed in the order of the file, reusing equation solvers between consecutive epochs
    with the same matrix. The values of the in-states of the requested epoch are printed.

    Example invocation:
    \b
    python solve_epochs.py --epoch-file ../benchmarkfiles/epochs/selfloop_dtmc.json --linear-method elimination
    """
    try:
        env = SolverEnvironment.from_configuration(config.configuration)
    except ConfigurationError as e:
        raise click.ClickException(e.message)
    if linear_method:
        env.linear_method = linear_method
    if minmax_method:
        env.minmax_method = minmax_method
    if precision:
        env.precision = precision
    if sound is not None:
        env.sound = sound

    try:
        epochs = EpochFile(epoch_file)
    except (EpochFileError, ConfigurationError) as e:
        raise click.ClickException(e.message)
    if epoch is None:
        epoch = epochs.epoch_names()[-1]
    elif epoch not in epochs.epoch_names():
        raise click.BadParameter("Epoch {} is not defined in {}".format(epoch, epoch_file), param_hint='--epoch')

    try:
        solver = epochs.solve(env)
    except (UncheckedRequirementError, ModuleError, ConfigurationError) as e:
        raise click.ClickException(e.message)

    print("Result for epoch {}:".format(epoch))
    for state, value in solver.get_solution(epoch).items():
        print("  state {}: {}".format(state, value))
    if stats:
        print(solver.usage_stats())


if __name__ == "__main__":
    solve_epochs()
