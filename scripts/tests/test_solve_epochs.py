import json
import os

from click.testing import CliRunner
import pytest

from rewardbound import config
from rewardbound.config import RewardboundConfig
from solve_epochs import solve_epochs

EXAMPLE_FOLDER = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
                              "benchmarkfiles")


TEST_CASES = [
    ('selfloop_dtmc.json', [], 'Result for epoch e0:', 'state 0: 4.0'),
    ('selfloop_dtmc.json', ['--epoch', 'e1'], 'Result for epoch e1:', 'state 0: 2.0'),
    ('chain_dtmc.json', ['--epoch', 'budget0'], 'Result for epoch budget0:', 'state 2: 3.0'),
    ('two_choices_mdp.json', ['--minmax-method', 'policy-iteration'], 'Result for epoch top:', 'state 0: 2.0'),
]


@pytest.mark.parametrize('file, arguments, header, line', TEST_CASES)
def test_solve_epochs(file, arguments, header, line):
    result = CliRunner().invoke(solve_epochs, ['--epoch-file', os.path.join(EXAMPLE_FOLDER, 'epochs', file),
                                               '--linear-method', 'elimination'] + arguments)

    print(result.output)
    assert not result.exception
    assert header in result.output
    assert line in result.output


def test_solve_epochs_with_stats():
    result = CliRunner().invoke(solve_epochs, ['--epoch-file',
                                               os.path.join(EXAMPLE_FOLDER, 'epochs', 'selfloop_dtmc.json'),
                                               '--linear-method', 'elimination', '--stats'])
    assert result.exit_code == 0
    assert 'Analyzed 2 epochs (0 trivial, 2 non-trivial)' in result.output
    assert 'Built 1 equation solvers' in result.output


def test_unknown_epoch():
    result = CliRunner().invoke(solve_epochs, ['--epoch-file',
                                               os.path.join(EXAMPLE_FOLDER, 'epochs', 'selfloop_dtmc.json'),
                                               '--epoch', 'e7'])
    assert result.exit_code == 2
    assert 'e7' in result.output


def test_missing_bounds():
    result = CliRunner().invoke(solve_epochs, ['--epoch-file',
                                               os.path.join(EXAMPLE_FOLDER, 'epochs', 'selfloop_dtmc.json'),
                                               '--linear-method', 'power', '--sound'])
    assert result.exit_code == 1
    assert 'lower bounds (critical)' in result.output


def test_malformed_file(tmp_path):
    path = tmp_path / "epochs.json"
    path.write_text(json.dumps({"model-type": "mdp", "epochs": []}))
    result = CliRunner().invoke(solve_epochs, ['--epoch-file', str(path)])
    assert result.exit_code == 1
    assert 'direction' in result.output


def test_rational_file_without_pycarl(tmp_path, monkeypatch):
    with open(os.path.join(EXAMPLE_FOLDER, 'epochs', 'selfloop_dtmc.json')) as f:
        content = json.load(f)
    content["value-type"] = "rational"
    path = tmp_path / "epochs.json"
    path.write_text(json.dumps(content))
    monkeypatch.setattr(config.configuration, "has_pycarl", lambda: False)
    result = CliRunner().invoke(solve_epochs, ['--epoch-file', str(path), '--linear-method', 'elimination'])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert 'pycarl' in result.output


def test_invalid_configuration(tmp_path, monkeypatch):
    config_file = tmp_path / "rewardbound.cfg"
    config_file.write_text("[solver]\nlinear_method = gauss\n")
    monkeypatch.setattr(config, "configuration", RewardboundConfig(str(config_file)))
    result = CliRunner().invoke(solve_epochs, ['--epoch-file',
                                               os.path.join(EXAMPLE_FOLDER, 'epochs', 'selfloop_dtmc.json')])
    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert 'gauss' in result.output
