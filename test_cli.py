"""Tests for the command-line interface."""

import numpy as np
import pytest

from spinchain.cli import main, build_parser
from spinchain.core.parameters import SimulationParameters
from spinchain.utils.io import load_time_series


def test_single_command_prints_every_step(capsys):
    main(['single', '-n', '4', '--tilt', '30'])

    out = capsys.readouterr().out.splitlines()
    assert len(out) == 5
    assert out[0] == "0.000e+00\t5.000000e-01\t0.000000e+00\t8.660254e-01"


def test_chain_command_writes_hdf5(tmp_path, capsys):
    output = tmp_path / "chain.h5"

    main(['chain', '-N', '8', '-n', '10', '-dt', '1e-13', '--every', '5',
          '--backend', 'threads', '-w', '2', '-o', str(output)])

    out = capsys.readouterr().out.splitlines()
    assert len(out) == 3
    trajectory, metadata = load_time_series(output)
    assert trajectory.shape == (11, 8, 3)
    parameters = SimulationParameters.from_dict(metadata)
    assert parameters.n_steps == 10
    assert parameters.exchange is True


def test_quiet_random_chain(capsys):
    main(['chain', '-N', '4', '-n', '3', '-dt', '1e-14', '--random', '--seed', '1', '-q'])
    assert capsys.readouterr().out == ""


def test_no_command_prints_help(capsys):
    main([])
    assert "usage" in capsys.readouterr().out


def test_invalid_parameters_exit_with_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(['single', '-n', '1', '-dt', '0'])

    assert excinfo.value.code == 1
    assert "Error: Time step must be positive" in capsys.readouterr().err


def test_parser_defaults():
    args = build_parser().parse_args(['chain'])
    assert args.sites == 128
    assert args.tilt == 10.0
    assert args.every == 50
    np.testing.assert_array_equal(args.field, [0.0, 0.0, 1.0])
