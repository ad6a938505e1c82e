import numpy as np
import pytest

import forcegraph.__main__ as cli


def test_main_lays_out_random_tree(capsys):
    exit_code = cli.main(["--nodes", "4", "--seed", "5", "--log-level", "WARNING"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "Ticks: " in out
    assert "Settled: True" in out
    assert "Components: 1" in out
    assert "  root: (0.000, 0.000)" in out
    assert out.count("  node-") == 4


def test_main_passes_parameter_overrides(monkeypatch, capsys):
    captured = []
    original = cli.GraphEditor

    def _editor(parameters, **kwargs):
        captured.append(parameters)
        return original(parameters, **kwargs)

    monkeypatch.setattr(cli, "GraphEditor", _editor)

    cli.main(["--nodes", "1", "--param", "force_charge=8000", "--param", "damping_factor=0.9"])

    assert captured[0].force_charge == 8000.0
    assert captured[0].damping_factor == 0.9
    assert captured[0].force_spring == 0.3
    capsys.readouterr()


@pytest.mark.parametrize("override", ["force_charge", "bogus=1", "damping_factor=2"])
def test_main_rejects_bad_overrides(override):
    with pytest.raises(SystemExit):
        cli.main(["--param", override])


def test_main_stops_at_max_ticks(capsys):
    cli.main(["--nodes", "6", "--max-ticks", "1"])

    out = capsys.readouterr().out
    assert "Ticks: 1" in out
    assert "Settled: False" in out


def test_build_random_tree_attaches_every_node():
    editor = cli.GraphEditor(rng=np.random.default_rng(0))
    nodes = cli.build_random_tree(editor, 5, np.random.default_rng(1))

    assert len(nodes) == 6
    assert editor.graph.edge_count == 5
    assert editor.graph.component_count() == 1
