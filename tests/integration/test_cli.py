import json
from pathlib import Path

import pytest

from cli.main import main


def test_cli_runs_preset_with_overrides(tmp_path, capsys):
    run_dir = tmp_path / "run"
    main(["--preset", "and-online", "--epochs", "5", "--run-dir", str(run_dir)])
    payload = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert payload["epochs"] == 5
    assert (run_dir / "metrics.jsonl").exists()
    assert (run_dir / "manifest.json").exists()


def test_cli_merges_yaml_override(tmp_path, capsys):
    override = tmp_path / "override.yaml"
    override.write_text("train:\n  learning_rate: 0.2\n  epochs: 3\n")
    dump = tmp_path / "resolved.json"
    main(
        [
            "--preset",
            "xor-minibatch",
            "--config",
            str(override),
            "--run-dir",
            str(tmp_path / "run"),
            "--dump-config",
            str(dump),
        ]
    )
    resolved = json.loads(dump.read_text())
    assert resolved["train"]["learning_rate"] == 0.2
    assert resolved["train"]["learning_mode"] == "batch"
    assert json.loads(capsys.readouterr().out.strip().splitlines()[-1])["epochs"] == 3


def test_cli_lists_presets_and_datasets(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--list-presets"])
    assert info.value.code == 0
    assert "xor-online" in capsys.readouterr().out.split()

    with pytest.raises(SystemExit):
        main(["--list-datasets"])
    listed = capsys.readouterr().out.split()
    assert {"and", "or", "sine", "xor"} <= set(listed)
    assert listed == sorted(listed)


def test_cli_writes_plot_when_enabled(tmp_path):
    run_dir = tmp_path / "plotted"
    main(["--preset", "and-online", "--epochs", "4", "--run-dir", str(run_dir), "--enable-plots"])
    assert Path(run_dir / "loss.png").exists()
