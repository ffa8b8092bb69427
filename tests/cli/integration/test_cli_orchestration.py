"""CLI orchestration integration tests."""

from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner
from hydra_fragments.cli import cli

SAMPLES = Path(__file__).resolve().parents[3] / "samples"


def _write_config(tmp_path: Path) -> Path:
    config = {
        "schema": {"path": str(SAMPLES / "catalog-schema.yaml")},
        "storage": {"directory": "fragments"},
        "logging": {"level": "WARNING"},
    }
    path = tmp_path / "hydra.json"
    path.write_text(json.dumps(config), encoding="utf-8")
    return path


def _split(runner: CliRunner, config_path: Path):
    return runner.invoke(
        cli,
        ["split", "--config", str(config_path), "--input", str(SAMPLES / "catalog.json")],
    )


def _expected_catalog() -> dict:
    catalog = json.loads((SAMPLES / "catalog.json").read_text(encoding="utf-8"))
    second_author = catalog["authors"][1]
    catalog["authors"][0]["books"][0]["coauthors"] = [second_author]
    return catalog


def test_generate_config_command_writes_scaffold(tmp_path: Path) -> None:
    runner = CliRunner()
    output_path = tmp_path / "hydra.yaml"

    result = runner.invoke(cli, ["generate-config", "--output", str(output_path)])

    assert result.exit_code == 0
    assert output_path.exists()
    assert str(output_path.resolve()) in result.output


def test_split_command_writes_one_file_per_fragment(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)

    result = _split(runner, config_path)

    assert result.exit_code == 0, result.output
    fragments_dir = tmp_path / "fragments"
    assert sorted(path.name for path in fragments_dir.iterdir()) == [
        "Author!id@a1.json",
        "Author!id@a1___Book!isbn@978-0141439518.json",
        "Author!id@a2.json",
        "Media@Image!id@m1.json",
        "__root__.json",
    ]
    assert str(fragments_dir / "__root__.json") in result.stdout
    root = json.loads((fragments_dir / "__root__.json").read_text(encoding="utf-8"))
    assert root["authors"][0] == {"_tag": "Author", "_dehydrated": True, "id": "a1"}


def test_assemble_command_writes_the_hydrated_document(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)
    output_path = tmp_path / "assembled.json"
    assert _split(runner, config_path).exit_code == 0

    result = runner.invoke(
        cli,
        ["assemble", "--config", str(config_path), "--output", str(output_path)],
    )

    assert result.exit_code == 0, result.output
    assert str(output_path.resolve()) in result.stdout
    assert json.loads(output_path.read_text(encoding="utf-8")) == _expected_catalog()


def test_assemble_command_prints_to_stdout_without_output(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)
    assert _split(runner, config_path).exit_code == 0

    result = runner.invoke(cli, ["assemble", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert json.loads(result.stdout) == _expected_catalog()


def test_assemble_without_fragments_fails(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)

    result = runner.invoke(cli, ["assemble", "--config", str(config_path)])

    assert result.exit_code != 0


def test_locate_command_lists_uhls(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)
    input_path = str(SAMPLES / "catalog.json")

    everything = runner.invoke(
        cli, ["locate", "--config", str(config_path), "--input", input_path]
    )
    hydrated = runner.invoke(
        cli,
        ["locate", "--config", str(config_path), "--input", input_path, "--hydrated-only"],
    )

    assert everything.exit_code == 0, everything.output
    assert everything.stdout.splitlines() == [
        "Author!id@a1",
        "Author!id@a1___Book!isbn@978-0141439518",
        "Author!id@a1___Book!isbn@978-0141439518___Author!id@a2",
        "Author!id@a2",
        "Media@Image!id@m1",
    ]
    assert "Author!id@a1___Book!isbn@978-0141439518___Author!id@a2" not in hydrated.stdout
    assert len(hydrated.stdout.splitlines()) == 4


def test_clear_command_removes_fragment_files(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)
    assert _split(runner, config_path).exit_code == 0

    result = runner.invoke(cli, ["clear", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert list((tmp_path / "fragments").iterdir()) == []
    assert "cleared" in result.stdout


def test_verbose_flag_enables_debug_logging(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = _write_config(tmp_path)

    result = runner.invoke(
        cli,
        [
            "--verbose",
            "split",
            "--config",
            str(config_path),
            "--input",
            str(SAMPLES / "catalog.json"),
        ],
    )

    assert result.exit_code == 0, result.output
    assert (tmp_path / "fragments" / "__root__.json").exists()
