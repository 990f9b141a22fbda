from typer.testing import CliRunner

from orthobundle import __version__
from orthobundle.cli import app

runner = CliRunner()


def hub_args(hub_config):
    return ["--catalog", hub_config.catalog, "--cache-dir", str(hub_config.cache_dir)]


def test_version():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_sources_lists_builtins():
    result = runner.invoke(app, ["sources"])
    assert result.exit_code == 0
    for name in ("string", "oma", "orthodb"):
        assert name in result.output
    assert "STR" in result.output


def test_catalog_lists_records(hub_config):
    result = runner.invoke(app, ["catalog", "--catalog", hub_config.catalog])
    assert result.exit_code == 0
    assert "OBH00001" in result.output


def test_catalog_missing(tmp_path):
    result = runner.invoke(app, ["catalog", "--catalog", str(tmp_path / "none.json")])
    assert result.exit_code == 1
    assert "No catalog" in result.output


def test_fetch_and_save(tmp_path, hub_config):
    out = tmp_path / "out"
    result = runner.invoke(app, ["fetch", "string", "--version", "11.0", "--output", str(out), *hub_args(hub_config)])

    assert result.exit_code == 0, result.output
    assert "n_species: 3" in result.output
    assert (out / "bundle.json").exists()

    validated = runner.invoke(app, ["validate", str(out)])
    assert validated.exit_code == 0, validated.output
    assert "is valid" in validated.output


def test_fetch_by_record(hub_config):
    result = runner.invoke(app, ["fetch", "--record", "OBH00001", *hub_args(hub_config)])
    assert result.exit_code == 0, result.output


def test_fetch_unpublished_version_fails(hub_config):
    result = runner.invoke(app, ["fetch", "string", "--version", "9.1", *hub_args(hub_config)])
    assert result.exit_code == 1
    assert "not published" in result.output


def test_fetch_needs_source_or_record(hub_config):
    result = runner.invoke(app, ["fetch", *hub_args(hub_config)])
    assert result.exit_code == 1


def test_validate_reports_errors(tmp_path, bundle_factory):
    bundle = bundle_factory(groups=["STR:COG0001", "STR:NOG1", "STR:NOG2"])
    bundle.save(tmp_path / "broken")

    result = runner.invoke(app, ["validate", str(tmp_path / "broken")])
    assert result.exit_code == 1
    assert "STR:NOG2" in result.output


def test_build_publishes(tmp_path, string_dumps):
    hub_dir = tmp_path / "cli-hub"
    result = runner.invoke(app, [
        "build", "string",
        str(string_dumps["species"]), str(string_dumps["mappings"]), str(string_dumps["tree"]),
        "--version", "11.0", "--hub", str(hub_dir), "--domain", "Eukaryota",
    ])
    assert result.exit_code == 0, result.output
    assert "OBH00001" in result.output
    assert (hub_dir / "catalog.json").exists()

    again = runner.invoke(app, [
        "build", "string",
        str(string_dumps["species"]), str(string_dumps["mappings"]), str(string_dumps["tree"]),
        "--version", "11.0", "--hub", str(hub_dir),
    ])
    assert again.exit_code == 1
    assert "already published" in again.output
