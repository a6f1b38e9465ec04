import json
from pathlib import Path
import textwrap

from click.testing import CliRunner

from uipom.cli import cli

from tests.conftest import NUGET_YAML


def write_descriptors(tmp_path: Path) -> Path:
    p = tmp_path / "nuget.yaml"
    p.write_text(NUGET_YAML, encoding="utf-8")
    return p


def test_cli_validate_with_dir(tmp_path: Path):
    write_descriptors(tmp_path)
    runner = CliRunner()
    result = runner.invoke(cli, ["validate", "--dir", str(tmp_path), "--no-recursive"])
    assert result.exit_code == 0, result.output
    assert result.output.count("OK  ") == 1
    assert "2 page(s)" in result.output


def test_cli_validate_reports_cycles(tmp_path: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text(
        textwrap.dedent(
            """
            components:
              A: { ref: B }
              B: { ref: A }
            """
        ),
        encoding="utf-8",
    )
    result = CliRunner().invoke(cli, ["validate", str(bad)])
    assert result.exit_code == 1
    assert "cyclic component reference" in result.output


def test_cli_validate_cross_file_reference(tmp_path: Path):
    (tmp_path / "shared.yaml").write_text("components:\n  Footer: footer\n", encoding="utf-8")
    (tmp_path / "home.yaml").write_text(
        "pages:\n  Home:\n    components:\n      Footer: { ref: Footer }\n", encoding="utf-8"
    )
    result = CliRunner().invoke(cli, ["validate", str(tmp_path)])
    assert result.exit_code == 0, result.output
    assert result.output.count("OK  ") == 2


def test_cli_directory_target_honours_no_recursive(tmp_path: Path):
    write_descriptors(tmp_path)
    nested = tmp_path / "drafts"
    nested.mkdir()
    (nested / "broken.yaml").write_text("pages: [not, a, mapping]\n", encoding="utf-8")

    flat = CliRunner().invoke(cli, ["validate", str(tmp_path), "--no-recursive"])
    assert flat.exit_code == 0, flat.output
    assert flat.output.count("OK  ") == 1

    deep = CliRunner().invoke(cli, ["validate", str(tmp_path)])
    assert deep.exit_code == 1
    assert "ERR" in deep.output


def test_cli_compile_tree(tmp_path: Path):
    f = write_descriptors(tmp_path)
    result = CliRunner().invoke(cli, ["compile", str(f)])
    assert result.exit_code == 0, result.output
    assert "Home: nuget.HomePage" in result.output
    assert "  Packages: list[nuget.Home.PackageComponent]  'css .package'" in result.output
    assert "  Footer: nuget.FooterComponent  'xpath footer'" in result.output


def test_cli_compile_json(tmp_path: Path):
    f = write_descriptors(tmp_path)
    result = CliRunner().invoke(cli, ["compile", str(f), "--json"])
    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert "nuget.FooterComponent" in data["types"]
    home = next(d for d in data["definitions"] if d["name"] == "Home")
    packages = next(c for c in home["children"] if c["name"] == "Packages")
    assert packages["is_collection"] is True
    assert packages["return_type"] == "nuget.Home.PackageComponent"


def test_cli_compile_unknown_reference(tmp_path: Path):
    bad = tmp_path / "bad.yaml"
    bad.write_text("pages:\n  Home:\n    components:\n      Nav: { ref: Missing }\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["compile", str(bad)])
    assert result.exit_code == 1
    assert "unknown component 'Missing'" in result.output


def test_cli_config_prints_settings():
    result = CliRunner().invoke(cli, ["config"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["DEFAULT_TIMEOUT_MS"] == 30000
    assert "SECRET_NAME_MARKERS" in data
