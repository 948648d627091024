"""CLI integration tests."""

from __future__ import annotations

import tarfile
from pathlib import Path

import pytest

from relpack.cli import main


def _make_release(root: Path) -> Path:
    """Create a release tree with one package `foo`; return the package dir."""
    (root / "src" / "foo").mkdir(parents=True)
    (root / "src" / "foo" / "main.c").write_text("int main;\n")
    (root / "src" / "foo" / "util.c").write_text("int util;\n")
    (root / "blobs" / "foo").mkdir(parents=True)
    (root / "blobs" / "foo" / "vendor.tar.gz").write_text("blob\n")
    package_dir = root / "packages" / "foo"
    package_dir.mkdir(parents=True)
    (package_dir / "spec").write_text(
        "name: foo\nfiles: ['foo/*']\nexcluded_files: ['foo/util.c']\ndependencies: [bar]\n"
    )
    (package_dir / "packaging").write_text("make\n")
    return package_dir


def _render_help(capsys: pytest.CaptureFixture[str]) -> str:
    with pytest.raises(SystemExit) as exc:
        main(["--help"])
    assert exc.value.code == 0
    return capsys.readouterr().out


def test_help_includes_tagline_and_usage(capsys: pytest.CaptureFixture[str]) -> None:
    out = _render_help(capsys)
    assert "relpack: Content-addressed fingerprints for release packages" in out
    assert "Common usage:" in out
    assert "relpack --list-files packages/foo" in out


def test_no_packages_is_an_error(capsys: pytest.CaptureFixture[str]) -> None:
    assert main([]) == 1
    assert "No package directories" in capsys.readouterr().err


def test_version(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--version"]) == 0
    out = capsys.readouterr().out.strip()
    assert out.startswith("v") or out.startswith("unknown")


def test_list_files_uses_default_release_roots(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    _make_release(tmp_path)
    monkeypatch.chdir(tmp_path)

    assert main(["--list-files", "packages/foo"]) == 0

    lines = capsys.readouterr().out.strip().split("\n")
    assert lines == ["foo\tpackaging", "foo\tfoo/main.c", "foo\tfoo/vendor.tar.gz"]


def test_prints_name_and_fingerprint(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    _make_release(tmp_path)
    monkeypatch.chdir(tmp_path)

    assert main(["packages/foo"]) == 0
    first = capsys.readouterr().out.strip()
    assert main(["packages/foo"]) == 0
    second = capsys.readouterr().out.strip()

    name, fingerprint = first.split(" ")
    assert name == "foo"
    assert len(fingerprint) == 64
    assert first == second


def test_src_dir_flag_overrides_default(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    _make_release(tmp_path)
    other_src = tmp_path / "other-src" / "foo"
    other_src.mkdir(parents=True)
    (other_src / "only-here.c").write_text("x\n")
    monkeypatch.chdir(tmp_path)

    assert main(["--list-files", "--src-dir", "other-src", "packages/foo"]) == 0

    out = capsys.readouterr().out
    assert "foo/only-here.c" in out
    assert "foo/main.c" not in out
    assert "foo/vendor.tar.gz" in out


def test_config_file_sets_roots(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    _make_release(tmp_path)
    (tmp_path / "blobs").rename(tmp_path / "cached-blobs")
    (tmp_path / "relpack.toml").write_text('blobs-dir = "cached-blobs"\n')
    monkeypatch.chdir(tmp_path)

    assert main(["--list-files", "packages/foo"]) == 0
    assert "foo/vendor.tar.gz" in capsys.readouterr().out


def test_build_writes_named_artifact(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    _make_release(tmp_path)
    monkeypatch.chdir(tmp_path)

    assert main(["--build", "dist", "packages/foo"]) == 0

    _, fingerprint = capsys.readouterr().out.strip().split(" ")
    artifact = tmp_path / "dist" / f"foo-{fingerprint}.tgz"
    with tarfile.open(artifact, "r:gz") as tar:
        assert sorted(tar.getnames()) == ["foo", "foo/main.c", "foo/vendor.tar.gz", "packaging"]


def test_resolution_error_exit_code(
    tmp_path: Path, capsys: pytest.CaptureFixture[str], monkeypatch: pytest.MonkeyPatch
) -> None:
    package_dir = _make_release(tmp_path)
    (package_dir / "packaging").unlink()
    monkeypatch.chdir(tmp_path)

    assert main(["packages/foo"]) == 1
    err = capsys.readouterr().err
    assert "Error: Expected to find" in err
    assert "for package 'foo'" in err
