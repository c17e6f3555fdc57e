import json
import subprocess
from pathlib import Path
from unittest.mock import patch

from rustdrill.project import Crate, RustAnalyzerProject


def test_crate_defaults():
    crate = Crate(root_module="exercises/intro1.rs")
    assert crate.to_dict() == {
        "root_module": "exercises/intro1.rs",
        "edition": "2021",
        "deps": [],
        "cfg": ["test"],
    }


def test_add_path_only_rust_files():
    project = RustAnalyzerProject()
    project.add_path("exercises/a.rs")
    project.add_path("exercises/README.md")
    project.add_path("exercises/noext")
    assert [c.root_module for c in project.crates] == [str(Path("exercises/a.rs"))]


def test_exercises_to_json_walks_tree(tmp_path):
    (tmp_path / "vecs").mkdir()
    (tmp_path / "vecs" / "vecs1.rs").write_text("")
    (tmp_path / "vecs" / "README.md").write_text("")
    (tmp_path / "quiz2.rs").write_text("")
    project = RustAnalyzerProject()
    project.exercises_to_json(tmp_path)
    roots = sorted(Path(c.root_module).name for c in project.crates)
    assert roots == ["quiz2.rs", "vecs1.rs"]
    assert all(Path(c.root_module).suffix == ".rs" for c in project.crates)


def test_sysroot_from_environment(monkeypatch):
    monkeypatch.setenv("RUST_SRC_PATH", "/src/rust")
    project = RustAnalyzerProject()
    with patch("rustdrill.project.subprocess.run") as run:
        project.get_sysroot_src()
    assert project.sysroot_src == "/src/rust"
    run.assert_not_called()


def test_sysroot_from_rustc(monkeypatch, capsys):
    monkeypatch.delenv("RUST_SRC_PATH", raising=False)
    project = RustAnalyzerProject()
    result = subprocess.CompletedProcess([], 0, b"/opt/toolchain\n", b"")
    with patch("rustdrill.project.subprocess.run", return_value=result):
        project.get_sysroot_src()
    parts = Path(project.sysroot_src).parts
    assert parts[-5:] == ("lib", "rustlib", "src", "rust", "library")
    assert Path(*parts[:-5]) == Path("/opt/toolchain")
    assert "Determined toolchain: /opt/toolchain" in capsys.readouterr().out


def test_write_to_disk_round_trip(tmp_path):
    project = RustAnalyzerProject(sysroot_src="/src/rust")
    project.add_path("exercises/a.rs")
    target = tmp_path / "rust-project.json"
    project.write_to_disk(target)
    text = target.read_text()
    assert json.loads(text) == project.to_dict()
    assert " " not in text.replace("/src/rust", "")


def test_empty_project_has_no_crates():
    project = RustAnalyzerProject()
    assert project.to_dict() == {"sysroot_src": "", "crates": []}