import json

from blockforge.build_game import main
from blockforge.exporter import save_project
from blockforge.project import ObjectSpec, ProjectSpec


def write_sample(path):
    project = ProjectSpec()
    project.add_object(ObjectSpec(id="player", name="Player"))
    graph = project.scripts.graph("player")
    hat = graph.create_instance("on_start")
    say = graph.create_instance("print", {"msg": "ready"})
    graph.attach_child(hat.uid, "children", 0, say.uid)
    return save_project(project, path)


def test_build_command_writes_game_directory(tmp_path, capsys):
    project_path = write_sample(tmp_path / "project.json")
    out_dir = tmp_path / "out"

    assert main(["build", str(project_path), "--output", str(out_dir)]) == 0

    assert (out_dir / "main.py").exists()
    assert (out_dir / "blockforge_runtime" / "runtime.py").exists()
    assert "Generated BlockForge game" in capsys.readouterr().out


def test_run_command_prints_script_output(tmp_path, capsys):
    project_path = write_sample(tmp_path / "project.json")

    assert main(["run", str(project_path), "--headless", "--frames", "3"]) == 0

    out = capsys.readouterr().out
    assert "ready" in out
    assert "Ran 3 frames" in out


def test_export_then_import_with_password(tmp_path, capsys):
    project_path = write_sample(tmp_path / "project.json")
    archive = tmp_path / "game.zip"
    restored = tmp_path / "restored.json"

    assert main(["export", str(project_path), str(archive), "--password", "pw"]) == 0
    assert main(["import", str(archive), str(restored), "--password", "pw"]) == 0

    original = json.loads(project_path.read_text(encoding="utf-8"))
    assert json.loads(restored.read_text(encoding="utf-8")) == original


def test_import_with_wrong_password_reports_error(tmp_path, capsys):
    project_path = write_sample(tmp_path / "project.json")
    archive = tmp_path / "game.zip"
    main(["export", str(project_path), str(archive), "--password", "pw"])

    assert main(["import", str(archive), str(tmp_path / "x.json"), "--password", "nope"]) == 2
    assert "error:" in capsys.readouterr().err
