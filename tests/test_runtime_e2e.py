import pytest

from blockforge.exporter import build_project
from blockforge.graph import ScriptGraph
from blockforge.project import ObjectSpec, ProjectSpec
from blockforge.runtime import GameRuntime, load_program, load_program_file

DT = 1 / 60


def node(uid, block_id, values=None, children=None, else_children=None):
    data = {"uid": uid, "blockId": block_id, "values": values or {}}
    if children is not None:
        data["children"] = children
    if else_children is not None:
        data["elseChildren"] = else_children
    return data


def make_project(scripts, objects=None, **settings):
    project = ProjectSpec(settings={"realtime": False, **settings})
    for spec in objects or [ObjectSpec(id="player", name="Player")]:
        project.add_object(spec)
    for object_id, tree in scripts.items():
        project.scripts.deserialize(object_id, tree)
    return project


def run_project(project, frames=0):
    build = build_project(project)
    assert build.ok, build.errors
    rt = load_program(build.program)
    for _ in range(frames):
        rt.step(DT)
    return rt


def test_start_script_moves_object():
    project = make_project(
        {"player": [node("b1", "on_start", children=[node("b2", "set_pos", {"x": 1, "y": 2, "z": 3})])]}
    )
    rt = run_project(project)

    assert isinstance(rt, GameRuntime)
    assert rt.get_object("player").position.as_tuple() == (1.0, 2.0, 3.0)


def test_repeat_with_wait_moves_once_per_interval():
    project = make_project(
        {
            "player": [
                node("b1", "on_start", children=[
                    node("b2", "repeat", {"n": 3}, children=[
                        node("b3", "move_by", {"x": 1}),
                        node("b4", "wait", {"sec": 0.5}),
                    ]),
                ])
            ]
        },
        max_frame_dt=0.5,
    )
    rt = run_project(project)
    player = rt.get_object("player")

    assert player.position.x == 1.0
    rt.step(0.5)
    assert player.position.x == 2.0
    rt.step(0.25)
    assert player.position.x == 2.0
    rt.step(0.25)
    assert player.position.x == 3.0
    rt.step(0.5)
    assert player.position.x == 3.0
    assert not rt.scheduler.has_tasks()


def test_key_handler_and_variables():
    project = make_project(
        {
            "player": [
                node("b1", "on_start", children=[node("b2", "set_var", {"name": "score", "val": "0"})]),
                node("b3", "on_keydown", {"key": "Space"}, children=[
                    node("b4", "change_var", {"name": "score", "by": 10}),
                    node("b5", "hud_set_text", {"id": "score", "text": "scored"}),
                ]),
            ]
        }
    )
    rt = run_project(project)

    rt.press_key("Space")
    rt.step(DT)
    rt.press_key("Space")
    rt.step(DT)

    assert rt.get_var("score") == 20.0
    assert rt.hud.elements["score"].text == "scored"


def test_broadcast_reaches_other_objects():
    project = make_project(
        {
            "player": [
                node("b1", "on_click", children=[node("b2", "send_message", {"msg": "hit", "data": "3"})]),
            ],
            "enemy": [
                node("b3", "on_message", {"msg": "hit"}, children=[
                    node("b4", "run_code", {"code": "rt.set_var('damage', event)"}),
                    node("b5", "destroy_self"),
                ]),
            ],
        },
        objects=[ObjectSpec(id="player", name="Player"), ObjectSpec(id="enemy", name="Enemy")],
    )
    rt = run_project(project)

    rt.click("player")
    rt.step(DT)

    assert rt.get_var("damage") == 3
    assert rt.get_object("enemy") is None


def test_collision_hat_fires_on_contact_with_tag():
    project = make_project(
        {
            "player": [
                node("b1", "on_collide", {"tag": "Coin"}, children=[
                    node("b2", "change_var", {"name": "coins", "by": 1}),
                    node("b3", "destroy_obj", {"name": "Coin"}),
                ]),
            ]
        },
        objects=[
            ObjectSpec(id="player", name="Player"),
            ObjectSpec(id="coin1", name="Coin", x=0.5),
        ],
    )
    rt = run_project(project, frames=3)

    assert rt.get_var("coins") == 1.0
    assert rt.get_object("coin1") is None


def test_destroyed_object_handlers_and_tasks_stop_safely():
    project = make_project(
        {
            "enemy": [
                node("b1", "on_update", children=[node("b2", "change_var", {"name": "ticks", "by": 1})]),
                node("b3", "on_start", children=[
                    node("b4", "wait", {"sec": 0.05}),
                    node("b5", "move_by", {"x": 5}),
                    node("b6", "set_var", {"name": "after", "val": "yes"}),
                ]),
                node("b7", "on_timer", {"sec": 0.01}, children=[node("b8", "change_var", {"name": "timer", "by": 1})]),
            ]
        },
        objects=[ObjectSpec(id="enemy", name="Enemy")],
    )
    rt = run_project(project, frames=1)
    enemy = rt.get_object("enemy")
    ticks = rt.get_var("ticks")
    timer = rt.get_var("timer")

    rt.destroy(enemy)
    for _ in range(10):
        rt.step(DT)

    assert rt.get_var("ticks") == ticks
    assert rt.get_var("timer") == timer
    # The suspended start script still finishes; actions on the destroyed object do nothing.
    assert rt.get_var("after") == "yes"
    assert enemy.position.x == 0.0
    assert rt.faults == []


def test_failing_object_script_is_isolated_at_runtime():
    project = make_project(
        {
            "player": [
                node("b1", "on_start", children=[node("b2", "run_code", {"code": "1 / 0"})]),
                node("b3", "on_start", children=[node("b4", "set_var", {"name": "ok", "val": "true"})]),
            ]
        }
    )
    rt = run_project(project)

    assert rt.get_var("ok") is True
    assert len(rt.faults) == 1
    assert isinstance(rt.faults[0].cause, ZeroDivisionError)


def test_unknown_block_leaves_object_without_scripts():
    project = make_project(
        {
            "player": [node("b1", "on_start", children=[node("b2", "hover_mode")])],
            "npc": [node("b3", "on_start", children=[node("b4", "print", {"msg": "npc ready"})])],
        },
        objects=[ObjectSpec(id="player", name="Player"), ObjectSpec(id="npc", name="Npc")],
    )

    build = build_project(project)
    rt = load_program(build.program)

    assert list(build.errors) == ["player"]
    assert list(rt.output) == ["npc ready"]


def test_custom_files_run_before_object_scripts():
    project = make_project(
        {"player": [node("b1", "on_start", children=[node("b2", "run_code", {"code": "rt.print(GREETING)"})])]}
    )
    project.custom_files["helpers.py"] = 'GREETING = "hi from helpers"'

    rt = run_project(project)

    assert list(rt.output) == ["hi from helpers"]


def test_function_blocks_share_object_scope():
    project = make_project(
        {
            "player": [
                node("b1", "def_func", {"name": "score"}, children=[
                    node("b2", "change_var", {"name": "points", "by": 5}),
                    node("b3", "wait_frames", {"n": 1}),
                    node("b4", "change_var", {"name": "points", "by": 5}),
                ]),
                node("b5", "on_start", children=[
                    node("b6", "call_func", {"name": "score"}),
                    node("b7", "print", {"msg": "done"}),
                ]),
            ]
        }
    )
    rt = run_project(project)
    assert rt.get_var("points") == 5.0
    assert list(rt.output) == []

    rt.step(DT)
    assert rt.get_var("points") == 10.0
    assert list(rt.output) == ["done"]


def test_load_program_requires_runtime():
    with pytest.raises(ValueError, match="did not create a GameRuntime"):
        load_program("x = 1\n")


def test_compiled_graph_from_editor_edits_runs():
    project = make_project({})
    graph: ScriptGraph = project.scripts.graph("player")
    hat = graph.create_instance("on_start")
    show = graph.create_instance("show_text", {"msg": "Go!", "sec": 2})
    graph.attach_child(hat.uid, "children", 0, show.uid)

    rt = run_project(project, frames=1)

    assert [toast.text for toast in rt.hud.toasts] == ["Go!"]


@pytest.mark.parametrize("cond, expected", [(True, ["then"]), (False, ["else"])])
def test_if_else_runs_only_the_chosen_branch(cond, expected):
    project = make_project(
        {
            "player": [
                node("b1", "on_start", children=[
                    node(
                        "b2",
                        "if_else",
                        {"cond": cond},
                        children=[node("b3", "print", {"msg": "then"})],
                        else_children=[node("b4", "print", {"msg": "else"})],
                    ),
                ]),
            ]
        }
    )
    rt = run_project(project)

    assert list(rt.output) == expected


def test_line_breaks_in_object_ids_and_custom_file_names_stay_in_comments():
    project = make_project(
        {"a\nrt = None\nb": [node("b1", "on_start", children=[node("b2", "print", {"msg": "still here"})])]},
        objects=[ObjectSpec(id="a\nrt = None\nb", name="Tricky")],
    )
    project.custom_files["notes\nrt = None"] = "NOTE = 1"

    rt = run_project(project)

    assert list(rt.output) == ["still here"]
    assert rt.get_object("a\nrt = None\nb") is not None


def test_load_program_file_runs_generated_main(tmp_path):
    project = make_project(
        {"player": [node("b1", "on_start", children=[node("b2", "print", {"msg": "from disk"})])]}
    )
    build = build_project(project)
    main = tmp_path / "main.py"
    main.write_text(build.program, encoding="utf-8")

    rt = load_program_file(str(main))

    assert isinstance(rt, GameRuntime)
    assert list(rt.output) == ["from disk"]
