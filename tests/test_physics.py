import math

import pytest

from blockforge.runtime import GameRuntime, RuntimeConfig
from blockforge.runtime.collisions import CollisionDetector, contact_tags, overlaps
from blockforge.runtime.objects import GameObjectState, Vec3
from blockforge.runtime.physics import apply_force, step_physics, try_jump

DT = 1 / 60


def make_body(**kwargs):
    return GameObjectState(id=kwargs.pop("id", "ball"), name=kwargs.pop("name", "Ball"), **kwargs)


def test_gravity_accelerates_and_moves_body():
    ball = make_body(physics=True, position=Vec3(0, 10, 0))
    step_physics([ball], gravity=-10.0, floor_y=0.5, dt=0.1)

    assert ball.velocity.y == pytest.approx(-1.0)
    assert ball.position.y == pytest.approx(9.9)
    assert not ball.grounded


def test_floor_clamps_position_and_grounds_body():
    ball = make_body(physics=True, position=Vec3(0, 0.55, 0), velocity=Vec3(0, -5, 0))
    step_physics([ball], gravity=-9.8, floor_y=0.5, dt=0.1)

    assert ball.position.y == 0.5
    assert ball.velocity.y == 0.0
    assert ball.grounded


def test_objects_without_physics_are_left_alone():
    statue = make_body(position=Vec3(0, 3, 0))
    step_physics([statue], gravity=-9.8, floor_y=0.5, dt=0.1)
    assert statue.position.as_tuple() == (0, 3, 0)


def test_non_finite_state_is_reset():
    ball = make_body(physics=True, position=Vec3(0, 5, 0), velocity=Vec3(math.inf, 0, math.nan))
    step_physics([ball], gravity=-9.8, floor_y=0.5, dt=0.1)

    assert ball.velocity.x == 0.0
    assert ball.velocity.z == 0.0
    assert math.isfinite(ball.position.x)
    assert math.isfinite(ball.position.z)


def test_apply_force_divides_by_guarded_mass():
    heavy = make_body(mass=2.0)
    apply_force(heavy, 4, 0, 0)
    assert heavy.velocity.x == 2.0

    weightless = make_body(mass=0.0)
    apply_force(weightless, 4, 0, 0)
    assert weightless.velocity.x == 4.0


def test_jump_only_from_ground():
    ball = make_body(physics=True)
    assert not try_jump(ball, 5)
    assert ball.velocity.y == 0.0

    ball.grounded = True
    assert try_jump(ball, 5)
    assert ball.velocity.y == 5.0
    assert not ball.grounded


def test_runtime_jump_lands_again():
    rt = GameRuntime(RuntimeConfig(realtime=False))
    hero = rt.add_object({"id": "hero", "name": "Hero", "physics": True, "y": 0.5})
    rt.start()
    rt.step(DT)
    assert rt.is_grounded(hero)

    assert rt.jump(hero, 4)
    rt.step(DT)
    assert hero.position.y > 0.5
    for _ in range(120):
        rt.step(DT)
    assert hero.position.y == 0.5
    assert rt.is_grounded(hero)


def test_frame_dt_is_clamped():
    rt = GameRuntime(RuntimeConfig(realtime=False, max_frame_dt=0.05))
    rt.step(10.0)
    assert rt.elapsed == pytest.approx(0.05)
    rt.step(float("nan"))
    assert rt.elapsed == pytest.approx(0.05)


def test_overlap_uses_scaled_box_extents():
    a = make_body(id="a", position=Vec3(0, 0, 0))
    b = make_body(id="b", position=Vec3(1.5, 0, 0))
    assert not overlaps(a, b)
    b.scale = Vec3(2, 1, 1)
    assert overlaps(a, b)


def test_contact_tags_include_name():
    wall = make_body(id="w1", name="Wall", tags={"solid"})
    assert contact_tags(wall) == ["Wall", "solid"]


def test_collision_begins_once_and_overlap_repeats():
    detector = CollisionDetector()
    player = make_body(id="player", name="Player")
    coin = make_body(id="coin", name="Coin", tags={"Pickup"}, position=Vec3(0.5, 0, 0))

    first = [event for event, _ in detector.detect([player, coin])]
    second = [event for event, _ in detector.detect([player, coin])]

    assert "collide:player:Coin" in first
    assert "collide:player:Pickup" in first
    assert "collide:coin:Player" in first
    assert "overlap:player:Pickup" in first
    assert not any(event.startswith("collide:") for event in second)
    assert "overlap:player:Pickup" in second


def test_trigger_objects_raise_trigger_events():
    detector = CollisionDetector()
    player = make_body(id="player", name="Player")
    zone = make_body(id="zone", name="Zone", is_trigger=True)

    events = [event for event, _ in detector.detect([player, zone])]

    assert "trigger:player:Zone" in events
    assert not any(event.startswith("collide:") for event in events)


def test_contact_ends_and_can_begin_again():
    detector = CollisionDetector()
    player = make_body(id="player", name="Player")
    wall = make_body(id="wall", name="Wall")

    detector.detect([player, wall])
    wall.position.x = 10
    assert detector.detect([player, wall]) == []
    wall.position.x = 0
    events = [event for event, _ in detector.detect([player, wall])]
    assert "collide:player:Wall" in events
