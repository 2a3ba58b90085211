import math
import random

import pytest

import config
import controller
import simulation
from world import Coin, Obstacle, Player, World


def make_world():
    return World(rng=random.Random(5))


def add_player(world, token="t", x=0.0, y=0.0, name="A"):
    return world.add_player(Player(token, name, "red", x, y))


def test_move_along_x_from_origin():
    world = make_world()
    world.speed_limit = 10
    p = add_player(world)
    simulation.apply_intent(p, 0.0, 5.0)
    simulation.tick(world)
    assert p.x > 0
    assert p.y == 0
    assert not p.over_speed


def test_over_speed_freezes_player():
    world = make_world()
    world.speed_limit = 5
    p = add_player(world, x=100, y=100)
    simulation.apply_intent(p, 1.0, 8.0)
    simulation.tick(world)
    assert p.over_speed
    assert (p.x, p.y) == (100, 100)

    world.speed_limit = 8
    simulation.tick(world)
    # equal to the limit is allowed
    assert not p.over_speed
    assert (p.x, p.y) != (100, 100)


def test_velocity_clamped_and_step_bounded():
    world = make_world()
    world.speed_limit = 1000
    p = add_player(world, x=400, y=300)
    simulation.apply_intent(p, math.pi / 4, 10_000)
    assert p.velocity == config.MAX_VELOCITY
    simulation.tick(world)
    moved = math.hypot(p.x - 400, p.y - 300)
    assert moved == pytest.approx(config.MAX_STEP)


def test_negative_velocity_moves_backwards():
    world = make_world()
    world.speed_limit = 10
    p = add_player(world, x=100, y=100)
    simulation.apply_intent(p, 0.0, -5.0)
    simulation.tick(world)
    assert not p.over_speed
    assert p.x == pytest.approx(100 - simulation.step_length(5.0))
    assert p.y == 100


def test_negative_velocity_clamped_by_magnitude():
    world = make_world()
    p = add_player(world, x=400, y=300)
    simulation.apply_intent(p, 0.0, -10_000)
    assert p.velocity == -config.MAX_VELOCITY
    simulation.tick(world)
    assert p.x == pytest.approx(400 - config.MAX_STEP)


def test_positions_stay_in_bounds():
    world = make_world()
    world.speed_limit = 100
    players = [add_player(world, token=str(i), x=world.rng.uniform(0, 800),
                          y=world.rng.uniform(0, 600)) for i in range(10)]
    for _ in range(300):
        for p in players:
            simulation.apply_intent(p, world.rng.uniform(-10, 10), world.rng.uniform(0, 30))
        simulation.tick(world)
        for p in players:
            assert 0 <= p.x <= world.width
            assert 0 <= p.y <= world.height


def test_disconnected_players_do_not_move():
    world = make_world()
    p = add_player(world, x=10, y=10)
    simulation.apply_intent(p, 0.0, 5)
    p.connected = False
    simulation.tick(world)
    assert (p.x, p.y) == (10, 10)


def test_coin_collected_once():
    world = make_world()
    world.add_coin(Coin("c1", 100, 100))
    p = add_player(world, x=95, y=100)
    events = simulation.tick(world)
    assert p.score == 1
    assert "c1" not in world.coins
    assert {"type": "coinCollected", "coinId": "c1"} in events
    assert any(e["type"] == "notification" for e in events)

    events = simulation.tick(world)
    assert p.score == 1
    assert events == []


def test_multiple_coins_in_one_tick():
    world = make_world()
    world.add_coin(Coin("a", 10, 10))
    world.add_coin(Coin("b", 12, 10))
    world.add_coin(Coin("far", 500, 500))
    p = add_player(world, x=11, y=10)
    events = simulation.tick(world)
    collected = [e["coinId"] for e in events if e["type"] == "coinCollected"]
    assert sorted(collected) == ["a", "b"]
    assert p.score == 2
    assert list(world.coins) == ["far"]


def test_contested_coin_goes_to_first_player():
    world = make_world()
    world.add_coin(Coin("c", 100, 100))
    first = add_player(world, token="1", x=100, y=101)
    second = add_player(world, token="2", x=101, y=100)
    events = simulation.tick(world)
    assert first.score == 1
    assert second.score == 0
    assert [e for e in events if e["type"] == "coinCollected"] == [
        {"type": "coinCollected", "coinId": "c"}
    ]


def test_player_walks_into_coin():
    world = make_world()
    world.add_coin(Coin("c", 100, 100))
    p = add_player(world, x=60, y=100)
    simulation.apply_intent(p, 0.0, 10)
    events = []
    for _ in range(20):
        events.extend(simulation.tick(world))
        if p.score:
            break
    assert p.score == 1
    assert {"type": "coinCollected", "coinId": "c"} in events
    assert "c" not in world.coins


def test_hard_mode_pushes_player_out_of_obstacle():
    world = make_world()
    world.hard_mode = True
    square = [(200, 200), (300, 200), (300, 300), (200, 300)]
    world.obstacles = [Obstacle(square, 250, 250, 75)]
    p = add_player(world, x=240, y=250)
    simulation.tick(world)
    assert not world.obstacles[0].contains(p.x, p.y)
    assert p.x == pytest.approx(250 - 75 - config.PUSH_MARGIN)
    assert p.y == pytest.approx(250)


def test_push_out_from_centroid_uses_plus_x():
    world = make_world()
    world.hard_mode = True
    square = [(200, 200), (300, 200), (300, 300), (200, 300)]
    world.obstacles = [Obstacle(square, 250, 250, 75)]
    p = add_player(world, x=250, y=250)
    simulation.tick(world)
    assert (p.x, p.y) == pytest.approx((250 + 75 + config.PUSH_MARGIN, 250))


def test_obstacles_ignored_outside_hard_mode():
    world = make_world()
    square = [(200, 200), (300, 200), (300, 300), (200, 300)]
    world.obstacles = [Obstacle(square, 250, 250, 75)]
    p = add_player(world, x=240, y=250)
    simulation.tick(world)
    assert (p.x, p.y) == (240, 250)


def test_push_out_resolves_overlapping_obstacles():
    world = make_world()
    world.hard_mode = True
    # pushing out of the second square lands the player inside the first
    first = Obstacle([(360, 290), (460, 290), (460, 390), (360, 390)], 410, 340, 75)
    second = Obstacle([(250, 250), (350, 250), (350, 350), (250, 350)], 300, 300, 75)
    world.obstacles = [first, second]
    p = add_player(world, x=310, y=300)
    simulation.tick(world)
    assert world.inside_obstacle(p.x, p.y) is None
    assert 0 <= p.x <= world.width
    assert 0 <= p.y <= world.height


def test_positions_stay_in_bounds_in_hard_mode():
    world = make_world()
    world.speed_limit = 100
    controller.toggle_hard_mode(world)
    players = [add_player(world, token=str(i), x=world.rng.uniform(0, 800),
                          y=world.rng.uniform(0, 600)) for i in range(10)]
    for _ in range(300):
        for p in players:
            simulation.apply_intent(p, world.rng.uniform(-10, 10), world.rng.uniform(-30, 30))
        simulation.tick(world)
        for p in players:
            assert 0 <= p.x <= world.width
            assert 0 <= p.y <= world.height
