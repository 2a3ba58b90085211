# controller.py
"""Periodic spawning, speed-limit changes and operator commands.

Each function mutates the world and returns the notification to broadcast,
or ``None`` when nothing happened.
"""
import logging
import uuid

import config
import geometry
import protocol
from logs import log
from world import Coin, Obstacle, Winner, World


def spawn_coin(world: World) -> dict | None:
    if len(world.coins) >= config.MAX_COINS:
        return None

    x, y = world.random_position()
    if world.hard_mode and world.obstacles:
        # best effort: keep the last sample if every attempt lands inside
        for _ in range(config.COIN_SPAWN_ATTEMPTS - 1):
            if world.inside_obstacle(x, y) is None:
                break
            x, y = world.random_position()

    cid = str(uuid.uuid4())
    while cid in world.coins:
        cid = str(uuid.uuid4())
    world.add_coin(Coin(cid, x, y))
    log(f"Coin {cid[:8]} spawned at ({x:.1f},{y:.1f})", level=logging.DEBUG)
    return protocol.notification("A new coin has spawned!", "yellow")


def update_speed_limit(world: World) -> dict:
    world.speed_limit = world.rng.randint(config.SPEED_LIMIT_MIN, config.SPEED_LIMIT_MAX)
    log(f"Speed limit is now {world.speed_limit}")
    return protocol.notification(f"New speed limit: {world.speed_limit}", "red")


def reset(world: World) -> dict:
    """Record the current leader, then wipe players, coins and obstacles."""
    leaders = world.leaderboard(1)
    if leaders:
        top = leaders[0]
        world.winners.append(Winner(top.name, top.score))
        log(f"Round won by {top.name} with {top.score} points")
    world.players.clear()
    world.coins.clear()
    world.obstacles.clear()
    world.hard_mode = False
    log("World reset")
    return protocol.notification("The game has been reset!", "blue")


def generate_obstacles(world: World) -> list[Obstacle]:
    rng = world.rng
    obstacles = []
    for _ in range(rng.randint(config.OBSTACLE_MIN, config.OBSTACLE_MAX)):
        radius = rng.uniform(config.OBSTACLE_RADIUS_MIN, config.OBSTACLE_RADIUS_MAX)
        # keep the circle plus the push-out margin inside the world
        reach = min(radius + config.PUSH_MARGIN, world.width / 2, world.height / 2)
        cx = rng.uniform(reach, world.width - reach)
        cy = rng.uniform(reach, world.height - reach)
        sides = rng.randint(config.OBSTACLE_VERTICES_MIN, config.OBSTACLE_VERTICES_MAX)
        obstacle = Obstacle.from_vertices(geometry.random_convex_polygon(rng, cx, cy, radius, sides))
        # the vertex centroid drifts off the circle centre; shift the shape
        # back so its push-out ring stays inside the world
        ring = obstacle.radius + config.PUSH_MARGIN
        x = geometry.clamp(obstacle.x, ring, world.width - ring)
        y = geometry.clamp(obstacle.y, ring, world.height - ring)
        if (x, y) != (obstacle.x, obstacle.y):
            dx, dy = x - obstacle.x, y - obstacle.y
            shifted = [(vx + dx, vy + dy) for vx, vy in obstacle.vertices]
            obstacle = Obstacle(shifted, x, y, obstacle.radius)
        obstacles.append(obstacle)
    return obstacles


def toggle_hard_mode(world: World) -> dict:
    world.hard_mode = not world.hard_mode
    if world.hard_mode:
        # coins could end up trapped inside the new terrain
        world.coins.clear()
        world.obstacles = generate_obstacles(world)
        log(f"Hard mode enabled with {len(world.obstacles)} obstacles")
        return protocol.notification("Hard mode enabled! Watch out for obstacles.", "orange")
    world.obstacles = []
    log("Hard mode disabled")
    return protocol.notification("Hard mode disabled.", "blue")
