# simulation.py
"""Fixed-rate simulation step.

The tick is the only code that moves players, awards points and removes
collected coins. Everything else only records intent.
"""
import math

import config
import geometry
import protocol
from logs import log
from world import Player, World


def apply_intent(player: Player, angle: float, velocity: float):
    """Store a client's movement intent, clamping velocity magnitude.

    A negative velocity moves the player backwards along ``angle``.
    """
    player.angle = angle
    player.velocity = geometry.clamp(velocity, -config.MAX_VELOCITY, config.MAX_VELOCITY)


def step_length(velocity: float) -> float:
    """Signed distance covered in one tick at ``velocity``."""
    return config.MAX_STEP * velocity / config.MAX_VELOCITY


def push_out_of_obstacles(world: World, x: float, y: float):
    """Push a point out of every obstacle it lands in.

    A push can land the point inside a neighbouring obstacle, so containment
    is re-checked up to ``PUSH_OUT_PASSES`` times.
    """
    for _ in range(config.PUSH_OUT_PASSES):
        obstacle = world.inside_obstacle(x, y)
        if obstacle is None:
            break
        x, y = geometry.push_out(x, y, obstacle.x, obstacle.y,
                                 obstacle.radius, config.PUSH_MARGIN)
        x, y = world.clamp_position(x, y)
    return x, y


def move_player(world: World, player: Player):
    player.over_speed = player.velocity > world.speed_limit
    if player.over_speed:
        # speeding players are frozen for the tick
        return

    step = step_length(player.velocity)
    x = player.x + math.cos(player.angle) * step
    y = player.y + math.sin(player.angle) * step
    x, y = world.clamp_position(x, y)

    if world.hard_mode:
        x, y = push_out_of_obstacles(world, x, y)

    player.x, player.y = x, y


def collect_coins(world: World, player: Player) -> list[dict]:
    events = []
    for cid, coin in list(world.coins.items()):
        if not geometry.within_radius(player.x, player.y, coin.x, coin.y, config.COLLECT_RADIUS):
            continue
        if world.remove_coin(cid) is None:
            continue
        player.score += 1
        log(f"{player.name} collected coin {str(cid)[:8]} (score={player.score})")
        events.append(protocol.coin_collected(cid))
        events.append(protocol.notification(f"{player.name} collected a coin!", "yellow"))
    return events


def tick(world: World) -> list[dict]:
    """Advance the world by one step and return the events it produced."""
    events = []
    for player in world.connected_players():
        move_player(world, player)
        events.extend(collect_coins(world, player))
    return events
