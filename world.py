# world.py
import random

import config
import geometry


class Player:
    def __init__(self, token, name, color, x, y):
        self.token = token
        self.name = name
        self.color = color
        self.x = x
        self.y = y
        # last movement intent received from the client
        self.angle = 0.0
        self.velocity = 0.0
        self.score = 0
        self.connected = True
        self.over_speed = False

    def to_public(self) -> dict:
        """Broadcastable fields. The token stays on the server."""
        return {
            "name": self.name,
            "color": self.color,
            "x": self.x,
            "y": self.y,
            "score": self.score,
            "overSpeed": self.over_speed,
        }


class Coin:
    def __init__(self, cid, x, y):
        self.id = cid
        self.x = x
        self.y = y

    def to_dict(self) -> dict:
        return {"id": self.id, "x": self.x, "y": self.y}


class Obstacle:
    def __init__(self, vertices, x, y, radius):
        self.vertices = [tuple(v) for v in vertices]
        # centroid and enclosing radius used for push-out
        self.x = x
        self.y = y
        self.radius = radius

    @classmethod
    def from_vertices(cls, vertices):
        cx, cy = geometry.polygon_centroid(vertices)
        return cls(vertices, cx, cy, geometry.enclosing_radius(vertices, cx, cy))

    def contains(self, x, y) -> bool:
        return geometry.point_in_polygon(x, y, self.vertices)

    def to_dict(self) -> dict:
        return {
            "vertices": [[vx, vy] for vx, vy in self.vertices],
            "x": self.x,
            "y": self.y,
            "radius": self.radius,
        }


class Winner:
    def __init__(self, name, score):
        self.name = name
        self.score = score

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score}


class World:
    """Canonical game state: players, coins, obstacles, speed limit, winners."""

    def __init__(self, width=config.GAME_WIDTH, height=config.GAME_HEIGHT,
                 speed_limit=config.INITIAL_SPEED_LIMIT, rng: random.Random | None = None):
        self.width = width
        self.height = height
        self.rng = rng or random.Random()
        self.players: dict[str, Player] = {}  # token -> Player
        self.coins: dict[str, Coin] = {}      # id -> Coin
        self.obstacles: list[Obstacle] = []
        self.hard_mode = False
        self.winners: list[Winner] = []
        self._speed_limit = None
        self.speed_limit = speed_limit

    @property
    def speed_limit(self):
        return self._speed_limit

    @speed_limit.setter
    def speed_limit(self, value):
        if value <= 0:
            raise ValueError(f"speed limit must be positive, got {value}")
        self._speed_limit = value

    def random_position(self):
        return self.rng.uniform(0, self.width), self.rng.uniform(0, self.height)

    def clamp_position(self, x, y):
        return (geometry.clamp(x, 0.0, self.width),
                geometry.clamp(y, 0.0, self.height))

    def add_player(self, player: Player) -> Player:
        if player.token in self.players:
            raise ValueError(f"duplicate player token {player.token!r}")
        self.players[player.token] = player
        return player

    def add_coin(self, coin: Coin) -> Coin:
        if coin.id in self.coins:
            raise ValueError(f"duplicate coin id {coin.id!r}")
        self.coins[coin.id] = coin
        return coin

    def remove_coin(self, cid) -> Coin | None:
        """Remove a coin; returns it, or None if it was already gone."""
        return self.coins.pop(cid, None)

    def connected_players(self) -> list[Player]:
        return [p for p in self.players.values() if p.connected]

    def leaderboard(self, size=config.LEADERBOARD_SIZE) -> list[Player]:
        # sorted() is stable, so ties keep join order
        return sorted(self.players.values(), key=lambda p: p.score, reverse=True)[:size]

    def inside_obstacle(self, x, y) -> Obstacle | None:
        for obstacle in self.obstacles:
            if obstacle.contains(x, y):
                return obstacle
        return None
