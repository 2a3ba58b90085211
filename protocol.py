# protocol.py
"""JSON wire format shared by every connection.

Inbound frames are JSON objects with a ``type`` field. Outbound messages are
built here as plain dicts and encoded once per fan-out with :func:`encode`.
"""
import json
import math

import config

# Client -> Server
CREATE = "create"
MOVE = "move"
GET_PAST_COINS = "getPastCoins"
RESET = "reset"
TOGGLE_HARD_MODE = "toggleHardMode"

# Server -> Client
SERVER_INFO = "serverInfo"
NOTIFICATION = "notification"
GAME_STATE = "gameState"
COIN_COLLECTED = "coinCollected"
PAST_COINS = "pastCoins"

DEFAULT_NAME = "Player"
DEFAULT_COLOR = "gray"


class ProtocolError(ValueError):
    """An inbound frame that cannot be understood."""


def parse_message(raw) -> dict:
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ProtocolError(f"frame is not valid UTF-8: {e}") from e
    try:
        msg = json.loads(raw)
    except (ValueError, RecursionError) as e:
        # JSONDecodeError, oversized integers and runaway nesting
        raise ProtocolError(f"invalid JSON: {e}") from e
    if not isinstance(msg, dict):
        raise ProtocolError(f"expected a JSON object, got {type(msg).__name__}")
    if not isinstance(msg.get("type"), str):
        raise ProtocolError("message has no string 'type'")
    return msg


def _number(msg: dict, field: str) -> float:
    value = msg.get(field)
    # bool is an int subclass but never a valid coordinate
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ProtocolError(f"'{field}' must be a number, got {value!r}")
    try:
        value = float(value)
    except OverflowError as e:
        raise ProtocolError(f"'{field}' is out of range") from e
    if not math.isfinite(value):
        raise ProtocolError(f"'{field}' must be finite, got {value!r}")
    return value


def read_move(msg: dict) -> tuple[float, float]:
    """Return ``(angle, velocity)`` from a ``move`` message."""
    return _number(msg, "angle"), _number(msg, "velocity")


def read_create(msg: dict) -> tuple[str | None, str, str]:
    """Return ``(secret, name, color)`` from a ``create`` message."""
    secret = msg.get("secret")
    if not isinstance(secret, str) or not secret:
        secret = None
    name = msg.get("name")
    if not isinstance(name, str) or not name:
        name = DEFAULT_NAME
    color = msg.get("color")
    if not isinstance(color, str) or not color:
        color = DEFAULT_COLOR
    return secret, name, color


def encode(msg: dict) -> str:
    return json.dumps(msg)


def server_info() -> dict:
    return {"type": SERVER_INFO}


def notification(message: str, color: str) -> dict:
    return {"type": NOTIFICATION, "message": message, "color": color}


def coin_collected(cid) -> dict:
    return {"type": COIN_COLLECTED, "coinId": cid}


def past_coins(world) -> dict:
    return {"type": PAST_COINS, "coins": [c.to_dict() for c in world.coins.values()]}


def game_state(world, leaderboard_size=config.LEADERBOARD_SIZE) -> dict:
    """Full snapshot of the world as seen by every client."""
    return {
        "type": GAME_STATE,
        "players": [p.to_public() for p in world.connected_players()],
        "coins": [c.to_dict() for c in world.coins.values()],
        "leaderboard": [
            {"name": p.name, "score": p.score}
            for p in world.leaderboard(leaderboard_size)
        ],
        "speedLimit": world.speed_limit,
        "hardMode": world.hard_mode,
        "obstacles": [o.to_dict() for o in world.obstacles],
        "winners": [w.to_dict() for w in world.winners],
    }
