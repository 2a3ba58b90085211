# config.py
import os

# World
GAME_WIDTH = 800
GAME_HEIGHT = 600

# Timing
TICK_RATE = 60  # 60 Hz
DT = 1.0 / TICK_RATE
BROADCAST_RATE = 30  # snapshots per second
COIN_SPAWN_PERIOD = 5.0  # seconds
SPEED_LIMIT_PERIOD = 20.0  # seconds

# Coins
MAX_COINS = 10
COIN_SPAWN_ATTEMPTS = 50
COLLECT_RADIUS = 15.0

# Movement. A player at MAX_VELOCITY moves MAX_STEP units per tick.
MAX_VELOCITY = 20.0
MAX_STEP = 6.0

# Speed limit
INITIAL_SPEED_LIMIT = 10
SPEED_LIMIT_MIN = 5
SPEED_LIMIT_MAX = 14

LEADERBOARD_SIZE = 10

# Hard mode obstacles
OBSTACLE_MIN = 3
OBSTACLE_MAX = 6
OBSTACLE_VERTICES_MIN = 3
OBSTACLE_VERTICES_MAX = 7
OBSTACLE_RADIUS_MIN = 30.0
OBSTACLE_RADIUS_MAX = 80.0
PUSH_MARGIN = 1.0
PUSH_OUT_PASSES = 8

# Network
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
