# geometry.py
"""Pure geometry helpers for the simulation.

Points are ``(x, y)`` tuples and polygons are ordered lists of points.
Nothing in here touches world state.
"""
import math
import random


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def distance(ax: float, ay: float, bx: float, by: float) -> float:
    return math.hypot(ax - bx, ay - by)


def within_radius(ax: float, ay: float, bx: float, by: float, radius: float) -> bool:
    """True when the two points are strictly closer than ``radius``."""
    dx = ax - bx
    dy = ay - by
    return dx * dx + dy * dy < radius * radius


def point_in_polygon(x: float, y: float, vertices) -> bool:
    """Ray-casting containment test.

    A horizontal ray is cast from the point towards +x and the ``inside``
    flag toggles on every polygon edge it crosses.
    """
    inside = False
    n = len(vertices)
    if n < 3:
        return False
    j = n - 1
    for i in range(n):
        xi, yi = vertices[i]
        xj, yj = vertices[j]
        if (yi > y) != (yj > y):
            x_cross = (xj - xi) * (y - yi) / (yj - yi) + xi
            if x < x_cross:
                inside = not inside
        j = i
    return inside


def push_out(x: float, y: float, cx: float, cy: float, radius: float, margin: float = 1.0):
    """Move a point radially away from ``(cx, cy)`` to just outside ``radius``.

    A point sitting exactly on the centre is pushed along +x.
    """
    dx = x - cx
    dy = y - cy
    dist = math.hypot(dx, dy)
    if dist == 0:
        nx, ny = 1.0, 0.0
    else:
        nx, ny = dx / dist, dy / dist
    reach = radius + margin
    return cx + nx * reach, cy + ny * reach


def polygon_centroid(vertices):
    """Vertex average of a polygon."""
    n = len(vertices)
    if n == 0:
        raise ValueError("polygon has no vertices")
    sx = sum(v[0] for v in vertices)
    sy = sum(v[1] for v in vertices)
    return sx / n, sy / n


def enclosing_radius(vertices, cx: float, cy: float) -> float:
    """Distance from ``(cx, cy)`` to the farthest vertex."""
    return max(distance(vx, vy, cx, cy) for vx, vy in vertices)


def random_convex_polygon(rng: random.Random, cx: float, cy: float, radius: float, sides: int):
    """Vertices of a random convex polygon inscribed in a circle.

    Angles are sampled uniformly and sorted, so the points wind
    counter-clockwise around the centre and the hull is convex.
    """
    if sides < 3:
        raise ValueError(f"a polygon needs at least 3 vertices, got {sides}")
    angles = sorted(rng.uniform(0, 2 * math.pi) for _ in range(sides))
    return [(cx + math.cos(a) * radius, cy + math.sin(a) * radius) for a in angles]
