"""Douglas-Peucker vertex reduction in a local metric plane.

Points are sequences whose first two components are (x, y); anything after
that (an up coordinate, say) rides along and is ignored by the distance test.
"""

import math


def _perpendicular_distance(p, start, end) -> float:
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    length = math.hypot(dx, dy)
    if length == 0.0:
        return 0.0
    return abs(dy * p[0] - dx * p[1] + end[0] * start[1] - end[1] * start[0]) / length


def douglas_peucker(points: list, epsilon: float) -> list:
    if len(points) < 3:
        return list(points)

    first, last = points[0], points[-1]
    dmax = 0.0
    index = 0
    for i in range(1, len(points) - 1):
        d = _perpendicular_distance(points[i], first, last)
        if d > dmax:
            index = i
            dmax = d

    if dmax > epsilon:
        head = douglas_peucker(points[:index + 1], epsilon)
        tail = douglas_peucker(points[index:], epsilon)
        return head[:-1] + tail
    return [first, last]


def _distinct(points: list) -> int:
    return len({(p[0], p[1]) for p in points})


def simplify_ring(ring: list, epsilon: float) -> list:
    """Simplify a closed ring, returning it closed.

    A closed ring's chord is degenerate, so the ring is split at the vertex
    farthest from its start and the two open halves are simplified.  The
    result never drops below a triangle; if it would, the input is returned.
    """
    pts = list(ring)
    if len(pts) > 1 and (pts[0][0], pts[0][1]) == (pts[-1][0], pts[-1][1]):
        pts = pts[:-1]
    if len(pts) < 3:
        return list(ring)

    start = pts[0]
    split = max(range(1, len(pts)),
                key=lambda i: (math.hypot(pts[i][0] - start[0], pts[i][1] - start[1]), -i))
    head = douglas_peucker(pts[:split + 1], epsilon)
    tail = douglas_peucker(pts[split:] + [start], epsilon)
    result = head[:-1] + tail

    if _distinct(result) < 3:
        return list(ring) if ring[0] == ring[-1] else list(ring) + [ring[0]]
    return result
