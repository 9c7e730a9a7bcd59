from fieldar.simplify import douglas_peucker, simplify_ring

LINE = [(0.0, 0.0), (1.0, 0.1), (2.0, 0.0)]


def test_tolerance_controls_reduction():
    assert douglas_peucker(LINE, 0.05) == LINE
    assert douglas_peucker(LINE, 0.5) == [(0.0, 0.0), (2.0, 0.0)]


def test_short_input_unchanged():
    assert douglas_peucker([], 1.0) == []
    assert douglas_peucker([(0.0, 0.0)], 1.0) == [(0.0, 0.0)]
    assert douglas_peucker([(0.0, 0.0), (5.0, 5.0)], 1.0) == [(0.0, 0.0), (5.0, 5.0)]


def test_degenerate_chord_collapses():
    pts = [(0.0, 0.0), (3.0, 4.0), (0.0, 0.0)]
    assert douglas_peucker(pts, 0.1) == [(0.0, 0.0), (0.0, 0.0)]


def test_extra_components_ride_along():
    pts = [(0.0, 0.0, 5.0), (1.0, 0.1, 6.0), (2.0, 0.0, 7.0)]
    assert douglas_peucker(pts, 0.05) == pts
    assert douglas_peucker(pts, 0.5) == [(0.0, 0.0, 5.0), (2.0, 0.0, 7.0)]


def test_recursion_keeps_corners_in_order():
    pts = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (2.0, 1.0), (2.0, 2.0)]
    assert douglas_peucker(pts, 0.1) == [(0.0, 0.0), (2.0, 0.0), (2.0, 2.0)]


def test_ring_drops_collinear_vertices():
    ring = [(0.0, 0.0), (1.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0), (0.0, 0.0)]
    assert simplify_ring(ring, 0.1) == [
        (0.0, 0.0), (2.0, 0.0), (2.0, 2.0), (0.0, 2.0), (0.0, 0.0)]


def test_ring_never_below_triangle():
    ring = [(0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (0.0, 0.0)]
    assert simplify_ring(ring, 100.0) == ring


def test_equal_distances_split_at_lowest_index():
    # (1, 1) and (2, 1) sit 1.0 from the chord; the split decides which survives
    pts = [(0.0, 0.0), (1.0, 1.0), (2.0, 1.0), (3.0, 0.0)]
    assert douglas_peucker(pts, 0.5) == [(0.0, 0.0), (1.0, 1.0), (3.0, 0.0)]
