import math
import random

import pytest

from geom import Edge, LineSegment, Point, polygon_area
from outline import contour_edges
from trap import (
	FillRule,
	OpenContourError,
	SweepLimitError,
	Trapezoid,
	Trapezoider,
	trapezoidate,
)


def test_unit_square_is_one_trapezoid():
	edges = [
		Edge.of(0, 0, 0, 10, direction=-1),
		Edge.of(0, 10, 10, 10, direction=0),
		Edge.of(10, 10, 10, 0, direction=1),
		Edge.of(10, 0, 0, 0, direction=0),
	]
	traps = trapezoidate(edges, FillRule.NONZERO)

	assert traps == [
		Trapezoid(LineSegment.of(0, 0, 0, 10), LineSegment.of(10, 0, 10, 10), 0, 10)
	]
	assert traps[0].area() == 100


def test_overlapping_squares_nonzero_covers_the_overlap_once():
	edges = _square(0, 0, 10, 10) + _square(5, 5, 15, 15)
	traps = trapezoidate(edges, FillRule.NONZERO)

	assert _area(traps) == pytest.approx(175)
	assert sum(1 for t in traps if t.contains(Point(7.5, 7.5))) == 1
	assert sum(1 for t in traps if t.contains(Point(2.5, 2.5))) == 1
	assert not any(t.contains(Point(12.5, 2.5)) for t in traps)


def test_overlapping_squares_even_odd_leaves_the_overlap_out():
	edges = _square(0, 0, 10, 10) + _square(5, 5, 15, 15)
	traps = trapezoidate(edges, FillRule.EVEN_ODD)

	assert _area(traps) == pytest.approx(150)
	assert not any(t.contains(Point(7.5, 7.5)) for t in traps)
	assert sum(1 for t in traps if t.contains(Point(12.5, 12.5))) == 1


def test_two_triangles_meeting_at_a_crossing_split_there():
	t = Trapezoider()
	t.add_contour([(0, 0), (10, 0), (0, 10), (10, 10)])
	traps = t.trapezoidate()

	assert t.stats.intersections == 1
	assert len(traps) == 2

	upper, lower = sorted(traps, key=lambda tr: tr.top)
	assert (upper.top, upper.bottom) == (0, pytest.approx(5))
	assert (lower.top, lower.bottom) == (pytest.approx(5), 10)
	assert upper.left == LineSegment.of(0, 0, 10, 10)
	assert upper.right == LineSegment.of(10, 0, 0, 10)
	assert lower.left == LineSegment.of(10, 0, 0, 10)
	assert lower.right == LineSegment.of(0, 0, 10, 10)
	assert _area(traps) == pytest.approx(50)


def test_every_trapezoid_has_positive_height():
	edges = (
		_square(0, 0, 10, 10) +
		_square(5, 5, 15, 15) +
		contour_edges([(0, 0), (10, 0), (0, 10), (10, 10)])
	)
	for rule in FillRule:
		for trap in trapezoidate(edges, rule):
			assert trap.bottom > trap.top


def test_order_on_the_sweep_line_follows_x_just_below_each_event():
	edges = [
		Edge.of(0, 0, 30, 30),
		Edge.of(10, 0, 10, 30),
		Edge.of(20, 0, 0, 30),
	]
	t = _Recorder()
	t.check_contours = False
	t.validate = True
	t.add_edges(edges)
	t.trapezoidate()

	assert t.stats.intersections == 3
	for y, order in t.snapshots:
		if y >= 30:
			continue
		below = y + 0.5
		assert order == sorted(order, key=lambda i: edges[i].line.x_at(below)), y
	assert t.snapshots[-4][1] == [2, 1, 0]


def test_lone_edge_is_an_open_contour():
	edge = Edge.of(0, 0, 0, 10)
	with pytest.raises(OpenContourError) as err:
		trapezoidate([edge])
	assert err.value.y == 0
	assert err.value.edges == [edge]


def test_open_contours_can_be_allowed():
	t = Trapezoider()
	t.check_contours = False
	t.add_edge(Edge.of(0, 0, 0, 10))
	assert t.trapezoidate() == []


def test_runaway_sweep_is_stopped():
	t = _Limited()
	t.add_edges(_square(0, 0, 10, 10))
	with pytest.raises(SweepLimitError) as err:
		t.trapezoidate()
	assert err.value.limit == 2


def test_event_count_stays_within_the_limit():
	t = Trapezoider()
	t.add_contour(_pentagram())
	t.add_edges(_square(20, 20, 80, 80))
	limit = t.event_limit()
	t.trapezoidate()

	assert 0 < t.stats.events <= limit
	assert t.edges == []
	assert t.active is None


def test_horizontal_edges_alone_cover_nothing():
	t = Trapezoider()
	t.add_edge(Edge.of(0, 5, 10, 5))
	t.add_edge(Edge.of(10, 5, 0, 5))
	assert t.trapezoidate() == []
	assert t.stats.horizontal == 2


def test_simple_polygons_are_covered_exactly():
	shapes = [
		[(0, 0), (10, 0), (10, 4), (4, 4), (4, 10), (0, 10)],
		[(5, 0), (15, 2), (20, 10), (14, 19), (3, 17), (0, 8)],
		[(0, 0), (12, 6), (0, 12), (5, 6)],
	]
	for pts in shapes:
		for reverse in (False, True):
			t = Trapezoider()
			t.add_contour(pts, reverse=reverse)
			traps = t.trapezoidate(FillRule.EVEN_ODD)
			assert _area(traps) == pytest.approx(abs(polygon_area(pts)))


def test_pentagram_fills_its_centre_only_under_nonzero():
	edges = contour_edges(_pentagram())
	centre = Point(50, 50)

	assert any(t.contains(centre) for t in trapezoidate(edges, 'nonzero'))
	assert not any(t.contains(centre) for t in trapezoidate(edges, 'even-odd'))


@pytest.mark.parametrize('rule', list(FillRule))
def test_pentagram_matches_sampled_winding(rule):
	_check_fill(contour_edges(_pentagram()), rule, validate=True)


@pytest.mark.parametrize('rule', list(FillRule))
def test_three_edges_through_one_point(rule):
	edges = (
		contour_edges([(0, 0), (20, 20), (20, 0), (0, 20)]) +
		contour_edges([(10, 0), (10, 20), (14, 0)])
	)
	_check_fill(edges, rule, validate=True)


@pytest.mark.parametrize('seed', [1, 2, 3])
@pytest.mark.parametrize('rule', list(FillRule))
def test_random_zigzags_match_sampled_winding(rule, seed):
	rng = random.Random(seed)
	pts = [(rng.uniform(0, 100), rng.uniform(0, 100)) for _ in range(12)]
	_check_fill(contour_edges(pts), rule)


@pytest.mark.parametrize('start', range(5))
@pytest.mark.parametrize('rule', list(FillRule))
def test_notched_square_fills_alike_from_every_start_vertex(rule, start):
	notched = [(5, 10), (10, 0), (10, 20), (0, 20), (0, 0)]
	pts = notched[start:] + notched[:start]

	assert _area(trapezoidate(contour_edges(pts), rule)) == pytest.approx(150)
	_check_fill(contour_edges(pts), rule, validate=True)


@pytest.mark.parametrize('rule, area', [(FillRule.NONZERO, 395), (FillRule.EVEN_ODD, 330)])
def test_bar_across_two_columns_covers_the_gap_beneath_it(rule, area):
	edges = _square(0, 0, 10, 20) + _square(12, 0, 20, 20) + _square(5, 5, 25, 10)
	traps = trapezoidate(edges, rule)

	assert _area(traps) == pytest.approx(area)
	assert sum(1 for t in traps if t.contains(Point(11, 7.5))) == 1
	assert not any(t.contains(Point(11, 12.5)) for t in traps)
	_check_fill(edges, rule, validate=True)


def test_hand_set_directions_need_the_scanline_check_off():
	edges = [Edge.of(0, 0, 0, 10, direction=1), Edge.of(10, 10, 10, 0, direction=1)]
	with pytest.raises(OpenContourError):
		trapezoidate(edges, FillRule.EVEN_ODD)

	t = Trapezoider(FillRule.EVEN_ODD)
	t.check_contours = False
	t.add_edges(edges)
	assert _area(t.trapezoidate()) == pytest.approx(100)


def test_fill_rules():
	assert FillRule.NONZERO.is_inside(-2)
	assert not FillRule.NONZERO.is_inside(0)
	assert not FillRule.EVEN_ODD.is_inside(-2)
	assert FillRule.EVEN_ODD.is_inside(-3)

	assert FillRule.from_name('NonZero') is FillRule.NONZERO
	assert FillRule.from_name('winding') is FillRule.NONZERO
	assert FillRule.from_name('even_odd') is FillRule.EVEN_ODD
	assert FillRule.from_name(' evenodd ') is FillRule.EVEN_ODD
	with pytest.raises(ValueError):
		FillRule.from_name('inverse')


def test_trapezoid_measures():
	trap = Trapezoid(LineSegment.of(0, 0, 0, 10), LineSegment.of(10, 0, 20, 10), 0, 10)

	assert trap.height == 10
	assert trap.area() == 150
	assert trap.corners() == (Point(0, 0), Point(10, 0), Point(20, 10), Point(0, 10))
	assert trap.contains(Point(14, 5))
	assert not trap.contains(Point(15, 5))
	assert not trap.contains(Point(0, 5))
	assert not trap.contains(Point(5, 10))


class _Recorder(Trapezoider):
	def __init__ (self):
		super().__init__()
		self.snapshots = []

	def sweep_event (self, ev):
		super().sweep_event(ev)
		self.snapshots.append((ev.point.y, [rec.id for rec in self.active]))


class _Limited(Trapezoider):
	def event_limit (self):
		return 2


def _square(x0, y0, x1, y1):
	'Clockwise on screen: the right side heads down, the left side up.'
	return contour_edges([(x0, y0), (x1, y0), (x1, y1), (x0, y1)])


def _pentagram():
	pts = []
	for k in range(5):
		a = math.radians(-90 + 144 * k)
		# Rounded so the two points on the same row share a y exactly
		pts.append((round(50 + 40 * math.cos(a), 6), round(50 + 40 * math.sin(a), 6)))
	return pts


def _area(traps):
	return sum(t.area() for t in traps)


def _winding_at(edges, p):
	w = 0
	for e in edges:
		if e.is_horizontal:
			continue
		if e.top <= p.y < e.bottom and e.line.x_at(p.y) > p.x:
			w += e.direction
	return w


def _check_fill(edges, rule, validate=False):
	xs = [e.line.point1.x for e in edges]
	ys = [e.line.point1.y for e in edges]
	t = Trapezoider(rule)
	t.validate = validate
	t.add_edges(edges)
	traps = t.trapezoidate()

	for i in range(40):
		y = min(ys) - 1.3 + i * (max(ys) - min(ys) + 2.6) / 39.37
		for j in range(40):
			x = min(xs) - 1.7 + j * (max(xs) - min(xs) + 3.4) / 39.41
			p = Point(x, y)
			hits = sum(1 for tr in traps if tr.contains(p))
			expected = 1 if rule.is_inside(_winding_at(edges, p)) else 0
			assert hits == expected, (p, hits)
