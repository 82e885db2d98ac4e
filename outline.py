import logging
from math import hypot

from geom import EPSILON, Edge, LineSegment, Point

logger = logging.getLogger(__name__)

MAX_DEPTH = 16


def _as_point (co) -> Point:
	if isinstance(co, Point):
		return co
	return Point(float(co[0]), float(co[1]))


def contour_edges (points, closed = True, reverse = False) -> list[Edge]:
	'''
	Edges along a polyline, each drawn from one point to the next and,
	when `closed`, from the last point back to the first.

	Directions follow the drawing: +1 heading down (increasing y), -1
	heading up, 0 for horizontal runs. `reverse` walks the points
	backwards, which flips every direction.
	'''
	pts = [_as_point(co) for co in points]
	if len(pts) < 2:
		raise ValueError(f'a contour needs at least two points, got {len(pts)}')
	if reverse:
		pts.reverse()

	if closed:
		pairs = zip(pts, pts[1:] + pts[:1])
	else:
		pairs = zip(pts, pts[1:])

	edges = list[Edge]()
	for p, q in pairs:
		if p == q:
			logger.debug('skipping repeated point %r', p)
			continue
		edges.append(Edge.from_line(LineSegment(p, q)))
	return edges


def _lerp_half (a: Point, b: Point) -> Point:
	return Point(a.x + (b.x - a.x) / 2, a.y + (b.y - a.y) / 2)


def split_cubic (a: Point, b: Point, c: Point, d: Point):
	'''
	de Casteljau at t = 1/2: the two halves of the curve, each as its own
	four control points.
	'''
	ab = _lerp_half(a, b)
	bc = _lerp_half(b, c)
	cd = _lerp_half(c, d)
	abbc = _lerp_half(ab, bc)
	bccd = _lerp_half(bc, cd)
	mid = _lerp_half(abbc, bccd)
	return (a, ab, abbc, mid), (mid, bccd, cd, d)


def _is_flat (a: Point, b: Point, c: Point, d: Point, flatness: float) -> bool:
	dx = d.x - a.x
	dy = d.y - a.y
	chord = hypot(dx, dy)
	if chord <= EPSILON:
		return max(hypot(b.x - a.x, b.y - a.y), hypot(c.x - a.x, c.y - a.y)) <= flatness

	# Distance of each control point from the chord
	db = abs((b.x - a.x) * dy - (b.y - a.y) * dx) / chord
	dc = abs((c.x - a.x) * dy - (c.y - a.y) * dx) / chord
	return max(db, dc) <= flatness


def flatten_cubic (p0, p1, p2, p3, flatness = 0.1) -> list[Point]:
	'''
	Points along the cubic Bezier `p0 p1 p2 p3`, not including `p0`, found by
	halving the curve until every piece lies within `flatness` of its chord.
	'''
	if flatness <= 0:
		raise ValueError(f'flatness must be positive, not {flatness!r}')

	out = list[Point]()

	def subdivide (a, b, c, d, depth):
		if depth >= MAX_DEPTH or _is_flat(a, b, c, d, flatness):
			out.append(d)
			return
		first, second = split_cubic(a, b, c, d)
		subdivide(*first, depth + 1)
		subdivide(*second, depth + 1)

	subdivide(_as_point(p0), _as_point(p1), _as_point(p2), _as_point(p3), 0)
	return out


class Outline:
	'''
	Path builder in the usual pen style. `move_to` starts a contour,
	`line_to` and `curve_to` extend it and `close_path` ends it. Every
	contour is closed when filled, whether or not `close_path` was called.
	'''
	def __init__ (self, flatness = 0.1):
		self.flatness = flatness
		self.contours = list[list[Point]]()
		self._current: list[Point] = None

	def _pen (self) -> list[Point]:
		if self._current is None:
			raise ValueError('no current point; start the contour with move_to()')
		return self._current

	def move_to (self, x: float, y: float):
		self.close_path()
		self._current = [Point(x, y)]
		return self

	def line_to (self, x: float, y: float):
		self._pen().append(Point(x, y))
		return self

	def curve_to (self, x1: float, y1: float, x2: float, y2: float, x3: float, y3: float):
		pen = self._pen()
		pen.extend(flatten_cubic(
			pen[-1], Point(x1, y1), Point(x2, y2), Point(x3, y3),
			self.flatness
		))
		return self

	def close_path (self):
		cur = self._current
		if cur is not None:
			if len(cur) > 1:
				self.contours.append(cur)
			self._current = None
		return self

	def edges (self) -> list[Edge]:
		self.close_path()
		edges = list[Edge]()
		for contour in self.contours:
			edges.extend(contour_edges(contour))
		return edges
