import logging
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum, auto as iota

from ds.chain import Chain, NIL
from ds.priority import Priority
from geom import EPSILON, Edge, LineSegment, Point
import geom
import outline

logger = logging.getLogger(__name__)


class FillRule(Enum):
	NONZERO  = iota(), lambda n: n != 0
	EVEN_ODD = iota(), lambda n: (n & 1) != 0

	def is_inside (self, n: int) -> bool:
		return self.value[1](n)

	@classmethod
	def from_name (cls, name: str):
		key = name.strip().lower().replace('-', '').replace('_', '')
		if key in ('nonzero', 'winding'):
			return cls.NONZERO
		if key in ('evenodd', 'odd'):
			return cls.EVEN_ODD
		raise ValueError(f'unknown fill rule {name!r}')


class TrapezoidationError(Exception):
	'The sweep found the input structurally unusable.'


class OpenContourError(TrapezoidationError):
	def __init__ (self, y: float, edges: Sequence[Edge]):
		super().__init__(
			f'{len(edges)} edge(s) left unbalanced at y={y:g}; '
			'the input does not form closed contours'
		)
		self.y = y
		self.edges = list(edges)


class DuplicateEdgeError(TrapezoidationError):
	def __init__ (self, edge: Edge, edge_id: int):
		super().__init__(f'edge #{edge_id} {edge!r} is already on the sweep line')
		self.edge = edge
		self.edge_id = edge_id


class SweepLimitError(TrapezoidationError):
	def __init__ (self, limit: int):
		super().__init__(f'sweep did not finish within {limit} events')
		self.limit = limit


@dataclass(frozen=True, slots=True)
class Trapezoid:
	left: LineSegment
	right: LineSegment
	top: float
	bottom: float

	@property
	def height (self):
		return self.bottom - self.top

	def x_span_at (self, y: float) -> tuple[float, float]:
		return self.left.x_at(y), self.right.x_at(y)

	def corners (self) -> tuple[Point, Point, Point, Point]:
		'Clockwise from the top left.'
		tl, tr = self.x_span_at(self.top)
		bl, br = self.x_span_at(self.bottom)
		return (
			Point(tl, self.top),
			Point(tr, self.top),
			Point(br, self.bottom),
			Point(bl, self.bottom),
		)

	def area (self) -> float:
		tl, tr = self.x_span_at(self.top)
		bl, br = self.x_span_at(self.bottom)
		return ((tr - tl) + (br - bl)) / 2 * self.height

	def contains (self, point: Point) -> bool:
		if not (self.top < point.y < self.bottom):
			return False
		left, right = self.x_span_at(point.y)
		return left < point.x < right


class EventKind(Enum):
	# Declaration order is processing order for events at the same point:
	# edges leave before crossings reorder, crossings settle before edges join.
	END          = iota()
	INTERSECTION = iota()
	START        = iota()


class Event:
	__slots__ = 'kind', 'point', 'edge', 'other', 'handle'

	def __init__ (self, kind: EventKind, point: Point, edge: int, other: int = NIL):
		self.kind = kind
		self.point = point
		self.edge = edge
		self.other = other
		self.handle = -1

	@property
	def key (self):
		return (self.point.y, self.point.x, self.kind.value, self.edge, self.other)

	def __eq__ (self, other):
		if not isinstance(other, Event):
			return NotImplemented
		return self.key == other.key

	def __hash__ (self):
		return hash(self.key)

	def __lt__ (self, other: 'Event'):
		return self.key < other.key

	def __le__ (self, other: 'Event'):
		return self.key <= other.key

	def __repr__ (self):
		edges = f'#{self.edge}' if self.other == NIL else f'#{self.edge}/#{self.other}'
		return f'<{self.kind.name} {edges} at ({self.point.x:g}, {self.point.y:g})>'


class EventQueue:
	def __init__ (self, edges: Sequence[Edge], tolerance = EPSILON):
		self.tolerance = tolerance
		self.pq = Priority[Event](key=lambda ev: ev.key)
		self.pending = dict[tuple[int, int], list[Event]]()

		for i, edge in enumerate(edges):
			if edge.is_degenerate:
				logger.debug('dropping zero-length edge #%d %r', i, edge)
				continue
			# Sweep order on points puts a horizontal edge's left end first.
			self._push(Event(EventKind.START, edge.line.min_y_point(), i))
			self._push(Event(EventKind.END, edge.line.max_y_point(), i))

		self.pq.init()

	def _push (self, ev: Event) -> Event:
		ev.handle = self.pq.insert(ev)
		return ev

	@staticmethod
	def _pair (a: int, b: int):
		return (a, b) if a < b else (b, a)

	def __len__ (self):
		return len(self.pq)

	@property
	def is_empty (self):
		return self.pq.is_empty

	def peek (self) -> Event | None:
		return self.pq.min()

	def pop (self) -> Event | None:
		ev = self.pq.extract_min()
		if ev is not None and ev.kind is EventKind.INTERSECTION:
			key = self._pair(ev.edge, ev.other)
			pending = self.pending[key]
			pending.remove(ev)
			if not pending:
				del self.pending[key]
		return ev

	def push_intersection (self, left: int, right: int, point: Point) -> Event | None:
		'''
		Schedules the crossing of two edges unless the same pair already has
		one pending at (or within tolerance of) `point`.
		'''
		key = self._pair(left, right)
		pending = self.pending.get(key)
		if pending is None:
			pending = self.pending[key] = []
		for ev in pending:
			if ev.point.close_to(point, self.tolerance):
				return None
		ev = self._push(Event(EventKind.INTERSECTION, point, left, right))
		pending.append(ev)
		return ev

	def cancel_intersection (self, a: int, b: int) -> int:
		pending = self.pending.pop(self._pair(a, b), ())
		for ev in pending:
			del self.pq[ev.handle]
		return len(pending)


class ActiveEdge:
	'''
	An edge on the sweep line, and the trapezoid opened to its right that is
	still waiting for a bottom.
	'''
	__slots__ = 'edge', 'id', 'deferred_top', 'deferred_right', 'winding'

	def __init__ (self, edge: Edge, edge_id: int):
		self.edge = edge
		self.id = edge_id
		self.deferred_top = edge.top
		self.deferred_right = NIL
		self.winding = 0

	@property
	def has_span (self):
		return self.deferred_right != NIL

	def __repr__ (self):
		return f'<ActiveEdge #{self.id} {self.edge!r} top={self.deferred_top:g}>'


class Order(Enum):
	LESS      = iota()
	GREATER   = iota()
	DUPLICATE = iota()


def converges (left: Edge, right: Edge) -> bool:
	'Whether `left` gains on `right` as the sweep line moves down.'
	return left.line.inverse_slope > right.line.inverse_slope


class ActiveEdgeSet:
	def __init__ (self, tolerance = EPSILON):
		self.tolerance = tolerance
		self.chain = Chain[ActiveEdge]()
		self.by_id = dict[int, int]()
		self.balance = 0

	def __len__ (self):
		return len(self.chain)

	def __getitem__ (self, h: int) -> ActiveEdge:
		return self.chain[h]

	def __iter__ (self) -> Iterator[ActiveEdge]:
		return self.chain.items()

	def handles (self) -> Iterator[int]:
		return iter(self.chain)

	def handle_of (self, edge_id: int) -> int | None:
		return self.by_id.get(edge_id)

	def prev (self, h: int) -> int:
		return self.chain.prev(h)

	def next (self, h: int) -> int:
		return self.chain.next(h)

	def order (self, point: Point, edge: Edge, edge_id: int, h: int) -> Order:
		'''
		Where `edge`, passing through `point`, goes relative to the record
		at `h` on the sweep line through `point`.
		'''
		cand = self.chain[h]
		if cand.id == edge_id or cand.edge is edge:
			return Order.DUPLICATE

		cx = cand.edge.line.x_at(point.y)
		if abs(point.x - cx) > self.tolerance:
			return Order.GREATER if point.x > cx else Order.LESS

		# They meet here; whichever heads further right below the point
		# is the right one.
		d = edge.line.inverse_slope
		cd = cand.edge.line.inverse_slope
		if d != cd:
			return Order.GREATER if d > cd else Order.LESS

		return Order.GREATER if edge_id > cand.id else Order.LESS

	def insert (self, edge: Edge, edge_id: int, point: Point) -> int:
		if edge_id in self.by_id:
			raise DuplicateEdgeError(edge, edge_id)

		chain = self.chain
		h = chain.head
		while h != NIL:
			o = self.order(point, edge, edge_id, h)
			if o is Order.DUPLICATE:
				raise DuplicateEdgeError(edge, edge_id)
			if o is Order.LESS:
				break
			h = chain.next(h)

		n = chain.insert_before(h, ActiveEdge(edge, edge_id))
		self.by_id[edge_id] = n
		self.balance += edge.direction
		return n

	def remove (self, h: int) -> tuple[int, int]:
		rec = self.chain[h]
		del self.by_id[rec.id]
		self.balance -= rec.edge.direction
		return self.chain.remove(h)

	def swap_adjacent (self, a: int, b: int):
		self.chain.swap_adjacent(a, b)

	def winding_from (self, h: int) -> int:
		'Sum of directions from `h` to the right end of the sweep line.'
		chain = self.chain
		return sum(chain[k].edge.direction for k in chain.walk(h))

	def check_self (self, sweep: Point, slack = 1e-6):
		chain = self.chain
		prev: ActiveEdge = None
		balance = 0
		for h in chain:
			rec = chain[h]
			assert self.by_id[rec.id] == h
			assert rec.deferred_right == chain.next(h), f'{rec!r} does not bound the span to its right'
			if prev is not None:
				x0 = prev.edge.line.x_at(sweep.y)
				x1 = rec.edge.line.x_at(sweep.y)
				assert x0 <= x1 + slack * max(1.0, abs(x0), abs(x1)), (
					f'{prev!r} is right of {rec!r} at y={sweep.y:g}'
				)
			balance += rec.edge.direction
			prev = rec
		assert balance == self.balance
		assert len(self.by_id) == len(chain)


def find_crossing (left: Edge, right: Edge, sweep: Point, tolerance = EPSILON) -> Point | None:
	'''
	Where `left`, currently left of `right` on the sweep line, passes to its
	right. None when the pair never crosses before one of them ends.

	A crossing that lands at or before `sweep` (the pair is already out of
	order, or meets on this scanline) is clamped onto `sweep`, so it is
	handled next rather than lost.
	'''
	if left.is_horizontal or right.is_horizontal:
		return None
	if not converges(left, right):
		return None

	ll = left.line
	rl = right.line

	y0 = max(sweep.y, left.top, right.top)
	y1 = min(left.bottom, right.bottom)
	if y1 <= y0:
		return None

	gap0 = rl.x_at(y0) - ll.x_at(y0)
	gap1 = ll.x_at(y1) - rl.x_at(y1)
	if gap1 <= tolerance:
		return None

	y = geom.interpolate(gap0, y0, gap1, y1)
	x = (ll.x_at(y) + rl.x_at(y)) / 2

	if y - sweep.y <= tolerance:
		y = sweep.y
		x = max(x, sweep.x)
	return Point(x, y)


class TrapezoidAccumulator:
	def __init__ (self, active: ActiveEdgeSet, fill_rule: FillRule):
		self.active = active
		self.fill_rule = fill_rule
		self.trapezoids = list[Trapezoid]()

	def close_and_emit (self, h: int, bottom: float) -> Trapezoid | None:
		'''
		Gives the open span right of the record at `h` its bottom, and keeps
		it if the fill rule says the span is inside. The caller restarts
		the span afterwards.

		The span's winding was fixed by `settle` on the scanline where it
		opened, so edges already gone from this scanline cannot skew it.
		'''
		active = self.active
		rec = active[h]
		if rec.deferred_right == NIL or rec.deferred_top >= bottom:
			return None

		if not self.fill_rule.is_inside(rec.winding):
			return None

		trap = Trapezoid(
			rec.edge.line.downward(),
			active[rec.deferred_right].edge.line.downward(),
			rec.deferred_top,
			bottom
		)
		self.trapezoids.append(trap)
		return trap

	def settle (self, y: float):
		'''
		Fixes the winding of every span opened on scanline `y`, once all
		events there have been applied.
		'''
		active = self.active
		for rec in active:
			if rec.has_span and rec.deferred_top == y:
				rec.winding = active.winding_from(rec.deferred_right)


@dataclass
class SweepStats:
	events: int = 0
	starts: int = 0
	ends: int = 0
	intersections: int = 0
	stale: int = 0
	horizontal: int = 0


class Trapezoider:
	'''
	Sweeps the added edges top to bottom and collects the trapezoids that
	`fill_rule` puts inside.

	With `check_contours` set (the default) every scanline must see the
	directions of the edges crossing it sum to zero, which closed contours
	always do; anything else raises `OpenContourError` as soon as the sweep
	leaves that scanline. This is stricter than needed for hand-made edge
	lists whose directions do not come from drawing order, such as even-odd
	input with every direction +1. Turn it off for those; only edges still
	on the sweep line at the very end are then reported.
	'''
	def __init__ (self, fill_rule: FillRule = FillRule.NONZERO):
		self.fill_rule = fill_rule
		self.tolerance = EPSILON
		self.check_contours = True
		self.validate = False

		self.edges = list[Edge]()

		self.queue: EventQueue = None
		self.active: ActiveEdgeSet = None
		self.accum: TrapezoidAccumulator = None
		self.event: Event = None
		self.sweep: Point = None

		self.stats = SweepStats()
		self.trapezoids = list[Trapezoid]()

	def add_edge (self, edge: Edge):
		self.edges.append(edge)

	def add_edges (self, edges: Iterable[Edge]):
		self.edges.extend(edges)

	def add_contour (self, points, reverse = False):
		self.edges.extend(outline.contour_edges(points, reverse=reverse))

	def event_limit (self) -> int:
		'''
		Each edge starts and ends once, each pair swaps at most once, and
		every scheduled crossing is pushed by one of those.
		'''
		n = len(self.edges)
		return 5 * n + n * (n - 1) + 1

	def trapezoidate (self, fill_rule: FillRule | str = None) -> list[Trapezoid]:
		if isinstance(fill_rule, str):
			fill_rule = FillRule.from_name(fill_rule)
		if fill_rule is not None:
			self.fill_rule = fill_rule

		self.stats = SweepStats()
		self.queue = EventQueue(self.edges, self.tolerance)
		self.active = ActiveEdgeSet(self.tolerance)
		self.accum = TrapezoidAccumulator(self.active, self.fill_rule)
		self.sweep = Point(float('-inf'), float('-inf'))

		self.compute_interior()

		self.trapezoids = self.accum.trapezoids
		logger.debug(
			'%d edges -> %d trapezoids (%s)',
			len(self.edges), len(self.trapezoids), self.stats
		)

		self.queue = self.active = self.accum = None
		self.event = None
		self.edges = []
		return self.trapezoids

	def compute_interior (self):
		queue = self.queue
		limit = self.event_limit()

		while not queue.is_empty:
			ev = queue.pop()
			if ev.point.y > self.sweep.y:
				self.leave_scanline()

			self.stats.events += 1
			if self.stats.events > limit:
				raise SweepLimitError(limit)

			self.sweep_event(ev)
			if self.validate:
				self.active.check_self(self.sweep)

		self.leave_scanline()
		if len(self.active):
			raise OpenContourError(self.sweep.y, [rec.edge for rec in self.active])

	def leave_scanline (self):
		# Closed contours cross every scanline as often upwards as downwards.
		if self.check_contours and self.active.balance != 0:
			raise OpenContourError(self.sweep.y, [rec.edge for rec in self.active])
		self.accum.settle(self.sweep.y)

	def sweep_event (self, ev: Event):
		self.event = ev
		self.sweep = ev.point
		logger.debug('sweep %r, %d active', ev, len(self.active))

		if ev.kind is EventKind.START:
			self.start_edge(ev)
		elif ev.kind is EventKind.END:
			self.end_edge(ev)
		else:
			self.cross_edges(ev)

	def restart_span (self, h: int, right: int, top: float):
		rec = self.active[h]
		rec.deferred_right = right
		rec.deferred_top = top

	def check_for_intersect (self, h_left: int, h_right: int):
		active = self.active
		left = active[h_left]
		right = active[h_right]
		isect = find_crossing(left.edge, right.edge, self.sweep, self.tolerance)
		if isect is not None:
			self.queue.push_intersection(left.id, right.id, isect)

	def split_spans_under (self, edge: Edge, y: float):
		'''
		Ends every open span that `edge`, horizontal at `y`, passes over, and
		starts it again below the edge.
		'''
		active = self.active
		x0 = edge.line.min_y_point().x
		x1 = edge.line.max_y_point().x
		for h in active.handles():
			rec = active[h]
			if not rec.has_span:
				continue
			left = rec.edge.line.x_at(y)
			right = active[rec.deferred_right].edge.line.x_at(y)
			if min(right, x1) - max(left, x0) > self.tolerance:
				self.accum.close_and_emit(h, y)
				self.restart_span(h, rec.deferred_right, y)

	def start_edge (self, ev: Event):
		edge = self.edges[ev.edge]
		if edge.is_horizontal:
			# Never bounds a trapezoid, but the spans it runs over change winding.
			self.stats.horizontal += 1
			logger.debug('horizontal edge #%d stays off the sweep line', ev.edge)
			self.split_spans_under(edge, ev.point.y)
			return
		self.stats.starts += 1

		active = self.active
		y = ev.point.y
		h = active.insert(edge, ev.edge, ev.point)
		h_prev = active.prev(h)
		h_next = active.next(h)

		self.restart_span(h, h_next, y)

		if h_prev != NIL:
			if h_next != NIL:
				self.queue.cancel_intersection(active[h_prev].id, active[h_next].id)
			# The new edge splits whatever span was open to its left.
			self.accum.close_and_emit(h_prev, y)
			self.restart_span(h_prev, h, y)
			self.check_for_intersect(h_prev, h)

		if h_next != NIL:
			self.check_for_intersect(h, h_next)

	def end_edge (self, ev: Event):
		edge = self.edges[ev.edge]
		if edge.is_horizontal:
			return
		self.stats.ends += 1

		active = self.active
		y = ev.point.y
		h = active.handle_of(ev.edge)
		assert h is not None, f'edge #{ev.edge} ended without starting'
		rec = active[h]
		h_prev = active.prev(h)
		h_next = active.next(h)

		if h_prev != NIL and h_next != NIL:
			self.check_for_intersect(h_prev, h_next)

		self.accum.close_and_emit(h, y)

		if h_prev != NIL:
			self.accum.close_and_emit(h_prev, y)
			self.restart_span(h_prev, rec.deferred_right, y)
			self.queue.cancel_intersection(active[h_prev].id, rec.id)
		if h_next != NIL:
			self.queue.cancel_intersection(rec.id, active[h_next].id)

		active.remove(h)

	def cross_edges (self, ev: Event):
		active = self.active
		h_left = active.handle_of(ev.edge)
		h_right = active.handle_of(ev.other)

		if (
			h_left is None or
			h_right is None or
			active.next(h_left) != h_right or
			not converges(active[h_left].edge, active[h_right].edge)
		):
			self.stats.stale += 1
			logger.debug('dropping stale %r', ev)
			return
		self.stats.intersections += 1

		y = ev.point.y
		left = active[h_left]
		right = active[h_right]
		h_prev = active.prev(h_left)
		h_next = active.next(h_right)
		accum = self.accum

		accum.close_and_emit(h_left, y)
		accum.close_and_emit(h_right, y)
		if h_prev != NIL:
			accum.close_and_emit(h_prev, y)

		# After the swap: prev - right - left - next
		self.restart_span(h_left, right.deferred_right, y)
		self.restart_span(h_right, h_left, y)
		if h_prev != NIL:
			self.restart_span(h_prev, h_right, y)
			self.queue.cancel_intersection(active[h_prev].id, left.id)
		if h_next != NIL:
			self.queue.cancel_intersection(right.id, active[h_next].id)
		self.queue.cancel_intersection(left.id, right.id)

		active.swap_adjacent(h_left, h_right)

		if h_prev != NIL:
			self.check_for_intersect(h_prev, h_right)
		if h_next != NIL:
			self.check_for_intersect(h_left, h_next)


def trapezoidate (edges: Iterable[Edge], fill_rule: FillRule | str = FillRule.NONZERO) -> list[Trapezoid]:
	'''
	Trapezoids covering the region `edges` enclose under `fill_rule`.
	'''
	t = Trapezoider()
	t.add_edges(edges)
	return t.trapezoidate(fill_rule)
