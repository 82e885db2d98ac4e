from dataclasses import dataclass
from typing import Self

EPSILON = 1e-9


@dataclass(frozen=True, slots=True)
class Point:
	x: float
	y: float

	def __iter__ (self):
		yield self.x
		yield self.y

	# Sweep order: top to bottom, then left to right.
	def __lt__ (self, other: Self):
		return (self.y, self.x) < (other.y, other.x)

	def __le__ (self, other: Self):
		return (self.y, self.x) <= (other.y, other.x)

	def __gt__ (self, other: Self):
		return (self.y, self.x) > (other.y, other.x)

	def __ge__ (self, other: Self):
		return (self.y, self.x) >= (other.y, other.x)

	def close_to (self, other: Self, tolerance = EPSILON) -> bool:
		return (
			abs(self.x - other.x) <= tolerance and
			abs(self.y - other.y) <= tolerance
		)


@dataclass(frozen=True, slots=True)
class LineSegment:
	point1: Point
	point2: Point

	@classmethod
	def of (cls, x1: float, y1: float, x2: float, y2: float):
		return cls(Point(x1, y1), Point(x2, y2))

	@property
	def is_horizontal (self):
		return self.point1.y == self.point2.y

	@property
	def is_degenerate (self):
		return self.point1 == self.point2

	def slope (self) -> float:
		dx = self.point2.x - self.point1.x
		dy = self.point2.y - self.point1.y
		if dx == 0:
			return float('inf') if dy >= 0 else float('-inf')
		return dy / dx

	@property
	def inverse_slope (self) -> float:
		'''
		How far x moves for each unit the sweep line moves down.
		Infinite for horizontal lines.
		'''
		top = self.min_y_point()
		bot = self.max_y_point()
		dy = bot.y - top.y
		if dy == 0:
			return float('inf')
		return (bot.x - top.x) / dy

	def min_y_point (self) -> Point:
		return self.point1 if self.point1 <= self.point2 else self.point2

	def max_y_point (self) -> Point:
		return self.point2 if self.point1 <= self.point2 else self.point1

	def x_at (self, y: float) -> float:
		top = self.min_y_point()
		bot = self.max_y_point()
		if y == top.y or top.y == bot.y:
			return top.x
		if y == bot.y:
			return bot.x
		return top.x + (y - top.y) * (bot.x - top.x) / (bot.y - top.y)

	def downward (self) -> Self:
		if self.point1 <= self.point2:
			return self
		return LineSegment(self.point2, self.point1)


@dataclass(frozen=True, slots=True, eq=False)
class Edge:
	'''
	A line segment that contributes `direction` to the winding number of
	everything to its left. Compared by identity: two edges along the same
	line are still two edges.
	'''
	line: LineSegment
	top: float
	bottom: float
	direction: int

	def __post_init__ (self):
		if self.direction not in (-1, 0, 1):
			raise ValueError(f'edge direction must be -1, 0 or +1, not {self.direction!r}')
		if self.top > self.bottom:
			raise ValueError(f'edge top {self.top} is below its bottom {self.bottom}')

	@classmethod
	def from_line (cls, line: LineSegment, direction: int = None):
		y1 = line.point1.y
		y2 = line.point2.y
		if y1 == y2:
			direction = 0
		elif direction is None:
			direction = 1 if y2 > y1 else -1
		return cls(line, min(y1, y2), max(y1, y2), direction)

	@classmethod
	def of (cls, x1: float, y1: float, x2: float, y2: float, direction: int = None):
		return cls.from_line(LineSegment.of(x1, y1, x2, y2), direction)

	@property
	def is_horizontal (self):
		return self.top == self.bottom

	@property
	def is_degenerate (self):
		return self.line.is_degenerate

	def __repr__ (self):
		p, q = self.line.point1, self.line.point2
		return f'Edge(({p.x:g}, {p.y:g})-({q.x:g}, {q.y:g}), dir={self.direction:+d})'


def interpolate (a: float, x: float, b: float, y: float) -> float:
	'''
	The point between `x` and `y` splitting it in the ratio `a : b`.
	Negative weights count as zero.
	'''
	a = 0.0 if a < 0 else a
	b = 0.0 if b < 0 else b

	if a <= b:
		if b == 0:
			return (x + y) / 2
		return x + (y - x) * (a / (a + b))
	return y + (x - y) * (b / (a + b))


def polygon_area (points) -> float:
	'Signed shoelace area; positive when the points run clockwise with y down.'
	area = 0.0
	n = len(points)
	for i in range(n):
		x0, y0 = points[i]
		x1, y1 = points[(i + 1) % n]
		area += (x0 - x1) * (y0 + y1)
	return area / 2
