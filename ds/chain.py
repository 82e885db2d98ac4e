from collections.abc import Iterator
from typing import Generic, TypeVar

NIL = -1
'Handle of "no node", both before the first node and after the last one.'

T = TypeVar('T')


class Chain(Generic[T]):
	'''
	A doubly linked list whose links are indices into flat lists rather than
	object references. A handle stays valid from the insert that returned it
	until it is removed, after which the slot may be handed out again.
	'''
	__slots__ = '_items', '_prev', '_next', '_free', 'head', 'tail', '_count'

	def __init__ (self):
		self._items: list[T] = []
		self._prev:  list[int] = []
		self._next:  list[int] = []
		self._free:  list[int] = []

		self.head = NIL
		self.tail = NIL
		self._count = 0

	def _alloc (self, item: T) -> int:
		if self._free:
			h = self._free.pop()
			self._items[h] = item
			self._prev[h] = self._next[h] = NIL
		else:
			h = len(self._items)
			self._items.append(item)
			self._prev.append(NIL)
			self._next.append(NIL)
		self._count += 1
		return h

	def __len__ (self):
		return self._count

	def __contains__ (self, h: int):
		return 0 <= h < len(self._items) and self._items[h] is not None

	def __getitem__ (self, h: int) -> T:
		if h not in self:
			raise KeyError(h)
		return self._items[h]

	def prev (self, h: int) -> int:
		return self._prev[h]

	def next (self, h: int) -> int:
		return self._next[h]

	def insert_before (self, h: int, item: T) -> int:
		'''
		...prev - +item+ - h - next...

		Inserting before `NIL` appends to the end.
		'''
		n = self._alloc(item)
		p = self.tail if h == NIL else self._prev[h]

		self._prev[n] = p
		self._next[n] = h
		if p == NIL:
			self.head = n
		else:
			self._next[p] = n
		if h == NIL:
			self.tail = n
		else:
			self._prev[h] = n
		return n

	def insert_after (self, h: int, item: T) -> int:
		'''
		...prev - h - +item+ - next...

		Inserting after `NIL` pushes to the front.
		'''
		return self.insert_before(self.head if h == NIL else self._next[h], item)

	def remove (self, h: int) -> tuple[int, int]:
		'''
		(...prev - h - next...) becomes (...prev - next...)

		Returns `(prev, next)`, either of which may be `NIL`.
		'''
		if h not in self:
			raise KeyError(h)
		p = self._prev[h]
		n = self._next[h]

		if p == NIL:
			self.head = n
		else:
			self._next[p] = n
		if n == NIL:
			self.tail = p
		else:
			self._prev[n] = p

		self._items[h] = None
		self._prev[h] = self._next[h] = NIL
		self._free.append(h)
		self._count -= 1
		return p, n

	def swap_adjacent (self, a: int, b: int):
		'''
		(...prev - a - b - next...) becomes (...prev - b - a - next...)
		'''
		assert self._next[a] == b and self._prev[b] == a
		p = self._prev[a]
		n = self._next[b]

		if p == NIL:
			self.head = b
		else:
			self._next[p] = b
		self._prev[b] = p
		self._next[b] = a

		self._prev[a] = b
		self._next[a] = n
		if n == NIL:
			self.tail = a
		else:
			self._prev[n] = a

	def walk (self, start: int = None, stop: int = NIL) -> Iterator[int]:
		'''
		Handles from `start` (the head by default) up to, not including, `stop`.
		'''
		h = self.head if start is None else start
		while h != NIL and h != stop:
			yield h
			h = self._next[h]

	def __iter__ (self) -> Iterator[int]:
		return self.walk()

	def __reversed__ (self) -> Iterator[int]:
		h = self.tail
		while h != NIL:
			yield h
			h = self._prev[h]

	def items (self) -> Iterator[T]:
		for h in self.walk():
			yield self._items[h]
