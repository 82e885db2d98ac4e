import heapq
from collections.abc import Callable, Hashable
from itertools import count
from typing import Generic, TypeVar

T = TypeVar('T')


class Priority(Generic[T]):
	'''
	Min-priority queue over `key(item)`. `insert` hands back a handle that
	can later be used to delete the item; deleted items are dropped lazily
	when they reach the top.

	Items inserted before `init()` are heapified in one go.
	'''
	__slots__ = '_heap', '_key', '_seq', '_live', '_ready'

	def __init__ (self, key: Callable[[T], Hashable] = None):
		self._key = key if key is not None else (lambda item: item)
		self._heap: list[tuple] = []
		self._seq = count()
		self._live = set[int]()
		self._ready = False

	def init (self):
		heapq.heapify(self._heap)
		self._ready = True

	def insert (self, item: T) -> int:
		h = next(self._seq)
		entry = (self._key(item), h, item)
		if self._ready:
			heapq.heappush(self._heap, entry)
		else:
			self._heap.append(entry)
		self._live.add(h)
		return h

	def __contains__ (self, h: int):
		return h in self._live

	def __delitem__ (self, h: int):
		self._live.discard(h)

	def _prune (self):
		assert self._ready, 'Priority.init() was never called'
		heap = self._heap
		while heap and heap[0][1] not in self._live:
			heapq.heappop(heap)

	def min (self) -> T | None:
		self._prune()
		return self._heap[0][2] if self._heap else None

	def extract_min (self) -> T | None:
		self._prune()
		if not self._heap:
			return None
		_, h, item = heapq.heappop(self._heap)
		self._live.discard(h)
		return item

	@property
	def is_empty (self):
		return not self._live

	def __len__ (self):
		return len(self._live)
