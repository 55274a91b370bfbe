"""
Augmented AVL interval tree over half-open intervals [start, end).

Touching intervals ([9,10) and [10,11)) do not intersect. Used by the
conflict detector when many candidate intervals are checked against one
calendar.
"""

from typing import Any, Callable, Generic, Iterable, Optional, TypeVar

# T represents the totally ordered coordinate type (datetime)
T = TypeVar('T')


class IntervalHandle(Generic[T]):
    """Tree node with public accessors for start, end and data."""
    __slots__ = ['start', 'end', 'data', 'left', 'right', 'parent', 'max_end', 'height']

    def __init__(self, start: T, end: T, data: Any):
        self.start: T = start
        self.end: T = end
        self.data: Any = data
        self.left: Optional['IntervalHandle[T]'] = None
        self.right: Optional['IntervalHandle[T]'] = None
        self.parent: Optional['IntervalHandle[T]'] = None
        self.max_end: T = end
        self.height: int = 1


class IntervalTree(Generic[T]):
    def __init__(self, intervals: Iterable[tuple[T, T, Any]] = ()):
        self.root: Optional[IntervalHandle[T]] = None
        self._size = 0
        for start, end, data in intervals:
            self.insert(start, end, data)

    def __len__(self) -> int:
        return self._size

    # --- Internal Utilities ---

    def _get_height(self, node: Optional[IntervalHandle[T]]) -> int:
        return node.height if node else 0

    def _update(self, node: Optional[IntervalHandle[T]]):
        if not node: return
        node.height = 1 + max(self._get_height(node.left), self._get_height(node.right))

        m = node.end
        if node.left: m = max(m, node.left.max_end)
        if node.right: m = max(m, node.right.max_end)
        node.max_end = m

    def _rotate_left(self, x: IntervalHandle[T]):
        y = x.right
        x.right = y.left
        if y.left: y.left.parent = x
        y.parent = x.parent
        if not x.parent: self.root = y
        elif x is x.parent.left: x.parent.left = y
        else: x.parent.right = y
        y.left = x
        x.parent = y
        self._update(x)
        self._update(y)

    def _rotate_right(self, y: IntervalHandle[T]):
        x = y.left
        y.left = x.right
        if x.right: x.right.parent = y
        x.parent = y.parent
        if not y.parent: self.root = x
        elif y is y.parent.left: y.parent.left = x
        else: y.parent.right = x
        x.right = y
        y.parent = x
        self._update(y)
        self._update(x)

    def _rebalance(self, node: Optional[IntervalHandle[T]]):
        while node:
            self._update(node)
            balance = self._get_height(node.left) - self._get_height(node.right)
            if balance > 1:
                if self._get_height(node.left.left) < self._get_height(node.left.right):
                    self._rotate_left(node.left)
                self._rotate_right(node)
            elif balance < -1:
                if self._get_height(node.right.right) < self._get_height(node.right.left):
                    self._rotate_right(node.right)
                self._rotate_left(node)
            node = node.parent

    # --- Public API ---

    def insert(self, start: T, end: T, data: Any) -> IntervalHandle[T]:
        new_node = IntervalHandle(start, end, data)
        self._size += 1
        if not self.root:
            self.root = new_node
            return new_node

        curr = self.root
        parent = None
        while curr:
            parent = curr
            if start < curr.start: curr = curr.left
            else: curr = curr.right

        new_node.parent = parent
        if start < parent.start: parent.left = new_node
        else: parent.right = new_node

        self._rebalance(new_node)
        return new_node

    # --- Search Methods ---

    def find_intersecting(self, start: T, end: T, callback: Callable[[IntervalHandle[T]], None]):
        """Finds intervals that share at least one point with [start, end)."""
        def _search(node):
            if not node or start >= node.max_end: return
            if node.left and node.left.max_end > start: _search(node.left)
            if node.start < end and node.end > start: callback(node)
            if node.start < end: _search(node.right)
        _search(self.root)

    def intersecting(self, start: T, end: T) -> list[Any]:
        """Data of every interval intersecting [start, end), ordered by start."""
        found: list[Any] = []
        self.find_intersecting(start, end, lambda node: found.append(node.data))
        return found

    # --- Debug Tool ---

    def verify_integrity(self):
        """Raises if AVL height or max_end properties are violated."""
        def _walk(node):
            if not node: return 0, None

            left_h, left_max = _walk(node.left)
            right_h, right_max = _walk(node.right)

            if abs(left_h - right_h) > 1:
                raise RuntimeError(f"AVL Violation at {node.start}")

            expected_max = max(m for m in (node.end, left_max, right_max) if m is not None)
            if node.max_end != expected_max:
                raise RuntimeError(f"MaxEnd Violation at {node.start}")

            return 1 + max(left_h, right_h), expected_max

        _walk(self.root)
