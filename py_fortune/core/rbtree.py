"""
Red-black tree with cached in-order neighbours.

The tree stores no keys. Callers find the insertion point themselves by
descending from ``root`` with whatever comparison they need (break points
for the beachline, sweep position for circle events) and then hand the
in-order predecessor to :meth:`RBTree.insert`. Every node also keeps
``rb_prev``/``rb_next`` links, maintained on insert and remove, so that
neighbour lookup is O(1).

Rebalancing follows the classic red-black algorithms as implemented in
Franck Bui-Huu's libtree.
"""

from typing import Iterator, Optional


class RBNode:
    """Base class for anything stored in an :class:`RBTree`."""

    def __init__(self):
        self.rb_parent = None
        self.rb_left = None
        self.rb_right = None
        self.rb_prev = None
        self.rb_next = None
        self.rb_red = False


class RBTree:
    """Augmented red-black tree, ordered only by insertion position."""

    def __init__(self):
        self.root: Optional[RBNode] = None

    def __bool__(self) -> bool:
        return self.root is not None

    def __iter__(self) -> Iterator[RBNode]:
        node = self.first(self.root) if self.root is not None else None
        while node is not None:
            yield node
            node = node.rb_next

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def clear(self) -> None:
        self.root = None

    def insert(self, node: Optional[RBNode], successor: RBNode) -> None:
        """Insert ``successor`` immediately after ``node`` in order.

        With ``node`` None the new node becomes the leftmost one.
        """
        if node is not None:
            successor.rb_prev = node
            successor.rb_next = node.rb_next
            if node.rb_next is not None:
                node.rb_next.rb_prev = successor
            node.rb_next = successor
            if node.rb_right is not None:
                node = node.rb_right
                while node.rb_left is not None:
                    node = node.rb_left
                node.rb_left = successor
            else:
                node.rb_right = successor
            parent = node
        elif self.root is not None:
            node = self.first(self.root)
            successor.rb_prev = None
            successor.rb_next = node
            node.rb_prev = successor
            node.rb_left = successor
            parent = node
        else:
            successor.rb_prev = None
            successor.rb_next = None
            self.root = successor
            parent = None

        successor.rb_left = None
        successor.rb_right = None
        successor.rb_parent = parent
        successor.rb_red = True

        # Recolor and rotate (two rotations at most)
        node = successor
        while parent is not None and parent.rb_red:
            grandpa = parent.rb_parent
            if parent is grandpa.rb_left:
                uncle = grandpa.rb_right
                if uncle is not None and uncle.rb_red:
                    parent.rb_red = False
                    uncle.rb_red = False
                    grandpa.rb_red = True
                    node = grandpa
                else:
                    if node is parent.rb_right:
                        self._rotate_left(parent)
                        node = parent
                        parent = node.rb_parent
                    parent.rb_red = False
                    grandpa.rb_red = True
                    self._rotate_right(grandpa)
            else:
                uncle = grandpa.rb_left
                if uncle is not None and uncle.rb_red:
                    parent.rb_red = False
                    uncle.rb_red = False
                    grandpa.rb_red = True
                    node = grandpa
                else:
                    if node is parent.rb_left:
                        self._rotate_right(parent)
                        node = parent
                        parent = node.rb_parent
                    parent.rb_red = False
                    grandpa.rb_red = True
                    self._rotate_left(grandpa)
            parent = node.rb_parent
        self.root.rb_red = False

    def remove(self, node: RBNode) -> None:
        """Detach ``node`` from the tree and from the in-order list."""
        if node.rb_next is not None:
            node.rb_next.rb_prev = node.rb_prev
        if node.rb_prev is not None:
            node.rb_prev.rb_next = node.rb_next
        node.rb_next = None
        node.rb_prev = None

        parent = node.rb_parent
        left = node.rb_left
        right = node.rb_right
        if left is None:
            following = right
        elif right is None:
            following = left
        else:
            following = self.first(right)

        if parent is not None:
            if parent.rb_left is node:
                parent.rb_left = following
            else:
                parent.rb_right = following
        else:
            self.root = following

        if left is not None and right is not None:
            is_red = following.rb_red
            following.rb_red = node.rb_red
            following.rb_left = left
            left.rb_parent = following
            if following is not right:
                parent = following.rb_parent
                following.rb_parent = node.rb_parent
                node = following.rb_right
                parent.rb_left = node
                following.rb_right = right
                right.rb_parent = following
            else:
                following.rb_parent = parent
                parent = following
                node = following.rb_right
        else:
            is_red = node.rb_red
            node = following

        # 'node' is now the only child of the removed position, 'parent' its parent
        if node is not None:
            node.rb_parent = parent

        if is_red:
            return
        if node is not None and node.rb_red:
            node.rb_red = False
            return

        while True:
            if node is self.root:
                break
            if node is parent.rb_left:
                sibling = parent.rb_right
                if sibling.rb_red:
                    sibling.rb_red = False
                    parent.rb_red = True
                    self._rotate_left(parent)
                    sibling = parent.rb_right
                if _is_red(sibling.rb_left) or _is_red(sibling.rb_right):
                    if not _is_red(sibling.rb_right):
                        sibling.rb_left.rb_red = False
                        sibling.rb_red = True
                        self._rotate_right(sibling)
                        sibling = parent.rb_right
                    sibling.rb_red = parent.rb_red
                    parent.rb_red = False
                    sibling.rb_right.rb_red = False
                    self._rotate_left(parent)
                    node = self.root
                    break
            else:
                sibling = parent.rb_left
                if sibling.rb_red:
                    sibling.rb_red = False
                    parent.rb_red = True
                    self._rotate_right(parent)
                    sibling = parent.rb_left
                if _is_red(sibling.rb_left) or _is_red(sibling.rb_right):
                    if not _is_red(sibling.rb_left):
                        sibling.rb_right.rb_red = False
                        sibling.rb_red = True
                        self._rotate_left(sibling)
                        sibling = parent.rb_left
                    sibling.rb_red = parent.rb_red
                    parent.rb_red = False
                    sibling.rb_left.rb_red = False
                    self._rotate_right(parent)
                    node = self.root
                    break
            sibling.rb_red = True
            node = parent
            parent = parent.rb_parent
            if node.rb_red:
                break

        if node is not None:
            node.rb_red = False

    def _rotate_left(self, node: RBNode) -> None:
        pivot = node.rb_right
        parent = node.rb_parent
        if parent is not None:
            if parent.rb_left is node:
                parent.rb_left = pivot
            else:
                parent.rb_right = pivot
        else:
            self.root = pivot
        pivot.rb_parent = parent
        node.rb_parent = pivot
        node.rb_right = pivot.rb_left
        if node.rb_right is not None:
            node.rb_right.rb_parent = node
        pivot.rb_left = node

    def _rotate_right(self, node: RBNode) -> None:
        pivot = node.rb_left
        parent = node.rb_parent
        if parent is not None:
            if parent.rb_left is node:
                parent.rb_left = pivot
            else:
                parent.rb_right = pivot
        else:
            self.root = pivot
        pivot.rb_parent = parent
        node.rb_parent = pivot
        node.rb_left = pivot.rb_right
        if node.rb_left is not None:
            node.rb_left.rb_parent = node
        pivot.rb_right = node

    @staticmethod
    def first(node: RBNode) -> RBNode:
        while node.rb_left is not None:
            node = node.rb_left
        return node

    @staticmethod
    def last(node: RBNode) -> RBNode:
        while node.rb_right is not None:
            node = node.rb_right
        return node


def _is_red(node: Optional[RBNode]) -> bool:
    return node is not None and node.rb_red
