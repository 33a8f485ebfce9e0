"""Tree of configuration nodes, rebuilt from flat key/value pairs.

A node can hold a value and children at the same time, since a key may be
both a leaf and the prefix of other keys:

    build_tree({"a": "1", "a/b": "2"})
      -> Node(value=None, children={"a": Node(value="1", children={"b": ...})})
"""

from dataclasses import dataclass, field


def split_path(path: str, separator: str = "/") -> list[str]:
    """Split a path into its non-empty segments."""
    return [p for p in path.split(separator) if p]


@dataclass
class Node:
    """One level of a reconstructed key space."""
    value: str | None = None
    children: dict[str, "Node"] = field(default_factory=dict)

    def __getitem__(self, name: str) -> "Node":
        return self.children[name]

    def __contains__(self, name: str) -> bool:
        return name in self.children

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def insert(self, parts: list[str], value: str) -> None:
        """Set value on the node at parts, creating intermediate nodes."""
        node = self
        for part in parts:
            node = node.children.setdefault(part, Node())
        node.value = value

    def find(self, path: str, separator: str = "/") -> "Node | None":
        """Return the descendant at path, or None if there is none."""
        node = self
        for part in split_path(path, separator):
            node = node.children.get(part)
            if node is None:
                return None
        return node


def build_tree(pairs: dict[str, str], separator: str = "/", root: str = "") -> Node:
    """Assemble full-key/value pairs into a tree rooted at root.

    Keys that are not at or below root are skipped.
    """
    root_parts = split_path(root, separator)
    depth = len(root_parts)
    tree = Node()
    for key, value in pairs.items():
        parts = split_path(key, separator)
        if parts[:depth] != root_parts:
            continue
        tree.insert(parts[depth:], value)
    return tree
