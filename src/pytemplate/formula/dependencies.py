"""Formula column dependency tracking for PyTemplate.

Maps each FORMULA column to the column keys its formula references, so the
template editor can find every formula a column change touches and report
formula-to-formula cycles.

The formula editor only offers NUMBER columns as operands and always hides
the column being edited, which rules out direct self-reference. A cycle
can still appear when a referenced column is later retyped to FORMULA.
Such cycles are reported here; validation does not reject them.
"""

from collections import defaultdict, deque
from collections.abc import Iterable

from pytemplate.formula.parser import parse_formula
from pytemplate.schemas.column import TemplateColumn


class FormulaDependencyGraph:
    """
    Track formula column dependencies by column key.

    Maintains a bidirectional graph:
    - dependencies: key -> set of formula keys that reference it
    - reverse: formula key -> set of keys its formula references
    """

    def __init__(self) -> None:
        """Initialize empty dependency graph."""
        # If column A changes, every formula in dependencies[A] is affected
        self.dependencies: dict[str, set[str]] = defaultdict(set)

        # To evaluate formula A, every column in reverse[A] is needed
        self.reverse: dict[str, set[str]] = defaultdict(set)

    @classmethod
    def from_columns(cls, columns: Iterable[TemplateColumn]) -> "FormulaDependencyGraph":
        """
        Build the graph from a template's columns.

        Formulas that fail to parse contribute no edges.
        """
        graph = cls()
        for column in columns:
            if not column.is_formula:
                continue
            data = parse_formula(column.formula)
            keys = {key for key in data.column_keys if key} if data else set()
            graph.add_formula_column(column.key, keys)
        return graph

    def add_formula_column(self, key: str, depends_on: set[str]) -> None:
        """
        Record (or replace) the references of a formula column.

        Args:
            key: Key of the formula column
            depends_on: Keys this formula references
        """
        if key in self.reverse:
            for old_dep in self.reverse[key]:
                self.dependencies[old_dep].discard(key)

        self.reverse[key] = set(depends_on)
        for dep in depends_on:
            self.dependencies[dep].add(key)

    def remove_formula_column(self, key: str) -> None:
        """Remove a formula column and its outgoing edges."""
        if key in self.reverse:
            for dep in self.reverse[key]:
                self.dependencies[dep].discard(key)
            del self.reverse[key]

        self.dependencies.pop(key, None)

    def get_affected_columns(self, changed_key: str) -> list[str]:
        """
        Get formula columns affected when a column changes.

        Uses BFS to collect all transitive dependents of the changed column.

        Args:
            changed_key: Key of the column that changed

        Returns:
            Keys of affected formula columns, nearest first
        """
        affected = []
        to_process = deque([changed_key])
        seen = set()

        while to_process:
            current = to_process.popleft()

            if current in seen:
                continue
            seen.add(current)

            for dependent in sorted(self.dependencies.get(current, ())):
                if dependent not in seen:
                    affected.append(dependent)
                    to_process.append(dependent)

        return affected

    def detect_circular_reference(self, key: str, depends_on: set[str]) -> bool:
        """
        Check if giving ``key`` these references would create a cycle.

        Uses DFS over the existing reverse edges.

        Args:
            key: Key of the formula column being added/updated
            depends_on: Keys the formula would reference

        Returns:
            True if a circular reference would exist
        """
        if not depends_on:
            return False

        if key in depends_on:
            return True

        visited = set()
        to_check = list(depends_on)

        while to_check:
            current = to_check.pop()

            if current == key:
                return True

            if current in visited:
                continue
            visited.add(current)

            to_check.extend(self.reverse.get(current, ()))

        return False

    def find_circular_references(self) -> list[str]:
        """
        List every formula column that takes part in a cycle.

        Returns:
            Sorted keys of formula columns that (transitively) reference
            themselves
        """
        return sorted(
            key for key, deps in self.reverse.items() if self.detect_circular_reference(key, deps)
        )

    def get_dependencies(self, key: str) -> set[str]:
        """Get the keys a formula column references directly."""
        return set(self.reverse.get(key, ()))

    def get_dependents(self, key: str) -> set[str]:
        """Get the formula columns that reference a key directly."""
        return set(self.dependencies.get(key, ()))

    def __repr__(self) -> str:
        """String representation for debugging."""
        return (
            f"FormulaDependencyGraph("
            f"formulas={len(self.reverse)}, "
            f"edges={sum(len(deps) for deps in self.dependencies.values())})"
        )
