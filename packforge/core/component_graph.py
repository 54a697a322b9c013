"""Component build-dependency graph with transitive resolution.

The graph is an arena of components indexed by name. Resolution is a
depth-first pre-order walk over ``build_requires``:

- A requirement naming a component of this project is followed.
- A requirement naming anything else is an external/system package and
  contributes nothing.
- A component already visited is skipped, so cycles and diamonds terminate
  and every reachable component appears exactly once.

Resolution never raises; an unknown root resolves to an empty list.
"""

from __future__ import annotations

from collections.abc import Iterable

from packforge.models.component import Component


class ComponentGraph:
    """Build-dependency graph over a project's own components.

    Built from the project's component list at resolution time. If two
    components share a name the first declared one wins.
    """

    def __init__(self, components: Iterable[Component]) -> None:
        self._components: dict[str, Component] = {}
        for component in components:
            self._components.setdefault(component.name, component)

    # ------------------------------------------------------------------
    # Query methods
    # ------------------------------------------------------------------

    def __contains__(self, name: object) -> bool:
        return name in self._components

    def get(self, name: str) -> Component | None:
        """Return the component called *name*, or None if not owned."""
        return self._components.get(name)

    @property
    def names(self) -> list[str]:
        """Component names in declaration order."""
        return list(self._components)

    def internal_requirements(self, name: str) -> list[str]:
        """Direct build requirements of *name* that are project components."""
        component = self._components.get(name)
        if component is None:
            return []
        return [r for r in component.build_requires if r in self._components]

    def external_requirements(self, name: str) -> list[str]:
        """Direct build requirements of *name* that are not project components."""
        component = self._components.get(name)
        if component is None:
            return []
        return [r for r in component.build_requires if r not in self._components]

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve(self, root_name: str) -> list[Component]:
        """Return *root_name* and everything it transitively build-requires.

        Order is depth-first pre-order with requirements taken in
        declaration order. An explicit stack stands in for recursion; the
        visited check happens on pop, which yields the same order a
        recursive walk would.
        """
        if root_name not in self._components:
            return []

        result: list[Component] = []
        visited: set[str] = set()
        stack: list[str] = [root_name]

        while stack:
            name = stack.pop()
            if name in visited:
                continue
            visited.add(name)
            component = self._components[name]
            result.append(component)
            # Reversed so the first declared requirement is popped first
            for requirement in reversed(component.build_requires):
                if requirement in self._components and requirement not in visited:
                    stack.append(requirement)

        return result

    def resolve_names(self, root_name: str) -> list[str]:
        """Names of ``resolve(root_name)``, in the same order."""
        return [c.name for c in self.resolve(root_name)]
