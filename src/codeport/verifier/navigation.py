"""
Navigation graph check.

Static, model-free pass over the converted files. Collects the cases of the
`Route` enum, every push of a route onto a navigation path, and the
`.navigationDestination` mapping from route to view, then reports:

- pushes of routes the enum does not declare (missing routes)
- declared routes nothing navigates to (orphaned routes)
- views that can navigate back to themselves (circular navigation)
"""

import logging
from dataclasses import dataclass, field

from codeport.config.models import StaticIssue, TransformResult
from codeport.rules import (
    ASSOCIATED_VALUES,
    DESTINATION_CASE,
    NAVIGATION_CALLS,
    ROUTE_CASE_LINE,
    ROUTE_ENUM,
    VIEW_DECLARATION,
)
from codeport.verifier.blocks import block_body, top_level_lines

logger = logging.getLogger(__name__)

ROOT = "<root>"


@dataclass
class NavigationCall:
    path: str
    owner: str
    route: str


@dataclass
class NavigationGraph:
    routes: dict[str, str] = field(default_factory=dict)  # route -> declaring path
    calls: list[NavigationCall] = field(default_factory=list)
    destinations: dict[str, str] = field(default_factory=dict)  # route -> view

    def edges(self) -> dict[str, set[str]]:
        """View -> views it can push, through the destination mapping."""
        graph: dict[str, set[str]] = {}
        for call in self.calls:
            target = self.destinations.get(call.route)
            if target:
                graph.setdefault(call.owner, set()).add(target)
        return graph


def extract_routes(content: str) -> list[str]:
    """Case names of every `enum Route` in a file, associated values dropped."""
    routes = []
    for match in ROUTE_ENUM.finditer(content):
        body = block_body(content, match.end() - 1)
        for line in top_level_lines(body):
            case = ROUTE_CASE_LINE.match(line)
            if not case:
                continue
            names = case.group(1).split("//")[0]
            while ASSOCIATED_VALUES.search(names):
                names = ASSOCIATED_VALUES.sub("", names)
            # `case home = "home"` carries a raw value
            routes.extend(
                name.split("=")[0].strip() for name in names.split(",") if name.split("=")[0].strip()
            )
    return routes


def _owner_at(content: str, index: int) -> str:
    owner = ROOT
    for match in VIEW_DECLARATION.finditer(content, 0, index):
        owner = match.group(1)
    return owner


def extract_calls(path: str, content: str) -> list[NavigationCall]:
    """Route pushes in a file, attributed to the enclosing view."""
    found = []
    for rule in NAVIGATION_CALLS:
        for match in rule.pattern.finditer(content):
            found.append((match.start(), match.group(1)))
    found.sort()
    return [NavigationCall(path=path, owner=_owner_at(content, start), route=route) for start, route in found]


def extract_destinations(content: str) -> dict[str, str]:
    """Route -> destination view from `.navigationDestination` blocks."""
    destinations: dict[str, str] = {}
    start = content.find("navigationDestination(")
    while start != -1:
        brace = content.find("{", start)
        if brace == -1:
            break
        for match in DESTINATION_CASE.finditer(block_body(content, brace)):
            destinations.setdefault(match.group(1), match.group(2))
        start = content.find("navigationDestination(", brace)
    return destinations


def build_navigation_graph(results: list[TransformResult]) -> NavigationGraph:
    graph = NavigationGraph()
    for result in results:
        if result.fallback:
            continue
        for route in extract_routes(result.content):
            graph.routes.setdefault(route, result.output_path)
        graph.calls.extend(extract_calls(result.output_path, result.content))
        for route, view in extract_destinations(result.content).items():
            graph.destinations.setdefault(route, view)
    return graph


def find_cycle(edges: dict[str, set[str]]) -> list[str] | None:
    """First navigation cycle found, as the list of views ending where it started."""
    visited: set[str] = set()

    def visit(node: str, stack: list[str]) -> list[str] | None:
        if node in stack:
            return stack[stack.index(node) :] + [node]
        if node in visited:
            return None
        visited.add(node)
        stack.append(node)
        for neighbor in sorted(edges.get(node, ())):
            cycle = visit(neighbor, stack)
            if cycle:
                return cycle
        stack.pop()
        return None

    for node in sorted(edges):
        cycle = visit(node, [])
        if cycle:
            return cycle
    return None


def check_navigation(results: list[TransformResult]) -> list[StaticIssue]:
    """
    Check the navigation graph of a converted project.

    Args:
        results: Synthesized transform results

    Returns:
        One StaticIssue per missing route push, orphaned route and cycle
    """
    graph = build_navigation_graph(results)
    if not graph.routes and not graph.calls:
        return []

    issues = []
    pushed = {call.route for call in graph.calls}

    for call in graph.calls:
        if call.route not in graph.routes:
            issues.append(
                StaticIssue(
                    check="navigation",
                    path=call.path,
                    subject=call.route,
                    message=f"{call.owner} navigates to Route.{call.route}, which the Route enum does not declare",
                )
            )

    for route, path in graph.routes.items():
        if route not in pushed:
            issues.append(
                StaticIssue(
                    check="navigation",
                    path=path,
                    subject=route,
                    message=f"Route.{route} is declared but nothing navigates to it",
                )
            )

    cycle = find_cycle(graph.edges())
    if cycle:
        owner_paths = {call.owner: call.path for call in graph.calls}
        issues.append(
            StaticIssue(
                check="navigation",
                path=owner_paths.get(cycle[0], ""),
                subject=cycle[0],
                message=f"Circular navigation: {' -> '.join(cycle)}",
            )
        )

    logger.debug(
        f"Navigation graph: {len(graph.routes)} routes, {len(graph.calls)} pushes, {len(issues)} issues"
    )
    return issues
