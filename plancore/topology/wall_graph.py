"""Resolve wall-to-wall topology: junctions, classification and splitting."""

from __future__ import annotations

import hashlib
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from plancore.geometry.primitives import (
    XY,
    angle_between_deg,
    are_collinear,
    distance,
    midpoint,
    points_close,
    project_point_to_segment,
    segment_intersection,
)
from plancore.models import (
    GeometryIssue,
    IssueCode,
    Junction,
    JunctionKind,
    Point,
    Segment,
    Topology,
    Wall,
)
from plancore.settings import TopologySettings
from plancore.topology.walls import sanitize_walls

_STRAIGHT_TOLERANCE_DEG = 1.0


@dataclass
class _Incidence:
    """How one wall passes through a junction node."""
    wall_id: str
    t: float  # parameter along the wall, 0 at start
    at_end: bool


@dataclass
class JunctionNode:
    """Graph node where two or more walls meet or cross."""
    id: str
    x: float
    y: float
    incidences: Dict[str, _Incidence] = field(default_factory=dict)
    ambiguous: bool = False

    @property
    def point(self) -> XY:
        return (self.x, self.y)


class WallGraph:
    """Pairwise wall intersection graph with junction snapping."""

    def __init__(self, walls: Sequence[Wall], settings: TopologySettings | None = None):
        self.settings = settings or TopologySettings()
        self.tolerance = self.settings.junction_tolerance
        self.walls: Dict[str, Wall] = {w.id: w for w in walls}
        self.nodes: Dict[str, JunctionNode] = {}
        self.warnings: List[GeometryIssue] = []
        self.node_counter = 0

    def _snap_point(self, x: float, y: float) -> JunctionNode:
        """Find or create node near point."""
        for node in self.nodes.values():
            if distance((node.x, node.y), (x, y)) <= self.tolerance:
                return node

        node_id = f"n{self.node_counter}"
        self.node_counter += 1
        node = JunctionNode(id=node_id, x=x, y=y)
        self.nodes[node_id] = node
        return node

    def _incidence_for(self, wall: Wall, point: XY) -> _Incidence:
        start = wall.start.as_tuple()
        end = wall.end.as_tuple()
        if points_close(point, start, self.tolerance):
            return _Incidence(wall_id=wall.id, t=0.0, at_end=True)
        if points_close(point, end, self.tolerance):
            return _Incidence(wall_id=wall.id, t=1.0, at_end=True)
        proj = project_point_to_segment(point, start, end)
        return _Incidence(wall_id=wall.id, t=proj.t, at_end=False)

    def _register(self, point: XY, walls: Tuple[Wall, Wall], ambiguous: bool = False) -> JunctionNode:
        node = self._snap_point(point[0], point[1])
        for wall in walls:
            incidence = self._incidence_for(wall, node.point)
            existing = node.incidences.get(wall.id)
            if existing is None or (incidence.at_end and not existing.at_end):
                node.incidences[wall.id] = incidence
        node.ambiguous = node.ambiguous or ambiguous
        return node

    def add_pair(self, a: Wall, b: Wall) -> Optional[JunctionNode]:
        """Test one unordered wall pair and register the junction it forms, if any."""
        tol = self.tolerance
        a1, a2 = a.start.as_tuple(), a.end.as_tuple()
        b1, b2 = b.start.as_tuple(), b.end.as_tuple()

        shared: Optional[Tuple[XY, XY]] = None
        for ea in (a1, a2):
            for eb in (b1, b2):
                if points_close(ea, eb, tol):
                    shared = (ea, eb)
                    break
            if shared:
                break

        collinear = are_collinear(a1, a2, b1, b2, tol)
        if shared and not (collinear and self._overlap_length(a, b) > tol):
            return self._register(midpoint(*shared), (a, b))

        inter = segment_intersection(a1, a2, b1, b2, self.settings.intersection_epsilon)
        if inter is None:
            if collinear and self._overlap_length(a, b) > tol:
                return self._register_collinear_overlap(a, b)
            logger.debug("Walls {} and {} are parallel; no junction", a.id, b.id)
            return None

        la = a.length
        lb = b.length
        tol_a = tol / la
        tol_b = tol / lb
        if not (-tol_a <= inter.t1 <= 1.0 + tol_a and -tol_b <= inter.t2 <= 1.0 + tol_b):
            return None

        a_end = self._nearest_end(a1, a2, inter.t1, la)
        b_end = self._nearest_end(b1, b2, inter.t2, lb)
        if a_end is not None and b_end is not None:
            position = midpoint(a_end, b_end)
        else:
            position = inter.point
        return self._register(position, (a, b))

    def _nearest_end(self, p1: XY, p2: XY, t: float, length: float) -> Optional[XY]:
        if abs(t) * length <= self.tolerance:
            return p1
        if abs(1.0 - t) * length <= self.tolerance:
            return p2
        return None

    def _overlap_length(self, a: Wall, b: Wall) -> float:
        a1, a2 = a.start.as_tuple(), a.end.as_tuple()
        t_b1 = project_point_to_segment(b.start.as_tuple(), a1, a2).raw_t
        t_b2 = project_point_to_segment(b.end.as_tuple(), a1, a2).raw_t
        lo = max(0.0, min(t_b1, t_b2))
        hi = min(1.0, max(t_b1, t_b2))
        return max(0.0, hi - lo) * a.length

    def _register_collinear_overlap(self, a: Wall, b: Wall) -> JunctionNode:
        # Best effort: meet where the two closest collinear endpoints are,
        # preferring endpoints that bound the shared span.
        def _inside(p: XY, wall: Wall) -> bool:
            return project_point_to_segment(p, wall.start.as_tuple(), wall.end.as_tuple()).distance <= self.tolerance

        pairs = []
        for ea in (a.start.as_tuple(), a.end.as_tuple()):
            for eb in (b.start.as_tuple(), b.end.as_tuple()):
                bounds_overlap = _inside(ea, b) and _inside(eb, a)
                pairs.append((distance(ea, eb), not bounds_overlap, ea, eb))
        pairs.sort(key=lambda item: (item[0], item[1]))
        _, _, ea, eb = pairs[0]
        message = f"Walls {a.id} and {b.id} overlap collinearly; junction placed between closest endpoints"
        logger.warning(message)
        self.warnings.append(
            GeometryIssue(code=IssueCode.AMBIGUOUS_JUNCTION, message=message, element_ids=(a.id, b.id))
        )
        return self._register(midpoint(ea, eb), (a, b), ambiguous=True)

    def build(self) -> "WallGraph":
        ordered = [self.walls[key] for key in sorted(self.walls)]
        for i in range(len(ordered)):
            for j in range(i + 1, len(ordered)):
                self.add_pair(ordered[i], ordered[j])
        return self

    def _classify(self, node: JunctionNode) -> Tuple[JunctionKind, bool]:
        count = len(node.incidences)
        ends = sum(1 for inc in node.incidences.values() if inc.at_end)
        interiors = count - ends
        ambiguous = node.ambiguous
        if interiors == 0:
            # Walls ending at a shared point: a T or cross only reads cleanly
            # when the members pair up into straight continuations.
            straight_pairs = self._straight_pairs(node)
            if count == 2:
                kind = JunctionKind.CORNER
            elif count == 3:
                kind = JunctionKind.T_JUNCTION
                ambiguous = ambiguous or straight_pairs < 1
            else:
                kind = JunctionKind.CROSS
                ambiguous = ambiguous or straight_pairs < count // 2
        elif ends == 0:
            kind = JunctionKind.CROSS
        else:
            kind = JunctionKind.T_JUNCTION
        return kind, ambiguous

    def _rays(self, node: JunctionNode) -> List[Tuple[XY, XY]]:
        """Direction of each member wall leaving the node."""
        rays: List[Tuple[XY, XY]] = []
        for wall_id in sorted(node.incidences):
            inc = node.incidences[wall_id]
            wall = self.walls[wall_id]
            start = wall.start.as_tuple()
            end = wall.end.as_tuple()
            if inc.at_end and inc.t == 0.0:
                rays.append((start, end))
            elif inc.at_end:
                rays.append((end, start))
            else:
                rays.append((start, end))
        return rays

    def _straight_pairs(self, node: JunctionNode) -> int:
        rays = self._rays(node)
        used: set[int] = set()
        pairs = 0
        for i in range(len(rays)):
            if i in used:
                continue
            for j in range(i + 1, len(rays)):
                if j in used:
                    continue
                if angle_between_deg(*rays[i], *rays[j]) >= 180.0 - _STRAIGHT_TOLERANCE_DEG:
                    used.update((i, j))
                    pairs += 1
                    break
        return pairs

    def _meeting_angle(self, node: JunctionNode) -> Optional[float]:
        if len(node.incidences) != 2:
            return None
        rays = self._rays(node)
        return angle_between_deg(*rays[0], *rays[1])

    def junctions(self) -> List[Junction]:
        live = [node for node in self.nodes.values() if len(node.incidences) >= 2]
        live.sort(key=lambda n: (round(n.x, 6), round(n.y, 6)))
        result: List[Junction] = []
        for index, node in enumerate(live):
            kind, ambiguous = self._classify(node)
            members = tuple(sorted(node.incidences))
            if ambiguous and not node.ambiguous:
                message = f"{len(members)} walls meet end-to-end at ({node.x:.2f}, {node.y:.2f}); classified as {kind.value}"
                logger.warning(message)
                self.warnings.append(
                    GeometryIssue(code=IssueCode.AMBIGUOUS_JUNCTION, message=message, element_ids=members)
                )
            result.append(
                Junction(
                    id=f"j{index}",
                    position=Point(x=node.x, y=node.y),
                    member_wall_ids=members,
                    kind=kind,
                    angle=self._meeting_angle(node),
                    ambiguous=ambiguous,
                )
            )
        return result

    def segments(self, split: bool) -> List[Segment]:
        """Cut every wall at the junctions interior to it.

        New Segment records are produced; the Wall snapshots are untouched.
        """
        by_wall: Dict[str, List[Tuple[float, XY, bool]]] = {wid: [] for wid in self.walls}
        for node in self.nodes.values():
            if len(node.incidences) < 2:
                continue
            for inc in node.incidences.values():
                by_wall[inc.wall_id].append((inc.t, node.point, inc.at_end))

        segments: List[Segment] = []
        for wall_id in sorted(self.walls):
            wall = self.walls[wall_id]
            start = wall.start.as_tuple()
            end = wall.end.as_tuple()
            if not split:
                segments.append(Segment(id=f"{wall_id}:0", wall_id=wall_id, start=wall.start, end=wall.end, index=0))
                continue
            cuts: List[Tuple[float, XY]] = [(0.0, start), (1.0, end)]
            for t, point, at_end in by_wall[wall_id]:
                if at_end:
                    cuts = [(ct, point) if ct == t else (ct, cp) for ct, cp in cuts]
                else:
                    cuts.append((t, point))
            cuts.sort(key=lambda item: item[0])
            chain: List[XY] = []
            for _, point in cuts:
                if chain and points_close(chain[-1], point, 1e-9):
                    continue
                chain.append(point)
            for index in range(len(chain) - 1):
                segments.append(
                    Segment(
                        id=f"{wall_id}:{index}",
                        wall_id=wall_id,
                        start=Point.from_tuple(chain[index]),
                        end=Point.from_tuple(chain[index + 1]),
                        index=index,
                    )
                )
        return segments


def wall_set_version(walls: Sequence[Wall]) -> str:
    """Stable hash of a wall collection's geometry, independent of ordering."""
    digest = hashlib.sha1()
    for wall in sorted(walls, key=lambda w: w.id):
        digest.update(
            f"{wall.id}|{wall.start.x!r},{wall.start.y!r}|{wall.end.x!r},{wall.end.y!r}|{wall.thickness!r};".encode(
                "utf-8"
            )
        )
    return digest.hexdigest()


def resolve(
    walls: Sequence[Wall],
    settings: TopologySettings | None = None,
    split: bool | None = None,
) -> Topology:
    """Build junctions (and optionally split segments) from a wall snapshot.

    Args:
        walls: Wall snapshot; degenerate walls are dropped with a warning.
        settings: Topology tolerances (uses defaults if None).
        split: Whether to cut crossing walls into sub-segments; defaults to
            ``settings.split_segments``.

    Returns:
        Topology with junctions ordered by position. Never raises for
        degenerate input.
    """
    if settings is None:
        settings = TopologySettings()
    if split is None:
        split = settings.split_segments

    clean, issues = sanitize_walls(walls, settings.min_wall_length)
    graph = WallGraph(clean, settings).build()
    junctions = graph.junctions()
    segments = graph.segments(split)
    logger.debug(
        "Resolved {} walls into {} junctions and {} segments",
        len(clean),
        len(junctions),
        len(segments),
    )
    return Topology(
        junctions=tuple(junctions),
        split_segments=tuple(segments),
        warnings=tuple(issues + graph.warnings),
        version=wall_set_version(walls),
    )


def junctions_for_wall(topology: Topology, wall_id: str) -> List[Junction]:
    return [j for j in topology.junctions if wall_id in j.member_wall_ids]


class TopologyCache:
    """Host-owned memo of resolved topologies keyed by wall-set version.

    The geometry core never holds one of these itself; an editor keeps an
    instance next to its design store and calls ``invalidate`` (or simply
    relies on the version key) when the wall collection changes.
    """

    def __init__(self, settings: TopologySettings | None = None, max_entries: int = 8) -> None:
        self.settings = settings or TopologySettings()
        self.max_entries = max(1, int(max_entries))
        self._entries: "OrderedDict[Tuple[str, bool], Topology]" = OrderedDict()
        self.hits = 0
        self.misses = 0

    def get(self, walls: Sequence[Wall], split: bool | None = None) -> Topology:
        effective_split = self.settings.split_segments if split is None else split
        key = (wall_set_version(walls), effective_split)
        cached = self._entries.get(key)
        if cached is not None:
            self.hits += 1
            self._entries.move_to_end(key)
            return cached
        self.misses += 1
        topology = resolve(walls, self.settings, effective_split)
        self._entries[key] = topology
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)
        return topology

    def invalidate(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
