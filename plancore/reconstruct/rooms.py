from __future__ import annotations

import hashlib
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger
from shapely.geometry import Polygon

from plancore.geometry.contract import EPS
from plancore.geometry.primitives import (
    XY,
    angle_of,
    normalize_angle,
    polygon_area,
    polygon_perimeter,
    remove_collinear_vertices,
    signed_area,
)
from plancore.models import GeometryIssue, IssueCode, Point, Room, Segment, Wall
from plancore.settings import RoomSettings, TopologySettings
from plancore.topology.wall_graph import resolve
from plancore.topology.walls import dedupe_walls, sanitize_walls


@dataclass
class _Node:
    key: Tuple[float, float]
    point: XY
    out_edges: List["_HalfEdge"] = field(default_factory=list)


@dataclass
class _HalfEdge:
    origin: _Node
    dest: _Node
    angle: float
    wall_id: str
    twin: Optional["_HalfEdge"] = None
    visited: bool = False
    removed: bool = False
    sort_index: int = -1


@dataclass
class RoomDetectionResult:
    rooms: List[Room]
    warnings: List[GeometryIssue]


_KEY_DIGITS = 6
_COLLINEAR_TOL = 1e-6


def find_room_cycles(
    walls: Sequence[Wall],
    settings: RoomSettings | None = None,
    topology_settings: TopologySettings | None = None,
) -> RoomDetectionResult:
    """Extract enclosed rooms from a wall snapshot, with the issues met on the way."""
    if settings is None:
        settings = RoomSettings()
    if topology_settings is None:
        topology_settings = TopologySettings()

    warnings: List[GeometryIssue] = []
    clean, issues = sanitize_walls(walls, topology_settings.min_wall_length)
    warnings.extend(issues)
    unique, duplicates = dedupe_walls(clean, settings.dedupe_tolerance)
    warnings.extend(duplicates)

    if len(unique) < 3:
        return RoomDetectionResult(rooms=[], warnings=warnings)

    topology = resolve(unique, topology_settings, split=True)
    warnings.extend(topology.warnings)

    nodes, half_edges = _build_planar_graph(topology.split_segments)
    _prune_filaments(nodes)
    half_edges = [e for e in half_edges if not e.removed]
    if not half_edges:
        return RoomDetectionResult(rooms=[], warnings=warnings)

    _sort_out_edges(nodes)
    cycles = _traverse_faces(half_edges)

    rooms: List[Room] = []
    seen: set[str] = set()
    for cycle in cycles:
        for loop in _split_bridges(cycle):
            room = _loop_to_room(loop, settings, warnings)
            if room is None or room.id in seen:
                continue
            seen.add(room.id)
            rooms.append(room)

    rooms.sort(key=_room_sort_key)
    logger.debug("Detected {} room(s) from {} wall(s)", len(rooms), len(unique))
    return RoomDetectionResult(rooms=rooms, warnings=warnings)


def detect_rooms(
    walls: Sequence[Wall],
    settings: RoomSettings | None = None,
    topology_settings: TopologySettings | None = None,
) -> List[Room]:
    """Rooms enclosed by ``walls``; an empty list when nothing is closed."""
    return find_room_cycles(walls, settings, topology_settings).rooms


def is_closed_shape(walls: Sequence[Wall], settings: RoomSettings | None = None) -> bool:
    return bool(detect_rooms(walls, settings))


def _room_sort_key(room: Room) -> Tuple[float, float, float]:
    return (-round(room.area, 6), round(room.centroid.x, 6), round(room.centroid.y, 6))


def _build_planar_graph(
    segments: Sequence[Segment],
) -> Tuple[Dict[Tuple[float, float], _Node], List[_HalfEdge]]:
    node_map: Dict[Tuple[float, float], _Node] = {}
    half_edges: List[_HalfEdge] = []
    segment_keys: set[Tuple[Tuple[float, float], Tuple[float, float]]] = set()

    def _key(pt: XY) -> Tuple[float, float]:
        return (round(pt[0], _KEY_DIGITS), round(pt[1], _KEY_DIGITS))

    def _node_for(pt: XY) -> _Node:
        key = _key(pt)
        node = node_map.get(key)
        if node is None:
            node = _Node(key=key, point=(float(pt[0]), float(pt[1])))
            node_map[key] = node
        return node

    for segment in segments:
        p1 = segment.start.as_tuple()
        p2 = segment.end.as_tuple()
        key_u = _key(p1)
        key_v = _key(p2)
        if key_u == key_v:
            continue
        seg_key = (key_u, key_v) if key_u <= key_v else (key_v, key_u)
        if seg_key in segment_keys:
            continue
        segment_keys.add(seg_key)

        node_u = _node_for(p1)
        node_v = _node_for(p2)

        angle_uv = angle_of(node_u.point, node_v.point)
        angle_vu = normalize_angle(angle_uv + math.pi)

        forward = _HalfEdge(origin=node_u, dest=node_v, angle=angle_uv, wall_id=segment.wall_id)
        backward = _HalfEdge(origin=node_v, dest=node_u, angle=angle_vu, wall_id=segment.wall_id)
        forward.twin = backward
        backward.twin = forward

        node_u.out_edges.append(forward)
        node_v.out_edges.append(backward)

        half_edges.append(forward)
        half_edges.append(backward)

    return node_map, half_edges


def _prune_filaments(nodes: Dict[Tuple[float, float], _Node]) -> None:
    """Iteratively drop dead-end edges; open wall chains never bound a face."""
    stack = [node for node in nodes.values() if len(node.out_edges) == 1]
    while stack:
        node = stack.pop()
        if len(node.out_edges) != 1:
            continue
        edge = node.out_edges[0]
        twin = edge.twin
        edge.removed = True
        node.out_edges = []
        if twin is None:
            continue
        twin.removed = True
        other = twin.origin
        other.out_edges = [e for e in other.out_edges if e is not twin]
        if len(other.out_edges) == 1:
            stack.append(other)


def _sort_out_edges(nodes: Dict[Tuple[float, float], _Node]) -> None:
    for node in nodes.values():
        if not node.out_edges:
            continue
        node.out_edges.sort(key=lambda e: e.angle)
        for idx, edge in enumerate(node.out_edges):
            edge.sort_index = idx


def _next_edge(edge: _HalfEdge) -> Optional[_HalfEdge]:
    """Leave the head of ``edge`` by the smallest clockwise turn from its twin.

    Out-edges are sorted by ascending angle, so the edge just before the twin
    is the one reached by sweeping clockwise from the reversed direction.
    Walking that way keeps the face on the left: bounded faces wind
    counter-clockwise (positive area) and the unbounded face of each
    connected component winds clockwise (negative area).
    """
    twin = edge.twin
    if twin is None or twin.removed:
        return None
    fan = twin.origin.out_edges
    if not fan:
        return None
    idx = twin.sort_index
    if not (0 <= idx < len(fan) and fan[idx] is twin):
        idx = next((i for i, candidate in enumerate(fan) if candidate is twin), -1)
        if idx < 0:
            return None
    return fan[(idx - 1) % len(fan)]


def _walk_face(start: _HalfEdge, limit: int) -> List[_HalfEdge]:
    """Follow ``_next_edge`` from ``start`` until it returns; empty if the walk breaks."""
    loop: List[_HalfEdge] = []
    edge: Optional[_HalfEdge] = start
    while edge is not None and len(loop) <= limit:
        edge.visited = True
        loop.append(edge)
        edge = _next_edge(edge)
        if edge is start:
            return loop
    if edge is not None:
        logger.debug("Face walk from {} exceeded {} steps", start.wall_id, limit)
    return []


def _traverse_faces(half_edges: List[_HalfEdge]) -> List[List[_HalfEdge]]:
    limit = len(half_edges) + 1
    faces = (_walk_face(edge, limit) for edge in half_edges if not edge.visited)
    return [face for face in faces if len(face) >= 3]


def _split_bridges(cycle: List[_HalfEdge]) -> List[List[_HalfEdge]]:
    """Cut a face walk at edges it traverses in both directions.

    A wall linking an island to its surrounding room is walked there and
    back; removing that pair leaves the outer ring and the island ring as
    separate loops.
    """
    position = {id(edge): idx for idx, edge in enumerate(cycle)}
    for i, edge in enumerate(cycle):
        twin = edge.twin
        if twin is None:
            continue
        j = position.get(id(twin))
        if j is None:
            continue
        lo, hi = (i, j) if i < j else (j, i)
        inner = cycle[lo + 1:hi]
        outer = cycle[hi + 1:] + cycle[:lo]
        loops: List[List[_HalfEdge]] = []
        for part in (inner, outer):
            if len(part) >= 3:
                loops.extend(_split_bridges(part))
        return loops
    return [cycle]


def _loop_to_room(
    loop: List[_HalfEdge],
    settings: RoomSettings,
    warnings: List[GeometryIssue],
) -> Optional[Room]:
    raw_points = [edge.origin.point for edge in loop]
    area_signed = signed_area(raw_points)
    # Unbounded faces wind clockwise and come out negative
    if area_signed <= max(settings.min_room_area, EPS):
        return None

    start = min(
        range(len(raw_points)),
        key=lambda idx: (round(raw_points[idx][0], _KEY_DIGITS), round(raw_points[idx][1], _KEY_DIGITS)),
    )
    raw_points = raw_points[start:] + raw_points[:start]
    ordered_edges = loop[start:] + loop[:start]

    points = raw_points
    if settings.merge_collinear:
        points = remove_collinear_vertices(raw_points, _COLLINEAR_TOL)
    if len(points) < 3:
        return None

    wall_ids = _cyclic_wall_ids([edge.wall_id for edge in ordered_edges])

    polygon = Polygon(points)
    if not polygon.is_valid:
        message = f"Discarded self-intersecting face bounded by {', '.join(wall_ids)}"
        logger.warning(message)
        warnings.append(GeometryIssue(code=IssueCode.INVALID_ROOM, message=message, element_ids=tuple(wall_ids)))
        return None

    centroid = polygon.centroid
    return Room(
        id=_room_id(points),
        boundary_wall_ids=tuple(wall_ids),
        points=tuple(Point.from_tuple(p) for p in points),
        area=polygon_area(points),
        perimeter=polygon_perimeter(points),
        centroid=Point(x=float(centroid.x), y=float(centroid.y)),
    )


def _cyclic_wall_ids(ids: List[str]) -> List[str]:
    collapsed: List[str] = []
    for wall_id in ids:
        if not collapsed or collapsed[-1] != wall_id:
            collapsed.append(wall_id)
    while len(collapsed) > 1 and collapsed[0] == collapsed[-1]:
        collapsed.pop()
    return collapsed


def _room_id(points: Sequence[XY]) -> str:
    digest = hashlib.sha1()
    for x, y in points:
        digest.update(f"{round(x, 3):.3f},{round(y, 3):.3f};".encode("utf-8"))
    return f"room-{digest.hexdigest()[:12]}"
