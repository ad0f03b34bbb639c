"""
Model provider for IFC files using IfcOpenShell.

The active view is one building storey. Spaces are read from IfcSpace
swept-solid footprints (tessellated geometry as a fallback); luminaires from light fixtures and their
IfcLightFixtureType; doors and windows from IfcDoor/IfcWindow. Space
association uses spatial containment, then space boundaries, then a
footprint containment test.
"""

import math
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple
from loguru import logger

try:
    import numpy as np
    import ifcopenshell
    import ifcopenshell.geom
    import ifcopenshell.util.element
    import ifcopenshell.util.placement
    import ifcopenshell.util.unit
except ImportError:
    raise ImportError(
        "IfcOpenShell is required for IFC model access. "
        "Install with: pip install ifcopenshell"
    )

from stfexport.core.config import Config, get_default_config
from stfexport.core.errors import ModelLoadError
from stfexport.core.models import (
    BoundarySegment,
    HostFixtureInstance,
    HostFixtureType,
    HostInfo,
    HostOpening,
    HostSpace,
    PlacementTransform,
    Point3D,
)
from stfexport.core.units import format_decimal
from stfexport.providers.base import ModelProvider

# Footprint in world coordinates with the space's vertical extent
Footprint = Tuple[List[Point3D], float, float]


class IfcModelProvider(ModelProvider):
    """Serves model queries from an IFC file."""

    def __init__(
        self,
        ifc_file: "ifcopenshell.file",
        storey_name: Optional[str] = None,
        config: Optional[Config] = None,
        project_name: Optional[str] = None,
    ):
        """
        Initialize IFC provider.

        Args:
            ifc_file: Opened IfcOpenShell file
            storey_name: Storey acting as the active view (None = first storey with spaces)
            config: Property name mappings and defaults
            project_name: Fallback project name when IfcProject has none
        """
        super().__init__()
        self.ifc_file = ifc_file
        self.storey_name = storey_name
        self.config = config or get_default_config()
        self.project_name = project_name
        self._length_unit_factor = self._calculate_unit_factor()
        self._footprints: Optional[Dict[str, Footprint]] = None

    @classmethod
    def open(
        cls,
        file_path: str,
        storey_name: Optional[str] = None,
        config: Optional[Config] = None,
    ) -> "IfcModelProvider":
        """
        Open an IFC file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ModelLoadError: If IfcOpenShell cannot read the file
        """
        path = Path(file_path)
        logger.info(f"Opening IFC model: {path}")

        if not path.exists():
            raise FileNotFoundError(f"IFC file not found: {path}")

        try:
            ifc_file = ifcopenshell.open(str(path))
        except Exception as e:
            raise ModelLoadError(f"Failed to open IFC file {path.name}: {e}") from e

        logger.debug(f"IFC schema: {ifc_file.schema}")
        return cls(ifc_file, storey_name=storey_name, config=config, project_name=path.stem)

    def _calculate_unit_factor(self) -> float:
        if not self.ifc_file.by_type("IfcUnitAssignment"):
            logger.warning("IFC file has no unit assignment, assuming meters")
            return 1.0
        return float(ifcopenshell.util.unit.calculate_unit_scale(self.ifc_file))

    @property
    def length_unit_factor(self) -> float:
        return self._length_unit_factor

    # ------------------------------------------------------------------
    # Spaces
    # ------------------------------------------------------------------

    def spaces_in_active_view(self) -> List[HostSpace]:
        storey = self._active_storey()
        if storey is None:
            return []

        spaces = [
            space for space in self.ifc_file.by_type("IfcSpace")
            if self._storey_of(space) == storey
        ]
        logger.debug(f"Storey '{storey.Name}': {len(spaces)} spaces")
        return [self._host_space(space) for space in spaces]

    def _active_storey(self):
        storeys = sorted(
            self.ifc_file.by_type("IfcBuildingStorey"),
            key=lambda s: s.Elevation or 0.0,
        )

        if self.storey_name is not None:
            for storey in storeys:
                if storey.Name == self.storey_name:
                    return storey
            logger.warning(f"Storey '{self.storey_name}' not found in IFC model")
            return None

        for storey in storeys:
            if any(self._storey_of(space) == storey for space in self.ifc_file.by_type("IfcSpace")):
                return storey

        logger.warning("No building storey with spaces found in IFC model")
        return None

    def _storey_of(self, element):
        parent = ifcopenshell.util.element.get_aggregate(element)
        if parent is None:
            parent = ifcopenshell.util.element.get_container(element)
        while parent is not None and not parent.is_a("IfcBuildingStorey"):
            parent = ifcopenshell.util.element.get_aggregate(parent)
        return parent

    def _host_space(self, space) -> HostSpace:
        psets = ifcopenshell.util.element.get_psets(space)
        footprint = self._footprint(space)
        height = footprint[2] - footprint[1] if footprint else None
        if not height:
            height = self._lookup(psets, "height", 0.0)

        work_plane_m = self.config.get_ifc_default("work_plane_m", 0.762)

        return HostSpace(
            id=space.GlobalId,
            name=space.LongName or space.Name or f"Space #{space.id()}",
            unbounded_height=height,
            lighting_workplane=self._lookup(psets, "work_plane", work_plane_m / self.length_unit_factor),
            ceiling_reflectance=self._reflectance(psets, "ceiling_reflectance"),
            floor_reflectance=self._reflectance(psets, "floor_reflectance"),
            wall_reflectance=self._reflectance(psets, "wall_reflectance"),
        )

    def _reflectance(self, psets: Dict[str, Dict[str, Any]], field: str) -> float:
        # Percentages are normalized by the space extractor
        return float(self._lookup(psets, field, self.config.get_ifc_default(field, 0.5)))

    def boundary_loops(self, space: HostSpace) -> List[List[BoundarySegment]]:
        entity = self.ifc_file.by_guid(space.id)
        footprint = self._footprint(entity)
        if footprint is None:
            return []

        points = footprint[0]
        segments = [
            BoundarySegment(start=points[i], end=points[(i + 1) % len(points)])
            for i in range(len(points))
        ]
        return [segments]

    def _footprint(self, space) -> Optional[Footprint]:
        """Outer profile of the space's extruded body in world coordinates."""
        if self._footprints is None:
            self._footprints = {}
        if space.GlobalId in self._footprints:
            return self._footprints[space.GlobalId]

        footprint = None
        solid = self._extruded_solid(space)
        if solid is not None:
            profile_points = self._profile_points(solid.SweptArea)
            if profile_points:
                matrix = self._world_matrix(space)
                if solid.Position is not None:
                    matrix = matrix @ ifcopenshell.util.placement.get_axis2placement(solid.Position)
                points = [self._apply(matrix, x, y, 0.0) for x, y in profile_points]
                base_z = points[0].z
                footprint = (points, base_z, base_z + float(solid.Depth))

        if footprint is None and space.Representation is not None:
            footprint = self._kernel_footprint(space)

        if footprint is None:
            logger.warning(f"Space {space.GlobalId}: no usable body geometry for a footprint")

        self._footprints[space.GlobalId] = footprint
        return footprint

    def _kernel_footprint(self, space) -> Optional[Footprint]:
        """Footprint from tessellated geometry: the outline of the body's lowest faces."""
        settings = ifcopenshell.geom.settings()
        settings.set(settings.USE_WORLD_COORDS, True)

        try:
            shape = ifcopenshell.geom.create_shape(settings, space)
        except RuntimeError as e:
            logger.warning(f"Space {space.GlobalId}: geometry kernel failed: {e}")
            return None
        if not shape:
            return None

        # Kernel output is in meters
        scale = 1.0 / self.length_unit_factor
        verts = shape.geometry.verts
        vertices = [
            (verts[i] * scale, verts[i + 1] * scale, verts[i + 2] * scale)
            for i in range(0, len(verts), 3)
        ]
        if not vertices:
            return None

        z_min = min(v[2] for v in vertices)
        z_max = max(v[2] for v in vertices)
        outline = _bottom_outline(vertices, list(shape.geometry.faces), z_min)
        if not outline:
            return None

        logger.debug(f"Space {space.GlobalId}: footprint from geometry kernel ({len(outline)} points)")
        return ([Point3D(x=x, y=y, z=z_min) for x, y in outline], z_min, z_max)

    def _extruded_solid(self, product):
        if not product.Representation:
            return None
        for representation in product.Representation.Representations:
            for item in representation.Items:
                if item.is_a("IfcExtrudedAreaSolid"):
                    return item
        return None

    def _profile_points(self, profile) -> List[Tuple[float, float]]:
        if profile is None:
            return []

        if profile.is_a("IfcRectangleProfileDef"):
            half_x = float(profile.XDim) / 2.0
            half_y = float(profile.YDim) / 2.0
            corners = [(-half_x, -half_y), (half_x, -half_y), (half_x, half_y), (-half_x, half_y)]
            return [_in_profile_position(profile.Position, x, y) for x, y in corners]

        if not profile.is_a("IfcArbitraryClosedProfileDef"):
            return []

        curve = profile.OuterCurve
        if curve.is_a("IfcPolyline"):
            coords = [tuple(p.Coordinates[:2]) for p in curve.Points]
        elif curve.is_a("IfcIndexedPolyCurve"):
            coords = [tuple(c[:2]) for c in curve.Points.CoordList]
        else:
            logger.debug(f"Unsupported space profile curve: {curve.is_a()}")
            return []

        # Closed polylines repeat the first point
        if len(coords) > 1 and coords[0] == coords[-1]:
            coords = coords[:-1]
        return [(float(x), float(y)) for x, y in coords]

    # ------------------------------------------------------------------
    # Luminaires
    # ------------------------------------------------------------------

    def fixture_instances(self) -> List[HostFixtureInstance]:
        instances = []
        for element in self.ifc_file.by_type("IfcFlowTerminal"):
            fixture_type = ifcopenshell.util.element.get_type(element)
            is_fixture = element.is_a("IfcLightFixture") or (
                fixture_type is not None and fixture_type.is_a("IfcLightFixtureType")
            )
            if not is_fixture:
                continue

            location = self._location(element)
            instances.append(
                HostFixtureInstance(
                    id=element.GlobalId,
                    type_id=fixture_type.GlobalId if fixture_type is not None else None,
                    space_id=self._space_id_of(element, location),
                    location=location,
                )
            )
        return instances

    def fixture_types(self) -> List[HostFixtureType]:
        types = []
        lamp_parameter = self.config.get_extraction_rule("lamp_count_parameter", "Number of Lamps")

        for fixture_type in self.ifc_file.by_type("IfcLightFixtureType"):
            psets = ifcopenshell.util.element.get_psets(fixture_type)
            parameters: Dict[str, Any] = {}
            lamp_count = self._lookup_raw(psets, "lamp_count")
            if lamp_count is not None:
                parameters[lamp_parameter] = lamp_count

            types.append(
                HostFixtureType(
                    id=fixture_type.GlobalId,
                    name=fixture_type.Name or f"Type #{fixture_type.id()}",
                    apparent_load=self._formatted(psets, "apparent_load"),
                    luminous_flux=self._formatted(psets, "luminous_flux"),
                    parameters=parameters,
                )
            )
        return types

    def _formatted(self, psets: Dict[str, Dict[str, Any]], field: str) -> Optional[str]:
        """Property value rendered the way the host formats quantities: value and unit."""
        value = self._lookup_raw(psets, field)
        if value is None:
            return None
        if isinstance(value, str):
            return value
        return f"{format_decimal(value)} {self.config.get_ifc_unit(field)}".strip()

    # ------------------------------------------------------------------
    # Doors and windows
    # ------------------------------------------------------------------

    def doors(self) -> List[HostOpening]:
        return [self._host_opening(e, "OverallWidth", "OverallHeight") for e in self.ifc_file.by_type("IfcDoor")]

    def windows(self) -> List[HostOpening]:
        return [self._host_opening(e, "OverallWidth", "OverallHeight") for e in self.ifc_file.by_type("IfcWindow")]

    def _host_opening(self, element, width_attr: str, height_attr: str) -> HostOpening:
        # Type-level dimensions first, instance attributes as fallback
        opening_type = ifcopenshell.util.element.get_type(element)
        type_psets = ifcopenshell.util.element.get_psets(opening_type) if opening_type is not None else {}

        width = self._lookup(type_psets, "width", None)
        if width is None:
            width = getattr(element, width_attr, None)
        height = self._lookup(type_psets, "height_opening", None)
        if height is None:
            height = getattr(element, height_attr, None)

        location = self._location(element)
        return HostOpening(
            id=element.GlobalId,
            space_id=self._space_id_of(element, location),
            location=location,
            transform=self._transform(element),
            width=width,
            height=height,
        )

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def host_info(self) -> HostInfo:
        projects = self.ifc_file.by_type("IfcProject")
        project_name = (projects[0].Name if projects else None) or self.project_name or ""

        program_name = self.config.get_format_setting("program_name", "Revit")
        program_version = ""
        username = ""

        histories = self.ifc_file.by_type("IfcOwnerHistory")
        if histories:
            history = histories[0]
            application = history.OwningApplication
            if application is not None:
                program_name = application.ApplicationFullName or program_name
                program_version = application.Version or ""
            user = history.OwningUser
            if user is not None and user.ThePerson is not None:
                person = user.ThePerson
                username = " ".join(p for p in (person.GivenName, person.FamilyName) if p)

        return HostInfo(
            program_name=program_name,
            program_version=program_version,
            project_name=project_name,
            username=username,
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _lookup_raw(self, psets: Dict[str, Dict[str, Any]], field: str) -> Any:
        for name in self.config.get_property_names(field):
            for properties in psets.values():
                value = properties.get(name)
                if value is not None:
                    return value
        return None

    def _lookup(self, psets: Dict[str, Dict[str, Any]], field: str, default: Optional[float]) -> Optional[float]:
        value = self._lookup_raw(psets, field)
        if value is None:
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            logger.warning(f"Ignoring non-numeric {field} value: {value!r}")
            return default

    def _world_matrix(self, element):
        if element.ObjectPlacement is None:
            return np.eye(4)
        return ifcopenshell.util.placement.get_local_placement(element.ObjectPlacement)

    @staticmethod
    def _apply(matrix, x: float, y: float, z: float) -> Point3D:
        world = matrix @ np.array([x, y, z, 1.0])
        return Point3D(x=float(world[0]), y=float(world[1]), z=float(world[2]))

    def _location(self, element) -> Optional[Point3D]:
        if element.ObjectPlacement is None:
            return None
        return self._apply(self._world_matrix(element), 0.0, 0.0, 0.0)

    def _transform(self, element) -> PlacementTransform:
        matrix = self._world_matrix(element)

        def column(index: int) -> Point3D:
            return Point3D(
                x=float(matrix[0][index]),
                y=float(matrix[1][index]),
                z=float(matrix[2][index]),
            )

        return PlacementTransform(origin=column(3), basis_x=column(0), basis_y=column(1), basis_z=column(2))

    def _space_id_of(self, element, location: Optional[Point3D]) -> Optional[str]:
        container = ifcopenshell.util.element.get_container(element)
        if container is not None and container.is_a("IfcSpace"):
            return container.GlobalId

        for boundary in getattr(element, "ProvidesBoundaries", None) or ():
            space = boundary.RelatingSpace
            if space is not None and space.is_a("IfcSpace"):
                return space.GlobalId

        if location is not None:
            return self._space_containing(location)
        return None

    def _space_containing(self, point: Point3D) -> Optional[str]:
        for space in self.ifc_file.by_type("IfcSpace"):
            footprint = self._footprint(space)
            if footprint is None:
                continue
            polygon, z_min, z_max = footprint
            if z_min - 1e-6 <= point.z <= z_max + 1e-6 and _point_in_polygon(point, polygon):
                return space.GlobalId
        return None


def _point_in_polygon(point: Point3D, polygon: List[Point3D]) -> bool:
    """Even-odd ray casting test in plan."""
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        pi, pj = polygon[i], polygon[j]
        if (pi.y > point.y) != (pj.y > point.y):
            x_cross = (pj.x - pi.x) * (point.y - pi.y) / (pj.y - pi.y) + pi.x
            if point.x < x_cross:
                inside = not inside
        j = i
    return inside


def _in_profile_position(position, x: float, y: float) -> Tuple[float, float]:
    """Map a point from profile coordinates through an IfcAxis2Placement2D."""
    if position is None:
        return (x, y)

    origin_x, origin_y = (float(c) for c in position.Location.Coordinates[:2])
    dir_x, dir_y = 1.0, 0.0
    if position.RefDirection is not None:
        dir_x, dir_y = (float(c) for c in position.RefDirection.DirectionRatios[:2])
        length = math.hypot(dir_x, dir_y)
        dir_x, dir_y = dir_x / length, dir_y / length

    return (origin_x + x * dir_x - y * dir_y, origin_y + x * dir_y + y * dir_x)


def _bottom_outline(
    vertices: List[Tuple[float, float, float]],
    faces: List[int],
    z_level: float,
    tolerance: float = 1e-4,
) -> Optional[List[Tuple[float, float]]]:
    """
    Outer outline of the triangles lying at z_level.

    Edges used by exactly one bottom triangle form the outline. Vertices are
    matched by rounded coordinates, so unwelded meshes work too. The loop
    through the lowest (x, y) vertex is the outer one.
    """
    def key(index: int) -> Tuple[float, float]:
        x, y, _ = vertices[index]
        return (round(x, 6), round(y, 6))

    edge_counts: Dict[Tuple[Tuple[float, float], Tuple[float, float]], int] = defaultdict(int)
    for i in range(0, len(faces) - 2, 3):
        triangle = faces[i:i + 3]
        if any(abs(vertices[v][2] - z_level) > tolerance for v in triangle):
            continue
        corners = [key(v) for v in triangle]
        for a, b in ((0, 1), (1, 2), (2, 0)):
            if corners[a] != corners[b]:
                edge_counts[tuple(sorted((corners[a], corners[b])))] += 1

    neighbours: Dict[Tuple[float, float], List[Tuple[float, float]]] = defaultdict(list)
    for (a, b), count in edge_counts.items():
        if count == 1:
            neighbours[a].append(b)
            neighbours[b].append(a)

    if len(neighbours) < 3 or any(len(n) != 2 for n in neighbours.values()):
        return None

    start = min(neighbours)
    outline = [start]
    previous, current = None, start
    while len(outline) <= len(neighbours):
        first, second = neighbours[current]
        following = second if first == previous else first
        if following == start:
            return outline
        outline.append(following)
        previous, current = current, following
    return None
