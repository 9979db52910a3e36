"""
Geometry of the city: building footprints and a routable road network.

The simulator only consumes the `GeometryProvider` interface. `RoadNetworkGeometry` adapts any list of
buildings and `networkx` road graph whose nodes are `(x, y)` coordinates, and `GridCityGeometry`
synthesizes a city of rectangular blocks so that simulations can run without external map data.
"""
import typing
from collections import namedtuple

import networkx as nx
import numpy as np
from scipy.spatial import cKDTree

from epicitysim.exceptions import RoutingError
from epicitysim.locations.location import Building

Point = namedtuple("Point", ["x", "y"])


class Path(object):
    """
    Polyline from a start point to an end point.
    """

    def __init__(self, points):
        """
        Args:
            points (list): sequence of `Point`, at least one
        """
        assert len(points) > 0, "a path needs at least one point"
        self.points = [Point(*p) for p in points]
        xy = np.asarray(self.points, dtype=float).reshape(-1, 2)
        segment_lengths = np.hypot(*np.diff(xy, axis=0).T) if len(self.points) > 1 else np.zeros(0)
        self.cumulative = np.concatenate([[0.0], np.cumsum(segment_lengths)])

    @property
    def length(self):
        return float(self.cumulative[-1])

    @property
    def start(self):
        return self.points[0]

    @property
    def end(self):
        return self.points[-1]

    def _segment_index(self, distance):
        return min(int(np.searchsorted(self.cumulative, distance, side="right")) - 1, len(self.points) - 2)

    def point_at(self, distance):
        """
        Args:
            distance (float): distance travelled from the start of the path

        Returns:
            Point: location after travelling `distance` along the path, clamped to its ends
        """
        if distance <= 0:
            return self.start
        if distance >= self.length:
            return self.end

        idx = self._segment_index(distance)
        a, b = self.points[idx], self.points[idx + 1]
        segment = self.cumulative[idx + 1] - self.cumulative[idx]
        frac = 0.0 if segment == 0 else (distance - self.cumulative[idx]) / segment
        return Point(a.x + frac * (b.x - a.x), a.y + frac * (b.y - a.y))

    def remainder(self, distance):
        """
        Args:
            distance (float): distance travelled from the start of the path

        Returns:
            Path: what is left to travel after `distance`
        """
        if distance >= self.length:
            return Path([self.end])
        if distance <= 0:
            return self
        idx = self._segment_index(distance)
        return Path([self.point_at(distance)] + self.points[idx + 1:])

    def __len__(self):
        return len(self.points)

    def __repr__(self):
        return f"<Path {self.start} -> {self.end} length:{self.length:.2f}>"


class GeometryProvider(object):
    """
    Interface of the geometry the simulator consumes.
    """

    def residential_buildings(self) -> typing.List[Building]:
        raise NotImplementedError

    def work_buildings(self) -> typing.List[Building]:
        return self.residential_buildings()

    def school_building(self) -> Building:
        raise NotImplementedError

    def random_point_in(self, building, rng) -> Point:
        raise NotImplementedError

    def shortest_path(self, origin, destination) -> Path:
        raise NotImplementedError

    def advance_along(self, path, distance) -> Point:
        return path.point_at(distance)


class RoadNetworkGeometry(GeometryProvider):
    """
    Buildings and a road graph given by the caller.
    The school is the building with the largest footprint unless one is flagged already.
    """

    def __init__(self, buildings, graph):
        """
        Args:
            buildings (list): `Building`s of the city
            graph (networkx.Graph): road network. Nodes are `(x, y)` tuples. Edges without a
                `length` attribute get their euclidean length.
        """
        self.graph = graph
        self.buildings = list(buildings)
        self._school = None
        if self.buildings:
            flagged = [b for b in self.buildings if b.is_school]
            assert len(flagged) <= 1, "there can only be one school in the city"
            self._school = flagged[0] if flagged else max(self.buildings, key=lambda b: b.area)
            self._school.is_school = True
            self._school.name = f"SCHOOL:{self._school.id}"
        self._residential = [b for b in self.buildings if b is not self._school]

        for u, v, data in self.graph.edges(data=True):
            if "length" not in data:
                data["length"] = float(np.hypot(u[0] - v[0], u[1] - v[1]))

        self._nodes = list(self.graph.nodes)
        self._node_tree = cKDTree(np.asarray(self._nodes, dtype=float)) if self._nodes else None
        self._node_paths = {}

    def residential_buildings(self):
        return list(self._residential)

    def school_building(self):
        return self._school

    def random_point_in(self, building, rng):
        return Point(rng.uniform(building.xmin, building.xmax), rng.uniform(building.ymin, building.ymax))

    def nearest_node(self, point):
        """
        Args:
            point (Point): any point of the city

        Returns:
            tuple: the road node closest to `point`

        Raises:
            RoutingError: if the road network is empty
        """
        if self._node_tree is None:
            raise RoutingError("the road network has no nodes")
        _, idx = self._node_tree.query([point.x, point.y])
        return self._nodes[int(idx)]

    def _node_path(self, source, target):
        key = (source, target)
        if key not in self._node_paths:
            try:
                self._node_paths[key] = nx.shortest_path(self.graph, source, target, weight="length")
            except (nx.NetworkXNoPath, nx.NodeNotFound) as e:
                raise RoutingError(f"no road between {source} and {target}") from e
        return self._node_paths[key]

    def shortest_path(self, origin, destination):
        """
        Walks from `origin` to the closest road node, follows the shortest road path and
        walks from the last node to `destination`.

        Args:
            origin (Point): start
            destination (Point): end

        Returns:
            Path: route from `origin` to `destination`

        Raises:
            RoutingError: if the two road nodes are not connected
        """
        nodes = self._node_path(self.nearest_node(origin), self.nearest_node(destination))
        return Path([origin] + [Point(*n) for n in nodes] + [destination])


class GridCityGeometry(RoadNetworkGeometry):
    """
    Synthetic city: a grid of square blocks bounded by roads, with one rectangular building per block.
    """

    def __init__(self, n_blocks_x, n_blocks_y, block_size, rng, fill_range=(0.4, 0.8)):
        """
        Args:
            n_blocks_x (int): number of blocks along x
            n_blocks_y (int): number of blocks along y
            block_size (float): side of a block in distance units
            rng (np.random.RandomState): Random number generator
            fill_range (tuple): bounds of the fraction of a block's side a building spans
        """
        self.n_blocks_x = n_blocks_x
        self.n_blocks_y = n_blocks_y
        self.block_size = block_size

        buildings = []
        for i in range(n_blocks_x):
            for j in range(n_blocks_y):
                width, height = rng.uniform(*fill_range, size=2) * block_size
                x0 = i * block_size + rng.uniform(0.05, 0.95 - width / block_size) * block_size
                y0 = j * block_size + rng.uniform(0.05, 0.95 - height / block_size) * block_size
                buildings.append(Building(len(buildings), x0, y0, x0 + width, y0 + height))

        grid = nx.grid_2d_graph(n_blocks_x + 1, n_blocks_y + 1)
        graph = nx.relabel_nodes(grid, {(i, j): (float(i * block_size), float(j * block_size)) for i, j in grid.nodes})
        nx.set_edge_attributes(graph, float(block_size), "length")

        super().__init__(buildings, graph)

    @classmethod
    def from_conf(cls, conf, rng):
        """
        Args:
            conf (dict): yaml configuration of the experiment
            rng (np.random.RandomState): Random number generator

        Returns:
            GridCityGeometry: city laid out as described by `CITY_BLOCKS_X`, `CITY_BLOCKS_Y` and `BLOCK_SIZE`
        """
        return cls(
            n_blocks_x=conf['CITY_BLOCKS_X'],
            n_blocks_y=conf['CITY_BLOCKS_Y'],
            block_size=conf['BLOCK_SIZE'],
            rng=rng,
            fill_range=tuple(conf.get('BUILDING_FILL_RANGE', (0.4, 0.8))),
        )
