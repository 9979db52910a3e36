"""
Radius queries over the current positions of the humans who are not isolated.
"""
import numpy as np
from scipy.spatial import cKDTree


class SpatialIndex(object):
    """
    k-d tree over the locations of non-isolated humans. Humans move every tick so the index
    must be rebuilt after the movement phase and before transmission.
    """

    def __init__(self):
        self.tree = None
        self.humans = []

    def rebuild(self, humans):
        """
        Indexes the current location of every non-isolated human of `humans`.

        Args:
            humans (list): population
        """
        self.humans = [human for human in humans if not human.is_isolated]
        if self.humans:
            positions = np.asarray([(h.location.x, h.location.y) for h in self.humans], dtype=float)
            self.tree = cKDTree(positions)
        else:
            self.tree = None

    def query(self, point, radius, exclude=None):
        """
        Args:
            point (Point): center of the search
            radius (float): search radius, inclusive
            exclude (Human, optional): human left out of the result, usually the one at `point`

        Returns:
            list: non-isolated humans within `radius` of `point`, sorted by id
        """
        if self.tree is None:
            return []
        idxs = self.tree.query_ball_point([point.x, point.y], r=radius)
        neighbors = [self.humans[i] for i in idxs if self.humans[i] is not exclude]
        return sorted(neighbors, key=lambda h: h.id)

    def __len__(self):
        return len(self.humans)
