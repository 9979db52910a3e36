"""
This module contains the static places of the city: buildings, whose footprints are supplied by the
geometry provider, and households, which group the humans living together in one of them.
"""
import typing

if typing.TYPE_CHECKING:
    from epicitysim.human import Human
    from epicitysim.locations.geometry import Point


class Building(object):
    """
    Building with a rectangular footprint. Buildings are immutable once loaded.
    """

    def __init__(self, id, xmin, ymin, xmax, ymax, is_school=False):
        """
        Args:
            id (int): unique identifier of the building
            xmin (float): left edge of the footprint
            ymin (float): bottom edge of the footprint
            xmax (float): right edge of the footprint
            ymax (float): top edge of the footprint
            is_school (bool): True for the city's school. Defaults to False.
        """
        assert xmin < xmax and ymin < ymax, f"degenerate footprint for building {id}"
        self.id = id
        self.xmin = xmin
        self.ymin = ymin
        self.xmax = xmax
        self.ymax = ymax
        self.is_school = is_school
        self.name = f"{'SCHOOL' if is_school else 'BUILDING'}:{id}"

    @property
    def area(self):
        return (self.xmax - self.xmin) * (self.ymax - self.ymin)

    def contains(self, point: "Point"):
        """
        Args:
            point (Point): point to check

        Returns:
            bool: True if `point` lies inside the footprint (edges included)
        """
        return self.xmin <= point.x <= self.xmax and self.ymin <= point.y <= self.ymax

    def __repr__(self):
        return f"<{self.name} area:{self.area:.1f}>"


class Household(object):
    """
    A family living at the same home location. Its size is fixed at creation and
    `residents` is filled once while the population is generated.
    """

    def __init__(self, id, building, location, n_adults, n_children):
        """
        Args:
            id (int): unique identifier of the household
            building (Building): building the family lives in
            location (Point): home location shared by all residents
            n_adults (int): number of adults in the family
            n_children (int): number of children in the family
        """
        self.id = id
        self.name = f"HOUSEHOLD:{id}"
        self.building = building
        self.location = location
        self.n_adults = n_adults
        self.n_children = n_children
        self.residents: typing.List["Human"] = []

    @property
    def size(self):
        return self.n_adults + self.n_children

    def add_resident(self, human):
        """
        Registers `human` as a member of this household.

        Args:
            human (Human): a member of the family
        """
        assert len(self.residents) < self.size, f"{self} is already full"
        self.residents.append(human)

    def __repr__(self):
        return f"<{self.name} adults:{self.n_adults} children:{self.n_children}>"

    def __len__(self):
        return len(self.residents)

    def __iter__(self):
        return iter(self.residents)
