"""
Class and functions to move humans between home and workplace along the road network.

Moving is split in two phases: `MobilityPlanner.plan` computes where a human will be at the end of
the tick without touching any state, and `apply_movement` commits it.
"""
import logging
from collections import namedtuple

from epicitysim.exceptions import RoutingError

Movement = namedtuple("Movement", ["human", "location", "target", "route", "routing_failed"])


class MobilityPlanner(object):
    """
    Decides the commute of one human: to the workplace during working hours, back home otherwise.
    """

    def __init__(self, human, geometry, conf):
        """
        Args:
            human (epicitysim.human.Human): human whose commute is planned
            geometry (epicitysim.locations.geometry.GeometryProvider): provides the road network
            conf (dict): yaml configuration of the experiment
        """
        self.human = human
        self.geometry = geometry
        self.work_start_hour = conf['WORK_START_HOUR']
        self.work_end_hour = conf['WORK_END_HOUR']
        self.snap_threshold = conf['SNAP_THRESHOLD']

    def is_working_hour(self, hour):
        return self.work_start_hour <= hour < self.work_end_hour

    def next_target(self, hour):
        """
        Args:
            hour (int): hour of the day

        Returns:
            Point: where the human should head to, None if they should stay where they are
        """
        human = self.human
        if human.target is not None:
            return human.target
        if self.is_working_hour(hour) and human.is_at_home:
            return human.workplace
        if not self.is_working_hour(hour) and human.is_at_work:
            return human.home
        return None

    def plan(self, hour, step_hours=1.0):
        """
        Computes the human's movement for this tick.
        The human's state is read, never written.

        Args:
            hour (int): hour of the day
            step_hours (float): duration of a tick in hours. Defaults to 1.

        Returns:
            Movement: the movement to commit, None if the human does not move
        """
        human = self.human
        if human.is_isolated:
            return None

        target = self.next_target(hour)
        if target is None:
            return None

        route = human.route
        if route is None or route.end != target:
            try:
                route = self.geometry.shortest_path(human.location, target)
            except RoutingError as e:
                # the human stays put and tries again next tick
                logging.debug(f"{human} could not route to {target}: {e}")
                return Movement(human, human.location, target, None, True)

        distance = human.speed * step_hours
        location = self.geometry.advance_along(route, distance)
        remaining = route.remainder(distance)
        if remaining.length < self.snap_threshold:
            return Movement(human, target, None, None, False)
        return Movement(human, location, target, remaining, False)


def apply_movement(movement):
    """
    Commits a movement computed by `MobilityPlanner.plan`.

    Args:
        movement (Movement): movement to commit
    """
    human = movement.human
    human.location = movement.location
    human.target = movement.target
    human.route = movement.route
