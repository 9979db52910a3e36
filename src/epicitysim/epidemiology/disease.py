"""
Disease state of a human. A human is in exactly one of `Susceptible`, `Infected` or `Recovered`;
isolation and vaccination are tracked separately on `Human` as overlay flags.
"""
import dataclasses
import datetime
import typing


@dataclasses.dataclass(frozen=True)
class Susceptible:
    """Never infected."""

    is_infected: typing.ClassVar[bool] = False
    variant: typing.ClassVar[typing.Optional[int]] = None


@dataclasses.dataclass(frozen=True)
class Infected:
    """Currently carries `variant` since `since` for `duration` days."""

    variant: int
    since: datetime.datetime
    duration: float

    is_infected: typing.ClassVar[bool] = True

    def has_recovered_by(self, timestamp):
        """
        Args:
            timestamp (datetime.datetime): current time

        Returns:
            bool: True once strictly more than `duration` days have elapsed since infection
        """
        return timestamp - self.since > datetime.timedelta(days=self.duration)

    def with_variant(self, variant):
        """Same infection (same timer and duration) carrying another variant."""
        return dataclasses.replace(self, variant=variant)


@dataclasses.dataclass(frozen=True)
class Recovered:
    """Infected at some point, not anymore."""

    since: datetime.datetime

    is_infected: typing.ClassVar[bool] = False
    variant: typing.ClassVar[typing.Optional[int]] = None


DiseaseState = typing.Union[Susceptible, Infected, Recovered]
