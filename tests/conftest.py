import numpy as np
import pytest

from tidalstrip.events import CalculationResetEvent
from tidalstrip.profile import NFW, PointMass
from tidalstrip.radius import King1962TidalRadius
from tidalstrip.structure import FixedCosmologyParameters, NodeHaloScale, SphericalStructure
from tidalstrip.tree import SatelliteState, TreeNode
from tidalstrip.units import G


def circular_velocity(profile, r):
    return np.sqrt(G * profile.mass(r) / r)


def build_system(host_profile, sat_profile, r, bound_mass, rvir=30.0, velocity=None, unique_id=2):
    """
    A host (id 1) with a primary progenitor and a satellite on a circular
    orbit at host-centric radius `r` in the x-y plane.
    """
    host = TreeNode(1, 13.0, radius_virial=300.0, components={"dark": host_profile})
    host.add_child(TreeNode(100 + unique_id, 12.0, radius_virial=250.0, components={"dark": host_profile}))

    if velocity is None:
        velocity = circular_velocity(host_profile, r)

    sat = TreeNode(
        unique_id,
        13.0,
        radius_virial=rvir,
        components={"dark": sat_profile},
        satellite=SatelliteState(bound_mass, [r, 0.0, 0.0], [0.0, velocity, 0.0]),
        is_satellite=True,
        merges_with=host,
    )
    host.add_child(sat)

    return host, sat


@pytest.fixture
def reset_event():
    return CalculationResetEvent()


@pytest.fixture
def cosmology():
    return FixedCosmologyParameters(0.3, 0.05)


@pytest.fixture
def structure():
    return SphericalStructure()


@pytest.fixture
def solver(cosmology, structure, reset_event):
    with King1962TidalRadius(cosmology, NodeHaloScale(), structure, reset_event=reset_event) as s:
        yield s


@pytest.fixture
def kepler_system():
    """1e10 Msun point-mass satellite at 100 kpc around a 1e12 Msun point mass."""
    return build_system(PointMass(1e12), PointMass(1e10), 100.0, 1e10)


@pytest.fixture
def nfw_system():
    host = NFW(mvir=1e12, rvir=250.0, cvir=10.0)
    sat = NFW(mvir=1e10, rvir=30.0, cvir=15.0)
    return build_system(host, sat, 50.0, 1e10)
