import abc
import numpy as np
from colossus.cosmology import cosmology
from colossus.halo import mass_so
from scipy.optimize import brentq

########################################################################################################
# Collaborator interfaces consumed by the tidal radius solver.

MASS_TYPE_ALL  = "all"
MASS_TYPE_DARK = "dark"


class StructureModel(abc.ABC):

    @abc.abstractmethod
    def tidal_tensor(self, host, position):
        """
        Tidal tensor of `host` at `position` (kpc), as a symmetric 3x3 array
        or six components (xx, yy, zz, xy, yz, zx) in (km/s/kpc)^2.
        """
        pass

    @abc.abstractmethod
    def mass_enclosed(self, node, radius, mass_type=MASS_TYPE_ALL):
        pass

    @abc.abstractmethod
    def radius_enclosing_mass(self, node, mass, mass_type=MASS_TYPE_ALL):
        pass


class HaloScale(abc.ABC):

    @abc.abstractmethod
    def radius_virial(self, node):
        pass


class CosmologyParameters(abc.ABC):

    @abc.abstractmethod
    def omega_matter(self):
        pass

    @abc.abstractmethod
    def omega_baryon(self):
        pass

    def fraction_dark_matter(self):
        om = self.omega_matter()
        if om <= 0:
            raise ValueError(f"Omega_matter must be positive, got {om}.")
        return (om - self.omega_baryon()) / om

########################################################################################################

class SphericalStructure(StructureModel):
    """
    Structure model built from the spherical profiles attached to each node.
    A node carries `components`, a mapping from mass type (e.g. "dark") to a
    `Profile`. The "all" mass type sums every component.
    """

    def _profiles(self, node, mass_type):
        components = node.components

        if mass_type == MASS_TYPE_ALL:
            return list(components.values())

        if mass_type not in components:
            raise ValueError(f"Node {node.unique_id} has no '{mass_type}' component.")

        return [components[mass_type]]

    def tidal_tensor(self, host, position):
        tt = np.zeros((3, 3))
        for profile in self._profiles(host, MASS_TYPE_ALL):
            tt += profile.tidal_tensor(position)
        return tt

    def mass_enclosed(self, node, radius, mass_type=MASS_TYPE_ALL):
        return float(sum(p.mass(radius) for p in self._profiles(node, mass_type)))

    def radius_enclosing_mass(self, node, mass, mass_type=MASS_TYPE_ALL):
        profiles = self._profiles(node, mass_type)

        if len(profiles) == 1:
            return float(profiles[0].radius_enclosing_mass(mass))

        # composite: invert the summed enclosed mass curve
        if mass <= 0.0 or self.mass_enclosed(node, 0.0, mass_type) >= mass:
            return 0.0

        r_high = 1.0
        for _ in range(200):
            if self.mass_enclosed(node, r_high, mass_type) >= mass:
                break
            r_high *= 2.0
        else:
            raise ValueError(f"Node {node.unique_id} never encloses a mass of {mass:.3e} Msun.")

        return brentq(
            lambda r: self.mass_enclosed(node, r, mass_type) - mass,
            0.0,
            r_high,
            rtol=1e-12,
        )

########################################################################################################

class NodeHaloScale(HaloScale):
    """
    Reads the virial radius (kpc) stored on the node.
    """

    def radius_virial(self, node):
        return node.radius_virial


class ColossusHaloScale(HaloScale):

    def __init__(self, cosmo, mdef="vir"):
        """
        Virial radii from the spherical overdensity definition `mdef`.

        Parameters
        ----------
        cosmo : colossus.cosmology.cosmology.Cosmology
            Cosmology used to convert node times to redshifts; it is made
            the current colossus cosmology.

        mdef : str (optional, default="vir")
            Colossus mass definition, e.g. "vir", "200c", "200m"
        """
        self.cosmo = cosmo
        self.mdef = mdef
        cosmology.setCurrent(cosmo)

    def redshift(self, time):
        # node times are cosmic ages in Gyr
        return self.cosmo.age(time, inverse=True)

    def radius_virial(self, node):
        h = self.cosmo.h
        z = self.redshift(node.time)

        # colossus works in Msun/h and physical kpc/h
        return mass_so.M_to_R(node.mass_basic * h, z, self.mdef) / h


class ColossusCosmologyParameters(CosmologyParameters):

    def __init__(self, cosmo):
        self.cosmo = cosmo

    def omega_matter(self):
        return self.cosmo.Om0

    def omega_baryon(self):
        return self.cosmo.Ob0


class FixedCosmologyParameters(CosmologyParameters):

    def __init__(self, omega_matter, omega_baryon):
        self.Om0 = omega_matter
        self.Ob0 = omega_baryon

    def omega_matter(self):
        return self.Om0

    def omega_baryon(self):
        return self.Ob0
