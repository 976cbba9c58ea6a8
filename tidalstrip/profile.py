import abc
import numpy as np
from scipy.optimize import brentq

from .units import G

########################################################################################################

class Profile(abc.ABC):
    """
    Spherically symmetric mass distribution. Lengths in kpc, masses in Msun,
    tidal tensors in (km/s/kpc)^2.
    """

    @abc.abstractmethod
    def density(self, r):
        pass

    @abc.abstractmethod
    def mass(self, r):
        pass

    def radius_enclosing_mass(self, m, r_guess=1.0):
        """
        Radius enclosing a mass `m`, found by bracketing the enclosed mass
        curve in radius and refining with Brent's method.

        Parameters
        ----------
        m : float
            Target enclosed mass in Msun

        r_guess : float (optional, default=1)
            Starting radius for the bracket search in kpc

        Returns
        -------
        float
            Radius in kpc
        """
        if m <= 0.0:
            return 0.0

        r_low = r_high = r_guess

        for _ in range(200):
            if self.mass(r_high) >= m:
                break
            r_high *= 2.0
        else:
            raise ValueError(f"Profile never encloses a mass of {m:.3e} Msun.")

        while self.mass(r_low) > m and r_low > 1e-30:
            r_low /= 2.0

        if self.mass(r_low) == m:
            return r_low

        return brentq(lambda r: self.mass(r) - m, r_low, r_high, rtol=1e-12)

    def hessian(self, q):
        """
        Hessian of the gravitational potential at q = [x, y, z] in
        (km/s/kpc)^2. For a spherical profile,

            H_ij = Phi'' x_i x_j / r^2 + (Phi' / r) (delta_ij - x_i x_j / r^2)

        with Phi' = G M(r) / r^2 and Phi'' = 4 pi G rho(r) - 2 G M(r) / r^3.
        """
        q = np.asarray(q, dtype=np.float64)
        r = np.sqrt(np.sum(q**2))

        if r == 0.0:
            rho_centre = self.density(0.0)
            if not np.isfinite(rho_centre):
                raise ValueError("Tidal field of a cuspy profile is singular at its centre.")
            # isotropic limit at the centre
            return (4 * np.pi / 3) * G * rho_centre * np.identity(3)

        menc = self.mass(r)
        d_phi = G * menc / r**2
        d2_phi = 4 * np.pi * G * self.density(r) - 2 * G * menc / r**3

        rhat = q / r
        radial = np.outer(rhat, rhat)

        return d2_phi * radial + (d_phi / r) * (np.identity(3) - radial)

    def tidal_tensor(self, q):
        """
        Gravitational tidal tensor, -d^2 Phi / dx_i dx_j, at q = [x, y, z].
        Positive eigenvalues stretch, negative eigenvalues compress.
        """
        return -self.hessian(q)


class NFW(Profile):

    def __init__(self, mvir, rvir, cvir):
        if mvir <= 0 or rvir <= 0 or cvir <= 0:
            raise ValueError("NFW parameters must be positive.")

        self.mvir = mvir
        self.rvir = rvir
        self.cvir = cvir

        self.Rs = rvir / cvir
        self.rho0 = (mvir / (4 * np.pi * self.Rs**3)) / (
            np.log(1 + cvir) - (cvir / (1 + cvir))
        )

    def density(self, r):
        x = np.asarray(r, dtype=np.float64) / self.Rs
        with np.errstate(divide="ignore"):
            return self.rho0 / (x * (1 + x) ** 2)

    def mass(self, r):
        """
        Enclosed mass of the profile at radius r
        """
        x = np.asarray(r, dtype=np.float64) / self.Rs
        return 4 * np.pi * self.rho0 * self.Rs**3 * (np.log1p(x) - x / (1 + x))

    def radius_enclosing_mass(self, m, r_guess=None):
        return super().radius_enclosing_mass(m, r_guess=self.Rs)


class Plummer(Profile):

    def __init__(self, m0, b):
        if m0 <= 0 or b <= 0:
            raise ValueError("Plummer mass and scale parameter must be positive.")

        self.m0 = m0 # total mass (Msun)
        self.b = b # scale parameter (kpc)

    def density(self, r):
        return (3 * self.m0 / (4 * np.pi * self.b**3)) * (1 + (r / self.b) ** 2) ** (-5.0 / 2.0)

    def mass(self, r):
        return self.m0 * r**3 / (r**2 + self.b**2) ** (3.0 / 2.0)

    def radius_enclosing_mass(self, m, r_guess=None):
        if m <= 0.0:
            return 0.0
        if m >= self.m0:
            raise ValueError(f"Plummer sphere of mass {self.m0:.3e} Msun cannot enclose {m:.3e} Msun.")

        f = m / self.m0
        return self.b / np.sqrt(f ** (-2.0 / 3.0) - 1)


class UniformSphere(Profile):
    """
    Sphere of constant density truncated at `radius`.
    """

    def __init__(self, mass, radius):
        if mass <= 0 or radius <= 0:
            raise ValueError("Uniform sphere mass and radius must be positive.")

        self.total_mass = mass
        self.radius = radius
        self.rho = 3 * mass / (4 * np.pi * radius**3)

    def density(self, r):
        return np.where(np.asarray(r) <= self.radius, self.rho, 0.0)

    def mass(self, r):
        x = np.minimum(np.asarray(r, dtype=np.float64) / self.radius, 1.0)
        return self.total_mass * x**3

    def radius_enclosing_mass(self, m, r_guess=None):
        if m <= 0.0:
            return 0.0
        if m > self.total_mass:
            raise ValueError(f"Uniform sphere of mass {self.total_mass:.3e} Msun cannot enclose {m:.3e} Msun.")

        return self.radius * (m / self.total_mass) ** (1.0 / 3.0)


class PointMass(Profile):

    def __init__(self, mass):
        if mass < 0:
            raise ValueError("Point mass must be non-negative.")

        self.total_mass = mass

    def density(self, r):
        # the mass sits at the origin, which hessian() never samples
        return 0.0

    def mass(self, r):
        return self.total_mass * np.ones_like(np.asarray(r, dtype=np.float64))

    def radius_enclosing_mass(self, m, r_guess=None):
        if m > self.total_mass:
            raise ValueError(f"Point mass of {self.total_mass:.3e} Msun cannot enclose {m:.3e} Msun.")

        return 0.0

    def hessian(self, q):
        q = np.asarray(q, dtype=np.float64)
        r = np.sqrt(np.sum(q**2))

        if r == 0.0:
            raise ValueError("Tidal field of a point mass is singular at its position.")

        return super().hessian(q)
