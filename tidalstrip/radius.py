import numpy as np
from scipy.optimize import brentq

from . import config
from .cache import TidalRadiusCache
from .events import calculation_reset_event
from .structure import MASS_TYPE_DARK
from .tidal import angular_frequency, radial_tidal_field
from .tree import USE_VIRIAL, resolve_host
from .units import G_GYR


class TidalRadiusError(RuntimeError):
    """
    Raised when no tidal radius can be found and the satellite is not
    completely stripped.
    """
    pass


class BracketingFailure(RuntimeError):
    pass


class TidalRadiusEquation:
    """
    f(r) = tidal_pull - G M_sat(<r) / r^3, in Gyr^-2. The tidal radius is
    the root of f. Each solve builds its own instance.
    """

    def __init__(self, tidal_pull, structure, node):
        self.tidal_pull = tidal_pull
        self.structure = structure
        self.node = node

    def __call__(self, radius):
        menc = self.structure.mass_enclosed(self.node, radius)
        return self.tidal_pull - G_GYR * menc / radius**3


def expand_bracket(f, guess, multiplier, limit_downward, max_expansions=config.MAXIMUM_EXPANSIONS):
    """
    Expand multiplicatively around `guess` until f(low) <= 0 <= f(high).

    The lower bound never drops below `limit_downward`. Raises
    BracketingFailure if the limit is reached with f still positive, if f
    is not finite, or after `max_expansions` steps.

    Returns:
        (low, high)
    """
    low = high = guess
    f_low = f_high = f(guess)

    expansions = 0

    while f_low > 0.0:
        if low <= limit_downward or expansions >= max_expansions:
            raise BracketingFailure(f"Unable to bracket from below at r={low:.3e}.")
        low = max(low / multiplier, limit_downward)
        f_low = f(low)
        expansions += 1

    while f_high < 0.0:
        if expansions >= max_expansions:
            raise BracketingFailure(f"Unable to bracket from above at r={high:.3e}.")
        high = high * multiplier
        f_high = f(high)
        expansions += 1

    if not (np.isfinite(f_low) and np.isfinite(f_high)):
        raise BracketingFailure("Root equation is not finite on the bracket.")

    return low, high


class King1962TidalRadius:

    def __init__(
        self,
        cosmology,
        halo_scale,
        structure,
        efficiency_centrifugal=config.EFFICIENCY_CENTRIFUGAL,
        apply_pre_infall=config.APPLY_PRE_INFALL,
        tolerance_absolute=config.TOLERANCE_ABSOLUTE,
        tolerance_relative=config.TOLERANCE_RELATIVE,
        maximum_iterations=config.MAXIMUM_ITERATIONS,
        maximum_expansions=config.MAXIMUM_EXPANSIONS,
        reset_event=None,
        verbose=config.VERBOSE,
    ):
        """
        Tidal radius of satellites following King (1962):

            r_t = (G M_sat / (gamma_c omega^2 - d^2 Phi / dr^2))^(1/3)

        where omega is the orbital angular frequency of the satellite, Phi the
        host potential along the direction of maximal tidal stretching and
        gamma_c the efficiency of the centrifugal term. The enclosed mass is
        that of the satellite's own (dark matter only) profile, so the
        equation is solved numerically.

        Parameters
        ----------
        cosmology : CosmologyParameters
            Supplies the dark matter fraction, (Omega_m - Omega_b) / Omega_m

        halo_scale : HaloScale
            Supplies virial radii

        structure : StructureModel
            Supplies tidal tensors and enclosed masses

        efficiency_centrifugal : float (optional, default=1)
            Efficiency of the centrifugal term; zero neglects it

        apply_pre_infall : bool (optional, default=False)
            If true, tidal radii are computed for nodes before they infall

        reset_event : CalculationResetEvent (optional)
            Event that clears the warm-start cache. Defaults to the global
            `calculation_reset_event`.

        verbose : bool (optional, default=False)
            Print a notice when a satellite is completely stripped
        """

        if efficiency_centrifugal < 0:
            raise ValueError(f"efficiency_centrifugal must be non-negative, got {efficiency_centrifugal}.")

        self.halo_scale = halo_scale
        self.structure = structure
        self.efficiency_centrifugal = efficiency_centrifugal
        self.apply_pre_infall = apply_pre_infall

        self.tolerance_absolute = tolerance_absolute
        self.tolerance_relative = tolerance_relative
        self.maximum_iterations = maximum_iterations
        self.maximum_expansions = maximum_expansions
        self.verbose = verbose

        self.fraction_dark_matter = cosmology.fraction_dark_matter()

        self.cache = TidalRadiusCache(config.EXPAND_MULTIPLIER_INITIAL)

        self.reset_event = calculation_reset_event if reset_event is None else reset_event
        self.reset_event.attach(self.calculation_reset, label="King1962TidalRadius")

    @classmethod
    def from_parameters(cls, parameters, cosmology, halo_scale, structure, **kwargs):
        """
        Build the solver from a parameter mapping with the optional keys
        `efficiency_centrifugal` and `apply_pre_infall`.
        """
        allowed = {"efficiency_centrifugal", "apply_pre_infall"}
        unknown = set(parameters) - allowed
        if unknown:
            raise ValueError(f"Unrecognized parameters: {sorted(unknown)}")

        return cls(
            cosmology,
            halo_scale,
            structure,
            efficiency_centrifugal=float(parameters.get("efficiency_centrifugal", config.EFFICIENCY_CENTRIFUGAL)),
            apply_pre_infall=bool(parameters.get("apply_pre_infall", config.APPLY_PRE_INFALL)),
            **kwargs,
        )

    def close(self):
        event = getattr(self, "reset_event", None)
        if event is not None and event.is_attached(self.calculation_reset):
            event.detach(self.calculation_reset)

    def __del__(self):
        self.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def calculation_reset(self):
        """
        Forget all stored tidal radii.
        """
        self.cache.reset()

    def radius(self, node):
        """
        Tidal radius of `node` in kpc.

        To allow for non-spherical hosts, the tidal field is taken along the
        eigenvector of the host tidal tensor with the largest eigenvalue,
        where stretching is strongest. For a spherical host this reduces to
        d^2 Phi / dr^2 = -2 G M(r) / r^3 + 4 pi G rho(r).
        """

        host = resolve_host(node, self.apply_pre_infall)

        if host is USE_VIRIAL:
            return self.halo_scale.radius_virial(node)

        satellite = node.satellite
        mass = satellite.bound_mass

        omega = angular_frequency(satellite.position, satellite.velocity)
        field = radial_tidal_field(self.structure, host, satellite.position)

        tidal_pull = self.efficiency_centrifugal * omega**2 - field

        stripping = (
            tidal_pull > 0.0
            and mass > 0.0
            and self.structure.mass_enclosed(node, 0.0) >= 0.0
        )

        if not stripping:
            # stored seeds only carry over between consecutive solves
            self.cache.invalidate(node.unique_id)
            return self.radius_unstripped(node, mass)

        return self._solve(node, mass, tidal_pull)

    def radius_unstripped(self, node, mass):
        """
        Radius enclosing the bound dark matter mass, or the virial radius if
        the bound mass exceeds the virial mass (which can happen during
        failed integrator steps).
        """
        rvir = self.halo_scale.radius_virial(node)

        if mass > self.structure.mass_enclosed(node, rvir, mass_type=MASS_TYPE_DARK):
            return rvir

        return self.structure.radius_enclosing_mass(
            node, mass * self.fraction_dark_matter, mass_type=MASS_TYPE_DARK
        )

    def _solve(self, node, mass, tidal_pull):
        identity = node.unique_id
        entry = self.cache.get(identity)

        guess = entry.previous_radius
        multiplier = entry.expand_multiplier

        if not entry.is_set:
            guess = np.sqrt(G_GYR * mass / self.halo_scale.radius_virial(node) / tidal_pull)
            multiplier = config.EXPAND_MULTIPLIER_INITIAL

        equation = TidalRadiusEquation(tidal_pull, self.structure, node)
        limit_downward = config.RADIUS_TINY_FRACTION * guess

        converged = False
        try:
            low, high = expand_bracket(
                equation, guess, multiplier, limit_downward, self.maximum_expansions
            )
            # brentq refuses a zero absolute tolerance
            r_tidal, result = brentq(
                equation,
                low,
                high,
                xtol=max(self.tolerance_absolute, np.finfo(np.float64).tiny),
                rtol=self.tolerance_relative,
                maxiter=self.maximum_iterations,
                full_output=True,
                disp=False,
            )
            converged = result.converged
        except BracketingFailure:
            pass

        if converged:
            self.cache.put(identity, r_tidal, config.EXPAND_MULTIPLIER_CONVERGED)
            return r_tidal

        if equation(limit_downward) > 0.0:
            # complete stripping
            if self.verbose:
                print(f"Node {identity} has been completely stripped at t={node.time}")
            self.cache.put(identity, 0.0, multiplier)
            return 0.0

        raise TidalRadiusError(
            f"Unable to find tidal radius for node {identity} (guess={guess:.3e} kpc)."
        )
