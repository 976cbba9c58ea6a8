import numpy as np

from .units import FREQUENCY_TO_GYR


def symmetric_tensor(tt):
    """
    Convert a tidal tensor into a symmetric (3, 3) array.

    tt : a (3, 3) array, or six components ordered
         (xx, yy, zz, xy, yz, zx) as returned by potential-derivative
         evaluators

    Returns:
        the symmetric (3, 3) tensor
    """
    tt = np.asarray(tt, dtype=np.float64)

    if tt.shape == (6,):
        d2phidx2, d2phidy2, d2phidz2, d2phidxdy, d2phidydz, d2phidzdx = tt
        tt = np.array(
            [
                [d2phidx2, d2phidxdy, d2phidzdx],
                [d2phidxdy, d2phidy2, d2phidydz],
                [d2phidzdx, d2phidydz, d2phidz2],
            ]
        )
    elif tt.shape == (3, 3):
        tt = 0.5 * (tt + tt.T)
    else:
        raise ValueError(f"Tidal tensor must have shape (3, 3) or (6,), got {tt.shape}.")

    if not np.all(np.isfinite(tt)):
        raise ValueError("Tidal tensor has non-finite components.")

    return tt


def symmetric_eigenvalues(tt):
    """
    Eigenvalues of a real symmetric 3x3 matrix in descending order, using the
    closed-form trigonometric solution of the characteristic cubic
    (Smith 1961, Comm. ACM 4, 168).
    """
    a = symmetric_tensor(tt)

    p1 = a[0, 1]**2 + a[0, 2]**2 + a[1, 2]**2
    q = np.trace(a) / 3

    if p1 == 0.0:
        # already diagonal
        return np.sort(np.diag(a))[::-1]

    p2 = (a[0, 0] - q)**2 + (a[1, 1] - q)**2 + (a[2, 2] - q)**2 + 2 * p1
    p = np.sqrt(p2 / 6)

    b = (a - q * np.identity(3)) / p
    r = np.clip(np.linalg.det(b) / 2, -1.0, 1.0)
    phi = np.arccos(r) / 3

    l1 = q + 2 * p * np.cos(phi)
    l3 = q + 2 * p * np.cos(phi + (2 * np.pi / 3))
    l2 = 3 * q - l1 - l3

    return np.array([l1, l2, l3])


def stretching_eigenvalue(tt):
    """
    Largest eigenvalue of the tidal tensor. This is the maximal stretching
    of the field over all directions: for a unit vector x = sum_i a_i e_i
    along the eigenvectors e_i, x.T.x = sum_i a_i^2 lambda_i, a weighted
    average that peaks on the largest eigenvalue. The signed maximum is
    wanted, not the largest magnitude, since compressive directions do not
    strip.
    """
    return symmetric_eigenvalues(tt)[0]


def radial_tidal_field(structure, host, position):
    """
    Tidal field along the direction of maximal stretching, in Gyr^-2. The
    sign follows d^2 Phi / dr^2, so stretching fields are negative; for a
    spherical host this is -2 G M(r) / r^3 + 4 pi G rho(r).

    structure : StructureModel supplying the host's tidal tensor
    host      : the host TreeNode, or None if no host applies
    position  : host-centric position in kpc
    """
    if host is None:
        return 0.0

    tt = structure.tidal_tensor(host, position)
    return -stretching_eigenvalue(tt) * FREQUENCY_TO_GYR**2


def angular_frequency(position, velocity):
    """
    Orbital angular frequency |r x v| / r^2 in Gyr^-1, for positions in kpc
    and velocities in km/s.
    """
    position = np.asarray(position, dtype=np.float64)
    velocity = np.asarray(velocity, dtype=np.float64)

    r2 = np.sum(position**2)
    if r2 == 0.0:
        return 0.0

    L = np.sqrt(np.sum(np.cross(position, velocity)**2))
    return L / r2 * FREQUENCY_TO_GYR
