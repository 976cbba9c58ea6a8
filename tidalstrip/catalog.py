import asdf
import numpy as np
from tqdm import tqdm


def tidal_radii(solver, nodes, progress=True):
    """
    Evaluate `solver.radius` for every node in `nodes` (kpc).
    """
    nodes = list(nodes)
    radii = np.zeros(len(nodes))

    for i, node in enumerate(tqdm(nodes, desc="Computing tidal radii", disable=not progress)):
        radii[i] = solver.radius(node)

    return radii


def write_tidal_radius_catalog(write_dir, nodes, radii):
    """
    Write the tidal radii of `nodes` to an asdf file with columns
    `unique_id`, `time` (Gyr), `bound_mass` (Msun) and `radius` (kpc).
    """
    nodes = list(nodes)
    radii = np.asarray(radii, dtype=np.float64)

    if len(nodes) != len(radii):
        raise ValueError(f"Got {len(nodes)} nodes but {len(radii)} radii.")

    tree = {
        "unique_id": np.array([node.unique_id for node in nodes], dtype=np.int64),
        "time": np.array([node.time for node in nodes], dtype=np.float64),
        "bound_mass": np.array([node.satellite.bound_mass for node in nodes], dtype=np.float64),
        "radius": radii,
    }

    _af = asdf.AsdfFile(tree)
    print("Saving tidal radius catalog...")
    _af.write_to(write_dir, all_array_compression="zlib")

    return tree


def read_tidal_radius_catalog(write_dir):
    print("Found archived tidal radius catalog...")
    with asdf.open(write_dir) as af:
        return {key: np.array(af[key]) for key in ("unique_id", "time", "bound_mass", "radius")}
