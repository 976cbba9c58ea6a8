import numpy as np


class StructuralError(RuntimeError):
    """
    Raised when the merger tree cannot supply a host for a node.
    """
    pass


# Sentinel returned by `resolve_host` when the virial radius should be used
# in place of a tidal radius.
USE_VIRIAL = object()


class SatelliteState:

    def __init__(self, bound_mass=0.0, position=None, velocity=None):
        # bound mass in Msun
        self.bound_mass = bound_mass

        # host-centric phase space in kpc and km/s
        self.position = np.zeros(3) if position is None else np.asarray(position, dtype=np.float64)
        self.velocity = np.zeros(3) if velocity is None else np.asarray(velocity, dtype=np.float64)

    @property
    def radius(self):
        return np.sqrt(np.sum(self.position**2))


class TreeNode:
    """
    A halo in a merger tree at one time. `parent` points to the descendant
    (later time), `first_child` to the primary (most massive) progenitor and
    `sibling` to the next progenitor of the same parent.
    """

    def __init__(
        self,
        unique_id,
        time,
        mass_basic=0.0,
        radius_virial=None,
        components=None,
        satellite=None,
        is_satellite=False,
        merges_with=None,
    ):
        self.unique_id = unique_id
        self.time = time # cosmic time in Gyr
        self.mass_basic = mass_basic # Msun
        self.radius_virial = radius_virial # kpc

        # mass type -> Profile
        self.components = {} if components is None else dict(components)

        self.satellite = SatelliteState() if satellite is None else satellite
        self.is_satellite = is_satellite
        self.merges_with = merges_with

        self.parent = None
        self.first_child = None
        self.sibling = None

    def __repr__(self):
        return f"TreeNode(unique_id={self.unique_id}, time={self.time})"

    def add_child(self, child):
        """
        Attach `child` as the last progenitor of this node. The first child
        added is the primary progenitor.
        """
        child.parent = self
        child.sibling = None

        if self.first_child is None:
            self.first_child = child
            return child

        last = self.first_child
        while last.sibling is not None:
            last = last.sibling
        last.sibling = child

        return child

    def children(self):
        child = self.first_child
        while child is not None:
            yield child
            child = child.sibling

    def is_primary_progenitor(self):
        return self.parent is not None and self.parent.first_child is self

    def is_on_main_branch(self):
        node = self
        while node.parent is not None:
            if not node.is_primary_progenitor():
                return False
            node = node.parent
        return True

    def walk_branch(self):
        """
        Depth-first walk over this node and all of its progenitors.
        """
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.children())))


def resolve_host(node, apply_pre_infall=False):
    """
    Find the node whose gravitational field acts on `node`.

    Parameters
    ----------
    node : TreeNode
        The (possibly future) satellite

    apply_pre_infall : bool (optional, default=False)
        If true, nodes that have not yet become satellites are assigned the
        host they will eventually merge with, at the matching time.

    Returns
    -------
    TreeNode, None or USE_VIRIAL
        The host node, None if a satellite has no host to merge with, or
        USE_VIRIAL for nodes whose radius is simply their virial radius.
    """

    if node.is_on_main_branch() or (not apply_pre_infall and not node.is_satellite):
        return USE_VIRIAL

    if node.is_satellite:
        return node.merges_with

    # Walk up the branch to find the halo this node will merge into.
    host = node
    while host.is_primary_progenitor():
        host = host.parent

    if host.parent is None or host.parent.first_child is None:
        raise StructuralError(f"No host found for node {node.unique_id}.")

    host = host.parent.first_child

    # Follow the host back through its progenitors to the satellite's epoch.
    while host.time > node.time:
        if host.first_child is None:
            break
        host = host.first_child

    return host
