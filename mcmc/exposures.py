""" Structured description of the exposure histories of all groups,
resolved once from the flat index arrays of the parameter table.

The parameter table is flattened into one parameter vector. Side arrays,
one entry per parameter table row, tag the rows that are exposure times
with their type, strain, order and priming; offset arrays split index
lists into blocks per group, per exposure type and per measured strain.
ExposureDesign decodes all of this into ExposureEvent records so that
likelihood evaluations never do offset arithmetic.

October 2026
"""
from collections import namedtuple
from enum import IntEnum
import numpy as np

from mcmc.block_index import block, check_block_lengths


class ExposureType(IntEnum):
    """ Exposure type codes used in the parameter table. """
    INFECTION = 1
    VACCINATION = 2
    ADJUVANT = 3
    MODIFIER = 4


# time_index: parameter index of the exposure time t_i
# order_index: parameter index of the modifier for this exposure order
# strain: 0-based exposure strain
# kind: ExposureType of the exposure
# primed: 1.0 if the exposure was primed, else 0.0
# kinetics_indices: parameter indices of the kinetics block for this type
ExposureEvent = namedtuple("ExposureEvent",
    ["time_index", "order_index", "strain", "kind", "primed", "kinetics_indices"])


class ExposureDesign():
    """ Exposure events of each group, measured strains, individuals per
    group and cross-reactivity parameter indices.

    Attributes:
        groups (np.ndarray): group labels, in data order.
        individuals (np.ndarray): number of individuals in each group.
        strains (np.ndarray): 0-based measured strains, in data order.
        events (list of lists of ExposureEvent): exposures of each group.
        cr_index (dict): parameter index of the cross-reactivity scalar,
            keyed by (measured strain, exposure strain), both 0-based.
        n_pars (int): length of the parameter vector.
    """
    def __init__(self, groups, individuals, strains, events, cr_index, n_pars):
        self.groups = np.asarray(groups)
        self.individuals = np.asarray(individuals, dtype=int)
        self.strains = np.asarray(strains, dtype=int)
        self.events = events
        self.cr_index = cr_index
        self.n_pars = n_pars

    @property
    def n_cells(self):
        """ Number of (group, measured strain) trajectories. """
        return len(self.groups) * len(self.strains)

    @property
    def n_data_rows(self):
        """ Number of rows the observed data matrix should have. """
        return int(np.sum(self.individuals)) * len(self.strains)

    def cells(self):
        """ Iterate over (group position, measured strain) in data order. """
        for i in range(len(self.groups)):
            for strain in self.strains:
                yield i, strain

    def __repr__(self):
        return "ExposureDesign(groups={}, strains={}, n_events={})".format(
            list(self.groups), list(self.strains + 1),
            [len(evs) for evs in self.events])

    @classmethod
    def from_index_arrays(cls, groups, individuals, strains, exposure_types,
            exposure_strains, exposure_orders, exposure_primes,
            exposure_indices, cr_inds, par_type_ind, order_indices,
            exposure_i_lengths, par_lengths, cr_lengths, n_pars=None):
        """ Decode and validate the flat parameter table description.

        Args:
            groups (array of ints): exposure groups, starting at 1.
            individuals (array of ints): number of individuals in each group.
            strains (array of ints): measured strains, starting at 1.
            exposure_types (array of ints): ExposureType code of each
                parameter table row.
            exposure_strains (array of ints): exposure strain of each row,
                starting at 1.
            exposure_orders (array of ints): order of each exposure,
                starting at 1.
            exposure_primes (array of ints): whether each exposure was primed.
            exposure_indices (array of ints): rows holding exposure times,
                in blocks per group.
            cr_inds (array of ints): rows holding cross-reactivity
                parameters, in blocks per measured strain, indexed within a
                block by exposure strain.
            par_type_ind (array of ints): rows holding kinetics parameters,
                in blocks per exposure type.
            order_indices (array of ints): row of the modifier of each order.
            exposure_i_lengths, par_lengths, cr_lengths (arrays of ints):
                block offsets for exposure_indices, par_type_ind and cr_inds.
            n_pars (int): length of the parameter vector. Defaults to the
                number of rows described by exposure_types.
        Returns:
            ExposureDesign
        """
        exposure_indices = np.asarray(exposure_indices, dtype=int)
        par_type_ind = np.asarray(par_type_ind, dtype=int)
        cr_inds = np.asarray(cr_inds, dtype=int)
        order_indices = np.asarray(order_indices, dtype=int)
        strains0 = np.asarray(strains, dtype=int) - 1
        if n_pars is None:
            n_pars = len(exposure_types)

        exposure_i_lengths = check_block_lengths(exposure_i_lengths,
                                len(exposure_indices), "exposure_i_lengths")
        par_lengths = check_block_lengths(par_lengths, len(par_type_ind), "par_lengths")
        cr_lengths = check_block_lengths(cr_lengths, len(cr_inds), "cr_lengths")
        if len(exposure_i_lengths) < len(groups) + 1:
            raise ValueError("exposure_i_lengths has {} blocks for {} groups".format(
                             len(exposure_i_lengths) - 1, len(groups)))
        if len(individuals) != len(groups):
            raise ValueError("individuals should give one count per group")
        if np.any(strains0 < 0) or np.any(strains0 >= len(cr_lengths) - 1):
            raise ValueError("Measured strains {} have no cross-reactivity "
                             "block in cr_lengths".format(strains))

        # Resolve each exposure of each group once
        kinetics_blocks = {}
        events = []
        for i in range(len(groups)):
            group_events = []
            for k in block(exposure_indices, exposure_i_lengths, i):
                try:
                    kind = ExposureType(int(exposure_types[k]))
                except ValueError:
                    raise ValueError("Unknown exposure type code {} at row {}".format(
                                     exposure_types[k], k))
                if kind not in kinetics_blocks:
                    if kind > len(par_lengths) - 1:
                        raise ValueError("No kinetics parameter block for "
                                         "exposure type {}".format(kind.name))
                    kinetics_blocks[kind] = block(par_type_ind, par_lengths, kind - 1)
                order = int(exposure_orders[k]) - 1
                if order < 0 or order >= len(order_indices):
                    raise ValueError("No order modifier for exposure order "
                                     "{} at row {}".format(order + 1, k))
                group_events.append(ExposureEvent(
                    time_index=int(k),
                    order_index=int(order_indices[order]),
                    strain=int(exposure_strains[k]) - 1,
                    kind=kind,
                    primed=float(exposure_primes[k]),
                    kinetics_indices=kinetics_blocks[kind]
                ))
            events.append(group_events)

        # Cross-reactivity: only pairs that actually occur
        cr_index = {}
        for s in strains0:
            a, b = cr_lengths[s], cr_lengths[s+1]
            for ev in (ev for evs in events for ev in evs):
                if ev.strain < 0 or a + ev.strain >= b:
                    raise ValueError("No cross-reactivity parameter between "
                        "measured strain {} and exposure strain {}".format(
                        s + 1, ev.strain + 1))
                cr_index[(int(s), ev.strain)] = int(cr_inds[a + ev.strain])

        # All resolved rows must exist in the parameter vector
        used = list(cr_index.values())
        for ev in (ev for evs in events for ev in evs):
            used.extend([ev.time_index, ev.order_index])
            used.extend(ev.kinetics_indices)
        if len(used) > 0 and (min(used) < 0 or max(used) >= n_pars):
            raise ValueError("Resolved parameter indices outside of a "
                             "parameter vector of length {}".format(n_pars))

        return cls(groups, individuals, strains0, events, cr_index, n_pars)
