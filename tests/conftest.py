"""Shared fixtures: small flat parameter tables and stub trajectory solvers."""

import numpy as np
import pytest


def constant_solver(value):
    """Solver stub returning the same titre at every time point."""
    def solver(full_pars, times):
        return np.full(len(times), value, dtype=float)
    return solver


def time_solver(full_pars, times):
    """Solver stub returning the exposure time (last entry) everywhere."""
    return np.full(len(times), full_pars[-1], dtype=float)


def build_flat_table(group_exposures, individuals, n_strains=1, cr_values=None):
    """Parameter vector and index arrays for one exposure type with a
    single kinetics parameter.

    Layout: [kinetics, order modifiers..., cross-reactivity..., exposure times...]

    Args:
        group_exposures: for each group, a list of (t_i, exposure strain).
        individuals: number of individuals in each group.
        n_strains: number of measured (and exposure) strains.
        cr_values: cross-reactivity scalars, n_strains * n_strains, blocks
            per measured strain. Defaults to ones.
    """
    max_order = max(len(g) for g in group_exposures)
    n_cr = n_strains * n_strains
    if cr_values is None:
        cr_values = [1.0] * n_cr
    t_exposures = [t for g in group_exposures for t, _ in g]
    pars = np.asarray([1.0] + [1.0] * max_order + list(cr_values) + t_exposures)
    n_pars = len(pars)

    first_time = 1 + max_order + n_cr
    exposure_indices = np.arange(first_time, n_pars)
    exposure_types = np.zeros(n_pars, dtype=int)
    exposure_types[exposure_indices] = 1
    exposure_strains = np.zeros(n_pars, dtype=int)
    exposure_strains[exposure_indices] = [s for g in group_exposures for _, s in g]
    exposure_orders = np.zeros(n_pars, dtype=int)
    exposure_orders[exposure_indices] = [k + 1 for g in group_exposures for k in range(len(g))]

    table = {
        "groups": np.arange(1, len(group_exposures) + 1),
        "individuals": np.asarray(individuals),
        "strains": np.arange(1, n_strains + 1),
        "exposure_types": exposure_types,
        "exposure_strains": exposure_strains,
        "exposure_orders": exposure_orders,
        "exposure_primes": np.zeros(n_pars, dtype=int),
        "exposure_indices": exposure_indices,
        "cr_inds": np.arange(1 + max_order, first_time),
        "par_type_ind": np.asarray([0]),
        "order_indices": np.arange(1, 1 + max_order),
        "exposure_i_lengths": np.concatenate([[0], np.cumsum([len(g) for g in group_exposures])]),
        "par_lengths": np.asarray([0, 1]),
        "cr_lengths": np.arange(0, n_cr + 1, n_strains),
    }
    return pars, table


@pytest.fixture
def flat_table():
    return build_flat_table


@pytest.fixture
def obs_params():
    return [0.8, 0.15, 8]
