""" Additive antibody kinetics over multiple exposures.

Each exposure of a group contributes one single-exposure trajectory to each
measured strain, scaled through the cross-reactivity between the exposure
and measured strains. Contributions add up: there is no interaction term
between exposures at this level.

October 2026
"""
import numpy as np

from models.antibody_kinetics import model_trajectory


def exposure_parameters(pars, event, cr_par_index):
    """ Parameters passed to the trajectory solver for one exposure event:
    the kinetics block of the exposure type, then primed, order modifier,
    cross-reactivity and exposure time.
    """
    return np.concatenate([
        pars[event.kinetics_indices],
        [event.primed, pars[event.order_index], pars[cr_par_index], pars[event.time_index]]
    ])


def cell_trajectory(pars, times, events, strain, cr_index, solver=model_trajectory):
    """ Titre trajectory against one measured strain for one group.

    Args:
        pars (np.ndarray): full parameter vector.
        times (np.ndarray): time grid.
        events (list of ExposureEvent): exposures of the group.
        strain (int): 0-based measured strain.
        cr_index (dict): cross-reactivity parameter index keyed by
            (measured strain, exposure strain).
        solver (callable): solver(full_pars, times) -> trajectory.
    Returns:
        y (np.ndarray): sum of the trajectories of all exposures.
    """
    y = np.zeros(len(times))
    for ev in events:
        full_pars = exposure_parameters(pars, ev, cr_index[(strain, ev.strain)])
        y += solver(full_pars, times)
    return y


def model_group_trajectories(pars, times, design, solver=model_trajectory):
    """ Results matrix: one row per (group, measured strain) in data order,
    one column per time point. """
    pars = np.asarray(pars, dtype=float)
    results = np.zeros((design.n_cells, len(times)))
    for index_model, (i, strain) in enumerate(design.cells()):
        results[index_model] = cell_trajectory(pars, times, design.events[i],
                                    strain, design.cr_index, solver=solver)
    return results
