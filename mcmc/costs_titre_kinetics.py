""" Module with cost functions to fit antibody titre panels with the
multi-exposure antibody kinetics model.

Cost functions only take picklable arguments (arrays, the resolved
ExposureDesign, module-level solvers), so they can be sent to
multiprocessing workers by mcmc.mcmc_run.

October 2026
"""
import numpy as np

# Local modules
from mcmc.posterior import design_log_likelihood
from models.antibody_kinetics import model_trajectory


def insert_fitted_pars(pvec, fit_indices, base_pars):
    """ Copy of the full parameter vector base_pars where the entries at
    fit_indices are replaced by pvec. Other entries stay fixed. """
    pars = np.array(base_pars, dtype=float)
    pars[fit_indices] = pvec
    return pars


# Main antibody kinetics cost function
def cost_titre_kinetics(pvec, pbounds, fit_indices, base_pars, times, design,
    data, obs_params, solver=model_trajectory, verbose=False):
    """
    Args:
        pvec (np.ndarray): values of the fitted parameters
        pbounds (list of 2 arrays): array of lower bounds, array of upper
        fit_indices (np.ndarray): positions of the fitted parameters in the
            full parameter vector
        base_pars (np.ndarray): full parameter vector, including the values
            of fixed parameters
        times (np.ndarray): time grid of the data columns
        design (ExposureDesign): resolved exposure histories
        data (np.ndarray): observed titres, rows in data_row_index order
        obs_params (list): S, EA, MAX_TITRE
        solver (callable): single-exposure trajectory solver
        verbose (bool): change default to True to print all errors raised
            by extreme parameter values

    Returns:
        cost (float): log-likelihood, -np.inf for rejected parameters.
    """
    # Check parameter boundaries
    if np.any(pvec < pbounds[0]) or np.any(pvec > pbounds[1]):
        return -np.inf
    pars = insert_fitted_pars(pvec, fit_indices, base_pars)
    try:
        ln = design_log_likelihood(pars, times, design, data, obs_params,
                                   solver=solver)
    except (ValueError, RuntimeError) as e:
        ln = -np.inf
        if verbose:
            print(f"Error {type(e)} with parameter values "
                + "{}".format(pvec) + ". Error:\n" + str(e))
    # emcee refuses nan log-probabilities; reject instead
    if np.isnan(ln):
        if verbose:
            print("nan log-likelihood with parameter values {}".format(pvec))
        ln = -np.inf
    return ln
