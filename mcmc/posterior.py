""" Log-likelihood of a panel of antibody titres under the multi-exposure
antibody kinetics model.

The observed data matrix has one row per individual and measured strain,
one column per time point. Rows are ordered by group, then by measured
strain, then by individual: with two strains and two individuals in group
1, rows 0 and 1 are strain 1 of both individuals, rows 2 and 3 strain 2,
then group 2 starts. All individuals of a group share the same model
trajectory.

No error is raised while evaluating: infeasible parameters give -inf or
nan, which the sampler rejects.

October 2026
"""
import numpy as np
import pandas as pd

from mcmc.exposures import ExposureDesign
from mcmc.kinetics_engine import model_group_trajectories
from mcmc.observation_error import obs_likelihood, sample_observed_titres
from models.antibody_kinetics import model_trajectory


def design_log_likelihood(pars, times, design, data, obs_params, solver=model_trajectory):
    """ Log-likelihood of the data matrix given a resolved ExposureDesign.
    Data columns past len(times) are not scored. """
    results = model_group_trajectories(pars, times, design, solver=solver)
    n_times = len(times)
    ln = 0.0
    index_data = 0
    for index_model, (i, strain) in enumerate(design.cells()):
        # Same trajectory for each individual of the group
        for _ in range(design.individuals[i]):
            ln += obs_likelihood(results[index_model], data[index_data, :n_times], obs_params)
            index_data += 1
    return ln


def posterior_func_group(pars, times, groups, individuals, strains,
        exposure_types, exposure_strains, measured_strains, exposure_orders,
        exposure_primes, exposure_indices, cr_inds, par_type_ind,
        order_indices, exposure_i_lengths, par_lengths, cr_lengths, data,
        obs_params, solver=model_trajectory):
    """ Solve the antibody kinetics model and compute the log-likelihood
    of the data set, from the flat parameter table description.

    Resolves the exposure design at every call; use create_posterior_func
    to resolve it only once when evaluating many parameter vectors.

    Args:
        pars (np.ndarray): parameter vector, one entry per table row.
        times (np.ndarray): times to solve the model over.
        groups, individuals, strains, exposure_types, exposure_strains,
        exposure_orders, exposure_primes, exposure_indices, cr_inds,
        par_type_ind, order_indices, exposure_i_lengths, par_lengths,
        cr_lengths: see ExposureDesign.from_index_arrays.
        measured_strains (array of ints): measured strain of each table
            row. Not needed by the additive model, where each trajectory's
            strain comes from strains; kept so the table columns can be
            passed as they are.
        data (np.ndarray): observed titres, rows ordered as described in
            the module docstring.
        obs_params (sequence): S, EA, MAX_TITRE.
        solver (callable): single-exposure trajectory solver.
    Returns:
        ln (float): log-likelihood of the data.
    """
    design = ExposureDesign.from_index_arrays(groups, individuals, strains,
        exposure_types, exposure_strains, exposure_orders, exposure_primes,
        exposure_indices, cr_inds, par_type_ind, order_indices,
        exposure_i_lengths, par_lengths, cr_lengths, n_pars=len(pars))
    data = np.asarray(data, dtype=float)
    check_data_shape(data, design, times)
    return design_log_likelihood(pars, times, design, data, obs_params, solver=solver)


def check_data_shape(data, design, times):
    """ Raise a ValueError unless data has one row per individual and
    strain and at least one column per time point. """
    if data.ndim != 2 or data.shape[0] != design.n_data_rows or data.shape[1] < len(times):
        raise ValueError("Data matrix of shape {} does not match the design: "
            "expected {} rows and at least {} columns".format(
            data.shape, design.n_data_rows, len(times)))


def create_posterior_func(times, design, data, obs_params, solver=model_trajectory):
    """ Return a function of the parameter vector only, computing the
    log-likelihood of data, for samplers and optimizers.
    """
    times = np.asarray(times, dtype=float)
    data = np.asarray(data, dtype=float)
    check_data_shape(data, design, times)

    def posterior(pars):
        return design_log_likelihood(pars, times, design, data, obs_params,
                                     solver=solver)
    return posterior


### DATA LAYOUT ###
def data_row_index(design):
    """ MultiIndex of the data matrix rows: Group, Strain, Individual,
    with strains and individuals starting at 1. """
    tuples = [(design.groups[i], strain + 1, n + 1)
              for i, strain in design.cells()
              for n in range(design.individuals[i])]
    return pd.MultiIndex.from_tuples(tuples, names=["Group", "Strain", "Individual"])


def order_titre_data(df, design):
    """ Data matrix from a DataFrame of titres indexed by Group, Strain,
    Individual (any row order), one column per time point. Rows are put in
    the order expected by the likelihood; missing rows raise a KeyError.
    """
    idx = data_row_index(design)
    missing = idx.difference(df.index)
    if len(missing) > 0:
        raise KeyError("Titres missing for {}".format(list(missing)))
    return df.loc[idx].to_numpy(dtype=float)


def simulate_titre_data(pars, times, design, obs_params, rng, solver=model_trajectory):
    """ Simulate observed titres for every individual with observation
    error, as a DataFrame indexed like data_row_index(design). """
    results = model_group_trajectories(pars, times, design, solver=solver)
    rows = []
    for index_model, (i, strain) in enumerate(design.cells()):
        for _ in range(design.individuals[i]):
            rows.append(sample_observed_titres(results[index_model], obs_params, rng))
    return pd.DataFrame(np.asarray(rows).reshape(-1, len(times)),
                        index=data_row_index(design), columns=list(times))
