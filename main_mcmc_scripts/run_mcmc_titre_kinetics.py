"""
Simulate a small antibody titre panel under the multi-exposure antibody
kinetics model, then fit the peak boosts and the boost decline with
independent emcee chains launched in parallel.

Two groups of ferrets, two strains: group 1 is infected with strain 1;
group 2 is infected with strain 2, then vaccinated with strain 1 three
weeks later (second exposure, primed).

Run from this folder: results go to ../results/mcmc/.

October 2026
"""

import numpy as np
import h5py
from time import perf_counter

# Local modules
import sys, os
if not "../" in sys.path:
    sys.path.insert(1, "../")

from mcmc.exposures import ExposureDesign, ExposureType
from mcmc.posterior import (simulate_titre_data, order_titre_data,
                            create_posterior_func)
from mcmc.costs_titre_kinetics import cost_titre_kinetics
from mcmc.mcmc_run import parallel_chains_emcee, optimize_start
from models.antibody_kinetics import calculate_x, kinetics_names
from utils.export import (save_defaults_json, load_settings_json,
                          default_mcmc_settings, dict_to_hdf5, nice_dict_print)


def build_parameter_table():
    """ Parameter vector and the index arrays describing it. """
    infection = [8.0, 0.5, 12.0, 10.0, 0.003, np.log(0.5), np.log(0.2), 2.0, 0.0]
    vaccination = [5.0, 0.3, 10.0, 14.0, 0.005, np.log(0.5), np.log(0.2), 2.0, 0.0]
    order_mods = [1.0, 0.8]
    x12 = calculate_x(0.4, 0.5)  # 40 % cross-reactivity between the strains
    cr_x = [0.0, x12, x12, 0.0]
    t_exposures = [0.0, 0.0, 21.0]
    pars = np.asarray(infection + vaccination + order_mods + cr_x + t_exposures)
    n_pars = len(pars)

    exposure_indices = np.arange(24, 27)
    exposure_types = np.zeros(n_pars, dtype=int)
    exposure_types[exposure_indices] = [ExposureType.INFECTION,
                            ExposureType.INFECTION, ExposureType.VACCINATION]
    exposure_strains = np.zeros(n_pars, dtype=int)
    exposure_strains[exposure_indices] = [1, 2, 1]
    exposure_orders = np.zeros(n_pars, dtype=int)
    exposure_orders[exposure_indices] = [1, 1, 2]
    exposure_primes = np.zeros(n_pars, dtype=int)
    exposure_primes[exposure_indices] = [0, 0, 1]

    table = {
        "groups": np.asarray([1, 2]),
        "individuals": np.asarray([3, 3]),
        "strains": np.asarray([1, 2]),
        "exposure_types": exposure_types,
        "exposure_strains": exposure_strains,
        "exposure_orders": exposure_orders,
        "exposure_primes": exposure_primes,
        "exposure_indices": exposure_indices,
        "cr_inds": np.arange(20, 24),
        "par_type_ind": np.arange(0, 18),
        "order_indices": np.asarray([18, 19]),
        "exposure_i_lengths": np.asarray([0, 1, 3]),
        "par_lengths": np.asarray([0, 9, 18]),
        "cr_lengths": np.asarray([0, 2, 4])
    }
    return pars, table


def main_titre_kinetics_run(settings, results_file):
    times = np.asarray([0.0, 7.0, 14.0, 21.0, 28.0, 36.0, 42.0, 56.0])
    obs_params = settings["obs_params"]
    true_pars, table = build_parameter_table()
    design = ExposureDesign.from_index_arrays(**table, n_pars=len(true_pars))
    print(design)

    seed_sequence = np.random.SeedSequence(settings["seed"])
    rgen = np.random.default_rng(seed_sequence.spawn(1)[0])
    df_data = simulate_titre_data(true_pars, times, design, obs_params, rgen)
    data = order_titre_data(df_data, design)
    posterior = create_posterior_func(times, design, data, obs_params)
    print("Log-likelihood at true parameters:", posterior(true_pars))

    # Fit mu and dp of infections, mu of vaccinations
    fit_indices = np.asarray([0, 1, 9])
    fit_param_names = ["infection " + kinetics_names[0], "infection " + kinetics_names[1],
                       "vaccination " + kinetics_names[0]]
    fit_bounds = [np.asarray([1.0, 0.0, 1.0]), np.asarray([15.0, 1.0, 15.0])]
    base_pars = true_pars.copy()
    cost_args = (fit_indices, base_pars, times, design, data, obs_params)

    p0 = None
    if settings["optimize_start"]:
        p_mid = 0.5 * (fit_bounds[0] + fit_bounds[1])
        p0, best_cost = optimize_start(cost_titre_kinetics, fit_bounds, p_mid,
                                       cost_args=cost_args)
        print("Starting walkers around", p0, "with log-likelihood", best_cost)

    start_t = perf_counter()
    n_failed = parallel_chains_emcee(cost_titre_kinetics, fit_bounds,
        results_file, n_chains=settings["n_chains"], p0=p0,
        nwalkers=settings["nwalkers"], nsamples=settings["nsamples"],
        seed_sequence=seed_sequence, cost_args=cost_args,
        run_kwargs={"thin_by": settings["thin_by"]},
        param_names=fit_param_names)
    delta_t = perf_counter() - start_t
    print("Total run time for MCMC: {:.1f} s, {} failed chains".format(
          delta_t, n_failed))

    # Add the data and true parameters to the results file
    results_obj = h5py.File(results_file, "r+")
    data_group = results_obj.create_group("data")
    dict_to_hdf5(data_group, {"times": times, "titres": data,
                 "true_pars": true_pars, "fit_indices": fit_indices})
    dict_to_hdf5(data_group.create_group("table"), table)
    data_group.attrs["obs_params"] = obs_params
    data_group.attrs["run_time"] = delta_t
    results_obj.close()
    return n_failed


if __name__ == "__main__":
    os.makedirs(os.path.join("..", "results", "mcmc"), exist_ok=True)
    settings_file = os.path.join("..", "results", "mcmc", "mcmc_settings_titre_kinetics.json")
    results_file = os.path.join("..", "results", "mcmc", "mcmc_results_titre_kinetics.h5")
    if os.path.isfile(results_file):
        raise RuntimeError("Existing MCMC results file found at "
                           + results_file + "; delete it first.")
    save_defaults_json(default_mcmc_settings, settings_file)
    settings = load_settings_json(settings_file)
    nice_dict_print(settings)
    main_titre_kinetics_run(settings, results_file)
