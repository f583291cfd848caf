"""
Module with a wrapper around emcee's MCMC sampler that allows it to be
called with a cost function requiring extra arguments, and a main function
launching independent MCMC chains in parallel, saving them to one
HDF5 file.

Cost functions take the vector of fitted parameters and the parameter
bounds as first two arguments: cost(pvec, pbounds, *args, **kwargs).

October 2026
"""
import numpy as np
import emcee
import h5py
from scipy import optimize

# Multiprocessing modules
import multiprocessing
from utils.cpu_affinity import count_parallel_cpu


### RandomState from modern BitGenerator ###
def randomstate_from_rng(rng):
    """ Given a random generator of our choice, initialize a legacy
    Mersenne Twister RandomState, for compatibility with emcee,
    then return its state, to set the state of emcee's RandomState.

    Args:
        rng (np.random.Generator): any np.random.Generator

    Returns:
        tuple or dict: a suitable argument for RandomState.set_state
    """
    # Seed has to be <2**32-1 = 32 bits = 4 bytes
    seed = int.from_bytes(rng.bytes(4), "little")
    rs = np.random.mtrand.RandomState(seed)
    return rs.get_state()


def initial_walkers(pbounds, nwalkers, rgen, center=None, spread=0.05):
    """ Initial walker positions. Uniform in the central 90 % of the bounds,
    or, if center is given, uniform in a box of relative size spread
    around center, clipped to the bounds.
    """
    ndim = len(pbounds[0])
    extents = (pbounds[1] - pbounds[0]).reshape(1, -1)
    if center is None:
        p0 = 0.9 * extents * rgen.random(size=(nwalkers, ndim))
        p0 = p0 + 0.05*extents + pbounds[0]
    else:
        p0 = center.reshape(1, -1) + spread*extents*(rgen.random(size=(nwalkers, ndim)) - 0.5)
        p0 = np.clip(p0, pbounds[0], pbounds[1])
    return p0


### OPTIMIZATION ###
def optimize_start(cost, pbounds, p0, cost_args=(), cost_kwargs={}, maxiter=2000):
    """ Maximize cost with Nelder-Mead within the bounds, to center walkers.

    Returns:
        pbest (np.ndarray): best parameters found
        best_cost (float): cost at pbest
    """
    def neg_cost(p):
        c = cost(p, pbounds, *cost_args, **cost_kwargs)
        # Nelder-Mead copes with inf but not with nan
        return np.inf if not np.isfinite(c) else -c

    bnds = list(zip(pbounds[0], pbounds[1]))
    res = optimize.minimize(neg_cost, np.asarray(p0, dtype=float),
                method="Nelder-Mead", bounds=bnds, options={"maxiter": maxiter})
    pbest = np.clip(res.x, pbounds[0], pbounds[1])
    return pbest, cost(pbest, pbounds, *cost_args, **cost_kwargs)


### MCMC RUN FUNCTIONS ###
def run_emcee(cost, pbounds, p0=None, nwalkers=32, nsamples=1000,
            cost_args=(), cost_kwargs={}, run_id=None, rgen=None,
            emcee_kwargs={}, run_kwargs={}):
    """
    cost: should take pvec, pbounds as first two arguments.
        Call signature: cost(pvec, pbounds, *args, **kwargs)
    p0: initial walker positions, shaped [nwalkers, ndim]. Sampled
        uniformly within pbounds if None.
    Returns the chain [sample, walker, var], log-probabilities
        [sample, walker], acceptance fractions and run_id.
    """
    if rgen is None:
        rgen = np.random.default_rng()
    if p0 is None:
        p0 = initial_walkers(pbounds, nwalkers, rgen)
    ndim = p0.shape[1]

    # Make sure to pass a RandomState state, not any other kind of
    # random generator: emcee fails silently otherwise
    state_init = emcee.State(p0, random_state=randomstate_from_rng(rgen))

    # Copy kwargs instead of popping keys, to avoid side effects
    # in multiprocessing.
    emcee_kwargs = {k: v for k, v in emcee_kwargs.items()
                    if k not in ("args", "kwargs", "nwalkers")}
    run_kwargs = {k: v for k, v in run_kwargs.items()
                    if k not in ("nsamples", "rstate0")}
    run_kwargs.setdefault("progress", False)

    sampler = emcee.EnsembleSampler(
        nwalkers, ndim, cost, args=(pbounds,) + tuple(cost_args),
        kwargs=cost_kwargs, **emcee_kwargs
    )
    sampler.run_mcmc(state_init, nsamples, **run_kwargs)

    return (sampler.get_chain(), sampler.get_log_prob(),
            sampler.acceptance_fraction, run_id)


def parallel_chains_emcee(cost, pbounds, results_fname, n_chains=4,
        p0=None, nwalkers=32, nsamples=1000, seed_sequence=None, cost_args=(),
        cost_kwargs={}, emcee_kwargs={}, run_kwargs={}, verbose=True, **kwds):
    """ Run n_chains independent emcee ensembles with spawned seeds in a
    multiprocessing Pool. Samples are stored in results_fname under
    samples/<chain> indexed [var, walker, sample], log-probabilities under
    cost/<chain> indexed [walker, sample].

    cost: should take pvec, pbounds as first two arguments.
    p0: center of the initial walkers, or None to spread them in pbounds.
    kwds: param_names (list of str) saved as metadata.
    """
    results_file = h5py.File(results_fname, "w")
    samples_group = results_file.create_group("samples")
    cost_group = results_file.create_group("cost")

    param_names = kwds.get("param_names",
                    ["p_{}".format(i) for i in range(len(pbounds[0]))])
    samples_group.attrs["param_names"] = param_names
    samples_group.attrs["param_bounds"] = np.asarray(pbounds)
    samples_group.attrs["p0"] = p0 if p0 is not None else []
    for g in [samples_group, cost_group]:
        g.attrs["n_walkers"] = nwalkers
        g.attrs["n_samples"] = nsamples
        g.attrs["n_chains"] = n_chains

    # Only the main process writes to the HDF5 file, through this callback
    def callback(result):
        samples, costs, acpt, run_id = result
        # get_chain() returns [sample, walker, var], store [var, walker, sample]
        samples = np.moveaxis(samples, source=[0, 2], destination=[2, 0])
        costs = np.moveaxis(costs, source=1, destination=0)
        dset = samples_group.create_dataset(str(run_id), data=samples)
        cost_group.create_dataset(str(run_id), data=costs)
        dset.attrs["run_id"] = run_id
        dset.attrs["acceptance_fraction"] = acpt
        if verbose:
            print("Finished chain {}, mean acceptance {:.3f}".format(
                  run_id, np.mean(acpt)))
        return run_id

    def error_callback(excep):
        print()
        print(excep)
        print()
        return -1

    # The file is closed even if seeding or the pool fails
    try:
        if seed_sequence is None:
            seed_sequence = np.random.SeedSequence()
        seeds = seed_sequence.spawn(n_chains)

        pool = multiprocessing.Pool(min(count_parallel_cpu(), n_chains))
        try:
            all_returns = []
            for chain in range(n_chains):
                rgen_loc = np.random.default_rng(seeds[chain])
                p0_loc = initial_walkers(pbounds, nwalkers, rgen_loc,
                            center=None if p0 is None else np.asarray(p0))
                apply_kw = {"p0": p0_loc, "nwalkers": nwalkers, "nsamples": nsamples,
                    "cost_args": cost_args, "cost_kwargs": cost_kwargs,
                    "rgen": rgen_loc, "emcee_kwargs": emcee_kwargs,
                    "run_kwargs": run_kwargs, "run_id": chain}
                ret = pool.apply_async(run_emcee, args=(cost, pbounds), kwds=apply_kw,
                    callback=callback, error_callback=error_callback)
                all_returns.append(ret)

            n_failed = 0
            for p in all_returns:
                try:
                    p.get()
                # Already printed by error_callback
                except Exception:
                    n_failed += 1
        finally:
            pool.close()
            pool.join()
    finally:
        results_file.close()

    return n_failed
