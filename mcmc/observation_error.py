""" Observation error model for ordinal antibody titres.

A measured titre equals the true titre with probability S, lands on one of
the two neighbouring titres with total probability EA (split evenly), and is
otherwise spread uniformly over the remaining titres. The two boundary bins,
0 and MAX_TITRE, absorb half of the adjacent mass and are corrected by the
residual mass of one uniform bin.

October 2026
"""
import warnings
import numpy as np


def obs_error(actual, obs, S, EA, max_titre):
    """ Probability of observing titre obs when the true titre is actual.

    Args:
        actual (float): believed true titre. Floored.
        obs (float): observed titre. Floored.
        S (float): probability of observing the true titre.
        EA (float): probability of a +1 or -1 observation error.
        max_titre (int): maximum observable titre.
    Returns:
        prob (float): nan if actual or obs is nan.
    """
    actual, obs = np.floor(actual), np.floor(obs)
    if np.isnan(actual) or np.isnan(obs):
        return np.nan
    other = (np.float64(1.0)/(max_titre - 2.0))*(1.0 - S - EA)
    if (actual == max_titre and obs == max_titre) or (actual == 0 and obs == 0):
        return S + EA/2.0 - other
    elif actual == obs:
        return S
    elif actual == obs + 1 or actual == obs - 1:
        return EA/2.0
    return other


def obs_error_vector(actual, obs, S, EA, max_titre):
    """ Element-wise obs_error on floored integer arrays actual and obs. """
    other = (np.float64(1.0)/(max_titre - 2.0))*(1.0 - S - EA)
    boundary = ((actual == max_titre) & (obs == max_titre)) | ((actual == 0) & (obs == 0))
    conditions = [boundary, actual == obs, np.abs(actual - obs) == 1]
    choices = [S + EA/2.0 - other, S, EA/2.0]
    return np.select(conditions, choices, default=other)


def obs_likelihood(y, data, params):
    """ Log-likelihood of observed titres given believed true titres.

    Args:
        y (np.ndarray): believed true titres, clamped to [0, MAX_TITRE].
        data (np.ndarray): observed titres. Entries past len(y) are
            ignored; missing entries score as nan.
        params (sequence): S, EA, MAX_TITRE.
    Returns:
        ln (float): sum of log-probabilities. -inf or nan if any
            probability is zero or negative; these are not clamped.
    """
    S, EA, max_titre = params[0], params[1], int(params[2])
    actual = np.floor(np.clip(np.atleast_1d(np.asarray(y, dtype=float)), 0, max_titre))
    obs = np.floor(np.atleast_1d(np.asarray(data, dtype=float)))[:actual.size]
    if obs.size < actual.size:
        obs = np.concatenate([obs, np.full(actual.size - obs.size, np.nan)])
    # log(0) and log(<0) are how infeasible parameters are reported
    with warnings.catch_warnings():
        warnings.simplefilter(action="ignore", category=RuntimeWarning)
        probs = obs_error_vector(actual, obs, S, EA, max_titre)
        probs[np.isnan(actual) | np.isnan(obs)] = np.nan
        ln = np.sum(np.log(probs))
    return float(ln)


def obs_error_matrix(S, EA, max_titre):
    """ Matrix of P(obs | actual), indexed [actual, obs], for titres in
    [0, max_titre]. Each row sums to 1 when max_titre >= 3. """
    titres = np.arange(max_titre + 1)
    return obs_error_vector(titres[:, None], titres[None, :], S, EA, max_titre)


def sample_observed_titres(y, params, rng):
    """ Draw noisy observed titres given believed true titres y.

    Args:
        y (np.ndarray): believed true titres, clamped and floored.
        params (sequence): S, EA, MAX_TITRE.
        rng (np.random.Generator): random generator.
    Returns:
        obs (np.ndarray): integer observed titres, same shape as y.
    """
    S, EA, max_titre = params[0], params[1], int(params[2])
    actual = np.floor(np.clip(np.asarray(y, dtype=float), 0, max_titre)).astype(int)
    cumul = np.cumsum(obs_error_matrix(S, EA, max_titre), axis=1)
    # Inverse transform sampling on each row of the error matrix
    u = rng.random(size=actual.shape)
    obs = np.sum(u[..., None] > cumul[actual], axis=-1)
    return np.minimum(obs, max_titre)
