# -*- coding:utf-8 -*-
""" Module containing the single-exposure antibody kinetics model: a
piecewise-linear boost, partial decline and slow waning of titres after one
exposure, scaled by cross-reactivity, priming and the exposure order."""
import numpy as np

# Names of the kinetics parameters of one exposure type, in the order they
# appear in the parameter vector, then of the four exposure-specific scalars
# appended by the likelihood engine.
kinetics_names = ["mu", "dp", "tp", "ts", "m", "sigma", "beta", "c", "lower_bound"]
exposure_names = ["primed", "mod", "x", "t_i"]
n_exposure_pars = len(exposure_names)


def calculate_x(y, m):
    """ Antigenic distance giving a proportion y of cross-reactivity
    when cross-reactivity decays as exp(-m x). """
    return -np.log(y) / m


def split_exposure_pars(full_pars):
    """ Separate the kinetics block from the exposure scalars.

    Returns:
        kinetics (np.ndarray), primed, mod, x, t_i (floats)
    """
    full_pars = np.asarray(full_pars, dtype=float)
    kinetics = full_pars[:-n_exposure_pars]
    primed, mod, x, t_i = full_pars[-n_exposure_pars:]
    return kinetics, primed, mod, x, t_i


def boost_height(kinetics, primed, mod, x, log_sigma=True):
    """ Peak boost mu after cross-reactivity, order and priming modifiers.

    Args:
        kinetics (np.ndarray): mu, dp, tp, ts, m, sigma, beta, c, lower_bound
        primed (float): 1 if the exposure was primed, else 0
        mod (float): modifier for the order of this exposure
        x (float): antigenic distance between exposure and measured strains
        log_sigma (bool): if True, sigma and beta are on the natural log scale
    """
    mu, sigma, beta, c = kinetics[0], kinetics[5], kinetics[6], kinetics[7]
    if log_sigma:
        sigma, beta = np.exp(sigma), np.exp(beta)
    cr = np.exp(-sigma*x)
    prime_cr = c*np.exp(-beta*x)*primed
    return mu*cr*mod + prime_cr


def model_trajectory(full_pars, times, log_sigma=True):
    """ Titre trajectory for a single exposure event.

    Titres are zero until the exposure time t_i, rise linearly to the boost
    mu over tp days, lose a fraction dp of it linearly over ts days, then
    wane at rate m. Titres never drop below lower_bound. The boost does not
    depend on titres left by earlier exposures, so trajectories of several
    exposures add up.

    Args:
        full_pars (np.ndarray): kinetics parameters (see kinetics_names)
            followed by primed, mod, x, t_i.
        times (np.ndarray): times at which to evaluate titres.
        log_sigma (bool): passed to boost_height.
    Returns:
        y (np.ndarray): titres, same length as times.
    """
    kinetics, primed, mod, x, t_i = split_exposure_pars(full_pars)
    dp, tp, ts, m, lower_bound = kinetics[1], kinetics[2], kinetics[3], kinetics[4], kinetics[8]
    mu = boost_height(kinetics, primed, mod, x, log_sigma=log_sigma)

    t = np.asarray(times, dtype=float)
    conditions = [t <= t_i, t <= t_i + tp, t <= t_i + tp + ts]
    choices = [
        np.zeros(t.shape),
        (mu/tp)*(t - t_i),
        -(dp*mu/ts)*t + (mu*dp/ts)*(t_i + tp) + mu
    ]
    waning = -m*t + m*(t_i + tp + ts) + (1.0 - dp)*mu
    y = np.select(conditions, choices, default=waning)
    return np.maximum(y, lower_bound)
