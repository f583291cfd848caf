"""
Run settings stored in JSON files, and dictionaries stored in HDF5 groups.
"""

import os, json

# Default settings of an MCMC fit of a titre panel
default_mcmc_settings = {
    "nwalkers": 32,
    "nsamples": 1000,
    "thin_by": 1,
    "n_chains": 4,
    "obs_params": [0.79, 0.19, 8],
    "seed": None,
    "optimize_start": True
}


# Settings files
def save_defaults_json(di, fpath, overwrite=False):
    """ Save a dictionary to a JSON file, but if the file already exists
    update it with values for keys not already in it, without replacing
    existing values.
    """
    if not os.path.isfile(fpath) or overwrite:
        with open(fpath, "w") as file:
            json.dump(di, file, indent=2)
        di_file = dict(di)
    else:
        with open(fpath, "r") as file:
            di_file = json.load(file)
        for k in di.keys():
            di_file.setdefault(k, di[k])
        with open(fpath, "w") as file:
            json.dump(di_file, file, indent=2)
    return di_file


def load_settings_json(fpath, defaults=default_mcmc_settings):
    """ Settings from a JSON file, with defaults for missing keys. The
    defaults dictionary is not modified. Unknown keys raise a KeyError,
    to catch typos in settings files.
    """
    with open(fpath, "r") as file:
        di_file = json.load(file)
    unknown = [k for k in di_file if k not in defaults]
    if len(unknown) > 0:
        raise KeyError("Unknown settings {} in {}".format(unknown, fpath))
    settings = dict(defaults)
    settings.update(di_file)
    return settings


# HDF5 import and export
def dict_to_hdf5(gp, di):
    """ Store dictionary di values as datasets in hdf5 group gp.
    None values are skipped, since HDF5 cannot store them. """
    for k in di.keys():
        if di[k] is not None:
            gp[k] = di[k]
    return gp


def hdf5_to_dict(gp):
    """ Retrieve datasets of hdf5 group gp into a dictionary"""
    di = {}
    for k in gp:
        di[k] = gp.get(k)[()]
    return di


# Printing functions
def nice_dict_print(di):
    for k in di.keys():
        print(str(k) + ":", di[k])
    return di
