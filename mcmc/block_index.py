""" Decoding of the run-length offset arrays that describe how the flat
parameter table splits into groups of exposures, kinetics parameter blocks
per exposure type and cross-reactivity blocks per measured strain.

Offsets have prefix-sum semantics: block i of a companion array is
values[lengths[i]:lengths[i+1]].

October 2026
"""
import numpy as np


def block_range(lengths, i):
    """ Half-open range [A, B) of block i. No bounds checking. """
    return lengths[i], lengths[i+1]


def block(values, lengths, i):
    """ Slice of values belonging to block i of the offsets lengths. """
    a, b = block_range(lengths, i)
    return values[a:b]


def check_block_lengths(lengths, n_values, name="lengths"):
    """ Validate an offset array once, before it is used in evaluations.

    Args:
        lengths (array-like of ints): offsets, one more than the number of
            categories.
        n_values (int): length of the companion array being indexed.
        name (str): name of the array, for error messages.
    Returns:
        lengths (np.ndarray): offsets as an integer array.
    """
    lengths = np.asarray(lengths, dtype=int)
    if lengths.ndim != 1 or lengths.size < 2:
        raise ValueError("{} should be a 1D array of at least 2 offsets; "
                         "got shape {}".format(name, lengths.shape))
    if np.any(np.diff(lengths) < 0):
        raise ValueError("{} should be non-decreasing: {}".format(name, lengths))
    if lengths[0] < 0 or lengths[-1] > n_values:
        raise ValueError("{} = {} index outside of an array of length {}".format(
                         name, lengths, n_values))
    return lengths
