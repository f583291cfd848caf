""" Number of multiprocessing workers that can run MCMC chains in parallel.

On Linux, use the CPUs this process is allowed to run on; elsewhere
cpu_affinity isn't available, use the number of physical CPUs.
"""
from sys import platform as sys_pf
import psutil


def count_parallel_cpu(reserve=0):
    """
    Number of processes we can run on separate CPUs, leaving reserve CPUs
    free for the main process. Always at least 1.
    """
    if sys_pf == "linux":
        n_cpu = len(psutil.Process().cpu_affinity())
    else:
        n_cpu = psutil.cpu_count(logical=False) or 1
    return max(1, n_cpu - reserve)
