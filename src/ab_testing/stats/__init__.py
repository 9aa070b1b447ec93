"""Bucketing health statistics."""

from .srm import srm_chi_square, check_srm

__all__ = [
    "srm_chi_square",
    "check_srm",
]
