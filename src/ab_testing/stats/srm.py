"""
Sample Ratio Mismatch (SRM) chi-square test.

Detects if the observed variant split deviates significantly from the
configured weights, e.g. after a bucketing or storage regression.
"""

from typing import Dict, Tuple

import numpy as np
from scipy import stats


def srm_chi_square(
    observed_counts: Dict[str, int],
    expected_fracs: Dict[str, float],
) -> Tuple[float, float]:
    """
    Chi-square goodness-of-fit test for sample ratio mismatch.

    H0: observed split equals the configured split
    H1: observed split differs from the configured split

    Args:
        observed_counts: Subjects per variant
        expected_fracs: Configured fraction per variant (sums to 1)

    Returns:
        Tuple of (chi2_statistic, p_value)
    """
    variants = [v for v, frac in expected_fracs.items() if frac > 0]
    # Subjects landing in a zero-weight or unknown variant are a mismatch by definition
    if any(c > 0 for v, c in observed_counts.items() if v not in variants):
        return float("inf"), 0.0

    observed = np.array([observed_counts.get(v, 0) for v in variants], dtype=float)
    n_total = observed.sum()
    if n_total == 0 or len(variants) < 2:
        return 0.0, 1.0

    expected = np.array([expected_fracs[v] for v in variants], dtype=float)
    expected = expected / expected.sum() * n_total

    chi2 = float(np.sum((observed - expected) ** 2 / expected))
    p_value = float(stats.chi2.sf(chi2, df=len(variants) - 1))
    return chi2, p_value


def check_srm(
    observed_counts: Dict[str, int],
    expected_fracs: Dict[str, float],
    alpha: float = 0.01,
) -> Tuple[bool, float, float]:
    """
    Check for sample ratio mismatch.

    Args:
        observed_counts: Subjects per variant
        expected_fracs: Configured fraction per variant
        alpha: Significance threshold (default 0.01)

    Returns:
        Tuple of (srm_passed, chi2_statistic, p_value)
    """
    chi2, p_value = srm_chi_square(observed_counts, expected_fracs)
    srm_passed = p_value >= alpha
    return srm_passed, chi2, p_value
