#!/usr/bin/env python3
"""
Run the split demo: simulate bucketing for every registered experiment and
report observed vs configured shares with an SRM check.
"""

import logging
import sys
from pathlib import Path

ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))


def main():
    logging.basicConfig(level=logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    from src.ab_testing import default_registry, run_split_simulation

    registry = default_registry()
    failed = 0
    for experiment in registry.list():
        res = run_split_simulation(registry, experiment.id, n_subjects=10000)
        print(f"{experiment.id}: SRM {'pass' if res['srm_passed'] else 'FAIL'} (p={res['p_value']:.3f})")
        for variant_id, frac in res["configured"].items():
            obs = res["observed"].get(variant_id, 0.0)
            print(f"   - {variant_id}: configured {frac*100:5.1f}%  observed {obs*100:5.1f}%")
        failed += 0 if res["srm_passed"] else 1

    if failed:
        print(f"\n[FAIL] {failed} experiment(s) show sample ratio mismatch")
        sys.exit(1)
    print("\n[OK] All experiments split as configured.")


if __name__ == "__main__":
    main()
