"""
A/B Test Debug Panel.

Streamlit app for developers to:
- View all active experiments and current assignments
- Force specific variants for testing
- Reset all assignments
- Simulate the configured split for an experiment

Run with: streamlit run apps/ab_debug_panel.py
"""

import sys
from datetime import datetime
from pathlib import Path
from urllib.parse import urlencode

# Add project root
ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(ROOT))

import streamlit as st

from src.ab_testing import ABTestingClient, run_split_simulation

st.set_page_config(page_title="A/B Test Debug", page_icon="🧪", layout="wide")


def get_client() -> ABTestingClient:
    """One client per browser session so every widget sees the same assignments."""
    if "ab_client" not in st.session_state:
        client = ABTestingClient.from_settings()
        # ?ab_debug=exp:variant forces variants without opening the panel
        debug_value = st.query_params.get(client.overrides.debug_param)
        if debug_value:
            client.apply_url_overrides(f"{client.overrides.debug_param}={debug_value}")
        st.session_state["ab_client"] = client
    return st.session_state["ab_client"]


def main():
    client = get_client()
    # Hidden unless AB_TESTING_DEBUG_PANEL is set or the URL carries ?ab_panel
    if not client.overrides.panel_requested(urlencode(st.query_params.to_dict())):
        st.info(f"Debug panel disabled. Add ?{client.store.settings.panel_param} to the URL to open it.")
        return

    st.title("🧪 A/B Test Debug")
    st.caption(f"Subject: `{client.store.subject_id}`")
    if not client.store.is_persistent:
        st.warning("Storage unavailable: assignments are kept in memory only.")

    tab1, tab2 = st.tabs(["Assignments", "Simulate"])

    with tab1:
        experiments = client.list_experiments()
        if not experiments:
            st.info("No experiments configured")
        assignments = client.get_all_assignments()
        for experiment in experiments:
            current = assignments.get(experiment.id)
            st.subheader(experiment.id)
            if current:
                assigned = datetime.fromtimestamp(current.assigned_at / 1000)
                st.write(f"Current: **{current.variant_id}** (assigned {assigned:%Y-%m-%d %H:%M:%S})")
            else:
                st.write("Not assigned")

            cols = st.columns(len(experiment.variants))
            for col, variant in zip(cols, experiment.variants):
                pct = client.get_variant_percentage(experiment.id, variant.id)
                label = f"{variant.id} ({pct}%)"
                if col.button(label, key=f"force-{experiment.id}-{variant.id}"):
                    client.force_variant(experiment.id, variant.id)
                    st.rerun()

        st.divider()
        if st.button("Clear All Assignments"):
            client.clear_assignments()
            st.rerun()
        st.caption(f"Use `?{client.overrides.debug_param}=exp:variant` to force variants via URL")
        st.dataframe(client.debug_state(), use_container_width=True)

    with tab2:
        ids = [e.id for e in client.list_experiments()]
        sel = st.selectbox("Experiment", ids) if ids else None
        n = st.number_input("Synthetic subjects", 100, 200000, 10000, 100)
        if sel and st.button("Run Simulation"):
            with st.spinner("Bucketing..."):
                try:
                    res = run_split_simulation(client.registry, sel, n_subjects=int(n))
                    st.metric("SRM", "✓ Pass" if res["srm_passed"] else "✗ Fail")
                    st.json(res)
                except Exception as e:
                    st.error(str(e))


if __name__ == "__main__":
    main()
