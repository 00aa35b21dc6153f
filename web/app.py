"""Permem Dashboard - Streamlit UI for API keys, memories and the memory graph."""

import os
import streamlit as st

# Add parent directory to path for imports
import sys
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from permem.dashboard import DashboardClient
from web.components.sidebar import render_sidebar
from web.components.overview import render_overview
from web.components.memory_list import render_memory_list
from web.components.graph import render_graph


def init_dashboard_client() -> DashboardClient:
    """Initialize the dashboard client, storing it in session state.

    Returns:
        The DashboardClient instance
    """
    if "dashboard_client" not in st.session_state:
        st.session_state.dashboard_client = DashboardClient()

    return st.session_state.dashboard_client


def main() -> None:
    """Main application entry point."""
    st.set_page_config(
        page_title="Permem Dashboard",
        page_icon="",
        layout="wide",
        initial_sidebar_state="expanded",
    )

    client = init_dashboard_client()

    page, account = render_sidebar(client)

    if account is None:
        st.title("Permem")
        st.write("Persistent memory for AI. Sign in from the sidebar to manage your project.")
        return

    if account.project is None:
        st.warning("This account has no project yet.")
        return

    if page == "Overview":
        render_overview(client, account.project)
    elif page == "Memories":
        render_memory_list(client, account.project)
    elif page == "Graph":
        render_graph(client, account.project)


if __name__ == "__main__":
    main()
