import httpx
import streamlit as st
from permem.dashboard import DashboardClient
from permem.exceptions import PermemError
from permem.models import Project


def mask_api_key(api_key: str) -> str:
    """Hide all but the first and last four characters of an API key."""
    if len(api_key) <= 8:
        return "*" * len(api_key)
    return f"{api_key[:4]}{'*' * (len(api_key) - 8)}{api_key[-4:]}"


def render_overview(client: DashboardClient, project: Project) -> None:
    """Render project details, API key management and usage.

    Args:
        client: The DashboardClient instance
        project: The signed-in user's project
    """
    st.header(project.name)

    # API key
    st.subheader("API Key")
    api_key = st.session_state.get("api_key_override", project.api_key)
    reveal = st.toggle("Show key", value=False)
    st.code(api_key if reveal else mask_api_key(api_key), language=None)
    st.caption("Send this key as the x-api-key header, or set PERMEM_API_KEY for the SDK.")

    if st.button("Regenerate key", type="secondary"):
        if st.session_state.get("confirm_regenerate", False):
            try:
                st.session_state.api_key_override = client.regenerate_api_key(project.id)
                st.session_state.confirm_regenerate = False
                st.toast("API key regenerated", icon="")
                st.rerun()
            except (PermemError, httpx.HTTPError) as e:
                st.error(f"Failed to regenerate key: {e}")
        else:
            st.session_state.confirm_regenerate = True
            st.warning("The old key stops working immediately. Click again to confirm.")

    st.divider()

    # Usage
    st.subheader("Usage")
    try:
        stats = client.get_project_stats(project.id)
    except (PermemError, httpx.HTTPError) as e:
        st.error(f"Failed to load stats: {e}")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Memories", stats.memory_count)
    with col2:
        st.metric("Limit", stats.max_memories)

    if stats.max_memories > 0:
        st.progress(min(stats.memory_count / stats.max_memories, 1.0))
