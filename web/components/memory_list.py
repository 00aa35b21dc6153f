import httpx
import streamlit as st
from permem.dashboard import DashboardClient
from permem.exceptions import PermemError
from permem.models import Project, ProjectMemory
from web.components.memory_card import render_memory_card


def render_memory_list(client: DashboardClient, project: Project) -> None:
    """Render the memory browser/list.

    Args:
        client: The DashboardClient instance
        project: The project whose memories are listed
    """
    st.header("Memories")

    # Pagination state
    if "page" not in st.session_state:
        st.session_state.page = 0

    page_size = 10

    col1, col2, col3 = st.columns([2, 1, 1])

    with col1:
        user_id_filter = st.text_input(
            "Filter by User ID",
            placeholder="Enter userId...",
            label_visibility="collapsed",
        )

    with col2:
        limit = st.selectbox("Load", options=[50, 100, 200], index=0, label_visibility="collapsed")

    with col3:
        if st.button("Refresh", use_container_width=True):
            st.rerun()

    try:
        memories = client.get_project_memories(project.id, limit=limit)
    except (PermemError, httpx.HTTPError) as e:
        st.error(f"Failed to load memories: {e}")
        return

    if user_id_filter:
        memories = [m for m in memories if m.user_id == user_id_filter]

    if not memories:
        st.info("No memories found." + (" Try removing the user filter." if user_id_filter else ""))
        return

    # Pagination
    total_pages = (len(memories) + page_size - 1) // page_size
    st.session_state.page = min(st.session_state.page, total_pages - 1)
    start_idx = st.session_state.page * page_size
    end_idx = min(start_idx + page_size, len(memories))

    st.caption(f"Showing {start_idx + 1}-{end_idx} of {len(memories)} memories")

    for memory in memories[start_idx:end_idx]:
        render_memory_item(memory)

    # Pagination controls
    st.divider()
    col1, col2, col3 = st.columns([1, 2, 1])

    with col1:
        if st.button("Previous", disabled=st.session_state.page == 0):
            st.session_state.page -= 1
            st.rerun()

    with col2:
        st.caption(f"Page {st.session_state.page + 1} of {total_pages}")

    with col3:
        if st.button("Next", disabled=st.session_state.page >= total_pages - 1):
            st.session_state.page += 1
            st.rerun()


def render_memory_item(memory: ProjectMemory) -> None:
    """Render a single memory item in the list.

    Args:
        memory: The memory to render
    """
    with st.container(border=True):
        col1, col2 = st.columns([4, 1])

        with col1:
            badges = []
            if memory.type:
                badges.append(f"Type: {memory.type}")
            if memory.importance:
                badges.append(f"Importance: {memory.importance}")
            badges.append(f"User: {memory.user_id}")
            if memory.created_at:
                badges.append(f"Created: {memory.created_at:%Y-%m-%d}")
            st.caption(" | ".join(badges))

        with col2:
            if st.button("View", key=f"view_{memory.id}", use_container_width=True):
                st.session_state[f"expanded_{memory.id}"] = True

        # Summary preview
        preview = memory.summary[:150] + "..." if len(memory.summary) > 150 else memory.summary
        st.write(preview)

        # Expanded view
        if st.session_state.get(f"expanded_{memory.id}", False):
            st.divider()
            render_memory_card(memory)
            if st.button("Close", key=f"close_{memory.id}"):
                st.session_state[f"expanded_{memory.id}"] = False
                st.rerun()
