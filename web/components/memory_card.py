import streamlit as st
from permem.models import IMPORTANCE_LEVELS, ProjectMemory


IMPORTANCE_COLORS = dict(zip(IMPORTANCE_LEVELS, ("gray", "blue", "green", "orange", "red")))


def render_memory_card(memory: ProjectMemory) -> None:
    """Render the full details of a memory.

    Memories are read-only on the dashboard; they are created and changed
    by the Permem server.

    Args:
        memory: The memory to render
    """
    st.caption(f"ID: {memory.id}")

    st.subheader("Summary")
    st.write(memory.summary)

    col1, col2, col3 = st.columns(3)

    with col1:
        st.caption("Type")
        st.write(memory.type or "-")

    with col2:
        st.caption("Importance")
        if memory.importance:
            color = IMPORTANCE_COLORS.get(memory.importance, "gray")
            st.markdown(f":{color}[{memory.importance}]")
        else:
            st.write("-")

    with col3:
        st.caption("Score")
        st.write(f"{memory.importance_score:.2f}" if memory.importance_score is not None else "-")

    if memory.topics:
        st.caption("Topics")
        st.write(", ".join(memory.topics))

    # Raw record
    with st.expander("Raw"):
        st.json(memory.model_dump(mode="json", by_alias=True))
