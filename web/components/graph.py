import httpx
import streamlit as st
from permem.dashboard import DashboardClient
from permem.exceptions import PermemError
from permem.models import MEMORY_TYPES, GraphData, Project


NODE_COLORS = dict(zip(MEMORY_TYPES, (
    "#f97316",
    "#3b82f6",
    "#a855f7",
    "#22c55e",
    "#94a3b8",
    "#eab308",
    "#06b6d4",
    "#ef4444",
    "#ec4899",
    "#f43f5e",
)))


def _quote(text: str) -> str:
    return '"' + text.replace("\\", "\\\\").replace('"', '\\"') + '"'


def to_dot(graph: GraphData, max_label: int = 40) -> str:
    """Render graph data as a Graphviz DOT document.

    Node size follows importance and edge width follows strength.

    Args:
        graph: Nodes and edges from the graph endpoint
        max_label: Labels longer than this are truncated

    Returns:
        DOT source
    """
    lines = [
        "graph memories {",
        "  layout=neato; overlap=false; splines=true;",
        '  node [shape=circle, style=filled, fontsize=9, fontname="Helvetica"];',
    ]

    for node in graph.nodes:
        label = node.label if len(node.label) <= max_label else node.label[: max_label - 3] + "..."
        size = 0.3 + max(node.importance, 0.0) * 0.7
        color = NODE_COLORS.get(node.type, "#94a3b8")
        lines.append(
            f"  {_quote(node.id)} [label={_quote(label)}, width={size:.2f}, "
            f'fillcolor="{color}", tooltip={_quote(node.label)}];'
        )

    node_ids = {node.id for node in graph.nodes}
    for edge in graph.edges:
        if edge.source not in node_ids or edge.target not in node_ids:
            continue
        width = 0.5 + max(edge.strength, 0.0) * 2.5
        lines.append(
            f"  {_quote(edge.source)} -- {_quote(edge.target)} "
            f"[penwidth={width:.2f}, tooltip={_quote(edge.type)}];"
        )

    lines.append("}")
    return "\n".join(lines)


def render_graph(client: DashboardClient, project: Project) -> None:
    """Render the memory graph view.

    Args:
        client: The DashboardClient instance
        project: The project whose graph is shown
    """
    st.header("Memory Graph")

    user_id = st.text_input(
        "User ID",
        placeholder="All users",
        help="Show the graph of a single user",
    )

    try:
        graph = client.get_graph(project.id, user_id=user_id or None)
    except (PermemError, httpx.HTTPError) as e:
        st.error(f"Failed to load graph: {e}")
        return

    col1, col2 = st.columns(2)
    with col1:
        st.metric("Memories", len(graph.nodes))
    with col2:
        st.metric("Connections", len(graph.edges))

    if not graph.nodes:
        st.info("No memories to show yet.")
        return

    st.graphviz_chart(to_dot(graph), use_container_width=True)

    with st.expander("Legend"):
        for memory_type, color in NODE_COLORS.items():
            st.markdown(f'<span style="color:{color}">&#9679;</span> {memory_type}', unsafe_allow_html=True)
