from web.components.sidebar import render_sidebar
from web.components.overview import render_overview
from web.components.memory_list import render_memory_list
from web.components.memory_card import render_memory_card
from web.components.graph import render_graph

__all__ = [
    "render_sidebar",
    "render_overview",
    "render_memory_list",
    "render_memory_card",
    "render_graph",
]
