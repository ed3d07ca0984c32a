# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""GraphViz .dot rendering of a built type graph.

Node styles:
- standard types: yellow boxes
- interfaces: cyan diamonds
- annotations: magenta ovals

Edge styles:
- class -> superclass: plain arrow
- class -> implemented interface: open diamond (odiamond)
- interface -> superinterface: filled diamond
- annotation -> meta-annotation: filled dot
- annotated entity -> annotation: open dot (odot)
"""

from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from .dag_node import DAGNode
    from .graph_builder import ClassGraphBuilder

STANDARD_NODE_STYLE = 'node[shape=box,style=filled,fillcolor="#eeeeaa"];'
INTERFACE_NODE_STYLE = 'node[shape=diamond,style=filled,fillcolor="#aaeeee"];'
ANNOTATION_NODE_STYLE = 'node[shape=oval,style=filled,fillcolor="#eeaaee"];'


def label(name: str) -> str:
    """Quoted node label with the package and simple name on separate lines."""
    escaped = name.replace("\\", "\\\\").replace('"', '\\"')
    dot_idx = escaped.rfind(".")
    if dot_idx >= 0:
        escaped = escaped[: dot_idx + 1] + "\\n" + escaped[dot_idx + 1 :]
    return f'"{escaped}"'


def _edge(source: str, target: str, arrowhead: str = "") -> str:
    line = f"  {label(source)} -> {label(target)}"
    if arrowhead:
        line += f" [arrowhead={arrowhead}]"
    return line


def _node_lines(style: str, nodes: Tuple["DAGNode", ...]) -> List[str]:
    return ["", style] + [f"  {label(node.name)}" for node in nodes]


def generate_class_graph_dot(
    builder: "ClassGraphBuilder", size: int = 400, layout: str = "neato"
) -> str:
    """Generate a .dot document for layout and visualization with GraphViz.

    Args:
        builder: Built type graph.
        size: Drawing size in inches (both dimensions).
        layout: GraphViz layout engine name.

    Returns:
        The digraph source text.
    """
    lines = [
        "digraph {",
        f'size="{size},{size}";',
        f"layout={layout};",
        "overlap=false;",
        "splines=true;",
        "pack=true;",
        'start="random";',
        "sep=0.1;",
        "edge[len=2];",
    ]

    lines += _node_lines(STANDARD_NODE_STYLE, builder.standard_class_nodes)
    lines += _node_lines(INTERFACE_NODE_STYLE, builder.interface_nodes)
    lines += _node_lines(ANNOTATION_NODE_STYLE, builder.annotation_nodes)

    lines.append("")
    for class_node in builder.standard_class_nodes:
        for superclass_name in class_node.direct_parents:
            lines.append(_edge(class_node.name, superclass_name))
        for interface_name in class_node.cross_links:
            lines.append(_edge(class_node.name, interface_name, "odiamond"))
    for interface_node in builder.interface_nodes:
        for superinterface_name in interface_node.direct_parents:
            lines.append(_edge(interface_node.name, superinterface_name, "diamond"))
    for annotation_node in builder.annotation_nodes:
        for meta_annotation_name in annotation_node.direct_parents:
            lines.append(_edge(annotation_node.name, meta_annotation_name, "dot"))
        for annotated_name in annotation_node.cross_links:
            lines.append(_edge(annotated_name, annotation_node.name, "odot"))

    lines.append("}")
    return "\n".join(lines)
