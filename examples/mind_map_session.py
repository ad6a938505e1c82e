"""Example session: grow a small mind map, edit it, and let the layout settle."""

import numpy as np

from forcegraph import GraphEditor


def main() -> None:
    editor = GraphEditor(rng=np.random.default_rng(42), default_owner="topic")
    root = editor.default_node

    ideas = [editor.add_child(root, owner=f"idea {i}") for i in range(3)]
    details = [editor.add_child(ideas[0], owner=f"detail {i}") for i in range(2)]
    side = editor.add_external_node(owner="side note", x=300.0, y=0.0)
    editor.add_child(side, owner="aside")

    ticks = editor.run_until_idle()
    print(f"Settled after {ticks} ticks across {editor.graph.component_count()} components")

    bridge = editor.insert_between(ideas[0], details[0], owner="bridge")
    print(f"Inserted {editor.graph.get(bridge).owner!r}; removing it would take "
          f"{editor.deletion_count(bridge)} node(s)")

    editor.snip(bridge)
    editor.delete_subtree(ideas[1])
    editor.run_until_idle()

    for handle in editor.graph.nodes():
        data = editor.graph.get(handle)
        print(f"{data.owner:>10}: ({data.x:8.2f}, {data.y:8.2f}) anchor={data.is_anchor}")


if __name__ == "__main__":
    main()
