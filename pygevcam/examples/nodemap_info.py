"""
NodeMapInfo walks the node maps of each camera and prints every node

Starting from the Root category of the transport layer device, stream and
GenICam node maps, categories are printed with their features indented one
level below them. nodemap_info.read_type chooses how values are read:
"value" renders every node through its string value, "individual" uses the
accessor of each node type. If nodemap_info.dump names a toml, yaml or json
file the GenICam tree is also written to it.
"""

from pathlib import Path

from pygevcam import save_config
from pygevcam.api.errors import CameraError
from pygevcam.api.nodes import NodeType, get_features, is_readable
from pygevcam.examples import common

VALUE = "value"
INDIVIDUAL = "individual"

MAX_CHARS = 35


def indent(level):
    return "    "*level


def truncate(text):
    text = str(text)
    return text[:MAX_CHARS] + "..." if len(text) > MAX_CHARS else text


def print_value_node(node, level):
    print(f"{indent(level)}{node.display_name}: {truncate(node.to_string())}")


def print_string_node(node, level):
    print(f"{indent(level)}{node.display_name}: {truncate(node.get_value())}")


def print_integer_node(node, level):
    print(f"{indent(level)}{node.display_name}: {node.get_value()}")


def print_float_node(node, level):
    print(f"{indent(level)}{node.display_name}: {node.get_value()}")


def print_boolean_node(node, level):
    print(f"{indent(level)}{node.display_name}: {'true' if node.get_value() else 'false'}")


def print_command_node(node, level):
    """Commands have no value, their tooltip is printed instead"""
    print(f"{indent(level)}{node.display_name}: {truncate(node.tooltip)}")


def print_enumeration_node(node, level):
    entry = node.get_current_entry()
    print(f"{indent(level)}{node.display_name}: {entry.symbolic}")


def print_register_node(node, level):
    print(f"{indent(level)}{node.display_name}: <{node.get_length()} bytes>")


INDIVIDUAL_READERS = {
    NodeType.String: print_string_node,
    NodeType.Integer: print_integer_node,
    NodeType.Float: print_float_node,
    NodeType.Boolean: print_boolean_node,
    NodeType.Enumeration: print_enumeration_node,
    NodeType.Register: print_register_node,
}


def print_category_node_and_all_features(node, level, read_type=VALUE) -> bool:
    result = True
    print(f"{indent(level)}{node.display_name}")
    for feature in node.get_features():
        if not feature.is_available():
            continue
        try:
            if feature.node_type == NodeType.Category:
                result &= print_category_node_and_all_features(feature, level + 1, read_type)
            elif feature.node_type == NodeType.Command:
                print_command_node(feature, level + 1)
            elif not is_readable(feature):
                continue
            elif read_type == INDIVIDUAL and feature.node_type in INDIVIDUAL_READERS:
                INDIVIDUAL_READERS[feature.node_type](feature, level + 1)
            elif feature.node_type == NodeType.Enumeration:
                print_enumeration_node(feature, level + 1)
            elif feature.node_type == NodeType.Register:
                print_register_node(feature, level + 1)
            else:
                print_value_node(feature, level + 1)
        except CameraError as e:
            print(f"Error: {e}")
            result = False
    print()
    return result


def print_nodemap(title, nodemap, read_type) -> bool:
    print(f"\n*** PRINTING {title} ***\n")
    root = nodemap.get_node("Root")
    if not is_readable(root):
        print(f"Unable to find the Root category of the {title.lower()}\n")
        return False
    return print_category_node_and_all_features(root, 1, read_type)


def prune(tree):
    """Drop the nodes get_features could not read, toml has no null"""
    pruned = {}
    for key, value in tree.items():
        if isinstance(value, dict):
            pruned[key] = prune(value)
        elif value is not None:
            pruned[key] = value
    return pruned


def dump_nodemap(nodemap, file_path):
    tree = prune(get_features(nodemap, "Root") or {})
    saved = save_config(tree, file_path)
    if saved is not None:
        print(f"Node map written to {saved}\n")
    return saved


def dump_path(dump, serial):
    """Insert the serial into the file name so every camera gets its own file"""
    path = Path(dump)
    if not serial:
        return path
    return path.with_name(f"{path.stem}-{serial}{path.suffix}")


def run_single_camera(cam, config) -> bool:
    settings = config.get("nodemap_info", {})
    read_type = settings.get("read_type", VALUE)
    try:
        result = print_nodemap("TRANSPORT LAYER DEVICE NODEMAP", cam.tl_device_nodemap, read_type)
        result &= print_nodemap("TRANSPORT LAYER STREAM NODEMAP", cam.tl_stream_nodemap, read_type)
        nodemap = common.init_camera(cam, config)
        result &= print_nodemap("GENICAM NODEMAP", nodemap, read_type)
        if settings.get("dump"):
            result &= dump_nodemap(nodemap, dump_path(settings["dump"], cam.serial)) is not None
        cam.deinit()
    except CameraError as e:
        print(f"Error: {e}")
        return False
    return result


def main(config=None) -> int:
    return common.example_main(run_single_camera, config)
