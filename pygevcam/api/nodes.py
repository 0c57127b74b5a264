"""
GenICam node access, shared by the aravis and sim backends

A node map is a registry of named nodes. Backends provide Node subclasses
that implement the accessor methods relevant to their node type, the
functions at the bottom of this module only rely on that common surface.
"""

from collections import namedtuple
from enum import IntEnum
import threading

from pygevcam.api.errors import CameraError, ErrorCode


class NodeType(IntEnum):
    Value = 0
    Base = 1
    Integer = 2
    Boolean = 3
    Float = 4
    Command = 5
    String = 6
    Register = 7
    Enumeration = 8
    EnumEntry = 9
    Category = 10
    Port = 11
    Unknown = -1


class AccessMode(IntEnum):
    NI = 0
    NA = 1
    WO = 2
    RO = 3
    RW = 4


class Node:
    node_type = NodeType.Base

    def __init__(self, name, display_name=None, description="", tooltip=""):
        self.name = name
        self.display_name = display_name or name
        self.description = description
        self.tooltip = tooltip or description
        self._callbacks = {}
        self._cb_lock = threading.Lock()

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.name}>"

    def get_access_mode(self):
        return AccessMode.RW

    def is_available(self):
        return self.get_access_mode() not in (AccessMode.NI, AccessMode.NA)

    def is_readable(self):
        return self.get_access_mode() in (AccessMode.RO, AccessMode.RW)

    def is_writable(self):
        return self.get_access_mode() in (AccessMode.WO, AccessMode.RW)

    def to_string(self):
        return str(self.get_value())

    def from_string(self, value):
        raise CameraError(f"{self.name} cannot be set from a string", ErrorCode.NOT_IMPLEMENTED)

    def get_value(self):
        raise CameraError(f"{self.name} has no value", ErrorCode.NOT_IMPLEMENTED)

    def set_value(self, value):
        raise CameraError(f"{self.name} has no value", ErrorCode.NOT_IMPLEMENTED)

    def register_callback(self, func):
        fid = str(id(func))
        with self._cb_lock:
            self._callbacks[fid] = func
        return fid

    def deregister_callback(self, fid):
        with self._cb_lock:
            self._callbacks.pop(fid, None)

    def notify(self):
        """Call every registered callback with this node"""
        with self._cb_lock:
            callbacks = list(self._callbacks.values())
        for func in callbacks:
            func(self)


class NodeMap:
    def __init__(self, nodes=()):
        self._nodes = {}
        for node in nodes:
            self.add_node(node)

    def add_node(self, node):
        self._nodes[node.name] = node
        return node

    def get_node(self, name):
        return self._nodes.get(name)

    def get_nodes(self):
        return list(self._nodes.values())

    def __contains__(self, name):
        return self.get_node(name) is not None

    def __iter__(self):
        return iter(self.get_nodes())

    def __len__(self):
        return len(self._nodes)


def is_readable(node):
    return node is not None and node.is_available() and node.is_readable()


def is_writable(node):
    return node is not None and node.is_available() and node.is_writable()


def get_node_checked(nodemap, name, writable=False, action=None):
    """Return the node if it is available and readable (or writable)

    Raises:
        CameraError: NOT_AVAILABLE if the node does not exist, ACCESS_DENIED
            if it cannot be read or written
    """
    action = action or f"access {name}"
    node = nodemap.get_node(name)
    if node is None:
        raise CameraError(f"Unable to {action} (node retrieval)", ErrorCode.NOT_AVAILABLE)
    if writable and not is_writable(node):
        raise CameraError(f"Unable to {action} ({name} not writable)", ErrorCode.ACCESS_DENIED)
    if not writable and not is_readable(node):
        raise CameraError(f"Unable to {action} ({name} not readable)", ErrorCode.ACCESS_DENIED)
    return node


def get_enum_entry(node, entry_name, action=None):
    action = action or f"access {node.name} {entry_name}"
    entry = node.get_entry_by_name(entry_name)
    if entry is None or not is_readable(entry):
        raise CameraError(f"Unable to {action} (enum entry retrieval)", ErrorCode.NOT_AVAILABLE)
    return entry


def set_enum_entry(nodemap, name, entry_name, action=None):
    """Set an enumeration node to the entry with the given symbolic name"""
    action = action or f"set {name} to {entry_name}"
    node = get_node_checked(nodemap, name, writable=True, action=action)
    entry = get_enum_entry(node, entry_name, action=action)
    node.set_int_value(entry.get_value())
    return entry


def get_enum_symbolic(nodemap, name):
    node = get_node_checked(nodemap, name)
    return node.get_current_entry().symbolic


def set_value_checked(nodemap, name, value, action=None):
    node = get_node_checked(nodemap, name, writable=True, action=action)
    node.set_value(value)
    return node


def execute_command(nodemap, name, action=None):
    node = get_node_checked(nodemap, name, writable=True, action=action)
    node.execute()
    return node


Feature = namedtuple('Feature', ['name', 'value', 'min', 'max', 'inc', 'unit', 'description'])


def feature_from_node(node):
    return Feature(node.name, node.get_value(), node.get_min(), node.get_max(), node.get_inc(),
                   node.unit, node.description)


def _check_feature(feature:Feature, value):
    if feature.inc:
        value = feature.min + round((value-feature.min)/feature.inc)*feature.inc
    if value < feature.min or value > feature.max:
        return None
    return value


def check_feature(nodemap, name, value):
    node = nodemap.get_node(name)
    if node is not None and node.node_type in (NodeType.Integer, NodeType.Float):
        if _check_feature(feature_from_node(node), value) is None:
            return False
    return True


def get_feature(nodemap, name):
    node = nodemap.get_node(name)
    if node is None:
        raise KeyError(f"{name} not found")
    if node.node_type in (NodeType.Integer, NodeType.Float):
        return feature_from_node(node)
    if node.node_type == NodeType.Enumeration:
        return node.get_current_entry().symbolic
    return node.get_value()


def set_feature(nodemap, name, value):
    """Set a node from a python value, snapping numbers onto the node increment

    Strings are applied with from_string so that enumeration entries and
    numeric values read from config files both work.
    """
    node = nodemap.get_node(name)
    if node is None:
        raise KeyError(f"{name} not found")
    if not is_writable(node):
        raise CameraError(f"{name} is not writable", ErrorCode.ACCESS_DENIED)
    if isinstance(value, str):
        node.from_string(value)
    elif node.node_type in (NodeType.Integer, NodeType.Float) and not isinstance(value, bool):
        checked = _check_feature(feature_from_node(node), value)
        if checked is None:
            raise CameraError(f"Invalid value {value} for {name}", ErrorCode.INVALID_PARAMETER)
        node.set_value(int(checked) if node.node_type == NodeType.Integer else float(checked))
    else:
        node.set_value(value)
    return get_feature(nodemap, name)


def clamp_to_node(node, value):
    value = max(value, node.get_min())
    return min(value, node.get_max())


def node_value_string(node):
    """Render a node value the way the examples print it"""
    if not is_readable(node):
        return "Node not readable"
    if node.node_type == NodeType.Enumeration:
        return node.get_current_entry().symbolic
    if node.node_type == NodeType.Command:
        return node.tooltip
    if node.node_type == NodeType.Register:
        return f"<{node.get_length()} bytes>"
    return node.to_string()


def get_features(nodemap, name):
    """Return a category and everything below it as a nested dict"""
    node = nodemap.get_node(name)
    if node is None:
        return None
    if node.node_type == NodeType.Category:
        retval = {}
        for feature in node.get_features():
            retval[feature.name] = get_features(nodemap, feature.name)
        return retval
    if node.node_type == NodeType.Command:
        return node.name
    if node.node_type == NodeType.Register:
        return node.name
    if not is_readable(node):
        return None
    try:
        if node.node_type == NodeType.Enumeration:
            return node.get_current_entry().symbolic
        return node.get_value()
    except CameraError:
        return None
