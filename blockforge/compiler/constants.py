from typing import Dict

from blockforge.ir import HandlerKind
from blockforge.py_generator import HANDLER_PARAM, RUNTIME_VAR, SELF_VAR

MODULE_FUNCTION_PREFIX = "_script_"
ADOPTED_HANDLER_NAME = "adopted_start"
LOOP_VAR_PREFIX = "_loop"

# Hat block id -> event name template. ``{object}`` is the owning object id,
# the other placeholders are field names of the hat.
EVENT_HATS: Dict[str, str] = {
    "on_start": "start",
    "on_update": "update",
    "on_keydown": "keydown:{key}",
    "on_keyup": "keyup:{key}",
    "on_click": "click:{object}",
    "on_collide": "collide:{object}:{tag}",
    "on_trigger": "trigger:{object}:{tag}",
    "on_overlap": "overlap:{object}:{tag}",
    "on_message": "message:{msg}",
}

HAT_KINDS: Dict[str, HandlerKind] = {
    **{block_id: HandlerKind.EVENT for block_id in EVENT_HATS},
    "on_timer": HandlerKind.TIMER,
    "def_func": HandlerKind.FUNCTION,
}

# Text fields that carry arbitrary values rather than plain strings.
VALUE_FIELDS = {
    ("set_var", "val"),
    ("set_prop", "val"),
    ("list_add", "val"),
    ("return", "val"),
    ("send_message", "data"),
    ("local_storage_set", "val"),
}

__all__ = [
    "ADOPTED_HANDLER_NAME",
    "EVENT_HATS",
    "HANDLER_PARAM",
    "HAT_KINDS",
    "LOOP_VAR_PREFIX",
    "MODULE_FUNCTION_PREFIX",
    "RUNTIME_VAR",
    "SELF_VAR",
    "VALUE_FIELDS",
]
