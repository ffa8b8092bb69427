"""UHL addressing exports."""

from .segments import (
    KeyValue,
    Segment,
    UhlError,
    check_key_value,
    decode_segment,
    encode_segment,
    segment_for,
)
from .selection import PARENT_PREFIX, Selection, SelectionError, selection_tags, selection_to_uhls
from .uhl_codec import (
    FILENAME_SUFFIX,
    ROOT_STRING,
    ROOT_UHL,
    SEGMENT_SEPARATOR,
    Uhl,
    decode_uhl,
    encode_uhl,
    from_filename,
    last_segment_key,
    make_uhl,
    to_filename,
)

__all__ = [
    "FILENAME_SUFFIX",
    "KeyValue",
    "PARENT_PREFIX",
    "ROOT_STRING",
    "ROOT_UHL",
    "SEGMENT_SEPARATOR",
    "Segment",
    "Selection",
    "SelectionError",
    "Uhl",
    "UhlError",
    "check_key_value",
    "decode_segment",
    "decode_uhl",
    "encode_segment",
    "encode_uhl",
    "from_filename",
    "last_segment_key",
    "make_uhl",
    "segment_for",
    "selection_tags",
    "selection_to_uhls",
    "to_filename",
]
