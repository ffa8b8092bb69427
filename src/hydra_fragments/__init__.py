"""Split schema-described values into addressable fragments and assemble them back."""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())
