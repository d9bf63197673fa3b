from pairpipe.pipe.core import Pipeline, Cursor, EXHAUSTED, is_exhausted, from_, from_pairs
from pairpipe.registry import register_extension, extend, OperationNotFoundError
