from enum import Enum


class IndexField(Enum):
    TRANSACTION = "transaction"
    EFFECTS = "effects"
    EVENTS = "events"
    INPUT_OBJECTS = "input_objects"
    OUTPUT_OBJECTS = "output_objects"


DEFAULT_INDEX_FIELDS = frozenset({IndexField.TRANSACTION, IndexField.EFFECTS})
