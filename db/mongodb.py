# centralizes MongoDB utilities
from bson import ObjectId
from typing import Iterable, List

# Helper functions for MongoDB operations
def convert_to_object_id(id_value) -> ObjectId:
    """Convert string ID to ObjectId for MongoDB queries"""
    if isinstance(id_value, ObjectId):
        return id_value
    return ObjectId(id_value)

def is_valid_object_id(id_value) -> bool:
    """True when the value is an ObjectId or a 24-char hex string"""
    if isinstance(id_value, ObjectId):
        return True
    return isinstance(id_value, str) and ObjectId.is_valid(id_value)

def convert_many_to_object_ids(id_values: Iterable) -> List[ObjectId]:
    """Convert the valid ids in an iterable, silently dropping malformed ones"""
    return [convert_to_object_id(v) for v in id_values if is_valid_object_id(v)]
