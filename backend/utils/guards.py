from bson import ObjectId

from utils.errors import NotFoundError, ValidationError

# -------------------------------
# ObjectId Guards
# -------------------------------

def parse_object_id(value, name: str = "id") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise ValidationError(f"Invalid {name}")
    return ObjectId(value)


def resolve_object_id(value, resource: str = "Resource") -> ObjectId:
    """
    Path ids that cannot be parsed can never resolve to a document,
    so they surface as a plain 404 rather than a 400.
    """
    if isinstance(value, ObjectId):
        return value
    if not ObjectId.is_valid(value):
        raise NotFoundError(f"{resource} not found")
    return ObjectId(value)
