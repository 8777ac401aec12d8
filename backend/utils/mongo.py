from datetime import datetime
from bson import ObjectId


def serialize_value(value):
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return serialize_doc(value)
    if isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def serialize_doc(doc: dict) -> dict:
    if not doc:
        return doc

    out = {}
    for k, v in doc.items():
        if k == "_id":
            out["id"] = str(v)
            continue
        out[k] = serialize_value(v)
    return out


def serialize_docs(docs):
    return [serialize_doc(d) for d in docs]


def project(doc: dict | None, fields: tuple) -> dict | None:
    """
    Reduce a referenced document to the fields shown in joined views.
    """
    if not doc:
        return None
    out = {"id": str(doc["_id"])}
    for field in fields:
        if "." in field:
            head, tail = field.split(".", 1)
            nested = doc.get(head) or {}
            out.setdefault(head, {})[tail] = serialize_value(nested.get(tail))
        else:
            out[field] = serialize_value(doc.get(field))
    return out
