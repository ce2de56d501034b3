"""
Course identifier resolution.

A course is addressed either by its logical ``id`` (a generated UUID string)
or, for documents created before UUIDs were assigned, by the hex form of its
MongoDB ``_id``. Every lookup, write and review/enrollment filter that takes a
caller-supplied course reference goes through this module.
"""

from dataclasses import dataclass
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase

from jaromind.errors import NotFound


def parse_object_id(value) -> Optional[ObjectId]:
    """Parse a store-native id; anything unparsable is a non-match, not an error"""
    if isinstance(value, ObjectId):
        return value
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


def display_id(doc: dict) -> str:
    """The identifier callers see: logical id if set, else the _id hex"""
    logical = doc.get("id")
    if logical:
        return str(logical)
    return str(doc["_id"])


def serialize_value(value):
    """ObjectIds anywhere in a stored value become hex strings"""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [serialize_value(v) for v in value]
    return value


def normalize_document(doc: dict) -> dict:
    """Copy of ``doc`` exposing a single ``id`` field and never ``_id``"""
    normalized = {k: serialize_value(v) for k, v in doc.items() if k != "_id"}
    normalized["id"] = display_id(doc)
    return normalized


@dataclass
class ResolvedDocument:
    """A found document plus the store key that matched it"""

    document: dict
    key: dict

    @property
    def display_id(self) -> str:
        return display_id(self.document)

    def normalized(self) -> dict:
        return normalize_document(self.document)


def _candidate_keys(ref: str) -> List[dict]:
    keys = [{"id": ref}]
    object_id = parse_object_id(ref)
    if object_id is not None:
        keys.append({"_id": object_id})
    return keys


async def resolve(
    collection: AsyncIOMotorCollection,
    ref: str,
    extra_filter: Optional[dict] = None,
) -> Optional[ResolvedDocument]:
    """
    Find a document by logical id first, then by store-native id.
    Both attempts apply the same ``extra_filter`` (e.g. active only).
    """
    if not ref:
        return None

    for key in _candidate_keys(ref):
        doc = await collection.find_one({**key, **(extra_filter or {})})
        if doc is not None:
            return ResolvedDocument(document=doc, key=key)
    return None


async def resolve_course(db: AsyncIOMotorDatabase, ref: str, active_only: bool = False) -> ResolvedDocument:
    """Resolve a course reference or raise NotFound"""
    extra = {"isActive": True} if active_only else None
    resolved = await resolve(db.courses, ref, extra)
    if resolved is None:
        raise NotFound("Course not found")
    return resolved


async def update_by_reference(collection: AsyncIOMotorCollection, ref: str, update: dict) -> bool:
    """
    Apply ``update`` to the document addressed by ``ref``.
    Logical id first, store-native id second. Returns whether anything matched.
    """
    if not ref:
        return False

    for key in _candidate_keys(ref):
        result = await collection.update_one(key, update)
        if result.matched_count > 0:
            return True
    return False


async def canonical_course_ref(db: AsyncIOMotorDatabase, ref: str) -> str:
    """The course's display id when ``ref`` resolves, otherwise ``ref`` unchanged"""
    resolved = await resolve(db.courses, ref)
    return resolved.display_id if resolved is not None else ref


async def course_reference_forms(db: AsyncIOMotorDatabase, ref: str) -> List[str]:
    """
    Every textual form a review or enrollment may use to reference the
    course addressed by ``ref``: its display id, its _id hex and ``ref`` itself.
    """
    forms = [ref]
    resolved = await resolve(db.courses, ref)
    if resolved is not None:
        for form in (resolved.display_id, str(resolved.document["_id"])):
            if form not in forms:
                forms.append(form)
    return forms
