"""
Identifier translation between CMS document ids and vector point ids.
"""

import uuid

# Fixed namespace: changing it orphans every existing vector point
PLACE_NAMESPACE = uuid.UUID("6f1c2d3e-8a4b-5c9d-9e0f-7a1b2c3d4e5f")


def uuid_of(document_id: str) -> str:
    """
    Map a document id to the UUID used as the vector point id.

    Valid UUID strings pass through unchanged (normalised to canonical form);
    anything else maps through UUIDv5, so the same id always yields the same
    point and distinct ids never collide in practice.
    """
    try:
        return str(uuid.UUID(document_id))
    except (ValueError, AttributeError, TypeError):
        return str(uuid.uuid5(PLACE_NAMESPACE, str(document_id)))
