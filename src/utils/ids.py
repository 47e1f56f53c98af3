"""Frame identifier generation"""

import uuid


def create_frame_id() -> str:
    """Random identifier for newly created or pasted frames."""
    return str(uuid.uuid4())
