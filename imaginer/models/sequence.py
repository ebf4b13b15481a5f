from beanie import Document


class Sequence(Document):
    """Monotonic counter per collection; `id` is the collection name."""
    id: str
    value: int = 0

    class Settings:
        name = "sequences"
