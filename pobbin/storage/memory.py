class MemoryStorage:
    """Keeps pastes in a dict. Only useful for development and tests."""

    def __init__(self):
        self.objects: dict[str, bytes] = {}

    async def get(self, key: str) -> bytes | None:
        return self.objects.get(key)

    async def put(self, key: str, data: bytes, sha1: bytes | None = None) -> None:
        self.objects[key] = bytes(data)
