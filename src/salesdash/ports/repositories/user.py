from typing import List, Optional, Protocol

from ...domain.user import User


class UserRepository(Protocol):
    """Protocol for user repository operations."""

    async def create(self, user: User) -> User: ...

    async def get_by_id(self, id: int) -> Optional[User]: ...

    async def get_by_email(self, email: str) -> Optional[User]: ...

    async def list(self) -> List[User]: ...

    async def update(self, id: int, **fields) -> Optional[User]: ...

    async def delete(self, id: int) -> None: ...
