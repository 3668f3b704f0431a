from typing import Dict, List, Optional, Protocol

from ...domain.permission import Permission, PermissionModule, Role, UserAccess


class PermissionStore(Protocol):
    """Protocol for the RBAC tables: roles, permissions and their links."""

    # reads
    async def find_user_with_roles_and_permissions(self, user_id: int) -> Optional[UserAccess]: ...
    async def find_permissions_by_module(self) -> Dict[PermissionModule, List[Permission]]: ...
    async def get_role(self, role_id: int) -> Optional[Role]: ...
    async def get_role_by_name(self, name: str) -> Optional[Role]: ...
    async def list_roles(self) -> List[Role]: ...
    async def count_users_with_role(self, role_id: int) -> int: ...
    async def get_permission(self, permission_id: int) -> Optional[Permission]: ...
    async def get_permission_by_slug(self, slug: str) -> Optional[Permission]: ...
    async def get_permissions_by_ids(self, permission_ids: List[int]) -> List[Permission]: ...
    async def count_roles_referencing_permission(self, permission_id: int) -> int: ...
    async def list_user_role_ids(self, user_id: int) -> List[int]: ...

    # roles
    async def create_role(
        self, name: str, description: Optional[str] = None, is_system: bool = False
    ) -> Role: ...
    async def update_role(self, role_id: int, **fields) -> Optional[Role]: ...
    async def delete_role(self, role_id: int) -> None: ...

    # permissions
    async def create_permission(
        self,
        slug: str,
        name: str,
        module: PermissionModule,
        description: str = "",
        is_system: bool = False,
    ) -> Permission: ...
    async def update_permission(self, permission_id: int, **fields) -> Optional[Permission]: ...
    async def delete_permission(self, permission_id: int) -> None: ...

    # links
    async def create_user_role(self, user_id: int, role_id: int) -> None: ...
    async def delete_user_role(self, user_id: int, role_id: int) -> None: ...
    async def create_role_permission(self, role_id: int, permission_id: int) -> None: ...
    async def delete_role_permission(self, role_id: int, permission_id: int) -> None: ...
    async def replace_role_permissions(self, role_id: int, permission_ids: List[int]) -> None: ...

    # unit of work
    async def commit(self) -> None: ...
    async def rollback(self) -> None: ...
