import datetime
from dataclasses import dataclass, field
from typing import List, Optional

from .permission import Role


@dataclass
class User:
    id: Optional[int]
    email: str
    name: str
    hashed_password: str
    is_active: bool = True
    roles: List[Role] = field(default_factory=list)
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    def __post_init__(self):
        if self.created_at is None:
            self.created_at = datetime.datetime.now(datetime.timezone.utc)
        if self.updated_at is None:
            self.updated_at = datetime.datetime.now(datetime.timezone.utc)

    @property
    def role_names(self) -> List[str]:
        return [r.name for r in self.roles]
