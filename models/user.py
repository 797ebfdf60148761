from pydantic import BaseModel
from models.enums import UserRole

# Authenticated caller, decoded from the bearer token and passed explicitly into the core
class AuthContext(BaseModel):
    user_id: str
    role: UserRole

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
