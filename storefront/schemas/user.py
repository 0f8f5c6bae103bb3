from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional
from datetime import datetime

# Shared properties for user models
class UserBase(BaseModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for user registration requests
class UserCreate(UserBase):
    name: str = Field(min_length=1)
    mobile: str = Field(min_length=1)
    password: str = Field(min_length=1)

# Output schema for user profile details
class UserResponse(UserBase):
    id: int
    name: str
    mobile: str
    is_admin: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True

# Schema for login response; the same token is also set as a cookie
class Token(BaseModel):
    success: bool = True
    access_token: str
    token_type: str = "bearer"

# Schema for granting or revoking the admin flag
class AdminFlagUpdate(BaseModel):
    is_admin: bool

# Schema for paginated user list response
class UsersPage(BaseModel):
    items: List[UserResponse]
    total: int
    page: int
    page_size: int
