from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field

from rwandabill.modules.identity.models import Account, ServiceType, UserRole


class AccountProfile(BaseModel):
    email: EmailStr
    full_name: str | None = Field(default=None, max_length=200)
    telephone: str | None = Field(default=None, max_length=40)
    district: str | None = Field(default=None, max_length=100)
    sector: str | None = Field(default=None, max_length=100)


class SignupIn(AccountProfile):
    password: str


class AdminSignupIn(SignupIn):
    # Parsed by the service so an unknown value is reported like any other bad input.
    service_type: str | None = None


class LoginIn(BaseModel):
    email: str
    password: str


class AccountOut(BaseModel):
    id: int
    email: EmailStr
    full_name: str | None
    telephone: str | None
    district: str | None
    sector: str | None
    role: UserRole
    service_type: ServiceType | None
    is_active: bool
    approved: bool


class AuthOut(BaseModel):
    id: int | None = None
    email: str | None = None
    full_name: str | None = None
    telephone: str | None = None
    district: str | None = None
    sector: str | None = None
    role: UserRole | None = None
    service_type: ServiceType | None = None
    is_active: bool | None = None
    approved: bool | None = None
    token: str | None = None
    token_type: str | None = None
    message: str

    @classmethod
    def from_account(cls, account: Account, *, message: str, token: str | None = None) -> AuthOut:
        return cls(
            id=account.id,
            email=account.email,
            full_name=account.full_name,
            telephone=account.telephone,
            district=account.district,
            sector=account.sector,
            role=account.role,
            service_type=account.service_type,
            is_active=account.is_active,
            approved=account.approved,
            token=token,
            token_type="bearer" if token else None,
            message=message,
        )
