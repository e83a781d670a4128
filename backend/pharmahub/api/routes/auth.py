"""Auth: pharmacy/customer registration and login.

Login returns a bearer token carrying the caller capability
(user id, role, tenant id). Generic error on bad credentials.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from pharmahub.api.deps import get_db, get_current_caller
from pharmahub.core.exceptions import BusinessError, Unauthorized
from pharmahub.core.permissions import Caller
from pharmahub.core.security import create_access_token
from pharmahub.models.user import User
from pharmahub.schemas.tenant import PharmacyRegister, TenantResponse
from pharmahub.schemas.user import CustomerRegister, UserLogin, UserResponse, Token
from pharmahub.services import tenant_service

router = APIRouter()


@router.post("/register/pharmacy", response_model=TenantResponse, status_code=201)
def register_pharmacy(data: PharmacyRegister, db: Session = Depends(get_db)):
    """Pharmacy sign-up. The tenant stays PENDING until an admin approves it."""
    return tenant_service.register_pharmacy(
        db,
        pharmacy_name=data.pharmacy_name,
        email=data.email,
        password=data.password,
        address=data.address,
        license_number=data.license_number,
        license_url=data.license_url,
    )


@router.post("/register/customer", response_model=UserResponse, status_code=201)
def register_customer(data: CustomerRegister, db: Session = Depends(get_db)):
    return tenant_service.register_customer(db, data.email, data.password)


@router.post("/login", response_model=Token)
def login(data: UserLogin, db: Session = Depends(get_db)):
    try:
        user = tenant_service.authenticate(db, data.email, data.password)
    except Unauthorized:
        # Same 401 for unknown email, wrong password and inactive account
        raise BusinessError.unauthorized(f"login failed for {data.email}")
    token = create_access_token(subject=str(user.id), role=user.role.value, tenant_id=user.tenant_id)
    return Token(access_token=token)


@router.get("/me", response_model=UserResponse)
def me(caller: Caller = Depends(get_current_caller), db: Session = Depends(get_db)):
    return db.query(User).filter(User.id == caller.user_id).first()
