from fastapi import APIRouter, Depends, status

from .dependencies import RequestContext, authenticate, get_auth_service
from .schemas import LoginRequest, RegisterRequest, envelope
from .services import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


# User Registration
@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, auth: AuthService = Depends(get_auth_service)):
    result = auth.register(
        name=payload.name,
        email=payload.email,
        password=payload.password,
        role=payload.role,
    )
    return envelope(data=result)


# User Login
@router.post("/login")
def login(payload: LoginRequest, auth: AuthService = Depends(get_auth_service)):
    return envelope(data=auth.login(payload.email, payload.password))


# Current user, read fresh from storage
@router.get("/me")
def me(context: RequestContext = Depends(authenticate)):
    return envelope(data=context.user.summary())
