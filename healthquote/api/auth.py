from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from healthquote.schemas.auth import TokenOut
from healthquote.models.user import User
from healthquote.db.session import get_db
from healthquote.core.security import create_access_token, verify_password
from healthquote.core.audit_log import log_audit
from healthquote.core.enums import AuditAction

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == form_data.username))
    user = res.scalars().first()
    if not user or not user.active or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    await log_audit(db, int(user.id), AuditAction.LOGIN, {"username": form_data.username})
    await db.commit()

    token = create_access_token(str(user.id), user.role)
    return {"access_token": token}
