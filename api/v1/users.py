from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from core.models.intervention import utcnow
from core.rda_calc import RdaCalculator
from services.db import User, delete_user, get_session, to_profile
from api.v1.schemas import BodyProfileIn, BodyProfileOut, UserCreate, UserOut

router = APIRouter()
_rda = RdaCalculator()


async def _get_user(db: AsyncSession, user_id: int) -> User:
    usr = await db.get(User, user_id)
    if usr is None:
        raise HTTPException(status_code=404, detail="User not found")
    return usr


def _profile_out(usr: User) -> BodyProfileOut:
    profile = to_profile(usr)
    category = _rda.category(profile)
    return BodyProfileOut(
        user_id=usr.id,
        weight_kg=usr.weight_kg,
        height_cm=usr.height_cm,
        age=usr.age,
        activity_level=profile.activity_level,
        dietary_restrictions=sorted(profile.restrictions, key=lambda r: r.value),
        allergies=sorted(profile.allergies),
        bmi=profile.bmi,
        bmi_category=category.value if category else None,
    )


# ───────────────────────── create ──────────────────────────
@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(
    body: UserCreate,
    db: AsyncSession = Depends(get_session),
) -> UserOut:
    if body.id is not None and await db.get(User, body.id):
        raise HTTPException(status_code=409, detail="User already exists")

    now = utcnow()
    user = User(**body.model_dump(exclude_none=True), created_at=now, updated_at=now)
    db.add(user)
    await db.commit()
    return UserOut.model_validate(user, from_attributes=True)


# ───────────────────────── fetch one ────────────────────────
@router.get("/{user_id}", response_model=UserOut)
async def fetch_user(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> UserOut:
    usr = await _get_user(db, user_id)
    return UserOut.model_validate(usr, from_attributes=True)


# ───────────────────────── delete ───────────────────────────
@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_user(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> Response:
    if not await delete_user(db, user_id):
        raise HTTPException(status_code=404, detail="User not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ───────────────────────── body profile ─────────────────────
@router.get("/{user_id}/profile", response_model=BodyProfileOut)
async def get_profile(
    user_id: int,
    db: AsyncSession = Depends(get_session),
) -> BodyProfileOut:
    return _profile_out(await _get_user(db, user_id))


@router.put("/{user_id}/profile", response_model=BodyProfileOut)
async def upsert_profile(
    user_id: int,
    body: BodyProfileIn,
    db: AsyncSession = Depends(get_session),
) -> BodyProfileOut:
    usr = await _get_user(db, user_id)

    usr.weight_kg = body.weight_kg
    usr.height_cm = body.height_cm
    usr.age = body.age
    usr.activity_level = body.activity_level.value if body.activity_level else None
    usr.dietary_restrictions = [r.value for r in body.dietary_restrictions]
    usr.allergies = [a.strip() for a in body.allergies if a.strip()]
    usr.updated_at = utcnow()

    await db.commit()
    return _profile_out(usr)
