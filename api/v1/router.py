# api/v1/router.py
from fastapi import APIRouter

from . import analysis, entries, foods, interventions, users

api_router = APIRouter()

api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(foods.router, prefix="/foods", tags=["Foods"])
api_router.include_router(entries.router, prefix="/entries", tags=["Entries"])
api_router.include_router(interventions.router, prefix="/interventions", tags=["Interventions"])

# /analysis/{user_id}/… and /charts/{user_id} share one module
api_router.include_router(analysis.router, tags=["Analysis"])
