from fastapi import APIRouter

from nightshift.api.v1 import applications, health, history, jobs, my_jobs, users, venues

api_v1_router = APIRouter()
api_v1_router.include_router(health.router)
api_v1_router.include_router(users.router)
api_v1_router.include_router(jobs.router)
api_v1_router.include_router(applications.router)
api_v1_router.include_router(my_jobs.router)
api_v1_router.include_router(history.router)
api_v1_router.include_router(venues.router)
