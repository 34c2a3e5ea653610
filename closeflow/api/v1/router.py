from fastapi import APIRouter

from closeflow.api.v1.endpoints import workspaces, periods, tasks, categories, reconciliations, audit_logs

api_router = APIRouter()
api_router.include_router(workspaces.router, prefix="/workspaces", tags=["workspaces"])
api_router.include_router(periods.router, prefix="/periods", tags=["periods"])
api_router.include_router(tasks.router, prefix="/tasks", tags=["tasks"])
api_router.include_router(categories.router, prefix="/categories", tags=["categories"])
api_router.include_router(reconciliations.router, prefix="/reconciliations", tags=["reconciliations"])
api_router.include_router(audit_logs.router, prefix="/audit-logs", tags=["audit-logs"])
