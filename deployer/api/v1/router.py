"""Main router for API v1."""

from fastapi import APIRouter

from deployer.api.v1 import commits, deployments, health

router = APIRouter(prefix="/v1")

# Include sub-routers
router.include_router(health.router, tags=["health"])
router.include_router(deployments.router, prefix="/deploy", tags=["deployments"])
router.include_router(commits.router, prefix="/github", tags=["commits"])
