"""
FastAPI backend for the fedtrust scoring engine.

Endpoints:
- POST /api/score: Score one instance from collected facts
- POST /api/policies/analyze: Classify moderation rules only
- GET /api/events: Fetch recent events
- GET /api/status: System health check
"""
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from fedtrust.pipeline import ScoringPipeline
from fedtrust.schemas import (
    EventLevel,
    InstanceFacts,
    InstanceReport,
    PolicyAnalysisRequest,
    PolicyAnalysisResult,
    SystemStatus,
)
import config


def create_app(pipeline: Optional[ScoringPipeline] = None) -> FastAPI:
    """
    Build the API around a scoring pipeline.

    Args:
        pipeline: Pre-built pipeline (tests inject one with temp paths)

    Returns:
        FastAPI app
    """
    app = FastAPI(
        title="fedtrust API",
        version=config.API_VERSION,
        description="Trust & Safety composite scoring for fediverse instances"
    )
    app.state.pipeline = pipeline or ScoringPipeline()

    # CORS for local development
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"]
    )

    def get_pipeline(request: Request) -> ScoringPipeline:
        return request.app.state.pipeline

    # ==================== Scoring Endpoints ====================

    @app.post("/api/score", response_model=InstanceReport)
    async def score_instance(facts: InstanceFacts, request: Request):
        """
        Score one instance.

        Runs policy classification, network health, metadata maturity and
        the composite aggregation over already-collected facts.
        """
        try:
            return await get_pipeline(request).evaluate(facts)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @app.post("/api/policies/analyze", response_model=PolicyAnalysisResult)
    async def analyze_policies(body: PolicyAnalysisRequest, request: Request, domain: Optional[str] = None):
        """Classify moderation rules and return the full, explainable analysis"""
        try:
            return await get_pipeline(request).analyze_policies(body.rules, domain=domain)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ==================== Event Endpoints ====================

    @app.get("/api/events")
    async def get_events(request: Request, limit: int = 100, level: str = None, domain: str = None):
        """
        Fetch recent events from log.

        Args:
            limit: Maximum number of events to return
            level: Filter by event level (Information, Warning, Error, Critical)
            domain: Filter by instance domain
        """
        try:
            event_level = EventLevel(level) if level else None
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown event level: {level}")

        try:
            events = get_pipeline(request).logger.read_events(limit=limit, level=event_level, domain=domain)
            return {"events": [e.model_dump(mode="json") for e in events]}
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # ==================== System Endpoints ====================

    @app.get("/api/status", response_model=SystemStatus)
    async def system_status(request: Request):
        """System health check"""
        try:
            pipeline = get_pipeline(request)
            percentiles_loaded = pipeline.snapshots.percentiles() is not None
            reputation_loaded = pipeline.snapshots.reputation() is not None

            return SystemStatus(
                status="healthy" if percentiles_loaded and reputation_loaded else "degraded",
                version=config.API_VERSION,
                pattern_count=len(pipeline.library),
                pattern_diagnostics=len(pipeline.library.diagnostics),
                percentiles_loaded=percentiles_loaded,
                reputation_loaded=reputation_loaded,
                event_count=pipeline.logger.get_event_count()
            )
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    @app.get("/")
    async def root():
        """Health check"""
        return {
            "status": "fedtrust API running",
            "version": config.API_VERSION,
            "endpoints": {
                "docs": "/docs",
                "score": "/api/score",
                "policies": "/api/policies/analyze",
                "events": "/api/events",
                "status": "/api/status"
            }
        }

    @app.on_event("startup")
    async def startup():
        """Load reference snapshots on startup"""
        print("Starting fedtrust API...")
        pipeline = app.state.pipeline
        await pipeline.start()
        print(f"Rule patterns: {len(pipeline.library)} ({len(pipeline.library.diagnostics)} skipped)")
        print(f"Percentiles loaded: {pipeline.snapshots.percentiles() is not None}")
        print(f"Reputation lists loaded: {pipeline.snapshots.reputation() is not None}")
        print("fedtrust API ready!")

    return app


app = create_app()
