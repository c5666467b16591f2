"""
CityWatch - REST API

FastAPI application for citizen incident reporting: AI triage,
admin review, reporter scoring and authority routing.

Run with: uvicorn citywatch.api.main:app --reload
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, Header, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field

from citywatch import __version__
from citywatch.ai.classifier import AIAnalysis, IncidentClassifier
from citywatch.authorities.matcher import AuthorityMatcher, emergency_contacts
from citywatch.core.config import settings
from citywatch.core.constants import MAX_DESCRIPTION_LENGTH, MAX_SEVERITY, MIN_SEVERITY
from citywatch.core.logging import get_logger
from citywatch.reports.incident_handler import IncidentHandler, ReportingSuspendedError
from citywatch.reports.records import Incident, UserProfile
from citywatch.reports.store import MemoryStore
from citywatch.scoring.priority import QueueTier

logger = get_logger(__name__)

# FastAPI app
app = FastAPI(
    title="CityWatch",
    description="Citizen incident reporting with PulseAI triage, reporter scoring and authority routing",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class AnalysisModel(BaseModel):
    """AI analysis of a report."""
    summary: str
    category: str
    severity: int = Field(..., ge=MIN_SEVERITY, le=MAX_SEVERITY)
    error: Optional[str] = None


class AnalyzeRequest(BaseModel):
    """Request to preview the classification of a description."""
    description: str = Field(..., min_length=1, max_length=MAX_DESCRIPTION_LENGTH)


class IncidentCreateRequest(BaseModel):
    """Request to submit an incident."""
    description: str = Field(..., min_length=1, max_length=MAX_DESCRIPTION_LENGTH)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    address: Optional[str] = None
    analysis: Optional[AnalysisModel] = Field(
        default=None,
        description="Analysis from the preview; classified in the background when omitted",
    )


class IncidentResponse(BaseModel):
    """Incident report."""
    id: str
    user_id: str
    user_email: Optional[str] = None
    user_name: Optional[str] = None
    latitude: float
    longitude: float
    address: Optional[str] = None
    description: str
    analysis: AnalysisModel
    severity: int
    category: str
    status: str
    priority: str
    analysis_pending: bool
    admin_notes: Optional[str] = None
    status_changed_by: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    status_changed_at: Optional[str] = None


class IncidentListResponse(BaseModel):
    """List of incidents."""
    count: int
    incidents: List[IncidentResponse]


class QueueIncidentResponse(IncidentResponse):
    """Incident on the admin queue."""
    user_badge: Optional[str] = None
    priority_score: float


class QueueResponse(BaseModel):
    """Admin review queue."""
    count: int
    summary: Dict[str, int]
    incidents: List[QueueIncidentResponse]


class StatusUpdateRequest(BaseModel):
    """Request to change an incident's status."""
    status: str = Field(..., description="pending, in-progress, resolved or rejected")
    notes: Optional[str] = None


class ProfileResponse(BaseModel):
    """User profile."""
    uid: str
    email: str
    display_name: str
    role: str
    score: int
    badge: str
    is_recommended: bool
    total_reports: int
    accepted_reports: int
    rejected_reports: int
    suspended: bool
    warning: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


class StandingResponse(BaseModel):
    """What a user's score means for them."""
    uid: str
    score: int
    badge: str
    tier: str
    is_recommended: bool
    suspended: bool
    warning: bool
    can_report: bool


class NotificationResponse(BaseModel):
    """In-app notification."""
    id: str
    user_id: str
    type: str
    title: str
    message: str
    incident_id: Optional[str] = None
    points: Optional[int] = None
    badge: Optional[str] = None
    is_read: bool
    created_at: Optional[str] = None


class NotificationListResponse(BaseModel):
    """A user's notifications."""
    count: int
    unread_count: int
    notifications: List[NotificationResponse]


class ServiceResponse(BaseModel):
    """Emergency or municipal service."""
    id: str
    name: str
    type: str
    category: str
    phone: str
    emergency_phone: Optional[str] = None
    address: str
    latitude: float
    longitude: float
    distance_km: float
    response_time_minutes: int
    is_available: bool
    rating: Optional[float] = None
    open_now: Optional[bool] = None
    website: Optional[str] = None
    operating_hours: Optional[str] = None


class RoutingResponse(BaseModel):
    """Authorities matched for an incident."""
    category: str
    severity: Optional[int] = None
    fallback: bool
    urgent: bool
    primary: Optional[ServiceResponse] = None
    backup: Optional[ServiceResponse] = None
    count: int
    services: List[ServiceResponse]


class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    modules: dict


# ============================================================================
# Service Container
# ============================================================================

@dataclass
class CityServices:
    """Stateful services shared by the routes."""
    incidents: IncidentHandler
    matcher: AuthorityMatcher
    classifier_factory: Callable[[], IncidentClassifier] = IncidentClassifier
    storage: str = "memory"

    @property
    def store(self):
        return self.incidents.store

    @property
    def profiles(self):
        return self.incidents.profiles

    @property
    def notifications(self):
        return self.incidents.notifications


def build_services(database_url: Optional[str] = None) -> CityServices:
    """
    Create the service container.

    Uses PostgreSQL when a database URL is configured, otherwise the
    in-memory store.
    """
    database_url = database_url or settings.database_url

    if database_url:
        from citywatch.database import SqlStore, init_db

        store = SqlStore(init_db(database_url))
        storage = "postgres"
    else:
        store = MemoryStore()
        storage = "memory"

    logger.info(f"Using {storage} storage")
    return CityServices(
        incidents=IncidentHandler(store=store),
        matcher=AuthorityMatcher(),
        storage=storage,
    )


_services: Optional[CityServices] = None


def get_services() -> CityServices:
    """Get the global service container."""
    global _services
    if _services is None:
        _services = build_services()
    return _services


# ============================================================================
# Helper Functions
# ============================================================================

def current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_email: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
    services: CityServices = Depends(get_services),
) -> UserProfile:
    """Resolve the signed-in user from the identity headers."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentication required")

    profile = services.profiles.ensure_profile(x_user_id, x_user_email or "", x_user_name)

    if not profile.is_admin and x_user_id in settings.admin_uid_set:
        profile = services.profiles.promote_to_admin(x_user_id)

    return profile


def require_admin(user: UserProfile = Depends(current_user)) -> UserProfile:
    """Reject non-admin users."""
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user


def incident_response(incident: Incident) -> IncidentResponse:
    return IncidentResponse(**incident.to_dict())


def routing_response(routing: Dict[str, Any]) -> RoutingResponse:
    services = [ServiceResponse(**s.to_dict()) for s in routing["services"]]
    return RoutingResponse(
        category=routing["category"],
        severity=routing["severity"],
        fallback=routing["fallback"],
        urgent=routing["urgent"],
        primary=services[0] if services else None,
        backup=services[1] if len(services) > 1 else None,
        count=len(services),
        services=services,
    )


def classify_incident(services: CityServices, incident_id: str) -> None:
    """Background task writing the AI analysis back onto an incident."""
    with services.classifier_factory() as classifier:
        incident = services.incidents.analyze_incident(
            incident_id, classifier, only_if_pending=True
        )
    if incident is None:
        logger.warning(f"Incident {incident_id} disappeared before classification")


@app.exception_handler(ReportingSuspendedError)
async def suspended_handler(request: Request, exc: ReportingSuspendedError):
    return JSONResponse(status_code=403, content={"detail": str(exc)})


# ============================================================================
# System Routes
# ============================================================================

@app.get("/", response_class=HTMLResponse)
async def root():
    """Welcome page."""
    return """
    <!DOCTYPE html>
    <html>
    <head>
        <title>CityWatch</title>
        <style>
            body { font-family: Arial; max-width: 900px; margin: 50px auto; padding: 20px; background: #0f172a; color: #e2e8f0; }
            h1 { color: #38bdf8; }
            h3 { color: #a5b4fc; margin-top: 30px; }
            a { color: #38bdf8; }
            code { background: #1e293b; padding: 2px 8px; border-radius: 4px; color: #a5b4fc; }
            .endpoint { background: #1e293b; padding: 10px; margin: 5px 0; border-radius: 4px; border-left: 3px solid #38bdf8; }
            .tag { display: inline-block; background: #38bdf8; color: #0f172a; padding: 2px 8px; border-radius: 3px; font-size: 12px; margin-right: 5px; }
        </style>
    </head>
    <body>
        <h1>🏙️ CityWatch</h1>
        <p>Report city issues, get them triaged by PulseAI and routed to the right authority.</p>

        <h3>📚 Documentation</h3>
        <ul>
            <li><a href="/docs">Swagger UI - Interactive API Documentation</a></li>
            <li><a href="/redoc">ReDoc - Alternative Documentation</a></li>
            <li><a href="/health">Health Check</a></li>
        </ul>

        <h3>📝 Citizens</h3>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/analyze</code> - Preview AI analysis</div>
        <div class="endpoint"><span class="tag">POST</span> <code>/api/v1/incidents</code> - Report an incident</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/incidents/mine</code> - My reports</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/users/me/standing</code> - My score and badge</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/notifications</code> - My notifications</div>

        <h3>🛡️ Administrators</h3>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/admin/incidents</code> - Review queue</div>
        <div class="endpoint"><span class="tag">PUT</span> <code>/api/v1/admin/incidents/{id}/status</code> - Accept or reject</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/admin/incidents/{id}/authorities</code> - Route to authorities</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/admin/stats</code> - Statistics</div>

        <h3>🚑 Authorities</h3>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/authorities</code> - Nearby authorities</div>
        <div class="endpoint"><span class="tag">GET</span> <code>/api/v1/emergency-contacts</code> - Helpline numbers</div>
    </body>
    </html>
    """


@app.get("/health", response_model=HealthResponse, tags=["System"])
def health_check(services: CityServices = Depends(get_services)):
    """Check API health status and module availability."""
    storage_ok = services.store.check_connection()

    modules = {
        "storage": services.storage,
        "storage_ok": storage_ok,
        "ai_configured": bool(settings.gemini_api_key),
        "authorities": len(services.matcher.directory),
    }

    return HealthResponse(
        status="healthy" if storage_ok else "degraded",
        version=__version__,
        timestamp=datetime.utcnow().isoformat(),
        modules=modules,
    )


# ============================================================================
# Analysis Routes
# ============================================================================

@app.post("/api/v1/analyze", response_model=AnalysisModel, tags=["Analysis"])
def analyze_description(
    request: AnalyzeRequest,
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """
    Preview the AI analysis of a description before submitting.

    Falls back to a manual-review analysis when the classifier is
    unavailable.
    """
    try:
        with services.classifier_factory() as classifier:
            analysis = classifier.analyze(request.description)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return AnalysisModel(**analysis.to_dict())


# ============================================================================
# Citizen Routes
# ============================================================================

@app.post("/api/v1/incidents", response_model=IncidentResponse, status_code=201, tags=["Incidents"])
def create_incident(
    request: IncidentCreateRequest,
    background_tasks: BackgroundTasks,
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """
    Report an incident.

    Suspended citizens cannot report. Without a preview analysis the
    incident is classified in the background.
    """
    analysis = AIAnalysis.from_dict(request.analysis.model_dump()) if request.analysis else None

    try:
        incident = services.incidents.submit_incident(
            user=user,
            description=request.description,
            latitude=request.latitude,
            longitude=request.longitude,
            address=request.address,
            analysis=analysis,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if incident.analysis_pending:
        background_tasks.add_task(classify_incident, services, incident.id)

    return incident_response(incident)


@app.get("/api/v1/incidents/mine", response_model=IncidentListResponse, tags=["Incidents"])
def list_my_incidents(
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """List the signed-in citizen's incidents, newest first."""
    incidents = services.incidents.list_user_incidents(user.uid)
    return IncidentListResponse(
        count=len(incidents),
        incidents=[incident_response(i) for i in incidents],
    )


@app.get("/api/v1/incidents/{incident_id}", response_model=IncidentResponse, tags=["Incidents"])
def get_incident(
    incident_id: str,
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """Get an incident. Citizens only see their own."""
    incident = services.incidents.get_incident(incident_id)
    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")
    if incident.user_id != user.uid and not user.is_admin:
        raise HTTPException(status_code=403, detail="Not your incident")
    return incident_response(incident)


@app.get("/api/v1/users/me", response_model=ProfileResponse, tags=["Users"])
def get_my_profile(user: UserProfile = Depends(current_user)):
    """Get the signed-in user's profile."""
    return ProfileResponse(**user.to_dict())


@app.get("/api/v1/users/me/standing", response_model=StandingResponse, tags=["Users"])
def get_my_standing(
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """Score, badge and whether the user may still report."""
    standing = services.profiles.get_standing(user.uid)
    if not standing:
        raise HTTPException(status_code=404, detail="Profile not found")
    return StandingResponse(**standing)


@app.get("/api/v1/notifications", response_model=NotificationListResponse, tags=["Notifications"])
def list_notifications(
    unread_only: bool = Query(default=False),
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """List the signed-in user's notifications, newest first."""
    notifications = services.notifications.list_for_user(user.uid)
    unread = sum(1 for n in notifications if not n.is_read)
    if unread_only:
        notifications = [n for n in notifications if not n.is_read]

    return NotificationListResponse(
        count=len(notifications),
        unread_count=unread,
        notifications=[NotificationResponse(**n.to_dict()) for n in notifications],
    )


@app.put("/api/v1/notifications/{notification_id}/read", response_model=NotificationResponse, tags=["Notifications"])
def mark_notification_read(
    notification_id: str,
    user: UserProfile = Depends(current_user),
    services: CityServices = Depends(get_services),
):
    """Mark a notification as read."""
    notification = services.notifications.mark_read(notification_id, user_id=user.uid)
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return NotificationResponse(**notification.to_dict())


# ============================================================================
# Admin Routes
# ============================================================================

@app.get("/api/v1/admin/incidents", response_model=QueueResponse, tags=["Admin"])
def get_admin_queue(
    search: Optional[str] = Query(default=None, description="Text in description, address or reporter name"),
    severity: Optional[int] = Query(default=None, ge=MIN_SEVERITY, le=MAX_SEVERITY),
    status: Optional[str] = Query(default=None),
    tier: str = Query(default="all", description="all, elite, gold or high"),
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """
    Review queue ordered by reporter badge, severity and recency.
    """
    try:
        entries = services.incidents.admin_queue(
            search=search,
            severity=severity,
            status=status,
            tier=QueueTier(tier),
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return QueueResponse(
        count=len(entries),
        summary=services.incidents.queue_statistics(),
        incidents=[QueueIncidentResponse(**e.to_dict()) for e in entries],
    )


@app.get("/api/v1/admin/incidents/search", response_model=IncidentListResponse, tags=["Admin"])
def search_incidents(
    q: Optional[str] = Query(default=None, description="Search term"),
    status: Optional[str] = Query(default=None),
    category: Optional[str] = Query(default=None),
    severity: Optional[int] = Query(default=None),
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Search all incidents."""
    try:
        incidents = services.incidents.search_incidents(
            term=q, status=status, category=category, severity=severity
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return IncidentListResponse(
        count=len(incidents),
        incidents=[incident_response(i) for i in incidents],
    )


@app.put("/api/v1/admin/incidents/{incident_id}/status", response_model=IncidentResponse, tags=["Admin"])
def update_incident_status(
    incident_id: str,
    request: StatusUpdateRequest,
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """
    Update an incident's status.

    Resolving adds 10 points to the reporter's score, rejecting
    removes 20.
    """
    try:
        incident = services.incidents.update_status(
            incident_id, request.status, notes=request.notes, admin_id=admin.uid
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident_response(incident)


@app.put("/api/v1/admin/incidents/{incident_id}/analysis", response_model=IncidentResponse, tags=["Admin"])
def update_incident_analysis(
    incident_id: str,
    request: AnalysisModel,
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Manually override an incident's analysis."""
    analysis = AIAnalysis.from_dict(request.model_dump(exclude={"error"}))
    incident = services.incidents.update_analysis(incident_id, analysis)
    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident_response(incident)


@app.post("/api/v1/admin/incidents/{incident_id}/analyze", response_model=IncidentResponse, tags=["Admin"])
def reanalyze_incident(
    incident_id: str,
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Run the AI classifier again on an incident."""
    with services.classifier_factory() as classifier:
        incident = services.incidents.analyze_incident(incident_id, classifier)
    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")
    return incident_response(incident)


@app.get("/api/v1/admin/incidents/{incident_id}/authorities", response_model=RoutingResponse, tags=["Admin"])
def get_incident_authorities(
    incident_id: str,
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Authorities that should handle an incident."""
    incident = services.incidents.get_incident(incident_id)
    if not incident:
        raise HTTPException(status_code=404, detail="Incident not found")

    routing = services.matcher.route_incident(
        incident.latitude, incident.longitude, incident.category, incident.severity
    )
    return routing_response(routing)


@app.get("/api/v1/admin/stats", tags=["Admin"])
def get_admin_stats(
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Incident and reporter statistics."""
    users = services.store.list_users()
    return {
        "incidents": services.incidents.get_statistics(),
        "queue": services.incidents.queue_statistics(),
        "users": {
            "total": len(users),
            "recommended": sum(1 for u in users if u.is_recommended),
            "suspended": sum(1 for u in users if u.suspended),
            "warning": sum(1 for u in users if u.in_warning_zone),
        },
    }


@app.get("/api/v1/admin/recommended-users", response_model=List[ProfileResponse], tags=["Admin"])
def get_recommended_users(
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Elite and Gold citizens, highest score first."""
    return [ProfileResponse(**p.to_dict()) for p in services.profiles.recommended_users()]


@app.post("/api/v1/admin/users/sync-report-counts", tags=["Admin"])
def sync_report_counts(
    admin: UserProfile = Depends(require_admin),
    services: CityServices = Depends(get_services),
):
    """Recompute every profile's report counter from its incidents."""
    updated = services.profiles.sync_total_reports()
    return {"updated": updated}


# ============================================================================
# Authority Routes
# ============================================================================

@app.get("/api/v1/authorities", response_model=RoutingResponse, tags=["Authorities"])
def get_authorities(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    category: Optional[str] = Query(default=None, description="Incident category"),
    severity: Optional[int] = Query(default=None, ge=MIN_SEVERITY, le=MAX_SEVERITY),
    services: CityServices = Depends(get_services),
):
    """
    Authorities near a location for an incident category.

    Falls back to national helplines when nothing is in range.
    """
    routing = services.matcher.route_incident(latitude, longitude, category, severity)
    return routing_response(routing)


@app.get("/api/v1/emergency-contacts", tags=["Authorities"])
async def get_emergency_contacts(
    region: Optional[str] = Query(default=None, description="Region (default: configured region)"),
):
    """National emergency helpline numbers."""
    region = region or settings.emergency_region
    return {"region": region, "contacts": emergency_contacts(region)}


# ============================================================================
# Main
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
