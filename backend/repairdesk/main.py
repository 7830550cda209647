"""FastAPI application entrypoint and HTTP controllers.

This module wires middleware and defines the HTTP endpoints of the
repair-shop backend. Controllers are intentionally thin: they accept
requests, delegate to services, and shape responses through schemas.

Endpoints implemented:
- GET  /
- GET  /health
- POST /user
- POST /login
- POST /api/repair               (customer)
- GET  /api/repair               (admin)
- PUT  /api/repair/{id}/reply    (admin)
- GET  /api/my-requests          (customer)
- POST /api/parts                (admin, multipart)
- GET  /api/parts                (admin)
- PUT  /api/parts/{id}           (admin)
- GET  /api/customer/parts       (customer)
"""

from typing import List, Optional
from fastapi import APIRouter, FastAPI, Depends, UploadFile, File, HTTPException, Form, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlmodel import Session
from starlette.exceptions import HTTPException as StarletteHTTPException
import json
import logging
import time
import uuid
from .auth import Identity, require_admin, require_customer
from .config import settings
from .database import create_db_and_tables, get_session
from . import schemas, services
from .utils.uploads import PUBLIC_PREFIX, get_upload_root, save_image

app = FastAPI(title="RepairDesk API")
logger = logging.getLogger("repairdesk.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.mount(PUBLIC_PREFIX, StaticFiles(directory=get_upload_root()), name="uploads")

create_db_and_tables()


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
        logger.exception(
            "request_failed %s",
            json.dumps(
                {
                    "request_id": req_id,
                    "path": request.url.path,
                    "method": request.method,
                    "duration_ms": elapsed_ms,
                    "client": request.client.host if request.client else "unknown",
                },
                ensure_ascii=True,
            ),
        )
        return JSONResponse(status_code=500, content={"message": "Server error"}, headers={"X-Request-ID": req_id})
    response.headers["X-Request-ID"] = req_id
    elapsed_ms = round((time.perf_counter() - started) * 1000.0, 2)
    logger.info(
        "request_done %s",
        json.dumps(
            {
                "request_id": req_id,
                "path": request.url.path,
                "method": request.method,
                "status_code": response.status_code,
                "duration_ms": elapsed_ms,
                "client": request.client.host if request.client else "unknown",
            },
            ensure_ascii=True,
        ),
    )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.detail}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    # bad input is a 400 here, not FastAPI's 422
    details = [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in exc.errors()]
    return JSONResponse(status_code=400, content=jsonable_encoder({"error": "Invalid request", "details": details}))


@app.get("/")
def home():
    """Liveness greeting kept for existing clients."""
    return {"message": "Hello World"}


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}


@app.post('/user', status_code=201, response_model=schemas.AuthOut)
def signup(payload: schemas.SignupIn, db: Session = Depends(get_session)):
    """Register a user and return a token with the created record.

    The response never contains the password hash.
    """
    svc = services.AuthService(db)
    try:
        user, token = svc.signup(
            email=payload.email,
            name=payload.name,
            password=payload.password,
            contact=payload.contact,
            address=payload.address,
            role=payload.role,
        )
    except services.DuplicateEmailError:
        raise HTTPException(status_code=400, detail='Email already exists')
    return schemas.AuthOut(message='User created successfully', token=token, data=schemas.UserOut.model_validate(user))


@app.post('/login', response_model=schemas.AuthOut)
def login(payload: schemas.LoginIn, db: Session = Depends(get_session)):
    """Authenticate a user and return a one-hour JWT token."""
    svc = services.AuthService(db)
    try:
        user, token = svc.login(payload.email, payload.password)
    except services.InvalidCredentialsError:
        raise HTTPException(status_code=400, detail='Invalid email or password')
    return schemas.AuthOut(message='Login successful', token=token, data=schemas.UserOut.model_validate(user))


router = APIRouter(prefix="/api")


@router.post('/repair', status_code=201, response_model=schemas.SupportRequestOut)
def create_repair_request(payload: schemas.RepairRequestIn, db: Session = Depends(get_session),
                          identity: Identity = Depends(require_customer)):
    """Submit a repair request; it starts in `Pending`."""
    svc = services.SupportService(db)
    try:
        request = svc.create(payload.user_id, payload.device, payload.issue, payload.scheduled)
    except ValueError as e:
        return JSONResponse(status_code=400, content={'error': str(e)})
    return schemas.SupportRequestOut.model_validate(request)


@router.get('/repair', response_model=List[schemas.SupportRequestWithUser])
def list_repair_requests(db: Session = Depends(get_session), identity: Identity = Depends(require_admin)):
    """Return every support request with its owning user."""
    rows = services.SupportService(db).list_all()
    return [schemas.SupportRequestWithUser.model_validate(r) for r in rows]


@router.put('/repair/{request_id}/reply', response_model=schemas.SupportRequestOut)
def reply_to_request(request_id: int, payload: schemas.ReplyIn, db: Session = Depends(get_session),
                     identity: Identity = Depends(require_admin)):
    """Store the admin's reply and mark the request `Approved`."""
    svc = services.SupportService(db)
    try:
        request = svc.reply(request_id, payload.admin_message)
    except services.NotFoundError:
        raise HTTPException(status_code=404, detail='Support request not found')
    return schemas.SupportRequestOut.model_validate(request)


@router.get('/my-requests', response_model=List[schemas.SupportRequestOut])
def my_requests(db: Session = Depends(get_session), identity: Identity = Depends(require_customer)):
    """Return the caller's own requests, newest first."""
    rows = services.SupportService(db).list_for_user(identity.id)
    return [schemas.SupportRequestOut.model_validate(r) for r in rows]


@router.post('/parts', status_code=201, response_model=schemas.SparePartOut)
def add_spare_part(
    name: str = Form(...),
    stock: int = Form(...),
    image: Optional[UploadFile] = File(default=None),
    db: Session = Depends(get_session),
    identity: Identity = Depends(require_admin),
):
    """Add a spare part; an optional image is stored under `/uploads`."""
    svc = services.PartsService(db)
    # reject bad input before anything touches the upload directory
    try:
        name = svc.clean_name(name)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    image_path = save_image(image) if image is not None and image.filename else None
    part = svc.create(name, stock, image_path)
    return schemas.SparePartOut.model_validate(part)


@router.get('/parts', response_model=List[schemas.SparePartOut])
def list_parts(db: Session = Depends(get_session), identity: Identity = Depends(require_admin)):
    return [schemas.SparePartOut.model_validate(p) for p in services.PartsService(db).list_all()]


@router.put('/parts/{part_id}', response_model=schemas.SparePartOut)
def update_part_stock(part_id: int, payload: schemas.StockUpdateIn, db: Session = Depends(get_session),
                      identity: Identity = Depends(require_admin)):
    """Overwrite a part's stock. Negative values are stored as given."""
    try:
        part = services.PartsService(db).update_stock(part_id, payload.stock)
    except services.NotFoundError:
        raise HTTPException(status_code=404, detail='Spare part not found')
    return schemas.SparePartOut.model_validate(part)


@router.get('/customer/parts', response_model=List[schemas.SparePartOut])
def list_parts_for_customer(db: Session = Depends(get_session), identity: Identity = Depends(require_customer)):
    """Read-only parts catalogue for customers."""
    return [schemas.SparePartOut.model_validate(p) for p in services.PartsService(db).list_all()]


app.include_router(router)
