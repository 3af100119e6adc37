import logging
import time
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from coursedesk.core import config
from coursedesk.core.errors import AppError
from coursedesk.database import init_db
from coursedesk.routes import auth_routes, course_routes, student_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

STARTED_AT = time.monotonic()

app = FastAPI(title='CourseDesk API', version=config.API_VERSION)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['*'],
    allow_headers=['*'],
)


def error_response(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'success': False, 'message': message, **extra},
    )


@app.exception_handler(AppError)
async def handle_app_error(_request: Request, exc: AppError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {'field': '.'.join(str(part) for part in error['loc'][1:]), 'message': error['msg']}
        for error in exc.errors()
    ]
    return error_response(400, 'Invalid request data', errors=errors)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response(404, 'Route not found')
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception('Unhandled error on %s %s', request.method, request.url.path)
    detail = 'Something went wrong' if config.is_production() else str(exc)
    return error_response(500, 'Internal server error', error=detail)


@app.on_event('startup')
def initialize_database() -> None:
    config.validate_runtime_config()
    try:
        init_db()
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')
    logger.info('CourseDesk API started in %s mode', config.APP_ENV)


@app.get('/')
def root():
    return {
        'success': True,
        'message': 'Student & Course Management API',
        'version': config.API_VERSION,
        'endpoints': {
            'auth': '/api/auth',
            'students': '/api/students',
            'courses': '/api/courses',
        },
    }


@app.get('/health')
def health():
    return {
        'success': True,
        'status': 'OK',
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'uptime': round(time.monotonic() - STARTED_AT, 3),
    }


app.include_router(auth_routes.router, prefix='/api/auth')
app.include_router(student_routes.router, prefix='/api/students')
app.include_router(course_routes.router, prefix='/api/courses')
