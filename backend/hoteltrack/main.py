"""
HotelTrack 主应用入口
酒店前台运营控制台：房间、客人、预订与审批
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from hoteltrack import __version__
from hoteltrack.config import settings
from hoteltrack.database import init_db
from hoteltrack.routers import auth, rooms, guests, bookings, availability, approvals, staff, dashboard

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 初始化数据库
    init_db()

    # 注册可审批的操作
    from hoteltrack.services.approval_service import get_approval_registry
    registry = get_approval_registry()
    logger.info(f"{settings.APP_NAME} started ({len(registry.list_actions())} approval actions)")

    yield


# 创建应用
app = FastAPI(
    title=settings.APP_NAME,
    description="酒店前台运营控制台",
    version=__version__,
    lifespan=lifespan
)

# CORS 配置
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 注册路由
app.include_router(auth.router)
app.include_router(rooms.router)
app.include_router(guests.router)
app.include_router(bookings.router)
app.include_router(availability.router)
app.include_router(approvals.router)
app.include_router(staff.router)
app.include_router(dashboard.router)


@app.get("/")
def root():
    """根路径"""
    return {
        "name": settings.APP_NAME,
        "version": __version__,
    }


@app.get("/health")
def health_check():
    """健康检查"""
    return {"status": "healthy"}
