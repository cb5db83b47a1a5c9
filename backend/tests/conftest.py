"""
Pytest 配置和共享 fixtures
"""
import os

# 应用启动时的 init_db 使用内存库，避免测试写入工作目录
os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from hoteltrack.database import Base, get_db
from hoteltrack.models import ontology  # noqa
from hoteltrack.models.ontology import StaffUser, StaffRole, Room, RoomStatus, Guest
from hoteltrack.security.auth import get_password_hash, create_session_token
from hoteltrack.services.room_service import capacity_for
from hoteltrack.main import app


@pytest.fixture(scope="function")
def db_engine():
    """创建内存数据库引擎"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """创建数据库会话"""
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """创建测试客户端"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ============== 认证相关 Fixtures ==============

def make_staff_user(db, username, role, password="secret123", active=True, full_name=None):
    user = StaffUser(
        username=username,
        full_name=full_name or username.title(),
        password_hash=get_password_hash(password),
        role=role,
        active=active,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    """管理员账号"""
    return make_staff_user(db_session, "admin", StaffRole.ADMIN, full_name="Admin User")


@pytest.fixture
def staff_user(db_session):
    """普通员工账号"""
    return make_staff_user(db_session, "front1", StaffRole.STAFF, full_name="Front Desk")


@pytest.fixture
def admin_token(admin_user):
    return create_session_token(admin_user)


@pytest.fixture
def staff_token(staff_user):
    return create_session_token(staff_user)


@pytest.fixture
def admin_headers(admin_token):
    """管理员认证的请求头"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def staff_headers(staff_token):
    """普通员工认证的请求头"""
    return {"Authorization": f"Bearer {staff_token}"}


# ============== 实体相关 Fixtures ==============

def make_room(db, room_number, room_type="Double", status=RoomStatus.VACANT):
    room = Room(
        room_number=room_number,
        room_type=room_type,
        capacity=capacity_for(room_type),
        status=status,
    )
    db.add(room)
    db.commit()
    db.refresh(room)
    return room


def make_guest(db, full_name="Juan Dela Cruz", age=30, contact="09171234567"):
    guest = Guest(full_name=full_name, age=age, contact=contact)
    db.add(guest)
    db.commit()
    db.refresh(guest)
    return guest


@pytest.fixture
def sample_room(db_session):
    """Double 房 101（容量 2）"""
    return make_room(db_session, "101", "Double")


@pytest.fixture
def sample_guest(db_session):
    return make_guest(db_session)
