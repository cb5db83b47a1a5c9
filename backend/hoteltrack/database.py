"""
数据库配置 - SQLAlchemy 持久化层
所有业务规则由服务层保证，数据库不使用触发器或存储过程
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from hoteltrack.config import settings


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _build_engine(url: str):
    kwargs = {}
    if url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if _is_memory_url(url):
            # 内存库只能共享同一个连接
            kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


engine = _build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """依赖注入：获取数据库会话"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """初始化数据库表"""
    from hoteltrack.models import ontology  # noqa
    Base.metadata.create_all(bind=engine)

    # 文件型 SQLite 启用 WAL 模式以提高并发性能
    url = settings.DATABASE_URL
    if url.startswith("sqlite") and not _is_memory_url(url):
        with engine.connect() as conn:
            conn.execute(text("PRAGMA journal_mode=WAL"))
            conn.execute(text("PRAGMA synchronous=NORMAL"))
            conn.commit()
